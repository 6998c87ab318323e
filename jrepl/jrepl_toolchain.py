"""
Renders accumulated code into a Java source file, then compiles and runs it
with the external JDK tools.
"""

import asyncio
import logging
import os
import re
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional, Tuple

import pystache

from jrepl.jrepl_datatypes import CompileFailure, Outcome, RunFailure, Success, ToolchainError

logger = logging.getLogger(__name__)

DEFAULT_CLASS_NAME = "ReplTmpInstance"
TEMPLATE_PATH = Path(__file__).parent / "repl_template.java"

_LEADING_LINE_NUMBER = re.compile(r'^([0-9]+:\s*)')


# ===================================================================
# Rendering
# ===================================================================

def load_template() -> str:
    try:
        return TEMPLATE_PATH.read_text(encoding="utf-8")
    except OSError as e:
        raise ToolchainError(f"Template file doesn't exist: {TEMPLATE_PATH}") from e


def render(imports: List[str], statements: List[str],
           class_name: str = DEFAULT_CLASS_NAME,
           template: Optional[str] = None) -> str:
    """Render imports and statements into compilable Java source (Mustache)."""
    template = template or load_template()
    # Code goes in verbatim; no HTML escaping.
    renderer = pystache.Renderer(escape=lambda u: u)
    return renderer.render(template, {
        "imports": list(imports),
        "statements": list(statements),
        "class_name": class_name,
    })


def class_path_arg(paths: List[str]) -> str:
    return os.pathsep.join(paths)


def find_executable(name: str) -> str:
    """Locate a JDK tool on PATH, then under $JAVA_HOME/bin."""
    found = shutil.which(name)
    if found:
        return found
    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        for candidate in (name, name + ".exe"):
            found = shutil.which(os.path.join(java_home, "bin", candidate))
            if found:
                return found
    raise ToolchainError(f"COULD NOT FIND JAVA TOOL: {name}")


# ===================================================================
# Toolchain
# ===================================================================

class JavaToolchain:
    """Compiles and runs the rendered program in a private temp directory."""

    def __init__(self, compiler: str = "javac", runtime: str = "java",
                 timeout: Optional[float] = 30.0, class_name: str = DEFAULT_CLASS_NAME):
        self.compiler = find_executable(compiler)
        self.runtime = find_executable(runtime)
        self.timeout = timeout
        self.class_name = class_name
        self.template = load_template()
        self.tmp_dir = tempfile.mkdtemp(prefix="javarepl")
        self.source_path = os.path.join(self.tmp_dir, f"{class_name}.java")

    def write_source(self, imports: List[str], statements: List[str]) -> str:
        source = render(imports, statements, self.class_name, self.template)
        with open(self.source_path, "w", encoding="utf-8") as f:
            f.write(source)
        return source

    async def _run(self, argv: List[str]) -> Tuple[int, str]:
        """Run one process; stdout and stderr are merged."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            raise ToolchainError(f"could not start {argv[0]}: {e}") from e
        try:
            out, _ = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            try:
                proc.kill()
            except ProcessLookupError:
                # Exited between the timeout and the kill.
                pass
            await proc.wait()
            logger.warning("%s timed out after %ss", argv[0], self.timeout)
            return -1, f"timed out after {self.timeout}s"
        return proc.returncode, out.decode("utf-8", errors="replace").strip()

    async def compile_and_run(self, imports: List[str], statements: List[str],
                              class_paths: List[str]) -> Outcome:
        self.write_source(imports, statements)
        cp = class_path_arg([self.tmp_dir] + list(class_paths))

        status, output = await self._run([self.compiler, "-cp", cp, self.source_path])
        if status != 0:
            logger.info("compile failed (status %s)", status)
            return CompileFailure(output)

        status, output = await self._run([self.runtime, "-cp", cp, self.class_name])
        if status != 0:
            logger.info("run failed (status %s)", status)
            return RunFailure(output)
        return Success(output)

    def clean_error_output(self, output: str, auto_print: str = "") -> str:
        """Strip temp file and class noise from compiler output."""
        result = output.replace(f"location: class {self.class_name}", "")
        result = result.replace(self.source_path + ":", "")
        result = result.replace("\n\n", " ")
        result = result.replace("\t", " ")
        if auto_print:
            result = result.replace(auto_print, "")
        return _LEADING_LINE_NUMBER.sub("", result, count=1)

    def cleanup(self):
        try:
            shutil.rmtree(self.tmp_dir)
        except OSError as e:
            logger.warning("Could NOT delete temp directory: %s (%s)", self.tmp_dir, e)
