"""
The REPL session: routes parsed input lines to the accumulator and the
presentation helpers, and drives each compile/run attempt to a commit or
a rollback.
"""
import logging
import os
from typing import List, Optional

from jrepl.jrepl_code import CodeAccumulator
from jrepl.jrepl_config import History, read_startup_lines
from jrepl.jrepl_datatypes import (
    CompileFailure, LineIndexError, Outcome, RunFailure, Success, ToolchainError
)
from jrepl.jrepl_lines import resolve
from jrepl.jrepl_parser import CommandKind, ParsedLine, parse_line
from jrepl.jrepl_printer import (
    clear_screen, output_code_lines, output_error, output_failure,
    output_help_menu, output_title, transmit_success
)

logger = logging.getLogger(__name__)

PROMPT = "java> "
CONTINUATION_PROMPT = "... "


class ReplSession:
    """One interactive session over a single code accumulator."""

    def __init__(self, code: CodeAccumulator, toolchain, history: Optional[History] = None):
        self.code = code
        self.toolchain = toolchain
        self.history = history
        self.running = True
        self._block: List[str] = []
        self._block_depth = 0

    @property
    def prompt(self) -> str:
        return CONTINUATION_PROMPT if self._block else PROMPT

    # ===================================================================
    # Compile & Run
    # ===================================================================

    async def generate_compile_and_run(self) -> Optional[Outcome]:
        """Materialize, compile and run, then commit or roll back."""
        try:
            program = self.code.materialize()
        except LineIndexError as e:
            output_failure(str(e))
            self.code.on_compile_and_run_failure()
            return None

        try:
            outcome = await self.toolchain.compile_and_run(
                program.imports, program.statements, self.code.class_paths)
        except ToolchainError:
            self.code.on_compile_and_run_failure()
            raise

        match outcome:
            case Success(stdout=out):
                if out:
                    print(out)
                self.code.on_compile_and_run_success()
            case CompileFailure(message=msg):
                output_error("Compile Error", self.toolchain.clean_error_output(msg, program.auto_print))
                self.code.on_compile_and_run_failure()
            case RunFailure(message=msg):
                if program.auto_print:
                    msg = msg.replace(program.auto_print, "")
                output_error("Run Error", msg)
                self.code.on_compile_and_run_failure()
        return outcome

    # ===================================================================
    # Dispatch
    # ===================================================================

    async def parse_line(self, line: str, execute_now: bool = True) -> ParsedLine:
        parsed = parse_line(line, execute_now)
        await self.dispatch(parsed)
        return parsed

    async def dispatch(self, parsed: ParsedLine):
        match parsed.kind:
            case CommandKind.SLICE:
                await self._slice_command(parsed)
            case CommandKind.KEYWORD:
                await self._keyword_command(parsed)
            case CommandKind.HELP:
                output_help_menu()
            case CommandKind.CLEAR:
                clear_screen()
            case CommandKind.CODE:
                output_code_lines(self.code.valid_statements)
            case CommandKind.RUN:
                if parsed.execute_now:
                    await self.generate_compile_and_run()
            case CommandKind.QUIT:
                if parsed.execute_now:
                    self.running = False
                else:
                    logger.info("ignoring '%s' in startup file", parsed.line)
            case CommandKind.COMMENT:
                pass
            case CommandKind.STATEMENT:
                self.code.add_trial_statement(parsed.line)
                if parsed.execute_now:
                    await self.generate_compile_and_run()

    async def _slice_command(self, parsed: ParsedLine):
        index = resolve(parsed.slice_ref, len(self.code.valid_statements))
        if parsed.is_insert:
            self.code.begin_insert(index, parsed.slice_code)
        elif parsed.is_replace:
            self.code.begin_replace(index, parsed.slice_code)
        elif not self.code.remove_statement(index):
            output_failure(parsed.line)

        if parsed.execute_now:
            await self.generate_compile_and_run()

    async def _keyword_command(self, parsed: ParsedLine):
        match parsed.keyword:
            case "addjar" | "addcp":
                transmit_success(self.code.add_class_path(parsed.argument), parsed.line)
            case "runonce":
                self.code.add_once_statement(parsed.argument)
                if parsed.execute_now:
                    await self.generate_compile_and_run()
            case "addline":
                self.code.add_trial_statement(parsed.argument)
                if parsed.execute_now:
                    await self.generate_compile_and_run()
            case "import":
                accepted = self.code.add_import(parsed.line)
                transmit_success(accepted, parsed.line)
                if accepted and parsed.execute_now:
                    # A new import restarts the session; keep history so far.
                    if self.history is not None:
                        self.history.save()
                    await self.generate_compile_and_run()

    # ===================================================================
    # Interactive Input
    # ===================================================================

    def _capture_block(self, line: str) -> Optional[str]:
        """Collect a brace-delimited block. Returns it once braces balance."""
        if not self._block and not line.endswith("{"):
            return None
        self._block.append(line)
        self._block_depth += line.count("{") - line.count("}")
        if self._block_depth > 0:
            return ""
        block = "\n".join(self._block)
        self._block = []
        self._block_depth = 0
        return block

    async def handle_input(self, raw: str) -> bool:
        """Handle one interactive line. Returns False when the loop should stop."""
        line = raw.strip()
        if not line:
            return self.running
        if self.history is not None:
            self.history.append(line)

        if parse_line(line).kind is CommandKind.QUIT:
            # An unfinished block is dropped.
            self._block = []
            self._block_depth = 0
            self.running = False
            return self.running

        block = self._capture_block(line)
        if block:
            self.code.add_trial_statement(block)
            await self.generate_compile_and_run()
        elif block is None:
            await self.parse_line(line, True)
        return self.running

    # ===================================================================
    # Startup
    # ===================================================================

    async def load_config_file(self, path: str) -> bool:
        """Replay a startup file without compiling each line."""
        if not os.path.exists(path):
            return False
        output_title(f"Loading config file...({path})")
        try:
            lines = read_startup_lines(path)
        except OSError as e:
            print(f"Error opening '{path}' - {e}")
            logger.warning("Error opening '%s': %s", path, e)
            return False
        for line in lines:
            if line.strip():
                await self.parse_line(line, execute_now=False)
        return True

    async def load_startup(self, path: Optional[str], default_path: str) -> bool:
        """Load `path`, falling back to the default startup file when missing."""
        if path is None or path == default_path:
            return await self.load_config_file(default_path)
        if os.path.exists(path):
            return await self.load_config_file(path)
        fallback = "" if path.endswith(".javarepl") else "Falling back to .javarepl attempt."
        output_title(f"Error {path} NOT FOUND. {fallback}".rstrip())
        return await self.load_config_file(default_path)

    async def boot(self) -> Optional[Outcome]:
        """Validate whatever the startup file accumulated in a single attempt."""
        return await self.generate_compile_and_run()
