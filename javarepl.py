import asyncio
import logging
import os
import sys

from jrepl.jrepl_code import CodeAccumulator
from jrepl.jrepl_config import History, ReplSettings, load_settings
from jrepl.jrepl_datatypes import ToolchainError
from jrepl.jrepl_printer import output_title
from jrepl.jrepl_session import ReplSession
from jrepl.jrepl_toolchain import JavaToolchain

# An awaitable input prompt. `input` goes through readline, so earlier
# lines can be recalled and edited. Returns "" at end of input.
async def ainput(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    try:
        line = await loop.run_in_executor(None, input, prompt)
    except EOFError:
        return ""
    return line + "\n"

def setup_logging(path: str):
    """Send the jrepl loggers to a file so the console stays clean."""
    logger = logging.getLogger("jrepl")
    try:
        handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        print("Whoops, couldn't even load our logger!", file=sys.stderr)
        return
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    logger.propagate = False

def build_toolchain(settings: ReplSettings) -> JavaToolchain:
    return JavaToolchain(
        compiler=settings.compiler,
        runtime=settings.runtime,
        timeout=settings.timeout,
        class_name=settings.class_name,
    )

async def main():
    """Start the interactive REPL, optionally seeded from a startup file in argv[1]."""
    settings = load_settings()
    setup_logging(settings.log_path)

    output_title("Java REPL")
    print("Hi - type 'help' for command list.")

    history = History(settings.history_path, settings.history_size)
    if os.path.exists(settings.history_path):
        output_title("Loading history...")
        history.load()
        history.seed_readline()

    try:
        toolchain = build_toolchain(settings)
    except ToolchainError as e:
        print(f"\n{e}\n", file=sys.stderr)
        raise SystemExit(1)

    session = ReplSession(CodeAccumulator(), toolchain, history)
    startup = None
    if len(sys.argv) > 1 and not sys.argv[1].startswith("-"):
        startup = sys.argv[1]

    try:
        await session.load_startup(startup, settings.startup_path)
        await session.boot()

        # REPL Loop
        while session.running:
            try:
                raw = await ainput(session.prompt)
                if raw == "":
                    raise EOFError
                await session.handle_input(raw)
            except EOFError:
                break
    except ToolchainError as e:
        print(f"\n{e}\n", file=sys.stderr)
        raise SystemExit(1)
    finally:
        history.save()
        toolchain.cleanup()
        print("\n\nBye.\n")

def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nExiting.")

if __name__ == "__main__":
    run()
