import importlib.util
import sys
import uuid
from pathlib import Path

import pytest

from jrepl.jrepl_datatypes import CompileFailure, Success, ToolchainError

from conftest import FakeToolchain


def _load_repl_module():
    """Dynamically load the top-level javarepl.py as a module with a unique name."""
    repl_path = Path(__file__).resolve().parents[1] / "javarepl.py"
    mod_name = f"javarepl_for_test_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(mod_name, str(repl_path))
    mod = importlib.util.module_from_spec(spec)
    sys.modules[mod_name] = mod
    assert spec.loader is not None
    spec.loader.exec_module(mod)
    return mod


@pytest.fixture
def repl(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    for var in ("JAVAREPL_JAVAC", "JAVAREPL_JAVA", "JAVAREPL_TIMEOUT"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr(sys, "argv", ["javarepl"])
    mod = _load_repl_module()
    monkeypatch.setattr(mod, "setup_logging", lambda path: None)
    return mod


def _feed(monkeypatch, repl, lines, toolchain):
    it = iter(lines)

    async def fake_ainput(prompt: str) -> str:
        return next(it)
    monkeypatch.setattr(repl, "ainput", fake_ainput)
    monkeypatch.setattr(repl, "build_toolchain", lambda settings: toolchain)


@pytest.mark.asyncio
async def test_repl_exit_immediately(repl, monkeypatch, capsys):
    toolchain = FakeToolchain()
    _feed(monkeypatch, repl, ["exit\n"], toolchain)
    await repl.main()
    out = capsys.readouterr().out
    assert "| Java REPL" in out
    assert "Hi - type 'help' for command list." in out
    assert "Bye." in out
    assert toolchain.cleaned


@pytest.mark.asyncio
async def test_repl_eof_quits(repl, monkeypatch, capsys):
    toolchain = FakeToolchain()
    _feed(monkeypatch, repl, [""], toolchain)
    await repl.main()
    assert "Bye." in capsys.readouterr().out
    assert toolchain.cleaned


@pytest.mark.asyncio
async def test_repl_session_round_trip(repl, monkeypatch, tmp_path, capsys):
    toolchain = FakeToolchain([Success(""), Success(""), Success("5"), CompileFailure("error: oops")])
    _feed(monkeypatch, repl, ["int x = 5;\n", "x\n", "nope(\n", "code\n", "quit\n"], toolchain)
    await repl.main()
    out = capsys.readouterr().out
    assert "\n5\n" in out
    assert "| Compile Error" in out
    assert " 1 | int x = 5;" in out
    history = (tmp_path / ".javarepl_history").read_text(encoding="utf-8")
    assert history.splitlines() == ["int x = 5;", "x", "nope(", "code", "quit"]


@pytest.mark.asyncio
async def test_repl_loads_default_startup_file(repl, monkeypatch, tmp_path, capsys):
    (tmp_path / ".javarepl").write_text("import java.util.*;\naddline int a = 1;\n", encoding="utf-8")
    toolchain = FakeToolchain()
    _feed(monkeypatch, repl, ["exit\n"], toolchain)
    await repl.main()
    assert "Loading config file..." in capsys.readouterr().out
    assert toolchain.calls == [(["import java.util.*;"], ["int a = 1;"], [])]


@pytest.mark.asyncio
async def test_repl_missing_toolchain_is_fatal(repl, monkeypatch, capsys):
    def no_toolchain(settings):
        raise ToolchainError("COULD NOT FIND JAVA TOOL: javac")
    monkeypatch.setattr(repl, "build_toolchain", no_toolchain)
    with pytest.raises(SystemExit) as exc:
        await repl.main()
    assert exc.value.code == 1
    assert "COULD NOT FIND JAVA TOOL" in capsys.readouterr().err


def test_setup_logging_writes_to_file(tmp_path):
    import logging
    mod = _load_repl_module()
    logger = logging.getLogger("jrepl")
    before = list(logger.handlers)
    log_path = tmp_path / "javarepl.log"
    mod.setup_logging(str(log_path))
    try:
        logging.getLogger("jrepl.jrepl_code").info("class path added: %s", "/tmp/x.jar")
        for handler in logger.handlers:
            handler.flush()
        assert "class path added: /tmp/x.jar" in log_path.read_text(encoding="utf-8")
    finally:
        for handler in [h for h in logger.handlers if h not in before]:
            logger.removeHandler(handler)
            handler.close()
        logger.propagate = True
        logger.setLevel(logging.NOTSET)


@pytest.mark.asyncio
async def test_ainput_reads_through_input(repl, monkeypatch):
    lines = iter(["int a = 1;"])

    def fake_input(prompt):
        try:
            return next(lines)
        except StopIteration:
            raise EOFError
    monkeypatch.setattr("builtins.input", fake_input)
    assert await repl.ainput("java> ") == "int a = 1;\n"
    assert await repl.ainput("java> ") == ""


@pytest.mark.asyncio
async def test_repl_history_is_recallable(repl, monkeypatch, tmp_path, capsys):
    import jrepl.jrepl_config as config_mod

    recalled = []

    class FakeReadline:
        def clear_history(self):
            recalled.clear()

        def set_history_length(self, n):
            pass

        def add_history(self, line):
            recalled.append(line)

    monkeypatch.setattr(config_mod, "readline", FakeReadline())
    (tmp_path / ".javarepl_history").write_text("int x = 5;\nx", encoding="utf-8")
    _feed(monkeypatch, repl, ["exit\n"], FakeToolchain())
    await repl.main()
    assert "Loading history..." in capsys.readouterr().out
    assert recalled == ["int x = 5;", "x"]
