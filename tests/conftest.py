"""Shared test fixtures for javarepl tests."""
import pytest

from jrepl.jrepl_code import CodeAccumulator
from jrepl.jrepl_datatypes import Success
from jrepl.jrepl_session import ReplSession


class FakeToolchain:
    """Records compile/run requests and replays scripted outcomes."""

    def __init__(self, outcomes=None):
        self.outcomes = list(outcomes or [])
        self.calls = []
        self.cleaned = False

    async def compile_and_run(self, imports, statements, class_paths):
        self.calls.append((list(imports), list(statements), list(class_paths)))
        if self.outcomes:
            return self.outcomes.pop(0)
        return Success("")

    def clean_error_output(self, output, auto_print=""):
        return output.replace(auto_print, "") if auto_print else output

    def cleanup(self):
        self.cleaned = True


@pytest.fixture
def toolchain():
    return FakeToolchain()


@pytest.fixture
def session(toolchain):
    return ReplSession(CodeAccumulator(), toolchain)
