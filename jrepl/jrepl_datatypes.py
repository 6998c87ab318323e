"""
Defines the core data types shared by the javarepl engine.

This module holds the slice-edit record, the materialized program view
handed to the toolchain, the compile/run outcome variants and the error
hierarchy used across the REPL.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


# =================================================================
# Errors
# =================================================================

class ReplError(Exception):
    """Base class for all errors raised by the REPL engine."""
    pass


class LineIndexError(ReplError):
    """A staged slice edit addresses a line outside the valid statements."""
    def __init__(self, index: int, size: int):
        super().__init__(f"line index {index} out of range for {size} line(s)")
        self.index = index
        self.size = size


class ToolchainError(ReplError):
    """The external compiler or runtime cannot be used. Not recoverable."""
    pass


# =================================================================
# Accumulator State
# =================================================================

class SliceMode(Enum):
    """Type of colon/slice command in flight."""
    NONE = "none"
    INSERT = "insert"
    REPLACE = "replace"


@dataclass
class PendingEdit:
    """An insert or replace addressed against the valid statements."""
    mode: SliceMode
    index: int
    new_text: str
    # The line a replace overwrote, captured when the program is materialized.
    replaced_text: Optional[str] = None


@dataclass
class MaterializedProgram:
    """The full program for a single compile/run attempt."""
    imports: List[str] = field(default_factory=list)
    statements: List[str] = field(default_factory=list)
    # Post-edit valid statements plus the trial statements to commit.
    staged_statements: List[str] = field(default_factory=list)
    auto_print: str = ""


# =================================================================
# Compile/Run Outcomes
# =================================================================

@dataclass
class CompileFailure:
    message: str


@dataclass
class RunFailure:
    message: str


@dataclass
class Success:
    stdout: str = ""


Outcome = Union[CompileFailure, RunFailure, Success]
