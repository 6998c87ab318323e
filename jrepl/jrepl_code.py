"""
The code accumulator: known-good program text versus speculative text.

Imports and statements only become valid after the whole accumulated
program has compiled and run successfully with them in it. Everything
else is trial code that is committed or discarded as a unit once the
attempt resolves.
"""

import logging
import os
from typing import List, Optional

from jrepl.jrepl_datatypes import LineIndexError, MaterializedProgram, PendingEdit, SliceMode
from jrepl.jrepl_parser import is_import_line

logger = logging.getLogger(__name__)

AUTO_PRINT_FUNCTION = "outputToString"


def auto_print_wrapper(expression: str) -> str:
    return f"{AUTO_PRINT_FUNCTION}({expression});"


def wants_auto_print(line: str) -> bool:
    """A bare expression or identifier: no statement terminator, no spaces."""
    if not line:
        return False
    return line[-1] not in (';', '}') and ' ' not in line


class CodeAccumulator:
    """Owns the import/statement buffers and the commit/rollback protocol.

    There is one accumulator per REPL process. It is not safe for
    concurrent access; callers must serialize every operation.
    """

    def __init__(self):
        self.valid_imports: List[str] = []
        self.valid_statements: List[str] = []
        self.trial_imports: List[str] = []
        self.trial_statements: List[str] = []
        self.once_statements: List[str] = []
        self.pending_edit: Optional[PendingEdit] = None
        # Additive only; used by every compile and run.
        self.class_paths: List[str] = []
        self._staged: Optional[MaterializedProgram] = None

    # --- Trial input -------------------------------------------------

    def add_import(self, line: str) -> bool:
        if not is_import_line(line):
            return False
        self.trial_imports.append(line)
        return True

    def add_class_path(self, path: str) -> bool:
        if not os.path.exists(path):
            return False
        self.class_paths.append(path)
        logger.info("class path added: %s", path)
        return True

    def add_trial_statement(self, line: str):
        self.trial_statements.append(line)

    def add_once_statement(self, line: str):
        self.once_statements.append(line)

    def begin_insert(self, index: int, code: str):
        self.pending_edit = PendingEdit(SliceMode.INSERT, index, code)

    def begin_replace(self, index: int, code: str):
        self.pending_edit = PendingEdit(SliceMode.REPLACE, index, code)

    def remove_statement(self, index: int) -> bool:
        """Remove a valid statement right away. Not staged."""
        if 0 <= index < len(self.valid_statements):
            del self.valid_statements[index]
            return True
        return False

    def has_pending(self) -> bool:
        return bool(self.trial_imports or self.trial_statements
                    or self.once_statements or self.pending_edit)

    # --- Materialize -------------------------------------------------

    def _apply_edit(self, statements: List[str]) -> List[str]:
        edit = self.pending_edit
        if edit is None:
            return statements
        size = len(statements)
        if edit.mode is SliceMode.INSERT:
            if not 0 <= edit.index <= size:
                raise LineIndexError(edit.index, size)
            statements.insert(edit.index, edit.new_text)
        elif edit.mode is SliceMode.REPLACE:
            if not 0 <= edit.index < size:
                raise LineIndexError(edit.index, size)
            edit.replaced_text = statements[edit.index]
            statements[edit.index] = edit.new_text
        return statements

    def materialize(self) -> MaterializedProgram:
        """Build the program for one compile/run attempt.

        The valid buffers are left untouched; the post-edit sequence is
        kept aside until the attempt is committed or rolled back.
        """
        edited = self._apply_edit(list(self.valid_statements))
        trial = list(self.trial_statements)
        statements = edited + trial + self.once_statements

        auto_print = ""
        if statements and wants_auto_print(statements[-1]):
            expression = statements.pop()
            auto_print = auto_print_wrapper(expression)
            statements.append(auto_print)
            # A bare expression typed as a new line is shown, never kept.
            if trial and not self.once_statements:
                trial.pop()

        program = MaterializedProgram(
            imports=self.valid_imports + self.trial_imports,
            statements=statements,
            staged_statements=edited + trial,
            auto_print=auto_print,
        )
        self._staged = program
        return program

    # --- Resolve -----------------------------------------------------

    def _reset(self):
        self.trial_imports = []
        self.trial_statements = []
        self.once_statements = []
        self.pending_edit = None
        self._staged = None

    def on_compile_and_run_success(self):
        staged = self._staged if self._staged is not None else self.materialize()
        self.valid_imports.extend(self.trial_imports)
        self.valid_statements = list(staged.staged_statements)
        logger.debug("committed %d import(s), %d statement(s)",
                     len(self.valid_imports), len(self.valid_statements))
        self._reset()

    def on_compile_and_run_failure(self):
        if self.pending_edit is not None:
            logger.debug("rolled back %s at index %d",
                         self.pending_edit.mode.value, self.pending_edit.index)
        self._reset()
