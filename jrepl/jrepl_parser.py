"""
Classifies a line entered at the javarepl prompt.

A line is one of a closed set of command shapes, tried in order (first
match wins): slice edit (`i:`/`r:`), keyword command (`addjar ...`),
bare command (`help`, `code`, ...), comment, or plain code.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from jrepl.jrepl_lines import is_line_ref

# ===================================================================
# Grammar
# ===================================================================

IMPORT_LINE = re.compile(r'^import ([A-Za-z0-9_$.]+\*?);')

# Colon is a delimiter except inside single or double quotes.
_COLON_TOKEN = re.compile("[^:\"']+|\"[^\"]*\"|'[^']*'")
_KEYWORD_LINE = re.compile(r'^([^ ]+)[ ](.*)$')

SLICE_COMMANDS = ('i', 'r')
KEYWORDS = ('addjar', 'addcp', 'runonce', 'addline', 'import')


class CommandKind(Enum):
    SLICE = "slice"
    KEYWORD = "keyword"
    HELP = "help"
    CLEAR = "clear"
    CODE = "code"
    RUN = "run"
    QUIT = "quit"
    COMMENT = "comment"
    STATEMENT = "statement"


_BARE_COMMANDS = {
    'help': CommandKind.HELP,
    'h': CommandKind.HELP,
    'clear': CommandKind.CLEAR,
    'code': CommandKind.CODE,
    'run': CommandKind.RUN,
    'quit': CommandKind.QUIT,
    'exit': CommandKind.QUIT,
}


def is_import_line(line: str) -> bool:
    """True if `line` looks like a single-type or on-demand import."""
    if not line or not line.strip():
        return False
    return IMPORT_LINE.search(line) is not None


def parse_colon_line(line: str) -> List[str]:
    """Split a colon command into at most three parts: cmd, line ref, code.

    Everything from the third token on is joined back together with no
    separator, so a bare colon inside the code part is dropped while quoted
    colons survive.
    """
    tokens = _COLON_TOKEN.findall(line)
    if len(tokens) > 2:
        tokens = tokens[:2] + ["".join(tokens[2:])]
    return tokens


# ===================================================================
# Parsed Line
# ===================================================================

@dataclass
class ParsedLine:
    """The classification of one input line."""
    kind: CommandKind
    line: str
    execute_now: bool = True
    slice_cmd: str = ""
    slice_ref: str = ""
    slice_code: str = ""
    keyword: str = ""
    argument: str = ""

    @property
    def is_insert(self) -> bool:
        return self.kind is CommandKind.SLICE and self.slice_cmd == 'i'

    @property
    def is_replace(self) -> bool:
        return self.kind is CommandKind.SLICE and self.slice_cmd == 'r' and bool(self.slice_code)

    @property
    def is_remove(self) -> bool:
        return self.kind is CommandKind.SLICE and self.slice_cmd == 'r' and not self.slice_code


def _parse_slice(line: str, execute_now: bool) -> Optional[ParsedLine]:
    if line[:2] not in ('i:', 'r:'):
        return None
    parts = parse_colon_line(line)
    if len(parts) < 2 or parts[0] not in SLICE_COMMANDS:
        return None
    cmd, ref = parts[0], parts[1]
    code = parts[2] if len(parts) > 2 else ""
    if not is_line_ref(ref):
        return None
    if cmd == 'i' and not code:
        return None
    return ParsedLine(CommandKind.SLICE, line, execute_now,
                      slice_cmd=cmd, slice_ref=ref, slice_code=code)


def _parse_keyword(line: str, execute_now: bool) -> Optional[ParsedLine]:
    m = _KEYWORD_LINE.match(line)
    if not m or m.group(1) not in KEYWORDS:
        return None
    return ParsedLine(CommandKind.KEYWORD, line, execute_now,
                      keyword=m.group(1), argument=m.group(2))


def parse_line(raw: str, execute_now: bool = True) -> ParsedLine:
    """Classify `raw`. `execute_now` is False while replaying a startup file."""
    line = raw.strip()

    parsed = _parse_slice(line, execute_now) or _parse_keyword(line, execute_now)
    if parsed is not None:
        return parsed

    kind = _BARE_COMMANDS.get(line)
    if kind is not None:
        return ParsedLine(kind, line, execute_now)

    if line.startswith('#') or line.startswith('//'):
        return ParsedLine(CommandKind.COMMENT, line, execute_now)

    return ParsedLine(CommandKind.STATEMENT, line, execute_now)
