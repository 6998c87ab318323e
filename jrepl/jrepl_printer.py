"""
Console presentation for the REPL: titles, result lines, the code listing
and the help catalogue.
"""
from pathlib import Path
from typing import Dict, List, Optional

import yaml

BAR_LEN = 60
HELP_PATH = Path(__file__).parent / "help.yaml"

_LINE_LEN = 79
_CMD_PAD = 10
_TAB_LEN = 4


def output_bar():
    print("-" * BAR_LEN)


def output_title(title: str):
    output_bar()
    print(f"| {title}")
    output_bar()


def output_error(title: str, content: str):
    output_title(title)
    print(content)
    output_bar()


def output_success(line: str):
    print(f" Success | {line.strip()}")


def output_failure(line: str):
    print(f" Failure | {line.strip()}")


def transmit_success(was_successful: bool, line: str):
    if was_successful:
        output_success(line)
    else:
        output_failure(line)


def output_code_lines(lines: List[str]):
    """List committed statements numbered from 1."""
    print(" # | Code ")
    output_bar()
    if lines:
        for n, code in enumerate(lines, start=1):
            print(f"{n:>2} | {code}")
    else:
        print(" No code.")
    output_bar()


def clear_screen():
    print("\033[2J\033[H", end="", flush=True)


# --------------------------
# Help
# --------------------------

_help_catalogue: Optional[List[Dict[str, str]]] = None


def load_help_catalogue(path: Path = HELP_PATH) -> List[Dict[str, str]]:
    """Read the command catalogue. Cached after the first default load."""
    global _help_catalogue
    if path == HELP_PATH and _help_catalogue is not None:
        return _help_catalogue
    with open(path, "r", encoding="utf-8") as f:
        entries = yaml.safe_load(f) or []
    catalogue = [
        {
            "command": str(e.get("command", "")),
            "description": str(e.get("description") or ""),
            "example": str(e.get("example") or ""),
        }
        for e in entries if isinstance(e, dict)
    ]
    if path == HELP_PATH:
        _help_catalogue = catalogue
    return catalogue


def output_help_line(cmd: str, definition: str, example: str):
    offset = _LINE_LEN - _CMD_PAD
    if len(definition) + _CMD_PAD > _LINE_LEN:
        print(cmd.ljust(_CMD_PAD) + definition[:offset])
        print(" " * (_CMD_PAD + _TAB_LEN) + definition[offset:])
    else:
        print(cmd.ljust(_CMD_PAD) + definition)
    if example:
        print("")
        print(" " * (_CMD_PAD + _TAB_LEN) + example)
    output_bar()


def output_help_menu():
    output_title("Java REPL Command List")
    for entry in load_help_catalogue():
        output_help_line(entry["command"], entry["description"], entry["example"])
