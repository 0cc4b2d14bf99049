"""
trailers - Provenance trailers embedded in commit messages.

Two trailer forms mark a commit as a copy of another:

    (cherry picked from commit <id>)   written by ``git cherry-pick -x``
    (with child <id>)                  written by ``gitpick replay`` for each
                                       commit on the replayed side of a merge

Trailers may appear anywhere in the message, not only in the last paragraph.
"""

import re
from typing import Dict, List, Set

CHERRY_PICKED = "cherry picked from commit"
WITH_CHILD = "with child"
TRAILER_NAMES = (CHERRY_PICKED, WITH_CHILD)

PROVENANCE_RE = re.compile(r"(cherry picked from commit|with child) ([0-9a-fA-F]{7,64})\b")


def parse_trailers(message: str) -> Dict[str, List[str]]:
    """
    Collect provenance trailers from a commit message.

    Returns a mapping from trailer name to the ids it references, in the
    order they appear. Both names are always present.
    """
    found: Dict[str, List[str]] = {name: [] for name in TRAILER_NAMES}
    for match in PROVENANCE_RE.finditer(message or ""):
        found[match.group(1)].append(match.group(2).lower())
    return found


def referenced_ids(message: str) -> Set[str]:
    """All commit ids any trailer in ``message`` points at."""
    ids: Set[str] = set()
    for values in parse_trailers(message).values():
        ids.update(values)
    return ids


def format_child_trailer(commit_id: str) -> str:
    return f"({WITH_CHILD} {commit_id})"


def append_trailers(message: str, lines: List[str]) -> str:
    """Append trailer lines to a message, separated from the body by a newline."""
    if not lines:
        return message
    body = message.rstrip("\n")
    return body + "\n" + "\n".join(lines) + "\n"
