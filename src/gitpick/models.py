"""
models - Read-only views of repository state.

Values here are built fresh from git on every invocation and never mutated.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Tuple


@dataclass(frozen=True)
class Commit:
    id: str
    author_name: str
    author_email: str
    parents: Tuple[str, ...] = ()
    message: str = ""

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def subject(self) -> str:
        lines = self.message.strip().splitlines()
        return lines[0] if lines else ""

    @property
    def is_merge(self) -> bool:
        return len(self.parents) > 1


@dataclass(frozen=True)
class Identity:
    """
    The author names and emails that count as "mine".

    git allows several ``user.name`` / ``user.email`` values; every one of
    them is kept. Matching is exact: no case folding or trimming.
    """

    names: FrozenSet[str] = field(default_factory=frozenset)
    emails: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_values(cls, names: Iterable[str] = (), emails: Iterable[str] = ()) -> "Identity":
        return cls(frozenset(n for n in names if n), frozenset(e for e in emails if e))

    @property
    def is_empty(self) -> bool:
        return not self.names and not self.emails

    def matches(self, commit: Commit) -> bool:
        return commit.author_name in self.names or commit.author_email in self.emails

    def merge(self, other: "Identity") -> "Identity":
        return Identity(self.names | other.names, self.emails | other.emails)
