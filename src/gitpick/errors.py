"""
errors - Exceptions raised by gitpick.

Every fatal condition is raised before gitpick mutates the repository.
Conflicts and user aborts are not exceptions; they are reported as
replay result states.
"""

from typing import List, Optional


class GitPickError(Exception):
    """Base class for all gitpick failures."""


class InvalidRef(GitPickError):
    """A branch, tag or commit name does not resolve to a commit."""

    def __init__(self, ref: str):
        super().__init__(f"Not a valid commit: {ref}")
        self.ref = ref


class NoCommonAncestor(GitPickError):
    """The two refs share no history."""

    def __init__(self, source: str, target: str):
        super().__init__(f"No common ancestor between {source} and {target}")
        self.source = source
        self.target = target


class NoIdentityConfigured(GitPickError):
    def __init__(self):
        super().__init__(
            "No user.name or user.email configured; "
            "set one with 'git config user.email ...' or pass --all"
        )


class UnsupportedParentCount(GitPickError):
    """Root commits and octopus merges cannot be replayed."""

    def __init__(self, commit_id: str, count: int):
        super().__init__(
            f"Commit {commit_id[:7]} has {count} parents; "
            "only regular commits and two-parent merges can be replayed"
        )
        self.commit_id = commit_id
        self.count = count


class SelectionNotAParent(GitPickError):
    def __init__(self, selection: str, parents: List[str]):
        short = ", ".join(p[:7] for p in parents)
        super().__init__(f"'{selection}' does not select exactly one of the parents ({short})")
        self.selection = selection
        self.parents = list(parents)


class GitCommandError(GitPickError):
    """A git invocation failed unexpectedly."""

    def __init__(self, args: List[str], returncode: Optional[int], stderr: str = ""):
        message = f"Git command failed: git {' '.join(args)}"
        if stderr.strip():
            message += f"\n{stderr.strip()}"
        super().__init__(message)
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr
