#!/usr/bin/env python3
"""
gitops - The git operations gitpick is built on.

gitpick never reimplements history storage or diffing; everything here is a
thin wrapper around the git binary. Read-only queries capture output.
Mutating commands (cherry-pick, amend) run with the terminal attached so the
operator sees git's own conflict messages. In dry-run mode they only print
the command they would run.
"""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from gitpick.errors import GitCommandError, InvalidRef
from gitpick.models import Commit, Identity

logger = logging.getLogger(__name__)

# Fields are separated by US (0x1f); `git log -z` separates commits by NUL.
FIELD_SEP = "\x1f"
COMMIT_FORMAT = "%H%x1f%P%x1f%an%x1f%ae%x1f%B"
READ_CHUNK = 8192


def run_git(args: list, cwd: Path = None, check: bool = True, timeout: int = 60) -> subprocess.CompletedProcess:
    """Run git command and return result with timeout and error handling."""
    try:
        result = subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
            check=False,
            cwd=cwd,
            timeout=timeout,
            encoding='utf-8',
            errors='replace'
        )
    except subprocess.TimeoutExpired:
        raise GitCommandError(args, None, f"timed out after {timeout}s")
    except OSError as e:
        raise GitCommandError(args, None, str(e))

    if check and result.returncode != 0:
        raise GitCommandError(args, result.returncode, result.stderr)

    return result


def run_git_interactive(args: list, cwd: Path = None) -> int:
    """
    Run a git command with the terminal attached and GIT_EDITOR=true so it
    never blocks waiting for an editor. Returns the exit code.
    """
    env = os.environ.copy()
    env["GIT_EDITOR"] = "true"
    env["GIT_TERMINAL_PROMPT"] = "0"
    try:
        result = subprocess.run(["git"] + args, cwd=cwd, env=env)
    except OSError as e:
        raise GitCommandError(args, None, str(e))
    return result.returncode


def is_git_repo(path: Path) -> bool:
    """Check if the given path is a git repository."""
    try:
        result = run_git(["rev-parse", "--git-dir"], cwd=path, check=False)
    except GitCommandError:
        return False
    return result.returncode == 0


def parse_commit_record(record: str) -> Commit:
    """Parse one COMMIT_FORMAT record."""
    parts = record.lstrip("\n").split(FIELD_SEP, 4)
    if len(parts) != 5:
        raise ValueError(f"Malformed commit record: {record[:80]!r}")
    sha, parents, name, email, message = parts
    return Commit(
        id=sha,
        author_name=name,
        author_email=email,
        parents=tuple(parents.split()),
        message=message,
    )


class GitRepository:
    """A git working copy, queried and mutated through the git binary."""

    def __init__(self, repo_path: Optional[Path] = None, dry_run: bool = False):
        self.repo_path = Path(repo_path or Path.cwd()).resolve()
        self.dry_run = dry_run

    def __repr__(self):
        return f"GitRepository({str(self.repo_path)!r}, dry_run={self.dry_run})"

    def as_dry_run(self) -> "GitRepository":
        return GitRepository(self.repo_path, dry_run=True)

    def git(self, args: list, check: bool = True) -> subprocess.CompletedProcess:
        return run_git(args, cwd=self.repo_path, check=check)

    def _mutate(self, args: list) -> int:
        if self.dry_run:
            print(f"[DRY-RUN] Would run: {shlex.join(['git'] + args)}")
            return 0
        logger.info(f"Running: git {' '.join(args)}")
        return run_git_interactive(args, cwd=self.repo_path)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def resolve_ref(self, name: str) -> Commit:
        """Resolve a branch, tag or commit name; raises InvalidRef."""
        if not name or name.startswith("-"):
            raise InvalidRef(name)
        result = self.git(["rev-parse", "--verify", "--quiet", f"{name}^{{commit}}"], check=False)
        if result.returncode != 0 or not result.stdout.strip():
            raise InvalidRef(name)
        return self.get_commit(result.stdout.strip())

    def get_commit(self, commit_id: str) -> Commit:
        result = self.git(["log", "-1", "-z", f"--format={COMMIT_FORMAT}", commit_id])
        return parse_commit_record(result.stdout.rstrip("\0"))

    def get_commit_message(self, ref: str = "HEAD") -> str:
        return self.git(["log", "-1", "--format=%B", ref]).stdout

    def merge_base(self, a: str, b: str) -> Optional[str]:
        """Nearest common ancestor of two commits, or None if histories are unrelated."""
        result = self.git(["merge-base", a, b], check=False)
        if result.returncode == 0:
            return result.stdout.strip()
        if result.returncode == 1 and not result.stderr.strip():
            return None
        raise GitCommandError(["merge-base", a, b], result.returncode, result.stderr)

    def walk_ancestors(self, start: str, exclude: Optional[str] = None) -> Iterator[Commit]:
        """
        Lazily yield ``start`` and its ancestors newest-first in topological order.

        Ancestors of ``exclude`` (and ``exclude`` itself) are left out. The git
        process is killed if the caller stops iterating early.
        """
        args = ["log", "--topo-order", "-z", f"--format={COMMIT_FORMAT}", start]
        if exclude:
            args.append(f"^{exclude}")

        proc = subprocess.Popen(
            ["git"] + args,
            cwd=self.repo_path,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding='utf-8',
            errors='replace'
        )
        try:
            buffer = ""
            while True:
                chunk = proc.stdout.read(READ_CHUNK)
                if not chunk:
                    break
                buffer += chunk
                *records, buffer = buffer.split("\0")
                for record in records:
                    if record.strip():
                        yield parse_commit_record(record)
            if buffer.strip():
                yield parse_commit_record(buffer)

            stderr = proc.stderr.read()
            if proc.wait() != 0:
                raise GitCommandError(args, proc.returncode, stderr)
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()
            proc.stdout.close()
            proc.stderr.close()

    def get_identity_config(self) -> Identity:
        """Every configured user.name and user.email (git config is multi-valued)."""
        values = {}
        for key in ("user.name", "user.email"):
            # Exit code 1 means the key is unset.
            result = self.git(["config", "--get-all", key], check=False)
            values[key] = [v.strip() for v in result.stdout.splitlines() if v.strip()]
        return Identity.from_values(values["user.name"], values["user.email"])

    def log_range(self, from_exclusive: str, to_inclusive: str, reverse: bool = False) -> List[Tuple[str, str]]:
        """(id, subject) pairs for commits in from_exclusive..to_inclusive, newest first."""
        args = ["log", "--topo-order", "--format=%H%x1f%s"]
        if reverse:
            args.append("--reverse")
        args.append(f"{from_exclusive}..{to_inclusive}")

        entries = []
        for line in self.git(args).stdout.splitlines():
            if not line:
                continue
            sha, _, subject = line.partition(FIELD_SEP)
            entries.append((sha, subject))
        return entries

    def diff_range(self, from_exclusive: str, to_inclusive: str) -> str:
        return self.git(["diff", from_exclusive, to_inclusive]).stdout

    def graph_range(self, from_exclusive: str, to_inclusive: str) -> str:
        return self.git([
            "log", "--graph", "--oneline", "--decorate", "--boundary",
            f"{from_exclusive}..{to_inclusive}"
        ]).stdout

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def apply_single_parent_diff(self, commit_id: str, commit_directly: bool = True) -> int:
        """Cherry-pick a regular commit. Returns git's exit status."""
        args = ["cherry-pick", "-x"]
        if not commit_directly:
            args.append("--no-commit")
        args.append(commit_id)
        return self._mutate(args)

    def apply_diff_with_mainline(self, commit_id: str, mainline_index: int, commit_directly: bool = True) -> int:
        """Cherry-pick a merge commit relative to parent number ``mainline_index`` (1-based)."""
        args = ["cherry-pick", "-x", "-m", str(mainline_index)]
        if not commit_directly:
            args.append("--no-commit")
        args.append(commit_id)
        return self._mutate(args)

    def amend_last_commit_message(self, new_message: str):
        logger.info("Amending HEAD commit message")
        rc = run_git_interactive(["commit", "--amend", "--allow-empty", "-m", new_message], cwd=self.repo_path)
        if rc != 0:
            raise GitCommandError(["commit", "--amend"], rc)

    def merge_message_path(self) -> Path:
        result = self.git(["rev-parse", "--git-path", "MERGE_MSG"])
        return self.repo_path / result.stdout.strip()

    def append_to_pending_merge_message(self, text: str):
        path = self.merge_message_path()
        if self.dry_run:
            print(f"[DRY-RUN] Would append to {path}:")
            print(text.rstrip("\n"))
            return

        existing = path.read_text(encoding='utf-8', errors='replace') if path.exists() else ""
        prefix = "\n" if existing and not existing.endswith("\n") else ""
        with open(path, 'a', encoding='utf-8') as f:
            f.write(prefix + text.rstrip("\n") + "\n")
        logger.info(f"Appended provenance trailers to {path}")
