"""Shared fixtures: throwaway git repositories and an in-memory fake repository."""

import hashlib
import subprocess
from pathlib import Path

import pytest

from gitpick.errors import InvalidRef
from gitpick.models import Commit, Identity


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep tests away from ~/.gitpick."""
    config_dir = tmp_path / "gitpick-config"
    monkeypatch.setenv("GITPICK_CONFIG_DIR", str(config_dir))
    return config_dir


class GitSandbox:
    """A real git repository in a temp dir, driven with plain git commands."""

    def __init__(self, path: Path, object_format: str = None):
        self.path = path
        self._files = 0
        if object_format:
            self.git("init", "-q", f"--object-format={object_format}")
        else:
            self.git("init", "-q")
        self.git("symbolic-ref", "HEAD", "refs/heads/main")
        self.git("config", "user.email", "test@test.com")
        self.git("config", "user.name", "Test")
        self.git("config", "commit.gpgsign", "false")

    def git(self, *args) -> str:
        result = subprocess.run(["git", *args], cwd=self.path, capture_output=True, text=True)
        assert result.returncode == 0, f"git {' '.join(args)} failed: {result.stderr}"
        return result.stdout.strip()

    def commit(self, message: str, filename: str = None, content: str = None, author: str = None) -> str:
        if filename is None:
            self._files += 1
            filename = f"file{self._files}.txt"
        (self.path / filename).write_text(content if content is not None else message + "\n")
        self.git("add", filename)
        args = ["commit", "-q", "-m", message]
        if author:
            args += ["--author", author]
        self.git(*args)
        return self.head()

    def head(self) -> str:
        return self.git("rev-parse", "HEAD")

    def checkout(self, branch: str, create: bool = False, start: str = None):
        args = ["checkout", "-q"]
        if create:
            args.append("-b")
        args.append(branch)
        if start:
            args.append(start)
        self.git(*args)

    def merge(self, branch: str, message: str) -> str:
        self.git("merge", "--no-ff", "-q", "-m", message, branch)
        return self.head()

    def message(self, ref: str = "HEAD") -> str:
        return self.git("log", "-1", "--format=%B", ref)


@pytest.fixture
def sandbox(tmp_path):
    repo_dir = tmp_path / "repo"
    repo_dir.mkdir()
    return GitSandbox(repo_dir)


@pytest.fixture
def sha256_sandbox(tmp_path):
    repo_dir = tmp_path / "repo-sha256"
    repo_dir.mkdir()
    return GitSandbox(repo_dir, object_format="sha256")


def sha(name: str) -> str:
    return hashlib.sha1(name.encode()).hexdigest()


class FakeRepository:
    """
    In-memory stand-in for GitRepository.

    Commits are registered by name; their ids are the sha1 of the name.
    Mutations are recorded instead of performed.
    """

    def __init__(self, identity: Identity = None):
        self.commits = {}
        self.refs = {}
        self.identity = identity if identity is not None else Identity.from_values(["Test"], ["test@test.com"])
        self.dry_run = False
        self.calls = []
        self.walked = {}
        self.mutations = []
        self.head_message = ""
        self.status = 0

    def add(self, name, parents=(), author=("Test", "test@test.com"), message=None) -> Commit:
        commit = Commit(
            id=sha(name),
            author_name=author[0],
            author_email=author[1],
            parents=tuple(sha(p) for p in parents),
            message=message if message is not None else f"{name}\n",
        )
        self.commits[commit.id] = commit
        self.refs[name] = commit.id
        return commit

    def id(self, name) -> str:
        return self.refs[name]

    def _ancestors(self, commit_id):
        seen = set()
        stack = [commit_id]
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            stack.extend(self.commits[current].parents)
        return seen

    def _topo(self, start, excluded):
        order = []
        done = set()

        def visit(node):
            if node in done or node in excluded:
                return
            done.add(node)
            for parent in self.commits[node].parents:
                visit(parent)
            order.append(node)

        visit(start)
        return list(reversed(order))

    # Queries

    def resolve_ref(self, name):
        self.calls.append(("resolve_ref", name))
        if name in self.refs:
            return self.commits[self.refs[name]]
        matches = [c for c in self.commits if name and c.startswith(name)]
        if len(matches) != 1:
            raise InvalidRef(name)
        return self.commits[matches[0]]

    def get_commit(self, commit_id):
        return self.commits[commit_id]

    def get_commit_message(self, ref="HEAD"):
        return self.head_message

    def merge_base(self, a, b):
        self.calls.append(("merge_base", a, b))
        common = self._ancestors(a) & self._ancestors(b)
        best = [c for c in common
                if not any(c != other and c in self._ancestors(other) for other in common)]
        return sorted(best)[0] if best else None

    def walk_ancestors(self, start, exclude=None):
        self.calls.append(("walk_ancestors", start, exclude))
        excluded = self._ancestors(exclude) if exclude else set()
        self.walked[start] = 0
        for commit_id in self._topo(start, excluded):
            self.walked[start] += 1
            yield self.commits[commit_id]

    def get_identity_config(self):
        self.calls.append(("get_identity_config",))
        return self.identity

    def log_range(self, from_exclusive, to_inclusive, reverse=False):
        ids = self._topo(to_inclusive, self._ancestors(from_exclusive))
        if reverse:
            ids.reverse()
        return [(c, self.commits[c].subject) for c in ids]

    def diff_range(self, from_exclusive, to_inclusive):
        return f"diff {from_exclusive[:7]}..{to_inclusive[:7]}\n"

    def graph_range(self, from_exclusive, to_inclusive):
        return f"graph {from_exclusive[:7]}..{to_inclusive[:7]}\n"

    # Mutations

    def as_dry_run(self):
        self.dry_run = True
        return self

    def apply_single_parent_diff(self, commit_id, commit_directly=True):
        self.mutations.append(("cherry-pick", commit_id, commit_directly))
        return self.status

    def apply_diff_with_mainline(self, commit_id, mainline_index, commit_directly=True):
        self.mutations.append(("cherry-pick-m", commit_id, mainline_index, commit_directly))
        return self.status

    def amend_last_commit_message(self, new_message):
        self.mutations.append(("amend", new_message))

    def append_to_pending_merge_message(self, text):
        self.mutations.append(("merge-msg", text))


@pytest.fixture
def fake_repo():
    return FakeRepository()
