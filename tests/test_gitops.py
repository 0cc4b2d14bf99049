"""Tests for the git backend."""

import pytest

from gitpick.errors import InvalidRef
from gitpick.gitops import GitRepository, parse_commit_record
from gitpick.models import Identity


def test_parse_commit_record():
    record = "\nabc123\x1fp1 p2\x1fAlice\x1falice@example.com\x1fMerge things\n\nBody\n"
    commit = parse_commit_record(record)
    assert commit.id == "abc123"
    assert commit.parents == ("p1", "p2")
    assert commit.author_name == "Alice"
    assert commit.subject == "Merge things"
    assert commit.is_merge


def test_parse_malformed_record():
    with pytest.raises(ValueError):
        parse_commit_record("not a record")


def test_resolve_ref(sandbox):
    first = sandbox.commit("Initial")
    repo = GitRepository(sandbox.path)

    commit = repo.resolve_ref("main")
    assert commit.id == first
    assert commit.parents == ()
    assert repo.resolve_ref(first[:7]).id == first

    for bad in ("does-not-exist", "", "--all"):
        with pytest.raises(InvalidRef):
            repo.resolve_ref(bad)


def test_merge_base(sandbox):
    base = sandbox.commit("Initial")
    sandbox.checkout("other", create=True)
    other = sandbox.commit("Other side")
    sandbox.checkout("main")
    mine = sandbox.commit("Main side")
    repo = GitRepository(sandbox.path)

    assert repo.merge_base(mine, other) == base

    sandbox.git("checkout", "-q", "--orphan", "lonely")
    lonely = sandbox.commit("Unrelated")
    assert repo.merge_base(mine, lonely) is None


def test_walk_ancestors_newest_first_and_exclusive(sandbox):
    base = sandbox.commit("Initial")
    ids = [sandbox.commit(f"Change {i}") for i in range(5)]
    repo = GitRepository(sandbox.path)

    walked = [c.id for c in repo.walk_ancestors("main", exclude=base)]
    assert walked == list(reversed(ids))

    everything = [c.id for c in repo.walk_ancestors("main")]
    assert everything[-1] == base


def test_walk_ancestors_can_stop_early(sandbox):
    for i in range(30):
        sandbox.commit(f"Change {i}")
    repo = GitRepository(sandbox.path)

    walk = repo.walk_ancestors("main")
    first = next(walk)
    walk.close()

    assert first.subject == "Change 29"


def test_identity_config_is_multi_valued(sandbox):
    sandbox.git("config", "--add", "user.name", "Test Alias")
    identity = GitRepository(sandbox.path).get_identity_config()
    assert {"Test", "Test Alias"} <= identity.names
    assert "test@test.com" in identity.emails
    assert isinstance(identity, Identity)


def test_log_and_diff_range(sandbox):
    base = sandbox.commit("Initial")
    one = sandbox.commit("One", filename="a.txt", content="one\n")
    two = sandbox.commit("Two")
    repo = GitRepository(sandbox.path)

    assert repo.log_range(base, two) == [(two, "Two"), (one, "One")]
    assert repo.log_range(base, two, reverse=True) == [(one, "One"), (two, "Two")]
    assert "+one" in repo.diff_range(base, one)
    assert "One" in repo.graph_range(base, two)


def test_append_to_pending_merge_message(sandbox):
    sandbox.commit("Initial")
    repo = GitRepository(sandbox.path)

    repo.append_to_pending_merge_message("(with child abcdef1)")
    repo.append_to_pending_merge_message("(with child abcdef2)\n")

    content = (sandbox.path / ".git" / "MERGE_MSG").read_text()
    assert content == "(with child abcdef1)\n(with child abcdef2)\n"


def test_amend_last_commit_message(sandbox):
    sandbox.commit("Initial")
    repo = GitRepository(sandbox.path)

    repo.amend_last_commit_message("Initial\n\n(with child abcdef1)\n")

    assert sandbox.message() == "Initial\n\n(with child abcdef1)"


def test_dry_run_mutations_only_print(sandbox, capsys):
    first = sandbox.commit("Initial")
    repo = GitRepository(sandbox.path).as_dry_run()

    assert repo.apply_single_parent_diff(first, commit_directly=False) == 0
    repo.append_to_pending_merge_message("(with child abcdef1)")

    out = capsys.readouterr().out
    assert f"[DRY-RUN] Would run: git cherry-pick -x --no-commit {first}" in out
    assert sandbox.message() == "Initial"
    assert not (sandbox.path / ".git" / "MERGE_MSG").exists()
