#!/usr/bin/env python3
"""
replay - Cherry-pick a commit, working out the mainline of merge commits.

Regular commits are cherry-picked as-is. For a two-parent merge, the parent
that equals the merge-base of both parents is the mainline; when neither
does, the parent to replay comes from --select or from an interactive
prompt. Replaying a merge records one "(with child <id>)" trailer per commit
on the replayed side so `gitpick unpicked` stops listing them afterwards.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Tuple

from gitpick.colors import bold, cyan, dim, yellow
from gitpick.errors import InvalidRef, SelectionNotAParent, UnsupportedParentCount
from gitpick.models import Commit
from gitpick.trailers import append_trailers, format_child_trailer

logger = logging.getLogger(__name__)


class ReplayState(Enum):
    LINEAR = "linear"
    MERGE = "merge"
    AWAITING_CHOICE = "awaiting-choice"
    REPLAYING = "replaying"
    APPLIED = "applied"
    CONFLICT = "conflict"
    ABORTED = "aborted"


class PromptAction(Enum):
    GRAPH = "g"
    LOG = "l"
    DIFF = "d"
    PICK_1 = "1"
    PICK_2 = "2"
    HELP = "h"
    ABORT = "q"


ACTION_ALIASES = {
    "g": PromptAction.GRAPH,
    "graph": PromptAction.GRAPH,
    "l": PromptAction.LOG,
    "log": PromptAction.LOG,
    "d": PromptAction.DIFF,
    "diff": PromptAction.DIFF,
    "1": PromptAction.PICK_1,
    "2": PromptAction.PICK_2,
    "h": PromptAction.HELP,
    "help": PromptAction.HELP,
    "?": PromptAction.HELP,
    "q": PromptAction.ABORT,
    "quit": PromptAction.ABORT,
    "abort": PromptAction.ABORT,
}

HELP_TEXT = """\
Neither parent of this merge is an ancestor of the other, so gitpick cannot
tell which side is the mainline. Pick the branch whose changes you want to
replay; the other parent is used as the mainline.

  g - show the commit graph from the merge-base to this merge
  l - list the commits private to each parent
  d - show each parent's diff against the merge-base
  1 - replay branch 1 (parent 1)
  2 - replay branch 2 (parent 2)
  h - show this help
  q - abort without changing anything"""


@dataclass(frozen=True)
class PromptState:
    """Where the merge disambiguation prompt stands, and what to show next."""

    state: ReplayState = ReplayState.AWAITING_CHOICE
    mainline: Optional[int] = None
    show: Optional[PromptAction] = None


@dataclass(frozen=True)
class ReplayPlan:
    commit: Commit
    state: ReplayState
    mainline: Optional[int] = None
    common: Optional[str] = None


@dataclass(frozen=True)
class ReplayResult:
    state: ReplayState
    status: int
    mainline: Optional[int] = None
    trailers: List[str] = field(default_factory=list)

    @property
    def exit_code(self) -> int:
        if self.state is ReplayState.ABORTED:
            return 1
        return self.status


def parse_action(text: str) -> Optional[PromptAction]:
    return ACTION_ALIASES.get((text or "").strip().lower())


def step(current: PromptState, action: Optional[PromptAction]) -> PromptState:
    """
    Advance the disambiguation prompt by one operator action.

    Picking branch N replays that parent's side, so the mainline is the
    other parent. Unknown input shows the help again. Terminal states
    ignore further actions.
    """
    if current.state is not ReplayState.AWAITING_CHOICE:
        return current
    if action is None:
        return PromptState(show=PromptAction.HELP)
    if action is PromptAction.ABORT:
        return PromptState(state=ReplayState.ABORTED)
    if action in (PromptAction.PICK_1, PromptAction.PICK_2):
        chosen = 1 if action is PromptAction.PICK_1 else 2
        return PromptState(state=ReplayState.REPLAYING, mainline=3 - chosen)
    return PromptState(show=action)


def match_selection(repo, selection: str, parents: Tuple[str, ...]) -> int:
    """
    Return the 1-based index of the parent ``selection`` names.

    ``selection`` is an abbreviated or full parent id, or any ref that
    resolves to one of the parents.
    """
    wanted = (selection or "").strip().lower()
    matches = [i for i, p in enumerate(parents, 1) if wanted and p.lower().startswith(wanted)]
    if len(matches) == 1:
        return matches[0]
    if not matches and wanted:
        try:
            resolved = repo.resolve_ref(selection.strip()).id
        except InvalidRef:
            resolved = None
        if resolved in parents:
            return parents.index(resolved) + 1
    raise SelectionNotAParent(selection, list(parents))


def classify(commit: Commit) -> ReplayState:
    """LINEAR for a regular commit, MERGE for a two-parent merge."""
    count = len(commit.parents)
    if count == 1:
        return ReplayState.LINEAR
    if count == 2:
        return ReplayState.MERGE
    raise UnsupportedParentCount(commit.id, count)


def plan_replay(repo, commit: Commit, select: Optional[str] = None) -> ReplayPlan:
    """Classify a commit and pick its mainline where that can be decided without asking."""
    if classify(commit) is ReplayState.LINEAR:
        if select:
            logger.warning(f"--select ignored: {commit.short_id} is not a merge commit")
            print(yellow(f"⚠️  --select={select} ignored: {commit.short_id} is not a merge commit"))
        return ReplayPlan(commit, ReplayState.LINEAR)

    p1, p2 = commit.parents
    common = repo.merge_base(p1, p2)

    # Only the merge-base of the two parents counts here
    if common in (p1, p2):
        mainline = 1 if common == p1 else 2
        logger.info(f"Merge {commit.short_id}: parent {mainline} is the mainline")
        if select:
            logger.warning(f"--select ignored: parent {mainline} of {commit.short_id} is an ancestor of the other")
            print(yellow(f"⚠️  --select={select} ignored: parent {mainline} is an ancestor of the other"))
        return ReplayPlan(commit, ReplayState.REPLAYING, mainline=mainline, common=common)

    if select:
        chosen = match_selection(repo, select, commit.parents)
        return ReplayPlan(commit, ReplayState.REPLAYING, mainline=3 - chosen, common=common)

    return ReplayPlan(commit, ReplayState.AWAITING_CHOICE, common=common)


def _fork_point(plan: ReplayPlan, index: int) -> str:
    """Where parent ``index``'s private history starts."""
    if plan.common:
        return plan.common
    return plan.commit.parents[2 - index]


def _show(repo, plan: ReplayPlan, action: Optional[PromptAction]):
    if action is None:
        return
    if action is PromptAction.HELP:
        print(HELP_TEXT)
        return
    if action is PromptAction.GRAPH:
        start = plan.common or plan.commit.parents[0]
        print(repo.graph_range(start, plan.commit.id))
        return

    for index, parent in enumerate(plan.commit.parents, 1):
        base = _fork_point(plan, index)
        print(bold(f"\n=== Branch {index}: {parent[:7]} ==="))
        if action is PromptAction.LOG:
            entries = repo.log_range(base, parent)
            if not entries:
                print("  (no private commits)")
            for sha, subject in entries:
                print(f"  {yellow(sha[:7])} {subject}")
        elif action is PromptAction.DIFF:
            print(repo.diff_range(base, parent) or "  (empty diff)")


def interactive_choose(repo, plan: ReplayPlan, input_fn: Optional[Callable[[str], str]] = None) -> PromptState:
    """Ask the operator which side of an ambiguous merge to replay."""
    ask = input_fn or input
    commit = plan.commit
    print()
    print("=" * 60)
    print(f"Merge commit {cyan(commit.short_id)}: {commit.subject}")
    print("=" * 60)
    for index, parent in enumerate(commit.parents, 1):
        print(f"  {index}. {yellow(parent[:7])} {repo.get_commit(parent).subject}")
    if plan.common:
        print(dim(f"  merge-base of the parents: {plan.common[:7]}"))

    state = PromptState(show=PromptAction.HELP)
    while state.state is ReplayState.AWAITING_CHOICE:
        _show(repo, plan, state.show)
        try:
            text = ask("\nReplay which branch? [1/2, g/l/d, h, q]: ")
        except (EOFError, KeyboardInterrupt):
            print()
            text = "q"
        state = step(state, parse_action(text))
    return state


def child_trailers(repo, plan: ReplayPlan) -> List[str]:
    """One trailer per commit on the replayed side of a merge, oldest first."""
    if plan.mainline is None:
        return []
    replayed = 3 - plan.mainline
    parent = plan.commit.parents[replayed - 1]
    base = _fork_point(plan, replayed)
    return [format_child_trailer(sha) for sha, _ in repo.log_range(base, parent, reverse=True)]


def amend_with_trailers(repo, trailers: List[str]):
    """Append trailers to the commit the replay just created."""
    if repo.dry_run:
        print("[DRY-RUN] Would append to the new commit's message:")
        print("\n".join(trailers))
        print("[DRY-RUN] Would run: git commit --amend -m <message>")
        return
    message = repo.get_commit_message("HEAD")
    repo.amend_last_commit_message(append_trailers(message, trailers))


def replay(
    repo,
    commit_id: str,
    commit_directly: bool = True,
    no_commit: bool = False,
    select: Optional[str] = None,
    dry_run: bool = False,
    chooser: Optional[Callable[..., PromptState]] = None,
) -> ReplayResult:
    """
    Replay ``commit_id`` onto the current branch.

    Args:
        repo: GitRepository to work in
        commit_id: Commit to replay
        commit_directly: Create a commit (configured default)
        no_commit: Only stage the changes; overrides commit_directly
        select: Parent of a merge whose side should be replayed
        dry_run: Print the git commands instead of running them
        chooser: Replaces the interactive prompt for ambiguous merges

    Returns:
        ReplayResult; ``exit_code`` mirrors cherry-pick's status.
    """
    if dry_run and not repo.dry_run:
        repo = repo.as_dry_run()

    commit = repo.resolve_ref(commit_id)
    direct = commit_directly and not no_commit
    plan = plan_replay(repo, commit, select)

    if plan.state is ReplayState.LINEAR:
        status = repo.apply_single_parent_diff(commit.id, direct)
        return _finish(commit, ReplayResult(_outcome(status), status))

    if plan.state is ReplayState.AWAITING_CHOICE:
        choice = (chooser or interactive_choose)(repo, plan)
        if choice.state is ReplayState.ABORTED:
            logger.info(f"Replay of {commit.short_id} aborted by user")
            print("Aborted. Nothing was changed.")
            return ReplayResult(ReplayState.ABORTED, 1)
        plan = replace(plan, state=ReplayState.REPLAYING, mainline=choice.mainline)

    trailers = child_trailers(repo, plan)
    status = repo.apply_diff_with_mainline(commit.id, plan.mainline, direct)

    if status != 0 or not direct:
        if trailers:
            repo.append_to_pending_merge_message("\n".join(trailers))
    elif trailers:
        amend_with_trailers(repo, trailers)

    return _finish(commit, ReplayResult(_outcome(status), status, plan.mainline, trailers))


def _outcome(status: int) -> ReplayState:
    return ReplayState.APPLIED if status == 0 else ReplayState.CONFLICT


def _finish(commit: Commit, result: ReplayResult) -> ReplayResult:
    if result.state is ReplayState.CONFLICT:
        logger.warning(f"Replay of {commit.short_id} stopped with status {result.status}")
        print(yellow(f"⚠️  Replay of {commit.short_id} needs manual resolution."))
        print("   Resolve the conflicts, then run: git cherry-pick --continue")
    else:
        logger.info(f"Replayed {commit.short_id} (mainline={result.mainline})")
    return result
