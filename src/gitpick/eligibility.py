#!/usr/bin/env python3
"""
eligibility - Find commits on one branch that were never ported to another.

A commit counts as ported when some commit on the target branch, between
its tip and the merge-base with the source, carries a provenance trailer
naming it (see gitpick.trailers). Everything else on the source side of the
merge-base is eligible, filtered to commits authored by the current user
unless all authors are requested.
"""

import logging
from typing import Iterator, Optional, Set

from gitpick.errors import NoCommonAncestor, NoIdentityConfigured
from gitpick.models import Commit, Identity
from gitpick.trailers import referenced_ids

logger = logging.getLogger(__name__)


def cherrypicked_ids(repo, tip: str, base: str) -> Set[str]:
    """Ids referenced by provenance trailers on tip's history down to base (exclusive)."""
    picked: Set[str] = set()
    for commit in repo.walk_ancestors(tip, exclude=base):
        if commit.id == base:
            break
        picked |= referenced_ids(commit.message)
    return picked


def _is_picked(commit_id: str, picked: Set[str]) -> bool:
    if commit_id in picked:
        return True
    # Trailers may carry abbreviated ids
    return any(len(ref) < len(commit_id) and commit_id.startswith(ref) for ref in picked)


def find_unpicked(
    repo,
    source: str,
    target: str = "HEAD",
    since: Optional[str] = None,
    include_all_authors: bool = False,
    identity: Optional[Identity] = None,
    extra_identity: Optional[Identity] = None,
) -> Iterator[Commit]:
    """
    Commits reachable from ``source`` but not ported to ``target``, newest first.

    Args:
        repo: GitRepository (or anything with the same query methods)
        source: Branch the commits come from
        target: Branch the commits would be ported to
        since: Oldest commit of interest; the walk stops after it (inclusive)
        include_all_authors: Skip the authorship filter
        identity: Names/emails that count as the current user. Looked up from
                  the repository when omitted.
        extra_identity: Names/emails added to the looked-up identity

    Returns:
        A one-shot lazy iterator. Ref, ancestry and identity errors are raised
        by this call, before any commit is yielded.
    """
    source_commit = repo.resolve_ref(source)
    target_commit = repo.resolve_ref(target)
    since_id = repo.resolve_ref(since).id if since else None

    base = repo.merge_base(source_commit.id, target_commit.id)
    if base is None:
        raise NoCommonAncestor(source, target)

    if not include_all_authors:
        if identity is None:
            identity = repo.get_identity_config()
            if extra_identity is not None:
                identity = identity.merge(extra_identity)
        if identity.is_empty:
            raise NoIdentityConfigured()

    picked = cherrypicked_ids(repo, target_commit.id, base)
    logger.info(
        f"Checking {source} against {target} (merge-base {base[:7]}, "
        f"{len(picked)} provenance reference(s) on target)"
    )

    return _walk_eligible(repo, source_commit.id, base, picked, since_id,
                          None if include_all_authors else identity)


def _walk_eligible(repo, source_id: str, base: str, picked: Set[str],
                   since_id: Optional[str], identity: Optional[Identity]) -> Iterator[Commit]:
    for commit in repo.walk_ancestors(source_id, exclude=base):
        if commit.id == base:
            break

        if not _is_picked(commit.id, picked):
            if identity is None or identity.matches(commit):
                yield commit

        if since_id is not None and commit.id == since_id:
            break
