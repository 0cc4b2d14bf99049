#!/usr/bin/env python3
"""
gitpick - Track and replay commits across long-lived branches

Main entry point. `gitpick` takes subcommands; `git-unpicked` and
`git-replay` run a single command so they also work as `git unpicked` and
`git replay`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from gitpick import __version__
from gitpick.colors import cyan, dim, set_color_mode, yellow
from gitpick.config import (
    COLOR_MODES,
    add_identity_value,
    get_extra_identity,
    load_config,
    set_color,
    set_commit_directly,
    show_config,
)
from gitpick.eligibility import find_unpicked
from gitpick.errors import GitPickError
from gitpick.gitops import GitRepository, is_git_repo
from gitpick.logger import GitPickLogger
from gitpick.replay import replay

UNPICKED_EPILOG = """
Examples:
  git unpicked main                    # My commits on main missing from HEAD
  git unpicked main release-2.x        # ... missing from release-2.x
  git unpicked --all main              # Everyone's commits
  git unpicked --since=a1b2c3d main    # Stop at a1b2c3d (inclusive)
  git unpicked --reverse main          # Oldest first, in cherry-pick order
"""

REPLAY_EPILOG = """
Examples:
  git replay a1b2c3d                   # Cherry-pick a commit or merge
  git replay -n a1b2c3d                # Stage only, do not commit
  git replay -s 9f8e7d6 a1b2c3d        # Replay the side of parent 9f8e7d6
  git replay --dry-run a1b2c3d         # Print the git commands only
"""


def add_unpicked_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--since',
        type=str,
        metavar='COMMIT',
        help='Stop after this commit (inclusive)'
    )
    parser.add_argument(
        '--all',
        dest='all_authors',
        action='store_true',
        help='List commits from every author, not just yours'
    )
    parser.add_argument(
        '--reverse',
        action='store_true',
        help='Print oldest commit first'
    )
    parser.add_argument(
        '--count',
        action='store_true',
        help='Only print the number of eligible commits'
    )
    parser.add_argument('source', help='Branch the commits come from')
    parser.add_argument(
        'target',
        nargs='?',
        default='HEAD',
        help='Branch the commits would be ported to (default: HEAD)'
    )


def add_replay_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '-n', '--no-commit',
        action='store_true',
        help='Stage the changes without committing'
    )
    parser.add_argument(
        '-s', '--select',
        type=str,
        metavar='PARENT',
        help='For a merge commit: the parent whose side should be replayed'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Print the git commands instead of running them'
    )
    parser.add_argument('commit', help='Commit to replay')


def add_config_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        '--show',
        action='store_true',
        help='Show current configuration'
    )
    parser.add_argument(
        '--add-name',
        type=str,
        help='Treat commits by this author name as yours'
    )
    parser.add_argument(
        '--add-email',
        type=str,
        help='Treat commits by this author email as yours'
    )
    parser.add_argument(
        '--color',
        choices=COLOR_MODES,
        help='Color output: auto (terminal only), always or never'
    )
    parser.add_argument(
        '--commit-directly',
        choices=['yes', 'no'],
        help='Whether replay commits by default (no = stage only)'
    )


def format_commit_line(commit, show_author: bool) -> str:
    line = f"{yellow(commit.id)} {commit.subject}"
    if show_author:
        line += f" {dim('|')} {cyan(commit.author_name)} {cyan(commit.author_email)}"
    return line


def run_unpicked(repo_path: Path, args, log: GitPickLogger, config: dict) -> int:
    repo = GitRepository(repo_path)
    log.info(f"unpicked {args.source} -> {args.target} in {repo_path}")

    commits = find_unpicked(
        repo,
        args.source,
        args.target,
        since=args.since,
        include_all_authors=args.all_authors,
        extra_identity=get_extra_identity(config),
    )

    if args.count:
        print(sum(1 for _ in commits))
        return 0

    if args.reverse:
        commits = reversed(list(commits))

    for commit in commits:
        print(format_commit_line(commit, args.all_authors))
    return 0


def run_replay(repo_path: Path, args, log: GitPickLogger, config: dict) -> int:
    repo = GitRepository(repo_path)
    log.info(f"replay {args.commit} in {repo_path}")

    result = replay(
        repo,
        args.commit,
        commit_directly=bool(config.get('commit_directly', True)),
        no_commit=args.no_commit,
        select=args.select,
        dry_run=args.dry_run,
    )
    return result.exit_code


def run_config(args) -> int:
    changed = False
    if args.add_name:
        add_identity_value('extra_names', args.add_name)
        changed = True
    if args.add_email:
        add_identity_value('extra_emails', args.add_email)
        changed = True
    if args.color:
        set_color(args.color)
        changed = True
    if args.commit_directly:
        set_commit_directly(args.commit_directly == 'yes')
        changed = True
    if args.show or not changed:
        show_config()
    return 0


def _dispatch(command: str, repo_path: Path, args) -> int:
    config = load_config()
    set_color_mode(config.get('color', 'auto'))
    log = GitPickLogger("gitpick", log_dir=config.get('log_dir'), echo=False)

    if command == 'config':
        return run_config(args)

    if not is_git_repo(repo_path):
        log.error(f"Not in a git repository: {repo_path}")
        return 1

    try:
        if command == 'unpicked':
            return run_unpicked(repo_path, args, log, config)
        return run_replay(repo_path, args, log, config)
    except GitPickError as e:
        log.error(str(e))
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted.")
        return 1
    except BrokenPipeError:
        # Output piped into `head` and friends
        return 0


def _repo_path(repo: Optional[str]) -> Path:
    return Path(repo).resolve() if repo else Path.cwd()


def unpicked_main(argv: Optional[List[str]] = None):
    """Entry point for git-unpicked."""
    parser = argparse.ArgumentParser(
        prog='git-unpicked',
        description='List commits on SOURCE that were never cherry-picked to TARGET',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=UNPICKED_EPILOG
    )
    parser.add_argument('-r', '--repo', type=str, default=None,
                        help='Path to git repository (default: current directory)')
    add_unpicked_arguments(parser)
    args = parser.parse_args(argv)
    sys.exit(_dispatch('unpicked', _repo_path(args.repo), args))


def replay_main(argv: Optional[List[str]] = None):
    """Entry point for git-replay."""
    parser = argparse.ArgumentParser(
        prog='git-replay',
        description='Cherry-pick a commit, choosing the mainline of merge commits',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=REPLAY_EPILOG
    )
    parser.add_argument('-r', '--repo', type=str, default=None,
                        help='Path to git repository (default: current directory)')
    add_replay_arguments(parser)
    args = parser.parse_args(argv)
    sys.exit(_dispatch('replay', _repo_path(args.repo), args))


def main(argv: Optional[List[str]] = None):
    """Main entry point for gitpick CLI."""
    parser = argparse.ArgumentParser(
        description="gitpick - Track and replay commits across long-lived branches",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gitpick unpicked main release-2.x    # My commits on main not yet on release-2.x
  gitpick replay a1b2c3d               # Cherry-pick, resolving merge mainlines
  gitpick -r ~/proj unpicked main      # Run in a specific repo
  gitpick config --add-email me@work   # Count another email as yours

Commands:
  unpicked  - List commits not yet cherry-picked to a branch
  replay    - Cherry-pick a commit or merge commit with provenance
  config    - View or edit configuration
        """
    )

    parser.add_argument(
        '-r', '--repo',
        type=str,
        default=None,
        help='Path to git repository (default: current directory)'
    )

    parser.add_argument(
        '-v', '--version',
        action='version',
        version=f'gitpick {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    unpicked_parser = subparsers.add_parser(
        'unpicked',
        help='List commits not yet cherry-picked to a branch',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=UNPICKED_EPILOG
    )
    add_unpicked_arguments(unpicked_parser)

    replay_parser = subparsers.add_parser(
        'replay',
        help='Cherry-pick a commit or merge commit with provenance',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=REPLAY_EPILOG
    )
    add_replay_arguments(replay_parser)

    config_parser = subparsers.add_parser(
        'config',
        help='View or edit configuration'
    )
    add_config_arguments(config_parser)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(_dispatch(args.command, _repo_path(args.repo), args))


if __name__ == "__main__":
    main()
