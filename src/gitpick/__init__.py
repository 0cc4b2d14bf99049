"""
gitpick - Track and replay commits across long-lived branches.

Tools included:
- unpicked: List commits on a source branch not yet cherry-picked to a target
- replay: Cherry-pick a commit, resolving the mainline of merge commits
- config: View/edit gitpick configuration
"""

__version__ = "0.1.0"
__author__ = "1minds3t"
__email__ = "1minds3t@proton.me"
__all__ = ["eligibility", "replay", "trailers", "gitops", "config", "cli"]
