"""Command-line argument parsing for git-worktree-keeper."""

import argparse
from typing import List, Optional

from git_worktree_keeper.__version__ import __version__


def _add_worktree_plan_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--default-branch", help="Default branch (otherwise looked up or guessed)")
    parser.add_argument(
        "--feature", metavar="NAME", help="Also create a feature worktree on a new branch NAME"
    )
    parser.add_argument(
        "--feature-base", metavar="BASE", help="Base branch for --feature (default: the default branch)"
    )
    parser.add_argument(
        "--no-default-worktree", action="store_true", help="Skip the default branch worktree"
    )
    parser.add_argument(
        "--no-review-worktree", action="store_true", help="Skip the detached 'review' worktree"
    )
    parser.add_argument("--no-worktrees", action="store_true", help="Skip worktree creation")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="git-worktree-keeper",
        description="Convert checkouts into bare repositories backing multiple worktrees",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress progress output")
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert", help="Convert an existing repository to bare with worktrees"
    )
    convert.add_argument("path", nargs="?", default=".", help="Repository root (default: cwd)")
    convert.add_argument(
        "-w", "--worktree", dest="worktrees", action="append", default=[], metavar="BRANCH",
        help="Create a worktree for BRANCH (repeatable)",
    )
    convert.add_argument(
        "--all-worktrees", action="store_true", help="Create a worktree for every branch"
    )
    convert.add_argument(
        "--no-fetch", action="store_true", help="Don't repair remote tracking after conversion"
    )
    _add_worktree_plan_args(convert)

    clone = subparsers.add_parser("clone", help="Bare-clone a repository and create worktrees")
    clone.add_argument("repo", help="owner/repo or clone URL")
    clone.add_argument("-d", "--dest", help="Destination directory")
    clone.add_argument("--depth", type=int, help="Create a shallow clone with this depth")
    _add_worktree_plan_args(clone)

    add = subparsers.add_parser("add", help="Add a feature worktree to a converted repository")
    add.add_argument("repo_root", help="Converted repository root")
    add.add_argument("name", help="New branch and worktree name")
    add.add_argument("--base", help="Base branch (default: the default branch)")
    add.add_argument("--default-branch", help="Default branch (otherwise looked up or guessed)")

    branches = subparsers.add_parser("branches", help="List branches visible from a repository")
    branches.add_argument("path", nargs="?", default=".")

    worktrees = subparsers.add_parser("worktrees", help="List worktrees of a converted repository")
    worktrees.add_argument("path", nargs="?", default=".")

    repair = subparsers.add_parser("repair", help="Repair remote tracking in a bare metadata store")
    repair.add_argument("metadata_path", help="Path to the bare metadata store (e.g. repo/.git)")
    repair.add_argument("--default-branch", help="Local branch to keep")

    return parser


def parse_args(argv: Optional[List[str]] = None):
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
