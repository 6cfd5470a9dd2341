"""Command-line entry point for git-worktree-keeper"""

import sys
from typing import List, Optional

from rich.console import Console

from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.config import Config
from git_worktree_keeper.core import WorktreeKeeper
from git_worktree_keeper.exceptions import WorktreeKeeperError
from git_worktree_keeper.utils.logging import setup_logging

console = Console()


def build_config(parsed_args) -> Config:
    """Build a Config from parsed arguments."""
    return Config(
        default_branch=getattr(parsed_args, "default_branch", None),
        create_default_worktree=not getattr(parsed_args, "no_default_worktree", False),
        create_review_worktree=not getattr(parsed_args, "no_review_worktree", False),
        feature_branch=getattr(parsed_args, "feature", None),
        feature_base=getattr(parsed_args, "feature_base", None),
        worktrees=getattr(parsed_args, "worktrees", []),
        all_worktrees=getattr(parsed_args, "all_worktrees", False),
        no_worktrees=getattr(parsed_args, "no_worktrees", False),
        fetch=not getattr(parsed_args, "no_fetch", False),
        depth=getattr(parsed_args, "depth", None),
        quiet=parsed_args.quiet,
        verbose=parsed_args.verbose,
        debug=parsed_args.debug,
    )


def run_command(keeper: WorktreeKeeper, parsed_args) -> None:
    """Dispatch one subcommand."""
    command = parsed_args.command
    if command == "convert":
        keeper.convert(parsed_args.path)
    elif command == "clone":
        keeper.clone(parsed_args.repo, parsed_args.dest)
    elif command == "add":
        path = keeper.add_worktree(parsed_args.repo_root, parsed_args.name, parsed_args.base)
        console.print(path)
    elif command == "branches":
        for branch in keeper.git_service.list_branches(parsed_args.path):
            console.print(branch, highlight=False)
    elif command == "worktrees":
        for name in keeper.git_service.list_worktrees(parsed_args.path):
            console.print(name, highlight=False)
    elif command == "repair":
        keeper.repair(parsed_args.metadata_path, parsed_args.default_branch)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    log_file = setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug, quiet=parsed_args.quiet)

    try:
        config = build_config(parsed_args)
        if log_file:
            console.print(f"[dim]Debug log: {log_file}[/dim]")
        if parsed_args.debug:
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                if key == "github_token" and value:
                    value = "***"
                console.print(f"  {key}: {value}")

        run_command(WorktreeKeeper(config), parsed_args)
        return 0
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except (WorktreeKeeperError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]", highlight=False)
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
