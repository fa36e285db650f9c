"""Command-line interface for app-deployer."""

from __future__ import annotations

import argparse
import os
from pathlib import Path
from typing import Optional

from .config import load_config
from .interaction import decision_from_flags
from .orchestrator import DeploymentRequest, Verbosity
from .workflow import DeploymentWorkflow


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="app-deployer",
        description="Deploy an application checkout to a given tag or branch.",
    )
    parser.add_argument("version", help="Which version to deploy (tag or branch name).")
    parser.add_argument(
        "path",
        nargs="?",
        default=None,
        help="Path of the checkout to deploy into. Default is the current directory.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a JSON config file overriding defaults.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not run any command. Appropriate for testing.",
    )

    db_group = parser.add_mutually_exclusive_group()
    db_group.add_argument(
        "--update-db",
        action="store_true",
        help="Run the database migrations without asking.",
    )
    db_group.add_argument(
        "--no-update-db",
        action="store_true",
        help="Do not run the database migrations and do not ask.",
    )

    worker_group = parser.add_mutually_exclusive_group()
    worker_group.add_argument(
        "--restart-worker",
        metavar="NAME",
        default=None,
        help="Restart the given worker without asking.",
    )
    worker_group.add_argument(
        "--no-restart-worker",
        action="store_true",
        help="Do not restart any worker and do not ask.",
    )

    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "-v", "--verbose", action="store_true", help="Also print the commands being run."
    )
    verbosity_group.add_argument(
        "-q", "--quiet", action="store_true", help="Only print errors."
    )

    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Never prompt; undecided optional steps are skipped.",
    )
    return parser


def _verbosity(args: argparse.Namespace) -> Verbosity:
    if args.verbose:
        return Verbosity.VERBOSE
    if args.quiet:
        return Verbosity.QUIET
    return Verbosity.NORMAL


def build_request(args: argparse.Namespace) -> DeploymentRequest:
    path = Path(args.path) if args.path else Path(os.getcwd())
    return DeploymentRequest(
        ref=args.version,
        path=path.resolve(),
        dry_run=args.dry_run,
        verbosity=_verbosity(args),
        update_database=decision_from_flags(args.update_db, args.no_update_db),
        restart_worker=decision_from_flags(args.restart_worker, args.no_restart_worker),
    )


def run_cli(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args.config)
    except FileNotFoundError as exc:
        parser.error(str(exc))
    if args.non_interactive:
        config.interaction.mode = "auto"

    workflow = DeploymentWorkflow(config=config)
    outcome = workflow.run_deploy(build_request(args))
    return outcome.exit_code
