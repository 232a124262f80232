"""
Command line entry point for the PagerDuty scaffolder actions.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from pagerduty_scaffolder.config.settings import get_settings
from pagerduty_scaffolder.logging import configure_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pagerduty-scaffolder",
        description="PagerDuty scaffolder actions",
    )
    parser.add_argument(
        "--config",
        dest="config_paths",
        action="append",
        metavar="PATH",
        help="App config file (repeatable, later files win)",
    )
    parser.add_argument("--log-level", default=None, help="Log level (default from settings)")
    subparsers = parser.add_subparsers(dest="command")

    create_parser = subparsers.add_parser("create-service", help="Create a PagerDuty service and Backstage integration")
    create_parser.add_argument("--name", required=True, help="Name of the service")
    create_parser.add_argument("--description", required=True, help="Description of the service")
    create_parser.add_argument("--escalation-policy-id", required=True, help="Escalation policy ID")
    create_parser.add_argument(
        "--alert-grouping",
        default=None,
        help="Alert grouping (intelligent, time, content_based)",
    )

    subparsers.add_parser("list-escalation-policies", help="List escalation policies across all accounts")
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(args.log_level or settings.log_level, json=settings.log_json)

    if args.command == "create-service":
        from pagerduty_scaffolder.cli.commands import create_service_command

        sys.exit(create_service_command(
            args.name,
            args.description,
            args.escalation_policy_id,
            alert_grouping=args.alert_grouping,
            config_paths=args.config_paths,
        ))

    if args.command == "list-escalation-policies":
        from pagerduty_scaffolder.cli.commands import list_escalation_policies_command

        sys.exit(list_escalation_policies_command(config_paths=args.config_paths))

    parser.print_help()
    sys.exit(2)
