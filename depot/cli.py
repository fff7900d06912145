"""Command-line front end for refresh, worker and purge operations."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Callable, Dict, Optional, Sequence

from depot.bootstrap import DepotApplication, build_application
from depot.errors import InvalidArgumentError, UnsupportedOperationError
from depot.logging_config import configure_logging
from depot.models import MetadataEventResponse

_LOGGER = logging.getLogger(__name__)

Command = Callable[
    [DepotApplication, argparse.Namespace], MetadataEventResponse
]


def _refresh_all(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    if args.snapshot_only:
        return app.refresh.refresh_master_snapshot_for_all_projects(
            args.full_update, args.transitive, args.parent_event_id
        )
    return app.refresh.refresh_all_versions_for_all_projects(
        args.full_update,
        args.all_versions,
        args.transitive,
        args.parent_event_id,
    )


def _refresh_project(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    if args.snapshot_only:
        return app.refresh.refresh_master_snapshot_for_project(
            args.group_id,
            args.artifact_id,
            args.full_update,
            args.transitive,
            args.parent_event_id,
        )
    return app.refresh.refresh_all_versions_for_project(
        args.group_id,
        args.artifact_id,
        args.full_update,
        args.all_versions,
        args.transitive,
        args.parent_event_id,
    )


def _refresh_version(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    return app.refresh.refresh_version_for_project(
        args.group_id,
        args.artifact_id,
        args.version_id,
        args.transitive,
        args.parent_event_id,
    )


def _refresh_missing(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    return app.refresh.refresh_projects_with_missing_versions(
        args.parent_event_id
    )


def _work(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    return app.worker.drain(args.max_items)


def _delete(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    if args.version_id is None:
        return app.projects.delete_project(args.group_id, args.artifact_id)
    return app.purge.delete(args.group_id, args.artifact_id, args.version_id)


def _evict(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    return app.purge.evict(args.group_id, args.artifact_id, args.version_id)


def _deprecate(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    return app.purge.deprecate(
        args.group_id, args.artifact_id, args.version_id
    )


def _evict_oldest(
    app: DepotApplication, args: argparse.Namespace
) -> MetadataEventResponse:
    return app.purge.evict_oldest_project_versions(
        args.group_id, args.artifact_id, args.keep
    )


COMMANDS: Dict[str, Command] = {
    "refresh-all": _refresh_all,
    "refresh-project": _refresh_project,
    "refresh-version": _refresh_version,
    "refresh-missing": _refresh_missing,
    "work": _work,
    "delete": _delete,
    "evict": _evict,
    "deprecate": _deprecate,
    "evict-oldest": _evict_oldest,
}


def _add_refresh_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--full-update",
        action="store_true",
        help="Reprocess versions that are already stored.",
    )
    parser.add_argument(
        "--all-versions",
        action="store_true",
        help="Consider every upstream version, not only newer ones.",
    )
    parser.add_argument(
        "--snapshot-only",
        action="store_true",
        help="Only queue the MASTER-SNAPSHOT refresh.",
    )


def _add_coordinates(
    parser: argparse.ArgumentParser, *, version: str = "required"
) -> None:
    parser.add_argument("group_id")
    parser.add_argument("artifact_id")
    if version == "required":
        parser.add_argument("version_id")
    elif version == "optional":
        parser.add_argument("version_id", nargs="?")


def build_arg_parser() -> argparse.ArgumentParser:
    argument_parser = argparse.ArgumentParser(
        prog="depot",
        description="Metadata depot: refresh and purge project versions.",
    )
    argument_parser.add_argument(
        "--parent-event-id",
        default=None,
        help="Correlation id prefixed to generated parent event ids.",
    )
    argument_parser.add_argument(
        "--transitive",
        action="store_true",
        help="Also refresh dependencies missing from the store.",
    )
    commands = argument_parser.add_subparsers(dest="command", required=True)

    _add_refresh_flags(commands.add_parser("refresh-all"))
    refresh_project = commands.add_parser("refresh-project")
    _add_coordinates(refresh_project, version="none")
    _add_refresh_flags(refresh_project)
    _add_coordinates(commands.add_parser("refresh-version"))
    commands.add_parser("refresh-missing")

    work = commands.add_parser("work")
    work.add_argument(
        "--max-items",
        type=int,
        default=None,
        help="Stop after this many notifications.",
    )

    _add_coordinates(commands.add_parser("delete"), version="optional")
    _add_coordinates(commands.add_parser("evict"))
    _add_coordinates(commands.add_parser("deprecate"))
    evict_oldest = commands.add_parser("evict-oldest")
    _add_coordinates(evict_oldest, version="none")
    evict_oldest.add_argument(
        "--keep",
        type=int,
        required=True,
        help="Number of newest versions to keep.",
    )
    return argument_parser


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    app: Optional[DepotApplication] = None,
) -> int:
    """Run one command and print its response as JSON.

    Exit codes: 0 success, 1 response carries errors, 2 rejected input.
    """

    configure_logging()
    parsed_args = build_arg_parser().parse_args(argv)
    app = app or build_application()
    command = COMMANDS[parsed_args.command]
    try:
        response = command(app, parsed_args)
    except (InvalidArgumentError, UnsupportedOperationError) as exc:
        _LOGGER.error("%s rejected: %s", parsed_args.command, exc)
        print(json.dumps({"error": str(exc)}), file=sys.stderr)
        return 2
    print(json.dumps(response.to_dict(), indent=2))
    return 1 if response.has_errors else 0


if __name__ == "__main__":
    sys.exit(main())
