# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import logging
import sys
from signal import SIGINT, getsignal, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from assetsweep.app import list_categories, reconcile
from assetsweep.config import (
    MAX_CONCURRENCY,
    MAX_PAGE_SIZE,
    ConfigurationError,
    configure_logging,
)
from assetsweep.domain.categories import ALL_CATEGORIES

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import FrameType

    from assetsweep.domain.types import ReconciliationReport

log = logging.getLogger(__name__)


def _bounded_int(maximum: int) -> Callable[[str], int]:
    def parse(value: str) -> int:
        try:
            number = int(value)
        except ValueError as exc:
            raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from exc
        if not 1 <= number <= maximum:
            raise argparse.ArgumentTypeError(f"must be between 1 and {maximum}, got {number}")
        return number

    return parse


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Remove unused media from the object store")
    subparsers = parser.add_subparsers(dest="command", required=True)

    run = subparsers.add_parser("reconcile", help="Delete stored objects no document references")
    run.add_argument(
        "categories",
        nargs="+",
        metavar="CATEGORY",
        help=f"Asset categories to reconcile, or {ALL_CATEGORIES!r} for every category",
    )
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="Report unused objects without deleting anything",
    )
    run.add_argument(
        "--concurrency",
        type=_bounded_int(MAX_CONCURRENCY),
        default=None,
        help=f"Deletions in flight at once (1-{MAX_CONCURRENCY}, defaults to config)",
    )
    run.add_argument(
        "--page-size",
        type=_bounded_int(MAX_PAGE_SIZE),
        default=None,
        help=f"Objects requested per listing page (1-{MAX_PAGE_SIZE}, defaults to config)",
    )
    run.add_argument(
        "--no-revalidate",
        dest="revalidate",
        action="store_false",
        default=None,
        help="Skip the per-object reference re-check before each deletion",
    )
    run.add_argument(
        "--json",
        action="store_true",
        help="Print the run reports as JSON",
    )

    subparsers.add_parser("categories", help="List the known asset categories")

    return parser.parse_args(list(argv))


class StopFlag:
    """SIGINT handler that asks the running reconciliation to stop.

    The first Ctrl+C lets in-flight deletions finish; a second one aborts at once.
    """

    def __init__(self) -> None:
        self.requested = False

    def __call__(self) -> bool:
        return self.requested

    def handle(self, _signal_received: int, _frame: FrameType | None) -> None:
        if self.requested:
            raise KeyboardInterrupt
        self.requested = True
        log.warning("Stop requested (Ctrl+C): no new deletions will start, press again to abort")


def _print_categories() -> None:
    for category in list_categories():
        types = ", ".join(resource_type.value for resource_type in category.resource_types)
        fields = ", ".join(category.reference_fields)
        print(
            f"{category.name:<10} {category.namespace:<24} "
            f"collection={category.collection} fields={fields} types={types}"
        )


def _print_reports(reports: dict[str, ReconciliationReport], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([report.to_payload() for report in reports.values()], indent=2))
        return
    for report in reports.values():
        print(f"{report.category}: {report.message}")
        for entry in report.failed:
            print(f"  failed {entry.object_id}: {entry.reason}")
        for object_id in report.skipped:
            print(f"  skipped {object_id}: referenced")
        for object_id in report.unused:
            print(f"  unused {object_id}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    try:
        configure_logging()
    except ConfigurationError as exc:
        print(f"assetsweep: {exc}", file=sys.stderr)
        sys.exit(2)
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)

    if parsed_args.command == "categories":
        try:
            _print_categories()
        except ConfigurationError:
            log.exception("Configuration error")
            sys.exit(2)
        return

    stop = StopFlag()
    previous_handler = getsignal(SIGINT)
    signal(SIGINT, stop.handle)
    try:
        reports = reconcile(
            parsed_args.categories,
            dry_run=parsed_args.dry_run,
            concurrency=parsed_args.concurrency,
            page_size=parsed_args.page_size,
            revalidate=parsed_args.revalidate,
            stop_requested=stop,
        )
    except (ConfigurationError, ValueError):
        log.exception("Invalid reconciliation request")
        sys.exit(2)
    except KeyboardInterrupt:
        log.info("Closed by user (Ctrl+C)")
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during reconciliation")
        sys.exit(1)
    finally:
        if previous_handler is not None:
            signal(SIGINT, previous_handler)

    _print_reports(reports, as_json=parsed_args.json)
    if stop.requested or not all(report.succeeded for report in reports.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
