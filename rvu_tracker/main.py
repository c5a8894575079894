"""
Main entry point for RVU Tracker.

Builds the catalog, cache, gateway and repositories once and exposes them
through a small command-line interface.
"""

import argparse
import json
import os
import sys
import logging
from datetime import date, datetime
from typing import List, Optional

from .core.config import APP_NAME, APP_VERSION, CACHE_DATABASE_FILE_NAME, CACHE_SCHEMA_VERSIONS
from .core.errors import GatewayError, TrackerError
from .core.logging_config import setup_logging
from .core.platform_utils import APP_HOME_ENV_VAR, ensure_directories, get_app_root
from .core.settings import load_settings, resolve_week_start
from .data.cache_store import CacheStore
from .data.gateway import RemoteDataGateway
from .data.models import Visit
from .data.repositories import FavoriteRepository, VisitRepository
from .logic.analytics import AnalyticsAggregator, Period
from .logic.catalog import ReferenceCatalog
from .logic.catalog_search import search
from .logic.enrichment import enrich_visits

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "RVU_TRACKER_TOKEN"


# =============================================================================
# Session wiring
# =============================================================================

class TrackerSession:
    """Owns one instance of every component for the signed-in user."""

    def __init__(self, settings: dict, root: str, token: Optional[str] = None):
        self.settings = settings
        self.root = root
        self.token = token

        self.catalog = ReferenceCatalog(settings["catalog"].get("path") or None)
        self.cache = CacheStore(os.path.join(root, CACHE_DATABASE_FILE_NAME), CACHE_SCHEMA_VERSIONS)
        self.gateway = RemoteDataGateway(
            base_url=settings["api"]["base_url"],
            token_provider=lambda: self.token,
            timeout=settings["api"]["timeout_seconds"],
        )
        self.visits = VisitRepository(
            self.gateway,
            self.catalog,
            self.cache,
            on_auth_expired=self.sign_out,
            freshness_seconds=settings["cache"]["freshness_seconds"],
        )
        self.favorites = FavoriteRepository(self.gateway, self.cache, on_auth_expired=self.sign_out)

    def sign_out(self):
        """Drop the token and every cached or in-memory user record."""
        logger.info("Signing out, clearing session data")
        self.token = None
        self.visits.clear()
        self.favorites.clear()
        self.cache.delete_all()

    def close(self):
        self.cache.close()


# =============================================================================
# Helpers
# =============================================================================

def _parse_date_arg(value: str) -> date:
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}', expected YYYY-MM-DD")


def _load_visits_file(path: str) -> List[Visit]:
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise TrackerError(f"{path} must contain a JSON list of visits")
    return [Visit.from_dict(item) for item in data]


def _resolve_visits(session: TrackerSession, args) -> Optional[List[Visit]]:
    """Visits from --visits, or from the backend via the visit repository."""
    if args.visits:
        session.catalog.load()
        return enrich_visits(_load_visits_file(args.visits), session.catalog)

    session.visits.restore_cached()
    if not session.visits.refresh(force=args.refresh):
        if session.visits.error_message:
            print(f"Error: {session.visits.error_message}", file=sys.stderr)
            if not session.visits.visits:
                return None
    return session.visits.visits


def _build_aggregator(session: TrackerSession, args, visits: List[Visit]) -> AnalyticsAggregator:
    analytics = session.settings["analytics"]
    aggregator = AnalyticsAggregator(
        visits,
        week_start=resolve_week_start(session.settings),
        default_range_days=analytics["default_range_days"],
    )
    aggregator.set_period(Period(args.period))
    if args.start or args.end:
        current = aggregator.date_range
        aggregator.set_date_range(args.start or current.start, args.end or current.end)
    if args.select is not None:
        aggregator.select_bucket(args.select)
    return aggregator


# =============================================================================
# Commands
# =============================================================================

def cmd_search(session: TrackerSession, args) -> int:
    if not session.catalog.load():
        print(f"Error: {session.catalog.error}", file=sys.stderr)
        return 1
    limit = args.limit or session.settings["search"]["result_limit"]
    results = search(session.catalog, args.query, limit=limit)
    for entry in results:
        print(f"{entry.code:<8} {entry.work_rvu:>6.2f}  {entry.description}")
    if not results:
        print("No matching codes")
    return 0


def cmd_summary(session: TrackerSession, args) -> int:
    visits = _resolve_visits(session, args)
    if visits is None:
        return 1
    aggregator = _build_aggregator(session, args, visits)

    print(f"Range: {aggregator.date_range.start} to {aggregator.date_range.end} ({aggregator.period.value})")
    print(f"Total RVU: {aggregator.total_rvu:.2f}")
    print(f"Encounters: {aggregator.total_encounters}")
    print(f"No-shows: {aggregator.total_no_shows}")
    print(f"Avg RVU/encounter: {aggregator.avg_rvu_per_encounter:.2f}")
    print()
    for summary in aggregator.period_summaries:
        print(f"{summary.period_label:<16} {summary.total_rvu:>8.2f} RVU  "
              f"{summary.encounter_count:>4} enc  {summary.no_show_count:>3} no-show")

    if args.chart:
        # matplotlib loads only when a chart is requested
        from .reports.chart import render_period_chart
        render_period_chart(aggregator.period_summaries, args.chart,
                            selected_index=aggregator.selected_bucket_index,
                            title=f"RVU by {aggregator.period.value.capitalize()} Period")
        print(f"Chart written to {args.chart}")
    if args.xlsx:
        from .reports.workbook import export_analytics_workbook
        export_analytics_workbook(aggregator, args.xlsx)
        print(f"Workbook written to {args.xlsx}")
    return 0


def cmd_breakdown(session: TrackerSession, args) -> int:
    visits = _resolve_visits(session, args)
    if visits is None:
        return 1
    aggregator = _build_aggregator(session, args, visits)

    breakdowns = aggregator.period_breakdowns
    if not breakdowns:
        print("No visits in range")
    for breakdown in breakdowns:
        print(breakdown.period_label)
        for row in breakdown.rows:
            print(f"  {row.code:<8} x{row.total_quantity:<4} {row.total_work_rvu:>8.2f}  {row.description}")
    return 0


def cmd_favorites(session: TrackerSession, args) -> int:
    favorites = session.favorites
    action = args.action

    if action == "add":
        ok = favorites.add(args.code)
    elif action == "remove":
        ok = favorites.remove(args.code)
    elif action == "move":
        favorites.refresh()
        ok = favorites.move([args.source], args.destination)
    else:
        ok = favorites.refresh()

    if favorites.error_message:
        print(f"Error: {favorites.error_message}", file=sys.stderr)

    session.catalog.load()
    for favorite in favorites.favorites:
        entry = session.catalog.get_code(favorite.code)
        description = entry.description if entry else ""
        print(f"{favorite.sort_order:>3}  {favorite.code:<8} {description}")
    return 0 if ok else 1


def cmd_clear_cache(session: TrackerSession, args) -> int:
    session.cache.delete_all()
    print("Cache cleared")
    return 0


# =============================================================================
# Argument parsing
# =============================================================================

def _add_analytics_arguments(parser: argparse.ArgumentParser):
    parser.add_argument("--visits", help="Read visits from a JSON file instead of the server")
    parser.add_argument("--period", choices=[p.value for p in Period], default=Period.DAILY.value)
    parser.add_argument("--start", type=_parse_date_arg, help="First day of the range (YYYY-MM-DD)")
    parser.add_argument("--end", type=_parse_date_arg, help="Last day of the range (YYYY-MM-DD)")
    parser.add_argument("--select", type=int, help="Drill down into the bucket at this index")
    parser.add_argument("--refresh", action="store_true", help="Ignore the local cache")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rvu-tracker", description=f"{APP_NAME} {APP_VERSION}")
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    parser.add_argument("--home", help="Directory for settings, cache and logs")
    parser.add_argument("--token", help=f"API bearer token (default: ${TOKEN_ENV_VAR})")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    search_parser = subparsers.add_parser("search", help="Search HCPCS codes")
    search_parser.add_argument("query")
    search_parser.add_argument("--limit", type=int)
    search_parser.set_defaults(func=cmd_search)

    summary_parser = subparsers.add_parser("summary", help="RVU totals per period")
    _add_analytics_arguments(summary_parser)
    summary_parser.add_argument("--chart", help="Write a bar chart image to this path")
    summary_parser.add_argument("--xlsx", help="Export summaries and breakdowns to an Excel file")
    summary_parser.set_defaults(func=cmd_summary)

    breakdown_parser = subparsers.add_parser("breakdown", help="Procedure totals by HCPCS code")
    _add_analytics_arguments(breakdown_parser)
    breakdown_parser.set_defaults(func=cmd_breakdown)

    favorites_parser = subparsers.add_parser("favorites", help="List or edit favorite codes")
    favorites_sub = favorites_parser.add_subparsers(dest="action")
    favorites_sub.add_parser("list")
    add_parser = favorites_sub.add_parser("add")
    add_parser.add_argument("code")
    remove_parser = favorites_sub.add_parser("remove")
    remove_parser.add_argument("code")
    move_parser = favorites_sub.add_parser("move")
    move_parser.add_argument("source", type=int)
    move_parser.add_argument("destination", type=int)
    favorites_parser.set_defaults(func=cmd_favorites)

    clear_parser = subparsers.add_parser("clear-cache", help="Delete every locally cached record")
    clear_parser.set_defaults(func=cmd_clear_cache)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the application."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.home:
        os.environ[APP_HOME_ENV_VAR] = os.path.abspath(args.home)
    root = get_app_root()
    ensure_directories(root)

    setup_logging(root, level=logging.DEBUG if args.verbose else logging.WARNING)
    logger.info(f"{APP_NAME} {APP_VERSION} starting ({args.command})")

    settings = load_settings()
    token = args.token or os.environ.get(TOKEN_ENV_VAR)
    session = TrackerSession(settings, root, token=token)
    try:
        return args.func(session, args)
    except (TrackerError, OSError, ValueError) as e:
        if isinstance(e, GatewayError):
            logger.error(f"Request failed: {e}")
        else:
            logger.error(f"Command {args.command} failed: {e}", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
