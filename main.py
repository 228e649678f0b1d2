#!/usr/bin/env python3
"""
Main orchestration script for Play Scope.

This script drives the screening analytics engine from the command line:
1. Profile management (child name and age, which selects the norm band)
2. Session recording (append mini-game session records to both stores)
3. Report generation (reconcile, aggregate, render JSON/HTML/plots)
4. API server (REST access to the same operations)

Usage:
    python main.py profile maya --age 5
    python main.py record sessions.json --child maya
    python main.py report maya --output results/
    python main.py serve --port 8000
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List

from reporting.aggregator import ChildReport, build_child_report
from sessions.models import ChildProfile, SessionRecord, SessionRecordError
from sessions.reconciliation import SessionReconciler
from sessions.stores import LocalSessionCache
from utils.config_loader import get_nested_config, load_config
from utils.session_database import ScreeningDatabase
from visualization import generate_html_report, plot_adhd_zscores, plot_score_history

logger = logging.getLogger(__name__)


def setup_logging(config: Dict):
    """Configure root logging from the 'logging' config section."""
    level_name = str(get_nested_config(config, 'logging.level', 'INFO')).upper()
    handlers = [logging.StreamHandler(sys.stdout)]
    log_file = get_nested_config(config, 'logging.file')
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers
    )


def build_reconciler(config: Dict) -> SessionReconciler:
    """Wire the configured local cache and remote database into a reconciler."""
    database = ScreeningDatabase(get_nested_config(config, 'storage.database_path', 'data/screening/play_scope.db'))
    local_cache = LocalSessionCache(get_nested_config(config, 'storage.local_cache_path', 'data/cache/game_sessions.json'))
    return SessionReconciler(local_cache, database, database, config)


def load_session_file(path: Path, child_id: str = None) -> List[SessionRecord]:
    """
    Load one session object or an array of them from a JSON file.

    Raises:
        SessionRecordError: If any record is malformed
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    raw_records = data if isinstance(data, list) else [data]
    return [SessionRecord.from_dict(raw, child_id=child_id) for raw in raw_records]


def run_report(child_id: str, config: Dict, output_dir: str, write_html: bool = True) -> ChildReport:
    """
    Reconcile, aggregate and render the report for one child.

    Args:
        child_id: Child identifier
        config: Configuration dictionary
        output_dir: Directory for output files
        write_html: Whether to render the HTML report and plots

    Returns:
        The aggregated ChildReport
    """
    logger.info("=" * 80)
    logger.info(f"PLAY SCOPE - Caregiver report for '{child_id}'")
    logger.info("=" * 80)

    reconciler = build_reconciler(config)
    result = reconciler.reconcile(child_id)
    profile = reconciler.load_profile(child_id)
    if profile is None:
        logger.warning(f"No profile for '{result.child_id}'; age-normed metrics will be unavailable")

    report = build_child_report(
        result.child_id,
        result.sessions,
        profile=profile,
        config=config,
        local_available=result.local_available,
        remote_available=result.remote_available,
    )

    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    json_path = output_path / f"{result.child_id}_report.json"
    with open(json_path, 'w', encoding='utf-8') as f:
        json.dump(report.to_dict(), f, indent=2, ensure_ascii=False)
    logger.info(f"✓ JSON report saved: {json_path}")

    if write_html:
        history_plot = ""
        adhd_plot = ""
        if get_nested_config(config, 'report.include_history_plot', True):
            history_plot = plot_score_history(
                list(report.history), str(output_path / f"{result.child_id}_history.png")
            )
            adhd_plot = plot_adhd_zscores(
                report.adhd,
                str(output_path / f"{result.child_id}_adhd.png"),
                flag_threshold=get_nested_config(config, 'scoring.symbol_spotter.z_flag_threshold', 1.5)
            )
        html_path = generate_html_report(
            report,
            str(output_path / f"{result.child_id}_report.html"),
            history_plot_path=history_plot or None,
            adhd_plot_path=adhd_plot or None
        )
        logger.info(f"✓ HTML report saved: {html_path}")

    logger.info(f"Sessions: {report.total_plays}  Average score: {report.average_score_display}")
    return report


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description='Play Scope - Screening Mini-Game Analytics',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a profile (age selects the ADHD norm band)
  python main.py profile maya --age 5

  # Record sessions exported by the mini-games
  python main.py record sessions.json --child maya

  # Build the caregiver report
  python main.py report maya --output results/

  # Start the REST API
  python main.py serve --port 8000
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration YAML file (default: configs/screening.yaml)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    profile_parser = subparsers.add_parser('profile', help='Create or update a child profile')
    profile_parser.add_argument('child', help='Child name')
    profile_parser.add_argument('--age', type=int, default=None, help='Child age in years')

    record_parser = subparsers.add_parser('record', help='Record session(s) from a JSON file')
    record_parser.add_argument('file', help='JSON file with one session object or an array')
    record_parser.add_argument('--child', default=None, help='Owner for records without a "kid" field')

    report_parser = subparsers.add_parser('report', help='Generate the caregiver report')
    report_parser.add_argument('child', help='Child name')
    report_parser.add_argument('--output', default=None, help='Output directory (default: report.output_dir)')
    report_parser.add_argument('--json-only', action='store_true', help='Skip HTML and plots')

    serve_parser = subparsers.add_parser('serve', help='Start the API server')
    serve_parser.add_argument('--host', default=None)
    serve_parser.add_argument('--port', type=int, default=None)

    args = parser.parse_args()

    try:
        config = load_config(args.config)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging(config)

    if args.command == 'profile':
        reconciler = build_reconciler(config)
        try:
            profile = ChildProfile.create(args.child, age=args.age)
        except ValueError as e:
            logger.error(str(e))
            sys.exit(1)
        reconciler.profile_store.save(profile)

    elif args.command == 'record':
        path = Path(args.file)
        if not path.exists():
            logger.error(f"Session file not found: {path}")
            sys.exit(1)
        try:
            records = load_session_file(path, child_id=args.child)
        except (SessionRecordError, ValueError) as e:
            logger.error(f"Invalid session file {path}: {e}")
            sys.exit(1)

        reconciler = build_reconciler(config)
        failed = sum(1 for record in records if not reconciler.submit(record))
        logger.info(f"Recorded {len(records)} sessions ({failed} not yet synced to the remote store)")

    elif args.command == 'report':
        output_dir = args.output or get_nested_config(config, 'report.output_dir', 'results')
        run_report(args.child, config, output_dir, write_html=not args.json_only)

    elif args.command == 'serve':
        from utils.api_server import start_server
        start_server(config, host=args.host, port=args.port)

    sys.exit(0)


if __name__ == "__main__":
    main()
