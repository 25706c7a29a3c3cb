"""Main CLI entry point for the image reconciliation workflow"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from image_reconciler.config.config_loader import format_config, load_config
from image_reconciler.models.configs import ReconcilerConfig
from image_reconciler.models.workflow import ReconcileState
from image_reconciler.workflow.graph import run_reconciliation

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_USAGE = 2


def configure_logging(verbose: bool = False) -> None:
    """Set up console logging for CLI runs"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="image-reconciler",
        description="Match catalog products to image files and repair broken image references.",
    )
    parser.add_argument("catalog", help="Catalog JSON file")
    parser.add_argument(
        "--images",
        nargs="+",
        required=True,
        metavar="DIR",
        help="Image directories to scan, earlier directories win key collisions",
    )
    parser.add_argument("--dry-run", action="store_true", help="Write the report only")
    parser.add_argument(
        "--threshold",
        type=float,
        help="Token-subset threshold between 0 and 1 (default from config: 0.70)",
    )
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument(
        "--recursive", action="store_true", help="Scan image directories recursively"
    )
    parser.add_argument(
        "--public-root",
        action="append",
        type=Path,
        metavar="DIR",
        help="Directory site-relative image references resolve against (repeatable)",
    )
    parser.add_argument(
        "--keep-duplicates",
        action="store_true",
        help="Report duplicate entries without removing them",
    )
    parser.add_argument("--backup-dir", type=Path, help="Directory for catalog backups")
    parser.add_argument("--report-dir", type=Path, help="Directory for run reports")
    parser.add_argument("--excel", type=Path, help="Also write the report as an Excel workbook")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser


def apply_overrides(config: ReconcilerConfig, args: argparse.Namespace) -> ReconcilerConfig:
    """
    Apply command-line flags on top of the loaded configuration.

    Args:
        config: Loaded configuration
        args: Parsed command-line arguments

    Returns:
        New, validated configuration

    Raises:
        ValueError: If an override is out of range
    """
    data = config.model_dump()

    if args.threshold is not None:
        data["matching"]["token_subset_threshold"] = args.threshold
    if args.recursive:
        data["recursive"] = True
    if args.public_root:
        data["public_roots"] = args.public_root
    if args.keep_duplicates:
        data["remove_duplicates"] = False
    if args.backup_dir:
        data["backup_dir"] = args.backup_dir
    if args.report_dir:
        data["report_dir"] = args.report_dir

    return ReconcilerConfig.model_validate(data)


def print_summary(state: ReconcileState) -> None:
    """Print the run summary to the console"""
    report = state.report

    print("Reconciliation completed!" if not state.dry_run else "Dry run completed!")
    print(f"  Run ID: {report.run_id}")
    print(f"  Entries processed: {report.total_entries}")
    print(f"  Matched: {report.matched}")
    print(f"  Skipped: {report.skipped}")
    print(f"  Unchanged: {report.unchanged}")
    print(f"  Errors: {report.errors}")
    print(f"  Duplicates removed: {report.duplicates_removed}")
    print(f"  Unused images: {len(report.unused_images)}")
    if state.backup_path:
        print(f"  Backup: {state.backup_path}")
    print(f"  Report: {state.report_path or 'not written'}")
    excel_failed = any(error.startswith("Excel export error") for error in state.errors)
    if state.excel_path and not excel_failed:
        print(f"  Excel report: {state.excel_path}")

    if report.directory_errors:
        print("\nImage directories skipped:")
        for issue in report.directory_errors:
            print(f"  - {issue.directory}: {issue.reason}")

    if report.error_details:
        print("\nEntry errors:")
        for detail in report.error_details:
            print(f"  - {detail}")

    if state.errors:
        print("\nWarnings:")
        for error in state.errors:
            print(f"  - {error}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Usage:
        image-reconciler products.json --images "public/sitephoto/New images" [--dry-run]

    Args:
        argv: Command-line arguments, defaults to ``sys.argv[1:]``

    Returns:
        Process exit code: 0 on a completed run, 1 on a fatal I/O failure,
        2 on invalid arguments or configuration
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_OK if e.code == 0 else EXIT_USAGE

    configure_logging(args.verbose)

    try:
        config = apply_overrides(load_config(args.config), args)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return EXIT_USAGE
    except ValueError as e:
        print(f"Error: Invalid configuration: {e}")
        return EXIT_USAGE

    print("Starting image reconciliation workflow...")
    print(f"  Catalog: {args.catalog}")
    print(f"  Image directories: {', '.join(args.images)}")
    print(f"  Mode: {'dry run' if args.dry_run else 'commit'}")
    if args.verbose:
        print("  Keyword rules:")
        for line in format_config(config).splitlines():
            print(f"    {line}")
    print()

    try:
        final_state = run_reconciliation(
            args.catalog,
            args.images,
            config=config,
            dry_run=args.dry_run,
            excel_path=args.excel,
            show_progress=sys.stderr.isatty(),
        )
    except (OSError, ValueError) as e:
        # Missing or unparseable catalog, backup or write failure
        print(f"Fatal error: {e}")
        return EXIT_FATAL

    print_summary(final_state)
    return EXIT_OK


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
