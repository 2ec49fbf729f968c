"""
Import/Export CLI Utility

Command-line interface for backing up and restoring the dashboard
configuration (tabs, groups and per-tab inputs).

Usage Examples:
    # Export everything
    python -m src.utils.import_export_cli export dashboard_backup.json

    # Import, replacing the stored configuration
    python -m src.utils.import_export_cli import dashboard_backup.json

    # Import on top of the stored configuration
    python -m src.utils.import_export_cli import dashboard_backup.json --mode merge
"""

import sys
import argparse
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.services.database import initialize_app_database
from src.services.import_export_service import (
    IMPORT_MODES,
    export_all_to_json,
    import_all_from_json,
)


def export_all(output_file: str):
    """Export the full configuration."""
    print(f"Exporting dashboard configuration to {output_file}...")
    result = export_all_to_json(output_file)

    if result.success:
        print(result.get_summary())
        return 0
    else:
        print(f"ERROR: {result.error}")
        return 1


def import_all(input_file: str, mode: str = "replace"):
    """Import a configuration file."""
    print(f"Importing dashboard configuration from {input_file} (mode: {mode})...")
    result = import_all_from_json(input_file, mode=mode)

    print(result.get_summary())
    return 0 if result.success else 1


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Import/Export utility for Dashboard Tabs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Export everything:
    python -m src.utils.import_export_cli export dashboard_backup.json

  Import, replacing the stored configuration:
    python -m src.utils.import_export_cli import dashboard_backup.json

  Import on top of the stored configuration:
    python -m src.utils.import_export_cli import dashboard_backup.json --mode merge
""",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    export_parser = subparsers.add_parser("export", help="Export tabs, groups and inputs")
    export_parser.add_argument("file", help="JSON file path")

    import_parser = subparsers.add_parser("import", help="Import tabs, groups and inputs")
    import_parser.add_argument("file", help="JSON file path")
    import_parser.add_argument(
        "--mode",
        choices=IMPORT_MODES,
        default="replace",
        help="Import mode: 'replace' (default) makes the file the whole configuration, "
        "'merge' keeps stored entries the file doesn't mention",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    # Initialize database (required for all operations)
    print("Initializing database...")
    initialize_app_database()

    if args.command == "export":
        return export_all(args.file)
    elif args.command == "import":
        return import_all(args.file, mode=args.mode)
    else:
        print(f"Unknown command: {args.command}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
