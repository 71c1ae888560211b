"""
Wipe the CRM data tables and prepare the project for real production data.

Usage:
  python scripts/reset_database.py --dry-run
  python scripts/reset_database.py --yes
"""
import argparse
import logging
import sys

from leadboard.config import get_settings
from leadboard.core.logger import configure_logging
from leadboard.database import database_health, get_engine
from leadboard.migrations import apply_clean_slate, render_sql

logger = logging.getLogger("reset_database")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--dry-run", action="store_true", help="print the SQL instead of running it")
    parser.add_argument("--yes", action="store_true", help="confirm deleting every row in the data tables")
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    if args.dry_run:
        print(render_sql(settings))
        return 0
    if not args.yes:
        print("Refusing to delete data without --yes (use --dry-run to review the SQL).")
        return 2

    engine = get_engine(settings.database_url)
    health = database_health(engine)
    if not health["ok"]:
        logger.error("Database unreachable: %s", health["error"])
        return 1
    logger.info("Connected to %s as %s", health["database"], health["user"])

    with engine.begin() as connection:
        summary = apply_clean_slate(connection, settings)

    print("=== CLEAN SLATE APPLIED ===")
    for table, count in summary["cleared"].items():
        print(f"  cleared {table}: {count}")
    print(f"  seeded user: {summary['seeded_user']}")
    print(f"  newly published: {', '.join(summary['published']) or 'none'}")
    print(f"  policies: {len(summary['policies'])}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
