#!/usr/bin/env python3
# =============================================================================
# scripts/migrate_assets.py - Asset Migration Job
# =============================================================================
# Moves inline (data URI) and legacy-hosted assets into R2 and rewrites the
# documents that reference them.
#
# Usage:
#   python scripts/migrate_assets.py                         # everything
#   python scripts/migrate_assets.py --kind=legacy           # legacy URLs only
#   python scripts/migrate_assets.py --kind=inline --only=ff_products,ff_extras
#   python scripts/migrate_assets.py --limit=10              # dry-run sized batch
#
# Prerequisites:
#   - SUPABASE_URL / SUPABASE_SERVICE_KEY
#   - CLOUDFLARE_R2_* credentials
#   - LEGACY_STORAGE_REGEX or LEGACY_STORAGE_DOMAINS for legacy migration
#
# Exit codes: 0 finished, 1 missing configuration or fatal error
# =============================================================================

import argparse
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from app.config import get_settings
from app.dependencies import build_migrator, build_store, configure_logging
from app.exceptions import AssetPipelineError, ConfigurationError
from core.models.references import ReferenceKind
from core.services.migration_targets import default_targets, target_collections
from core.services.reporting import format_migration_summary
from lib.utils import parse_csv_list

logger = logging.getLogger("migrate_assets")

KIND_CHOICES = {
    "inline": {ReferenceKind.INLINE},
    "legacy": {ReferenceKind.LEGACY},
    "all": {ReferenceKind.INLINE, ReferenceKind.LEGACY},
}


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Migrate inline and legacy assets to R2")
    parser.add_argument("--only", default="", help="Comma-separated collections to migrate")
    parser.add_argument("--limit", type=int, default=0, help="Max documents per collection (0 = all)")
    parser.add_argument("--kind", choices=sorted(KIND_CHOICES), default="all", help="Which references to migrate")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings)

    only = parse_csv_list(args.only)
    unknown = sorted(set(only) - set(target_collections()))
    if unknown:
        logger.error(f"Unknown collections: {', '.join(unknown)}")
        return 1

    try:
        store = build_store(settings)
        migrator = build_migrator(settings, store)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    logger.info(
        f"Starting {args.kind} asset migration"
        + (f" for {', '.join(only)}" if only else "")
        + (f" (limit {args.limit} per collection)" if args.limit else "")
    )

    try:
        report = migrator.run(
            default_targets(store, kinds=KIND_CHOICES[args.kind]),
            only=only or None,
            limit=args.limit or None,
        )
    except AssetPipelineError as e:
        logger.error(f"Migration aborted: {e}")
        return 1
    finally:
        migrator.fetcher.close()

    print(format_migration_summary(report, title=f"{args.kind.upper()} ASSET MIGRATION SUMMARY"))
    return 0


if __name__ == "__main__":
    sys.exit(main())
