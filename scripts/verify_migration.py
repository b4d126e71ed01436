#!/usr/bin/env python3
# =============================================================================
# scripts/verify_migration.py - Post-Migration Verification
# =============================================================================
# Re-scans collections, counts residual legacy/inline references and checks
# that every referenced object exists in R2.
#
# Usage:
#   python scripts/verify_migration.py                   # first 200 docs per collection
#   python scripts/verify_migration.py --all             # every document
#   python scripts/verify_migration.py --check-cdn       # also HEAD the public URL
#   python scripts/verify_migration.py --only=businesses --limit=50
#
# Exit codes:
#   0 - clean
#   1 - missing configuration or fatal error
#   2 - residual legacy/inline references, missing objects, or probe failures
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
from app.dependencies import build_store, build_verifier, configure_logging
from app.exceptions import AssetPipelineError, ConfigurationError
from core.registry import SCAN_COLLECTIONS
from core.services.reporting import format_verification_summary
from lib.utils import parse_csv_list

logger = logging.getLogger("verify_migration")

EXIT_CLEAN = 0
EXIT_FATAL = 1
EXIT_PROBLEMS = 2


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Verify migrated asset references")
    parser.add_argument("--only", default="", help="Comma-separated collections to verify")
    parser.add_argument("--limit", type=int, default=200, help="Documents per collection (ignored with --all)")
    parser.add_argument("--all", dest="scan_all", action="store_true", help="Scan every document")
    parser.add_argument("--check-cdn", action="store_true", help="HEAD canonical URLs on the public CDN")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FATAL
    configure_logging(settings)

    collections = parse_csv_list(args.only) or list(SCAN_COLLECTIONS)

    try:
        store = build_store(settings)
        verifier = build_verifier(settings, store)
    except ConfigurationError as e:
        logger.error(str(e))
        return EXIT_FATAL

    try:
        report = verifier.run(
            collections,
            limit=args.limit,
            scan_all=args.scan_all,
            check_cdn=args.check_cdn,
        )
    except AssetPipelineError as e:
        logger.error(f"Verification aborted: {e}")
        return EXIT_FATAL
    finally:
        verifier.fetcher.close()

    print(format_verification_summary(report))
    return EXIT_CLEAN if report.is_clean else EXIT_PROBLEMS


if __name__ == "__main__":
    sys.exit(main())
