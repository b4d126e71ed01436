#!/usr/bin/env python3
# =============================================================================
# scripts/scan_references.py - Read-Only Reference Scan
# =============================================================================
# Lists where inline or legacy asset references still live. Nothing is
# written.
#
# Usage:
#   python scripts/scan_references.py                      # inline data URIs
#   python scripts/scan_references.py --mode=interesting   # asset-like fields, by host
#   python scripts/scan_references.py --only=businesses
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
from app.dependencies import build_scanner, build_store, configure_logging
from app.exceptions import AssetPipelineError
from core.registry import SCAN_COLLECTIONS
from core.services.reference_scan import ScanMode, scan_references
from core.services.reporting import format_scan_summary
from lib.utils import parse_csv_list

logger = logging.getLogger("scan_references")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Scan collections for asset references")
    parser.add_argument("--mode", choices=[m.value for m in ScanMode], default=ScanMode.INLINE.value)
    parser.add_argument("--only", default="", help="Comma-separated collections to scan")
    parser.add_argument("--samples", type=int, default=50, help="Sample rows to print")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings)

    collections = parse_csv_list(args.only) or list(SCAN_COLLECTIONS)
    try:
        report = scan_references(
            build_store(settings),
            build_scanner(settings),
            collections,
            mode=ScanMode(args.mode),
            sample_size=args.samples,
        )
    except AssetPipelineError as e:
        logger.error(f"Scan aborted: {e}")
        return 1

    print(format_scan_summary(report, args.mode))
    return 0


if __name__ == "__main__":
    sys.exit(main())
