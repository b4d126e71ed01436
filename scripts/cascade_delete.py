#!/usr/bin/env python3
# =============================================================================
# scripts/cascade_delete.py - Remove All Data For One Business
# =============================================================================
# Deletes every owner-scoped document of a business across all registered
# collections. The business row itself is not touched.
#
# Usage:
#   python scripts/cascade_delete.py --owner=<business id>          # shows plan
#   python scripts/cascade_delete.py --owner=<business id> --yes    # deletes
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
from app.dependencies import build_store, configure_logging

logger = logging.getLogger("cascade_delete")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cascade-delete a business's data")
    parser.add_argument("--owner", required=True, help="Business id whose data is removed")
    parser.add_argument("--yes", action="store_true", help="Actually delete (otherwise only list collections)")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings)

    store = build_store(settings)

    if not args.yes:
        print(f"Would delete data owned by {args.owner} from:")
        for collection in store.owner_scoped_collections:
            print(f"  - {collection}")
        print("Re-run with --yes to delete.")
        return 0

    results = store.cascade_delete(args.owner)

    print("=" * 60)
    print(f"CASCADE DELETE {args.owner}")
    print("=" * 60)
    for collection, count in results.items():
        if count:
            print(f"  {collection}: {count}")
    print(f"Total deleted: {sum(results.values())}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
