#!/usr/bin/env python3
# =============================================================================
# scripts/lookup_document.py - Print One Document
# =============================================================================
# Fetches a single document through the Document Store (so businesses come
# back reconstructed from columns + snapshot) and prints it as JSON.
#
# Usage:
#   python scripts/lookup_document.py --collection=businesses --id=<uuid>
#   python scripts/lookup_document.py --collection=ff_products --id=p1 --public
# =============================================================================

import argparse
import json
import logging
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from app.config import get_settings
from app.dependencies import build_store, configure_logging
from app.exceptions import AssetPipelineError

logger = logging.getLogger("lookup_document")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Look up one document")
    parser.add_argument("--collection", required=True)
    parser.add_argument("--id", dest="document_id", required=True)
    parser.add_argument("--public", action="store_true", help="Use the anon key instead of the service key")
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except Exception as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    configure_logging(settings)

    store = build_store(settings, role="public" if args.public else "admin")
    try:
        doc = store.get(args.collection, args.document_id)
    except AssetPipelineError as e:
        logger.error(str(e))
        return 1

    if doc is None:
        print(f"Not found: {args.collection}/{args.document_id}", file=sys.stderr)
        return 2

    print(json.dumps(doc, indent=2, ensure_ascii=False, default=str))
    return 0


if __name__ == "__main__":
    sys.exit(main())
