#!/usr/bin/env python3
"""
Import the wordset dictionary into the local word cache.

Usage:
    python import_wordset.py datasets/wordset-dictionary/data
    python import_wordset.py datasets/wordset-dictionary/data --batch-size 500
"""

import argparse
import os
import sys
import time
from pathlib import Path

# Add parent directory to path to import backend modules
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from wordsapi.core.config import settings
from wordsapi.core.logging import setup_logging
from wordsapi.db.session import SessionLocal, init_db
from wordsapi.services.import_service import import_words, load_wordset_dir


def main():
    parser = argparse.ArgumentParser(description="Import wordset JSON files into the words database")
    parser.add_argument("data_dir", help="Directory containing wordset *.json files")
    parser.add_argument(
        "--batch-size", type=int, default=settings.IMPORT_BATCH_SIZE,
        help=f"Words per progress report (default: {settings.IMPORT_BATCH_SIZE})"
    )
    args = parser.parse_args()

    data_dir = Path(args.data_dir)
    if not data_dir.is_dir():
        print(f"❌ Not a directory: {data_dir}")
        sys.exit(1)
    if args.batch_size <= 0:
        print("❌ --batch-size must be positive")
        sys.exit(1)

    setup_logging()
    init_db()

    print(f"📚 Importing dictionary from {data_dir}")
    print("\n🔄 Phase 1: Loading and deduplicating...")
    index = load_wordset_dir(data_dir)

    print(f"\n🔄 Phase 2: Importing {len(index)} words to database...")
    started = time.monotonic()
    db = SessionLocal()
    try:
        result = import_words(index.entries(), db, batch_size=args.batch_size)
    finally:
        db.close()

    elapsed = time.monotonic() - started
    print(f"\n✅ Import complete in {elapsed:.0f}s")
    print(f"📊 Imported: {result.imported} | Skipped: {result.skipped} | Failed: {result.failed}")
    sys.exit(1 if result.failed and not result.imported else 0)


if __name__ == "__main__":
    main()
