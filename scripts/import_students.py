#!/usr/bin/env python3
"""
Import students from a placement office CSV sheet.

Usage: python scripts/import_students.py "path/to/BTech AIDS (A).csv"
"""
import sys
sys.path.insert(0, '.')

import logging
import os

from app.database import Base, engine, session_scope
from app.services.student_importer import import_students

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def main(argv: list[str]) -> int:
    if not argv:
        print(__doc__)
        return 1

    csv_path = argv[0]
    logger.info(f"Reading CSV file: {csv_path}")
    with open(csv_path, encoding="utf-8-sig") as f:
        content = f.read()

    Base.metadata.create_all(bind=engine)
    with session_scope() as db:
        try:
            summary = import_students(db, content, filename=os.path.basename(csv_path))
        except ValueError as e:
            logger.error(f"Fatal error: {e}")
            return 1

    for error in summary.errors[:5]:
        logger.error(f"Row {error['row']}: {error['error']}")

    return 0 if summary.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
