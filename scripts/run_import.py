"""
Run a bulk import from the command line.

Usage:
    # Replace every PDV of unidade BA with the file contents
    python scripts/run_import.py --job pdvs --file data/pdvs_ba.xlsx --unidade BA

    # Preview only, nothing is written
    python scripts/run_import.py --job produtos --file data/produtos.csv --dry-run
"""

import argparse
import os
import sys
from typing import Optional, Sequence

# Allow imports from the project root when running as a script
_backend_dir = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, _backend_dir)

from dotenv import load_dotenv
load_dotenv(os.path.join(_backend_dir, ".env"))

from exceptions import AppError
from parsers.import_jobs import IMPORT_JOBS, get_import_job
from services.import_service import get_import_service

EXIT_OK = 0
EXIT_COMMIT_FAILED = 1
EXIT_BAD_INPUT = 2


def print_errors(errors: Sequence[str], limit: int = 50) -> None:
    if not errors:
        return
    print(f"\nRejected rows ({len(errors)}):")
    for message in errors[:limit]:
        print(f"  {message}")
    if len(errors) > limit:
        print(f"  ... and {len(errors) - limit} more")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Import PDVs or products from a CSV/XLSX file."
    )
    parser.add_argument(
        "--job",
        required=True,
        choices=sorted(IMPORT_JOBS),
        help="Import kind",
    )
    parser.add_argument(
        "--file",
        required=True,
        help="Path to the CSV or XLSX file",
    )
    parser.add_argument(
        "--unidade",
        default=None,
        help="Unidade code (required for pdvs)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Parse and report without writing",
    )

    args = parser.parse_args(argv)

    try:
        with open(args.file, "rb") as f:
            content = f.read()
    except OSError as e:
        print(f"ERROR: Cannot read {args.file}: {e}")
        return EXIT_BAD_INPUT

    job = get_import_job(args.job)
    filename = os.path.basename(args.file)
    service = get_import_service()

    try:
        if args.dry_run:
            preview = service.preview(job, content, filename)
            print(f"Columns: {preview.column_mapping}")
            print(preview.extraction.summary())
            print_errors(preview.extraction.errors)
            return EXIT_OK

        outcome = service.run(job, content, filename, partition=args.unidade)
    except AppError as e:
        print(f"ERROR: {e.message}")
        return EXIT_BAD_INPUT

    print(outcome.summary)
    print_errors(outcome.preview.extraction.errors)

    return EXIT_OK if outcome.commit.success else EXIT_COMMIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
