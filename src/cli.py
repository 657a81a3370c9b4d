"""Command-line interface for document extraction and rota parsing.

Provides subcommands for extracting fields from a single document,
processing folders of documents into CSV, and parsing a rota against an
employee list.
"""

import argparse
import csv
import json
import sys
import time
from pathlib import Path

from src.extraction.rules import DocumentCategory
from src.ocr.document_processor import DocumentProcessor
from src.schedule.models import EmployeeDirectoryEntry
from src.schedule.rota_processor import RotaProcessor
from src.utils.config import load_config
from src.utils.logger import get_logger, setup_logging

logger = get_logger(__name__)

_SUPPORTED_EXTENSIONS = ("*.png", "*.jpg", "*.jpeg", "*.tiff", "*.tif", "*.pdf", "*.txt")
_META_COLUMNS = [
    "filename",
    "status",
    "category",
    "type_valid",
    "processing_time_s",
    "error",
]
_ROTA_COLUMNS = [
    "employee_id",
    "employee_name",
    "schedule_date",
    "day_of_week",
    "duty",
    "start_time",
    "end_time",
    "is_off_day",
]


def _find_documents(input_dir: Path) -> list[Path]:
    """Find all supported document files in a directory.

    Args:
        input_dir: Directory to scan for documents.

    Returns:
        Sorted list of document file paths.
    """
    files: list[Path] = []
    for ext in _SUPPORTED_EXTENSIONS:
        files.extend(input_dir.glob(ext))
        files.extend(input_dir.glob(ext.upper()))
    return sorted(set(files))


def process_folder(
    input_dir: Path,
    output_csv: Path,
    category: str,
    verbose: bool = False,
) -> dict[str, int]:
    """Process all documents in a folder and export results to CSV.

    Args:
        input_dir: Directory containing document files.
        output_csv: Path for the output CSV file.
        category: Document category of every file in the folder.
        verbose: Whether to print per-file progress.

    Returns:
        Summary dict with total, successful, and failed counts.
    """
    config = load_config()
    processor = DocumentProcessor(config)

    files = _find_documents(input_dir)
    if not files:
        logger.warning("No documents found in %s", input_dir)
        return {"total": 0, "successful": 0, "failed": 0}

    logger.info("Found %d documents to process", len(files))

    results: list[dict[str, object]] = []
    successful = 0
    failed = 0

    for i, file_path in enumerate(files, 1):
        if verbose:
            print(f"Processing [{i}/{len(files)}]: {file_path.name}")

        start_time = time.time()
        try:
            result = _process_single_file(file_path, processor, category)
            result["processing_time_s"] = round(time.time() - start_time, 2)
            results.append(result)
            successful += 1
        except Exception as exc:
            logger.error("Failed to process %s: %s", file_path.name, exc)
            results.append(
                {
                    "filename": file_path.name,
                    "status": "failed",
                    "category": category,
                    "error": str(exc),
                }
            )
            failed += 1

    _write_csv(results, output_csv)
    logger.info("Results written to %s", output_csv)

    summary = {"total": len(files), "successful": successful, "failed": failed}
    _print_summary(summary, output_csv)
    return summary


def _process_single_file(
    file_path: Path, processor: DocumentProcessor, category: str
) -> dict[str, object]:
    doc_result = processor.process(file_path, category, filename=file_path.name)
    result: dict[str, object] = {
        "filename": file_path.name,
        "status": "success",
        "category": str(doc_result.category),
        "type_valid": doc_result.type_valid,
        "error": None,
    }
    result.update(doc_result.serializable_fields())
    return result


def _write_csv(results: list[dict[str, object]], output_path: Path) -> None:
    """Write extraction results to a CSV file.

    Args:
        results: List of result dictionaries.
        output_path: Path for the output CSV file.
    """
    if not results:
        return

    all_keys: set[str] = set()
    for r in results:
        all_keys.update(r.keys())

    field_columns = sorted(all_keys - set(_META_COLUMNS))
    columns = [c for c in _META_COLUMNS if c in all_keys] + field_columns

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=columns, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(results)


def _print_summary(summary: dict[str, int], output_csv: Path) -> None:
    print(f"\n{'=' * 50}")
    print("Batch Processing Complete")
    print(f"{'=' * 50}")
    print(f"Total:      {summary['total']}")
    print(f"Successful: {summary['successful']}")
    print(f"Failed:     {summary['failed']}")
    print(f"Output:     {output_csv}")


def extract_single(
    file_path: Path,
    category: str,
    first_page_only: bool | None = None,
) -> dict[str, object]:
    """Process a single document and return structured results.

    Args:
        file_path: Path to the document file.
        category: Document category.
        first_page_only: Only read page 1 of a PDF.

    Returns:
        Dictionary with filename, category, fields, type check and raw_text.
    """
    config = load_config()
    processor = DocumentProcessor(config)
    doc_result = processor.process(
        file_path, category, filename=file_path.name, first_page_only=first_page_only
    )
    return {
        "filename": file_path.name,
        "category": str(doc_result.category),
        "type_valid": doc_result.type_valid,
        "fields": doc_result.serializable_fields(),
        "raw_text": doc_result.text,
    }


def load_employees(path: Path) -> list[EmployeeDirectoryEntry]:
    """Load an employee list from CSV or JSON.

    CSV files need ``employee_id`` and ``full_name`` columns; JSON files
    hold a list of objects with the same keys.

    Args:
        path: Employee list file.

    Returns:
        Directory entries in file order.
    """
    if path.suffix.lower() == ".json":
        records = json.loads(path.read_text(encoding="utf-8"))
    else:
        with open(path, newline="", encoding="utf-8") as f:
            records = list(csv.DictReader(f))
    return [
        EmployeeDirectoryEntry(str(r["employee_id"]), str(r["full_name"]).strip())
        for r in records
    ]


def parse_rota_file(
    file_path: Path, employees: list[EmployeeDirectoryEntry]
) -> list[dict[str, object]]:
    """Parse a rota file and return one row per schedule entry.

    Args:
        file_path: Rota image, PDF or spreadsheet.
        employees: Known employees.

    Returns:
        Schedule entries as dictionaries.
    """
    config = load_config()
    processor = RotaProcessor(config)
    result = processor.process(file_path.read_bytes(), None, employees, file_path.name)
    metadata = result.metadata
    logger.info(
        "%s: %s / %s, %s to %s, %d entries",
        file_path.name,
        metadata.site_name,
        metadata.department,
        metadata.start_date,
        metadata.end_date,
        len(result.entries),
    )
    return [entry.to_dict() for entry in result.entries]


def _emit(output_str: str, output: Path | None) -> None:
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(output_str)
        print(f"Output written to {output}")
    else:
        print(output_str)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and dispatch to the appropriate command.

    Args:
        argv: Command-line arguments (defaults to sys.argv).
    """
    parser = argparse.ArgumentParser(
        description="Document and rota extraction",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    categories = [c.value for c in DocumentCategory]

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    batch_parser = subparsers.add_parser("batch", help="Process a folder of documents")
    batch_parser.add_argument(
        "input_dir", type=Path, help="Input directory with documents"
    )
    batch_parser.add_argument(
        "-c", "--category", choices=categories, required=True, help="Document category"
    )
    batch_parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path("results.csv"),
        help="Output CSV file (default: results.csv)",
    )
    batch_parser.add_argument(
        "-v", "--verbose", action="store_true", help="Verbose output"
    )

    single_parser = subparsers.add_parser("extract", help="Process a single document")
    single_parser.add_argument("file", type=Path, help="Document file to process")
    single_parser.add_argument(
        "-c", "--category", choices=categories, required=True, help="Document category"
    )
    single_parser.add_argument(
        "--first-page-only",
        action="store_true",
        default=None,
        help="Only read the first page of a PDF (default for contracts)",
    )
    single_parser.add_argument("-o", "--output", type=Path, help="Output JSON file")

    rota_parser = subparsers.add_parser("rota", help="Parse a rota into schedules")
    rota_parser.add_argument("file", type=Path, help="Rota image, PDF or .xlsx")
    rota_parser.add_argument(
        "--employees",
        type=Path,
        required=True,
        help="Employee list (CSV or JSON with employee_id, full_name)",
    )
    rota_parser.add_argument("-o", "--output", type=Path, help="Output CSV file")

    args = parser.parse_args(argv)

    setup_logging()

    if args.command == "batch":
        if not args.input_dir.is_dir():
            print(f"Error: {args.input_dir} is not a directory", file=sys.stderr)
            sys.exit(1)
        process_folder(args.input_dir, args.output, args.category, args.verbose)
    elif args.command == "extract":
        if not args.file.exists():
            print(f"Error: {args.file} does not exist", file=sys.stderr)
            sys.exit(1)
        result = extract_single(args.file, args.category, args.first_page_only)
        _emit(json.dumps(result, indent=2, ensure_ascii=False), args.output)
    elif args.command == "rota":
        for path in (args.file, args.employees):
            if not path.exists():
                print(f"Error: {path} does not exist", file=sys.stderr)
                sys.exit(1)
        rows = parse_rota_file(args.file, load_employees(args.employees))
        if args.output:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            with open(args.output, "w", newline="") as f:
                writer = csv.DictWriter(f, fieldnames=_ROTA_COLUMNS)
                writer.writeheader()
                writer.writerows(rows)
            print(f"Output written to {args.output}")
        else:
            print(json.dumps(rows, indent=2))
    else:
        parser.print_help()
        sys.exit(0)


if __name__ == "__main__":
    main()
