"""Tests for the command-line interface and CSV export."""

import csv
import json
from datetime import date
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from src.cli import (
    _find_documents,
    _print_summary,
    _write_csv,
    extract_single,
    load_employees,
    main,
    parse_rota_file,
    process_folder,
)
from src.extraction.rules import DocumentCategory, FieldName
from src.ocr.document_processor import DocumentResult
from src.schedule.models import EmployeeDirectoryEntry, RotaMetadata, ScheduleEntry
from src.schedule.rota_processor import RotaResult


def _make_doc_result(filename: str = "test.png") -> DocumentResult:
    """Create a passport DocumentResult for testing."""
    return DocumentResult(
        source_file=filename,
        category=DocumentCategory.PASSPORT,
        text="PASSPORT\nPassport No: AB1234567",
        fields={
            FieldName.DOCUMENT_NUMBER: "AB1234567",
            FieldName.EXPIRY_DATE: date(2030, 1, 11),
        },
    )


def _make_rota_result() -> RotaResult:
    entry = ScheduleEntry(
        employee_id="E1",
        employee_name="John Smith",
        schedule_date=date(2025, 6, 10),
        day_of_week="TUESDAY",
        duty="OFF",
        is_off_day=True,
    )
    metadata = RotaMetadata("LANDMARK", "BANQUETING", date(2025, 6, 10), date(2025, 6, 10))
    return RotaResult("rota.png", "ocr", metadata, entries=[entry])


class TestFindDocuments:
    """Tests for document discovery."""

    def test_find_mixed_extensions(self, tmp_path: Path) -> None:
        for name in ("doc.png", "doc.jpg", "doc.pdf", "doc.tiff", "notes.txt"):
            (tmp_path / name).touch()
        (tmp_path / "data.csv").touch()
        files = _find_documents(tmp_path)
        assert len(files) == 5

    def test_find_no_documents(self, tmp_path: Path) -> None:
        (tmp_path / "data.csv").touch()
        assert _find_documents(tmp_path) == []

    def test_find_uppercase_extensions(self, tmp_path: Path) -> None:
        (tmp_path / "DOC.PNG").touch()
        assert len(_find_documents(tmp_path)) == 1


class TestWriteCsv:
    """Tests for CSV writing."""

    def test_write_csv_content(self, tmp_path: Path) -> None:
        results = [
            {
                "filename": "test.png",
                "status": "success",
                "error": None,
                "documentNumber": "AB1234567",
            }
        ]
        output = tmp_path / "results.csv"
        _write_csv(results, output)

        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["documentNumber"] == "AB1234567"

    def test_write_csv_empty_results(self, tmp_path: Path) -> None:
        output = tmp_path / "results.csv"
        _write_csv([], output)
        assert not output.exists()

    def test_csv_meta_columns_first(self, tmp_path: Path) -> None:
        results = [
            {
                "filename": "test.png",
                "status": "success",
                "category": "passport",
                "expiryDate": "2030-01-11",
            }
        ]
        output = tmp_path / "sub" / "results.csv"
        _write_csv(results, output)

        with open(output) as f:
            headers = next(csv.reader(f))
        assert headers == ["filename", "status", "category", "expiryDate"]


class TestPrintSummary:
    """Tests for summary printing."""

    def test_print_summary(self, capsys: pytest.CaptureFixture[str]) -> None:
        _print_summary({"total": 5, "successful": 4, "failed": 1}, Path("results.csv"))
        captured = capsys.readouterr()
        assert "Total:      5" in captured.out
        assert "Failed:     1" in captured.out


class TestProcessFolder:
    """Tests for batch folder processing."""

    @patch("src.cli.DocumentProcessor")
    @patch("src.cli.load_config")
    def test_process_folder_success(
        self,
        mock_config: MagicMock,
        mock_processor_cls: MagicMock,
        tmp_path: Path,
    ) -> None:
        mock_processor_cls.return_value.process.return_value = _make_doc_result()
        (tmp_path / "doc1.png").touch()
        (tmp_path / "doc2.png").touch()
        output_csv = tmp_path / "output.csv"

        summary = process_folder(tmp_path, output_csv, "passport")

        assert summary == {"total": 2, "successful": 2, "failed": 0}
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["expiryDate"] == "2030-01-11"
        assert rows[0]["category"] == "passport"

    @patch("src.cli.DocumentProcessor")
    @patch("src.cli.load_config")
    def test_process_folder_with_failure(
        self,
        mock_config: MagicMock,
        mock_processor_cls: MagicMock,
        tmp_path: Path,
    ) -> None:
        mock_processor_cls.return_value.process.side_effect = [
            _make_doc_result(),
            RuntimeError("OCR failed"),
        ]
        (tmp_path / "doc1.png").touch()
        (tmp_path / "doc2.png").touch()
        output_csv = tmp_path / "output.csv"

        summary = process_folder(tmp_path, output_csv, "passport")

        assert summary["successful"] == 1
        assert summary["failed"] == 1
        with open(output_csv) as f:
            rows = list(csv.DictReader(f))
        assert rows[1]["error"] == "OCR failed"

    @patch("src.cli.DocumentProcessor")
    @patch("src.cli.load_config")
    def test_process_folder_empty(
        self, mock_config: MagicMock, mock_processor_cls: MagicMock, tmp_path: Path
    ) -> None:
        summary = process_folder(tmp_path, tmp_path / "output.csv", "visa")
        assert summary["total"] == 0

    @patch("src.cli.DocumentProcessor")
    @patch("src.cli.load_config")
    def test_process_folder_verbose(
        self,
        mock_config: MagicMock,
        mock_processor_cls: MagicMock,
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_processor_cls.return_value.process.return_value = _make_doc_result()
        (tmp_path / "doc1.png").touch()

        process_folder(tmp_path, tmp_path / "output.csv", "passport", verbose=True)

        assert "Processing [1/1]" in capsys.readouterr().out


class TestExtractSingle:
    """Tests for single file extraction."""

    @patch("src.cli.DocumentProcessor")
    @patch("src.cli.load_config")
    def test_extract_single_returns_fields(
        self,
        mock_config: MagicMock,
        mock_processor_cls: MagicMock,
        tmp_path: Path,
    ) -> None:
        mock_processor = mock_processor_cls.return_value
        mock_processor.process.return_value = _make_doc_result()
        doc_path = tmp_path / "test.png"
        doc_path.touch()

        result = extract_single(doc_path, "passport", first_page_only=True)

        assert result["filename"] == "test.png"
        assert result["fields"]["documentNumber"] == "AB1234567"
        assert "raw_text" in result
        assert mock_processor.process.call_args.kwargs["first_page_only"] is True


class TestRota:
    """Tests for employee loading and rota parsing."""

    def test_load_employees_csv(self, tmp_path: Path) -> None:
        path = tmp_path / "staff.csv"
        path.write_text("employee_id,full_name\nE1, John Smith \nE2,Maria Garcia\n")
        assert load_employees(path) == [
            EmployeeDirectoryEntry("E1", "John Smith"),
            EmployeeDirectoryEntry("E2", "Maria Garcia"),
        ]

    def test_load_employees_json(self, tmp_path: Path) -> None:
        path = tmp_path / "staff.json"
        path.write_text(json.dumps([{"employee_id": 7, "full_name": "John Smith"}]))
        assert load_employees(path) == [EmployeeDirectoryEntry("7", "John Smith")]

    @patch("src.cli.RotaProcessor")
    @patch("src.cli.load_config")
    def test_parse_rota_file(
        self,
        mock_config: MagicMock,
        mock_processor_cls: MagicMock,
        tmp_path: Path,
    ) -> None:
        mock_processor = mock_processor_cls.return_value
        mock_processor.process.return_value = _make_rota_result()
        path = tmp_path / "rota.png"
        path.write_bytes(b"image")

        rows = parse_rota_file(path, [EmployeeDirectoryEntry("E1", "John Smith")])

        assert rows == [
            {
                "employee_id": "E1",
                "employee_name": "John Smith",
                "schedule_date": "2025-06-10",
                "day_of_week": "TUESDAY",
                "duty": "OFF",
                "start_time": None,
                "end_time": None,
                "is_off_day": True,
            }
        ]
        args = mock_processor.process.call_args.args
        assert args[0] == b"image"
        assert args[3] == "rota.png"


class TestCLIMain:
    """Tests for the CLI argument parser and main entry point."""

    def test_no_command_shows_help(self) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 0

    def test_batch_requires_category(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", str(tmp_path)])
        assert exc_info.value.code == 2

    def test_batch_nonexistent_directory(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["batch", "/nonexistent/path", "-c", "passport"])
        assert exc_info.value.code == 1
        assert "not a directory" in capsys.readouterr().err

    def test_extract_nonexistent_file(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["extract", "/nonexistent/file.png", "-c", "visa"])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err

    @patch("src.cli.process_folder")
    def test_batch_command(self, mock_pf: MagicMock, tmp_path: Path) -> None:
        mock_pf.return_value = {"total": 1, "successful": 1, "failed": 0}
        output = tmp_path / "out.csv"
        main(["batch", str(tmp_path), "-c", "contract", "-o", str(output), "-v"])
        mock_pf.assert_called_once_with(tmp_path, output, "contract", True)

    @patch("src.cli.extract_single")
    def test_extract_to_file(self, mock_extract: MagicMock, tmp_path: Path) -> None:
        mock_extract.return_value = {"filename": "a.png", "fields": {}}
        doc = tmp_path / "a.png"
        doc.touch()
        output = tmp_path / "out.json"

        main(["extract", str(doc), "-c", "passport", "-o", str(output)])

        assert json.loads(output.read_text())["filename"] == "a.png"
        mock_extract.assert_called_once_with(doc, "passport", None)

    @patch("src.cli.parse_rota_file")
    def test_rota_to_csv(self, mock_parse: MagicMock, tmp_path: Path) -> None:
        mock_parse.return_value = [_make_rota_result().entries[0].to_dict()]
        rota = tmp_path / "rota.xlsx"
        rota.write_bytes(b"PK")
        staff = tmp_path / "staff.csv"
        staff.write_text("employee_id,full_name\nE1,John Smith\n")
        output = tmp_path / "schedule.csv"

        main(["rota", str(rota), "--employees", str(staff), "-o", str(output)])

        with open(output) as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["duty"] == "OFF"
        assert rows[0]["is_off_day"] == "True"

    def test_rota_missing_employees_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        rota = tmp_path / "rota.png"
        rota.touch()
        with pytest.raises(SystemExit) as exc_info:
            main(["rota", str(rota), "--employees", str(tmp_path / "missing.csv")])
        assert exc_info.value.code == 1
        assert "does not exist" in capsys.readouterr().err
