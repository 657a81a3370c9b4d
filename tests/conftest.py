"""Shared test fixtures for the extraction engine test suite."""

import io
from datetime import date
from pathlib import Path

import numpy as np
import pytest
from openpyxl import Workbook
from PIL import Image

from src.schedule.models import EmployeeDirectoryEntry

ROTA_TEXT = """LANDMARK HOTEL TIMESHEET BANQUETING
NAME MON TUE WED THU FRI SAT SUN
10-Jun 11-Jun 12-Jun 13-Jun 14-Jun 15-Jun 16-Jun
UNIT set-up set-up set-up
John Smith 08:00-16:00 OFF 9:00 - 17:00 08:16:00 Holiday Leave Set-Ups
Maria Garcia OFF OFF 14:00-22:00 14:00-22:00 14:00-22:00 14:00-22:00 OFF
Random Visitor 10:00-18:00
"""

ROTA_TODAY = date(2025, 6, 1)


@pytest.fixture
def sample_image() -> np.ndarray:
    """Create a simple synthetic grayscale test image."""
    image = np.zeros((200, 300), dtype=np.uint8)
    image[50:150, 50:250] = 255
    return image


@pytest.fixture
def sample_color_image() -> np.ndarray:
    """Create a simple synthetic BGR test image."""
    image = np.zeros((200, 300, 3), dtype=np.uint8)
    image[50:150, 50:250] = (255, 255, 255)
    return image


@pytest.fixture
def png_bytes() -> bytes:
    """Create a minimal PNG image as bytes."""
    img = Image.fromarray(np.full((100, 200, 3), 255, dtype=np.uint8))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def directory() -> list[EmployeeDirectoryEntry]:
    """Two-employee directory matching the sample rota."""
    return [
        EmployeeDirectoryEntry("E1", "John Smith"),
        EmployeeDirectoryEntry("E2", "Maria Garcia"),
    ]


@pytest.fixture
def rota_today() -> date:
    """Upload date the sample rota is parsed against."""
    return ROTA_TODAY


@pytest.fixture
def rota_text() -> str:
    """OCR text of a one-week banqueting rota."""
    return ROTA_TEXT


@pytest.fixture
def rota_xlsx() -> bytes:
    """An .xlsx rota in the timesheet template layout."""
    wb = Workbook()
    ws = wb.active
    ws.append(["LANDMARK HOTEL TIMESHEET BANQUETING"])
    ws.append([None, "TUE", "WED", "THU"])
    ws.append(["NAME", "10-Jun", "11-Jun", "12-Jun"])
    ws.append(["UNIT", "set-up", "set-up", "set-up"])
    ws.append(["John Smith", "08:00-16:00", "OFF", "08:16:00"])
    ws.append(["Maria Garcia", "Holiday", None, "14:00-22:00"])
    ws.append(["x", "OFF", "OFF", "OFF"])
    buf = io.BytesIO()
    wb.save(buf)
    return buf.getvalue()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def config_dir(project_root: Path) -> Path:
    """Return the configs directory path."""
    return project_root / "configs"
