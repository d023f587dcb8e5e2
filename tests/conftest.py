"""
Shared test fixtures and sample data for tabload tests.

Sample CSV texts are module-level constants so tests can write them to
``tmp_path`` or wrap them in ``io.StringIO``. Edit here if a sample needs
another column.
"""

from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Sample sources
# ---------------------------------------------------------------------------
BUS_STOPS_CSV = """\
stop_id,stop_name,opened,first_bus,last_check,accessible,lat
101,Main St,2016-07-22,06:15,2016-07-22 10:11:12,Y,40.71
102,Elm Ave,2016-08-01,05:45,2016-08-01 09:00:00,N,40.72
103,Oak Rd,NA,07:05,2016-08-03 17:30:45,y,NA
"""

NO_HEADER_PSV = """\
1|Jul/22/2016|T
2|Aug/01/2016|F
"""


@pytest.fixture
def bus_stops_csv() -> str:
    return BUS_STOPS_CSV


@pytest.fixture
def no_header_psv() -> str:
    return NO_HEADER_PSV


@pytest.fixture
def bus_stops_file(tmp_path: Path) -> Path:
    path = tmp_path / "bus_stops.csv"
    path.write_text(BUS_STOPS_CSV, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------
def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (reads files end to end)",
    )
