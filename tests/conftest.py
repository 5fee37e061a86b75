"""Pytest configuration shared by the test suite.

Settings are read from the environment, so each test starts from a clean
slate: the package's variables are removed and the working directory is a
temporary one (no stray ``.env`` is picked up by the CLI).
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

_ENV_VARS = (
    "SALES_ANALYTICS_DATA_URL",
    "SALES_ANALYTICS_HTTP_TIMEOUT",
    "SALES_ANALYTICS_TOP_N",
    "SALES_ANALYTICS_LOG_LEVEL",
    "DATABASE_URL",
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def invoice_csv() -> str:
    """A small export with excluded categories and one undated row."""

    return textwrap.dedent(
        """\
        TOTAL,INV_DATE,NAME,TREE_DESCR,ADDRESS1,ADDRESS2
        100.00,2022-01-01,Acme,Coil,1 Main St,Suite 2
        250.50,2022-06-15,Beta Metals,Sheet,9 Oak Ave,
        75.25,2023-03-10,Acme,Coil,1 Main St,Suite 2
        40.00,2023-03-11,Acme,Employee Appreciation,,
        60.00,2023-07-04,Gamma,  shipped to  ,,
        12.00,not a date,Beta Metals,Sheet,9 Oak Ave,
        """
    )
