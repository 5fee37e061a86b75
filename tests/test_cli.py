import gzip
import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import sales_analytics.cli as cli

runner = CliRunner()


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    # The real handler would hold on to the runner's captured stderr.
    monkeypatch.setattr(cli, "configure_logging", lambda *a, **k: None)


@pytest.fixture
def dataset_file(tmp_path: Path, invoice_csv: str) -> Path:
    path = tmp_path / "invoices.csv.gz"
    path.write_bytes(gzip.compress(invoice_csv.encode("utf-8")))
    return path


def test_summary_prints_aggregation_json(dataset_file: Path):
    result = runner.invoke(cli.app, ["summary", "--file", str(dataset_file)])
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert payload["totalRecords"] == 4
    assert payload["totalAmount"] == 437.75
    assert payload["dateRange"] == {"min": "2022-01-01", "max": "2023-03-10"}
    assert list(payload["years"]) == ["2023", "2022"]
    assert "Employee Appreciation" not in payload["categories"]


def test_summary_top_n_from_dotenv(dataset_file: Path, tmp_path: Path):
    (tmp_path / ".env").write_text("SALES_ANALYTICS_TOP_N=1\n", encoding="utf-8")
    result = runner.invoke(
        cli.app,
        ["summary", "--file", str(dataset_file)],
        env={"SALES_ANALYTICS_TOP_N": None},
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["categories"] == {"Sheet": 262.5}


def test_summary_top_n_option_wins(dataset_file: Path):
    result = runner.invoke(cli.app, ["summary", "--file", str(dataset_file), "--top-n", "1"])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout)["customers"] == {"Beta Metals": 262.5}


def test_filter_prints_count_and_total(dataset_file: Path):
    result = runner.invoke(
        cli.app, ["filter", "--file", str(dataset_file), "--year", "2023", "--customer", "Acme"]
    )
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {"records": 1, "totalAmount": 75.25}


def test_filter_as_csv(dataset_file: Path):
    result = runner.invoke(
        cli.app, ["filter", "--file", str(dataset_file), "--customer", "Beta Metals", "--csv"]
    )
    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == [
        "TOTAL,INV_DATE,NAME,TREE_DESCR,ADDRESS1,ADDRESS2",
        "250.50,2022-06-15,Beta Metals,Sheet,9 Oak Ave,",
        "12.00,not a date,Beta Metals,Sheet,9 Oak Ave,",
    ]


def test_filter_rejects_malformed_year(dataset_file: Path):
    result = runner.invoke(cli.app, ["filter", "--file", str(dataset_file), "--year", "23"])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_options_lists_filter_choices(dataset_file: Path):
    result = runner.invoke(cli.app, ["options", "--file", str(dataset_file)])
    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == {
        "years": ["2023", "2022"],
        "customers": ["Acme", "Beta Metals"],
        "categories": ["Coil", "Sheet"],
    }


def test_verify_reports_audit_and_chart_check(dataset_file: Path):
    result = runner.invoke(cli.app, ["verify", "--file", str(dataset_file)])
    assert result.exit_code == 0, result.output

    payload = json.loads(result.stdout)
    assert payload["audit"]["excluded"]["Shipped To"] == {"count": 1, "total": 60.0}
    assert payload["audit"]["salesByYear"] == {"2023": 75.25, "2022": 350.5}
    chart = payload["yearlyChart"]
    assert chart["chartTotal"] == 425.75
    assert chart["recordTotal"] == 437.75
    # The undated row counts toward the record total but not the yearly chart.
    assert chart["status"] == "small"


def test_corrupt_dataset_exits_with_error(tmp_path: Path):
    path = tmp_path / "broken.csv.gz"
    path.write_bytes(b"\x1f\x8b\x08\x00garbage")
    result = runner.invoke(cli.app, ["summary", "--file", str(path)])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_missing_file_is_a_usage_error(tmp_path: Path):
    result = runner.invoke(cli.app, ["summary", "--file", str(tmp_path / "nope.csv.gz")])
    assert result.exit_code == 2
