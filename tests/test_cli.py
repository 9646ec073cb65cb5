from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from pymongo.errors import PyMongoError

from daily_kpi.cli import build_parser, main


@pytest.fixture
def workspace(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DAILY_KPI_STORE", str(tmp_path / "series.json"))
    monkeypatch.setenv("DAILY_KPI_VALUE_COLUMN", "units")
    monkeypatch.delenv("DAILY_KPI_CALC_MODE", raising=False)
    monkeypatch.delenv("MONGO_URI", raising=False)
    return tmp_path


def test_parser_defaults() -> None:
    args = build_parser().parse_args(["monthly"])
    assert args.backend == "json"
    assert args.mode is None
    assert args.last == 24


def test_import_then_query(workspace, capsys) -> None:
    csv_path = workspace / "units.csv"
    csv_path.write_text(
        "date,units\n18-12-2024,11\n19-12-2024,11\n20-12-2024,11\n"
        "18-12-2025,10\n19-12-2025,10\n20-12-2025,10\n",
        encoding="utf-8",
    )
    main(["import", str(csv_path)])

    stored = json.loads((workspace / "series.json").read_text(encoding="utf-8"))
    assert stored["2025-12-20"] == 10.0
    assert len(stored) == 6

    capsys.readouterr()
    main(["kpis"])
    out = capsys.readouterr().out
    assert "20-12-2025" in out
    assert "-9.09%" in out

    main(["monthly", "--last", "1"])
    out = capsys.readouterr().out
    assert "2025-12" in out
    assert "2024-12" not in out


def test_add_export_and_clear(workspace) -> None:
    main(["add", "29-02-2024", "1,250"])
    main(["add", "2024-03-01", "5"])

    out_path = workspace / "out" / "export.csv"
    main(["export", str(out_path)])
    assert out_path.read_text(encoding="utf-8").splitlines() == [
        "date,units",
        "29-02-2024,1250",
        "01-03-2024,5",
    ]

    main(["clear"])
    assert json.loads((workspace / "series.json").read_text(encoding="utf-8")) == {}


def test_bad_input_exits_non_zero(workspace) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["add", "31-02-2025", "1"])
    assert exc.value.code == 1

    with pytest.raises(SystemExit):
        main(["import", str(workspace / "missing.csv")])


def test_empty_store_kpis(workspace, capsys) -> None:
    main(["kpis"])
    assert "No data" in capsys.readouterr().out


def test_failed_mongo_save_exits_non_zero(workspace, monkeypatch) -> None:
    collection = MagicMock()
    collection.find.return_value = []
    collection.bulk_write.side_effect = PyMongoError("boom")
    monkeypatch.setattr("daily_kpi.cli._mongo_collection", lambda s: collection)

    with pytest.raises(SystemExit) as exc:
        main(["--backend", "mongo", "add", "01-01-2025", "5"])
    assert exc.value.code == 1
    collection.delete_many.assert_not_called()
