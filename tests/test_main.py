"""
Tests for the command-line entry point, run against local files only.
"""

import json
import logging

import pytest

from rvu_tracker.main import main


@pytest.fixture(autouse=True)
def reset_root_logging():
    yield
    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)


@pytest.fixture
def visits_file(tmp_path):
    path = tmp_path / "visits.json"
    path.write_text(json.dumps([
        {"id": 1, "user_id": 1, "date": "2026-01-05", "is_no_show": False,
         "procedures": [{"id": 1, "visit_id": 1, "hcpcs": "99213", "work_rvu": 0, "quantity": 2}]},
        {"id": 2, "user_id": 1, "date": "2026-01-06", "is_no_show": True, "procedures": []},
    ]), encoding="utf-8")
    return str(path)


def test_search_command(capsys):
    assert main(["search", "99213"]) == 0
    out = capsys.readouterr().out
    assert out.splitlines()[0].startswith("99213")


def test_search_without_matches(capsys):
    assert main(["search", "no-such-code-anywhere"]) == 0
    assert "No matching codes" in capsys.readouterr().out


def test_summary_from_file(visits_file, tmp_path, capsys):
    xlsx = str(tmp_path / "out.xlsx")

    code = main(["summary", "--visits", visits_file, "--start", "2026-01-01", "--end", "2026-01-31",
                 "--xlsx", xlsx])

    out = capsys.readouterr().out
    assert code == 0
    # 99213 is re-priced from the bundled catalog
    assert "Total RVU: 2.60" in out
    assert "Encounters: 1" in out
    assert "No-shows: 1" in out
    assert (tmp_path / "out.xlsx").exists()


def test_breakdown_from_file(visits_file, capsys):
    assert main(["breakdown", "--visits", visits_file, "--period", "monthly",
                 "--start", "2026-01-01", "--end", "2026-01-31"]) == 0
    out = capsys.readouterr().out
    assert "Jan 2026" in out
    assert "99213" in out


def test_summary_without_token_reports_error(capsys, monkeypatch):
    monkeypatch.delenv("RVU_TRACKER_TOKEN", raising=False)
    assert main(["summary"]) == 1
    assert "Not authenticated" in capsys.readouterr().err


def test_clear_cache(capsys):
    assert main(["clear-cache"]) == 0
    assert "Cache cleared" in capsys.readouterr().out


def test_invalid_date_argument():
    with pytest.raises(SystemExit):
        main(["summary", "--start", "01/05/2026"])
