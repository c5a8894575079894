"""
Tests for ranked catalog search.
"""

from rvu_tracker.logic.catalog import ReferenceCatalog
from rvu_tracker.logic.catalog_search import search


def codes(results):
    return [r.code for r in results]


def test_exact_match_comes_first(catalog):
    results = search(catalog, "99213")
    assert codes(results)[0] == "99213"


def test_prefix_matches_before_other_matches(catalog):
    # "9921" prefixes 99212-99215; "99202" only contains "9920"
    results = search(catalog, "9921")
    assert codes(results) == ["99212", "99213", "99214", "99215"]


def test_description_match_ranks_after_code_matches(catalog):
    results = search(catalog, "e/m")
    assert codes(results) == ["G2211"]

    results = search(catalog, "office")
    assert codes(results) == ["99202", "99212", "99213", "99214", "99215"]


def test_search_is_case_insensitive(catalog):
    assert codes(search(catalog, "g22")) == ["G2211"]
    assert codes(search(catalog, "ELECTRO")) == ["93000"]


def test_empty_query_returns_nothing(catalog):
    assert search(catalog, "") == []


def test_limit_caps_results(catalog):
    assert len(search(catalog, "9", limit=3)) == 3
    assert search(catalog, "9", limit=0) == []


def test_unloaded_catalog_returns_nothing(tmp_path):
    catalog = ReferenceCatalog(str(tmp_path / "missing.csv"))
    assert search(catalog, "99213") == []


def test_exact_match_outranks_prefix(tmp_path):
    path = tmp_path / "codes.csv"
    path.write_text("HCPCS,DESCRIPTION,STATUS CODE,WORK RVU\n"
                    "992131,Longer code,A,1.0\n"
                    "99213,Office visit,A,1.3\n"
                    "X99213,Contains code,A,0.5\n", encoding="utf-8")
    catalog = ReferenceCatalog(str(path))
    catalog.load()

    assert codes(search(catalog, "99213")) == ["99213", "992131", "X99213"]
