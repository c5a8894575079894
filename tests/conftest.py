"""
Shared fixtures for RVU Tracker tests.

The app home is pointed at a temporary directory so nothing touches the
real settings, cache or log files.
"""

import pytest

from rvu_tracker.core.config import CACHE_SCHEMA_VERSIONS
from rvu_tracker.data.cache_store import CacheStore
from rvu_tracker.data.models import Favorite, Visit, VisitProcedure
from rvu_tracker.logic.catalog import ReferenceCatalog


CATALOG_CSV = """HCPCS,DESCRIPTION,STATUS CODE,WORK RVU
99202,Office o/p new sf 15 min,A,0.93
99212,Office o/p est sf 10 min,A,0.70
99213,"Office o/p est low 20 min",A,1.5
99214,"Office o/p est mod 30 min",A,1.92
99215,Office o/p est hi 40 min,A,2.80
93000,"Electrocardiogram, complete",A,0.17
36415,Routine venipuncture,X,0.00
G2211,Complex e/m visit add on,A,0.33
"""


class FakeClock:
    """Manually advanced replacement for time.time."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeGateway:
    """In-memory stand-in for RemoteDataGateway.

    Set `fail_with` to an exception to make the next matching call raise it.
    Every call is recorded in `calls`.
    """

    def __init__(self, visits=None, favorites=None):
        self.visits = list(visits or [])
        self.favorites = list(favorites or [])
        self.calls = []
        self.fail_with = {}
        self.on_fetch = None
        self._next_id = 1000

    def _maybe_fail(self, name):
        self.calls.append(name)
        error = self.fail_with.pop(name, None)
        if error is not None:
            raise error

    def fetch_visits(self):
        self._maybe_fail("fetch_visits")
        snapshot = [Visit.from_dict(v.to_dict()) for v in self.visits]
        if self.on_fetch is not None:
            self.on_fetch()
        return snapshot

    def create_visit(self, draft):
        self._maybe_fail("create_visit")
        self._next_id += 1
        visit = Visit(
            id=str(self._next_id),
            owner_id="1",
            date=draft.date,
            time=draft.time,
            notes=draft.notes,
            is_no_show=draft.is_no_show,
            procedures=[
                VisitProcedure(id=str(self._next_id * 10 + i), visit_id=str(self._next_id),
                               code=p.code, description=p.description, status_code=p.status_code,
                               work_rvu=p.work_rvu, quantity=p.quantity)
                for i, p in enumerate(draft.procedures)
            ],
        )
        self.visits.append(visit)
        return visit

    def update_visit(self, visit_id, draft):
        self._maybe_fail("update_visit")
        visit = Visit(id=visit_id, owner_id="1", date=draft.date, time=draft.time,
                      notes=draft.notes, is_no_show=draft.is_no_show)
        self.visits = [visit if v.id == visit_id else v for v in self.visits]
        return visit

    def delete_visit(self, visit_id):
        self._maybe_fail("delete_visit")
        self.visits = [v for v in self.visits if v.id != visit_id]

    def fetch_favorites(self):
        self._maybe_fail("fetch_favorites")
        return list(self.favorites)

    def create_favorite(self, code):
        self._maybe_fail("create_favorite")
        favorite = Favorite(id=str(len(self.favorites) + 1), owner_id="1", code=code,
                            sort_order=len(self.favorites))
        self.favorites.append(favorite)
        return favorite

    def delete_favorite(self, code):
        self._maybe_fail("delete_favorite")
        self.favorites = [f for f in self.favorites if f.code != code]

    def reorder_favorites(self, ordered_codes):
        self._maybe_fail("reorder_favorites")
        self.reordered = list(ordered_codes)


def make_visit(visit_id="1", day="2026-01-05", procedures=(), is_no_show=False):
    """Build a Visit from (code, work_rvu, quantity) tuples."""
    return Visit(
        id=visit_id,
        owner_id="1",
        date=day,
        is_no_show=is_no_show,
        procedures=[
            VisitProcedure(id=f"{visit_id}-{i}", visit_id=visit_id, code=code,
                           description=f"{code} description", work_rvu=rvu, quantity=qty)
            for i, (code, rvu, qty) in enumerate(procedures)
        ],
    )


@pytest.fixture(autouse=True)
def isolated_app_home(tmp_path, monkeypatch):
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("RVU_TRACKER_HOME", str(home))
    return home


@pytest.fixture
def catalog_path(tmp_path):
    path = tmp_path / "rvu.csv"
    path.write_text(CATALOG_CSV, encoding="utf-8")
    return str(path)


@pytest.fixture
def catalog(catalog_path):
    catalog = ReferenceCatalog(catalog_path)
    assert catalog.load()
    return catalog


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(tmp_path, clock):
    store = CacheStore(str(tmp_path / "cache.db"), CACHE_SCHEMA_VERSIONS, clock=clock)
    yield store
    store.close()


@pytest.fixture
def gateway():
    return FakeGateway()
