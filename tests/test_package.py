"""
Integration checks - package imports, module structure and bundled resources.
"""

import os

import rvu_tracker
from rvu_tracker.core import config, logging_config, platform_utils
from rvu_tracker.data import CacheStore, FavoriteRepository, RemoteDataGateway, VisitRepository
from rvu_tracker.logic import AnalyticsAggregator, ReferenceCatalog, VisitEntryForm, enrich_visits, search
from rvu_tracker.main import main
from rvu_tracker.reports import export_analytics_workbook, render_period_chart


def test_entry_points_importable():
    assert callable(main)
    assert callable(search)
    assert callable(enrich_visits)
    assert callable(render_period_chart)
    assert callable(export_analytics_workbook)


def test_module_structure():
    assert rvu_tracker.__version__ == config.APP_VERSION
    assert hasattr(logging_config, 'setup_logging')
    assert hasattr(platform_utils, 'get_app_paths')
    assert hasattr(ReferenceCatalog, 'lookup_rvu')
    assert hasattr(CacheStore, 'load_fresh')
    assert hasattr(RemoteDataGateway, 'reorder_favorites')
    assert hasattr(VisitRepository, 'refresh')
    assert hasattr(FavoriteRepository, 'move')
    assert hasattr(AnalyticsAggregator, 'period_breakdowns')
    assert hasattr(VisitEntryForm, 'submit')


def test_bundled_resources_present():
    resources_dir, data_root = platform_utils.get_app_paths()

    for name in (config.CATALOG_RESOURCE_NAME, config.SETTINGS_TEMPLATE_NAME):
        assert os.path.exists(os.path.join(resources_dir, name)), name


def test_app_root_honors_override(isolated_app_home):
    assert platform_utils.get_app_root() == str(isolated_app_home)


def test_bundled_catalog_header():
    path = platform_utils.get_bundled_resource_path(config.CATALOG_RESOURCE_NAME)
    with open(path, encoding="utf-8") as f:
        assert f.readline().strip() == "HCPCS,DESCRIPTION,STATUS CODE,WORK RVU"
