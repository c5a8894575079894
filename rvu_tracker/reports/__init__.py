"""Report exports - charts and spreadsheets built from analytics state."""

from .chart import render_period_chart
from .workbook import export_analytics_workbook

__all__ = ['render_period_chart', 'export_analytics_workbook']
