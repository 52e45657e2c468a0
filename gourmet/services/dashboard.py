"""Analytics dashboard combining trends and regional statistics."""

import asyncio
from dataclasses import dataclass, field

from gourmet.services.seasonal_aggregator import RegionalAgeStatistic, SeasonalAggregator
from gourmet.services.trend_analyzer import TrendAnalysis, TrendAnalyzer

DASHBOARD_WINDOW_DAYS = 30
DASHBOARD_TRENDS = 10
DASHBOARD_REGIONAL_ROWS = 20


@dataclass
class DashboardSummary:
    total_foods: int
    increasing_trends: int
    popular_foods: int
    trend_percentage: int


@dataclass
class Dashboard:
    summary: DashboardSummary
    trends: list[TrendAnalysis] = field(default_factory=list)
    regional_stats: list[RegionalAgeStatistic] = field(default_factory=list)


def summarize(trends: list[TrendAnalysis]) -> DashboardSummary:
    """Count increasing and popular foods among the analyzed trends.

    A food counts as popular when its likes are not decreasing.
    """
    total = len(trends)
    increasing = sum(1 for t in trends if t.view_trend == "increasing")
    popular = sum(1 for t in trends if t.like_trend != "decreasing")
    percentage = round(increasing / total * 100) if total else 0
    return DashboardSummary(
        total_foods=total,
        increasing_trends=increasing,
        popular_foods=popular,
        trend_percentage=percentage,
    )


async def build_dashboard(
    trend_analyzer: TrendAnalyzer,
    aggregator: SeasonalAggregator,
) -> Dashboard:
    """Run trend analysis and regional statistics concurrently.

    Unlike the personalized recommendations, a failure in either query
    fails the dashboard.
    """
    trends, regional_stats = await asyncio.gather(
        trend_analyzer.analyze_trends(DASHBOARD_WINDOW_DAYS),
        aggregator.regional_age_statistics(),
    )
    return Dashboard(
        summary=summarize(trends),
        trends=trends[:DASHBOARD_TRENDS],
        regional_stats=regional_stats[:DASHBOARD_REGIONAL_ROWS],
    )
