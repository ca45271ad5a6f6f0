"""
Scoring side of the pipeline: performance snapshot, opportunity scorer, dashboard metrics.
"""

from .scorer import (
    identify_opportunities,
    recommend_match_type,
    recommend_level,
    calculate_impact,
)
from .dashboard import (
    DashboardMetrics,
    generate_dashboard_metrics,
    calculate_spend_distribution,
    calculate_performance_trends,
)
from .performance_store import PerformanceStore

__all__ = [
    'identify_opportunities',
    'recommend_match_type',
    'recommend_level',
    'calculate_impact',
    'DashboardMetrics',
    'generate_dashboard_metrics',
    'calculate_spend_distribution',
    'calculate_performance_trends',
    'PerformanceStore',
]
