"""Monitoring module for loadopt.

Provides run metrics, strategy benchmarks and their JSON/CSV export.
"""

from .metrics import (
    BenchmarkMetrics,
    RunMetrics,
    StrategyStats,
    export_to_csv,
    export_to_json,
    print_summary,
)

__all__ = [
    "BenchmarkMetrics",
    "RunMetrics",
    "StrategyStats",
    "export_to_csv",
    "export_to_json",
    "print_summary",
]
