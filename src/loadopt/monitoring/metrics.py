"""Metrics tracking and export for packing benchmarks.

Records one ``RunMetrics`` per packing run and aggregates them per strategy
in ``BenchmarkMetrics``; both export to JSON and CSV.
"""

from __future__ import annotations

import csv
import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from loadopt.engine import PackingResult


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _median(values: list[float]) -> float:
    ordered = sorted(values)
    n = len(ordered)
    if n % 2 == 0:
        return (ordered[n // 2 - 1] + ordered[n // 2]) / 2
    return ordered[n // 2]


RUN_FIELDS = [
    "run_id", "strategy", "item", "container", "placed_count",
    "theoretical_max", "utilization_pct", "iterations", "termination",
    "elapsed_ms", "finished_at",
]


@dataclass
class RunMetrics:
    """Metrics for a single packing run.

    Attributes:
        run_id: Sequential identifier within a benchmark.
        strategy: Spatial index used.
        item: Item dimensions as "LxWxH" (cm).
        container: Container dimensions as "LxWxH" (cm).
        placed_count: Number of items placed.
        theoretical_max: floor(container volume / item volume).
        utilization_pct: Volume utilization percentage (0-100).
        iterations: Engine iterations consumed.
        termination: Why the run stopped.
        elapsed_ms: Wall time of the run.
        finished_at: Timestamp when the run finished.
    """

    run_id: int
    strategy: str
    item: str
    container: str
    placed_count: int
    theoretical_max: int
    utilization_pct: float
    iterations: int
    termination: str
    elapsed_ms: float = 0.0
    finished_at: datetime = field(default_factory=_now)

    @classmethod
    def from_result(cls, run_id: int, result: PackingResult) -> "RunMetrics":
        """Build run metrics from a PackingResult.

        Example:
            >>> from loadopt.engine import pack_detailed
            >>> rm = RunMetrics.from_result(1, pack_detailed((50, 30, 40), "cm", (10, 10, 5)))
            >>> rm.placed_count
            120
        """
        return cls(
            run_id=run_id,
            strategy=result.strategy,
            item=str(result.item),
            container=str(result.container),
            placed_count=result.placed_count,
            theoretical_max=result.theoretical_max,
            utilization_pct=result.utilization,
            iterations=result.iterations,
            termination=result.termination.value,
            elapsed_ms=round(result.elapsed_ms, 3),
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["finished_at"] = self.finished_at.isoformat()
        return d


@dataclass
class StrategyStats:
    """Utilization statistics of one strategy across a benchmark."""

    strategy: str
    runs: int = 0
    total_placed: int = 0
    avg_utilization_pct: float = 0.0
    median_utilization_pct: float = 0.0
    min_utilization_pct: float = 0.0
    max_utilization_pct: float = 0.0
    avg_elapsed_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class BenchmarkMetrics:
    """Aggregate metrics for a strategy comparison.

    Attributes:
        benchmark_id: Identifier for the benchmark.
        strategies: Strategies being compared, in run order.
        runs: Per-run metrics.
        errors_count: Runs that raised instead of returning a result.
        runtime_seconds: Total runtime in seconds.
        started_at: Benchmark start timestamp.
        completed_at: Completion timestamp (None while running).
    """

    benchmark_id: str
    strategies: list[str]
    runs: list[RunMetrics] = field(default_factory=list)
    errors_count: int = 0
    runtime_seconds: float = 0.0
    started_at: datetime = field(default_factory=_now)
    completed_at: datetime | None = None

    def add_run(self, run: RunMetrics) -> None:
        """Add a run's metrics.

        Example:
            >>> bm = BenchmarkMetrics("bench_001", ["guillotine"])
            >>> bm.add_run(RunMetrics(1, "guillotine", "10x10x5", "50x30x40", 120, 120, 100.0, 120, "theoretical_max"))
            >>> bm.stats()["guillotine"].total_placed
            120
        """
        self.runs.append(run)

    def record_error(self) -> None:
        self.errors_count += 1

    def mark_complete(self) -> None:
        self.completed_at = _now()
        self.runtime_seconds = (self.completed_at - self.started_at).total_seconds()

    def stats(self) -> dict[str, StrategyStats]:
        """Per-strategy statistics, keyed by strategy name in run order."""
        out: dict[str, StrategyStats] = {}
        for strategy in self.strategies:
            runs = [r for r in self.runs if r.strategy == strategy]
            s = StrategyStats(strategy=strategy, runs=len(runs))
            if runs:
                utils = [r.utilization_pct for r in runs]
                s.total_placed = sum(r.placed_count for r in runs)
                s.avg_utilization_pct = round(sum(utils) / len(utils), 2)
                s.median_utilization_pct = round(_median(utils), 2)
                s.min_utilization_pct = min(utils)
                s.max_utilization_pct = max(utils)
                s.avg_elapsed_ms = round(sum(r.elapsed_ms for r in runs) / len(runs), 3)
            out[strategy] = s
        return out

    def best_strategy(self) -> str | None:
        """Strategy with the highest average utilization (first wins ties)."""
        best: StrategyStats | None = None
        for s in self.stats().values():
            if s.runs and (best is None or s.avg_utilization_pct > best.avg_utilization_pct):
                best = s
        return best.strategy if best else None

    def to_dict(self, include_runs: bool = True) -> dict[str, Any]:
        d: dict[str, Any] = {
            "benchmark_id": self.benchmark_id,
            "strategies": list(self.strategies),
            "total_runs": len(self.runs),
            "errors_count": self.errors_count,
            "runtime_seconds": self.runtime_seconds,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "best_strategy": self.best_strategy(),
            "stats": {name: s.to_dict() for name, s in self.stats().items()},
        }
        if include_runs:
            d["runs"] = [r.to_dict() for r in self.runs]
        return d


def export_to_json(metrics: BenchmarkMetrics, output_path: Path | str, include_runs: bool = True) -> None:
    """Write benchmark metrics to a JSON file, creating parent directories."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w") as f:
        json.dump(metrics.to_dict(include_runs=include_runs), f, indent=2)


def export_to_csv(metrics: BenchmarkMetrics, output_path: Path | str) -> None:
    """Write one CSV row per run (header only when there are no runs)."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=RUN_FIELDS)
        writer.writeheader()
        for run in metrics.runs:
            writer.writerow(run.to_dict())


def print_summary(metrics: BenchmarkMetrics) -> str:
    """Human-readable benchmark summary.

    Example:
        >>> bm = BenchmarkMetrics("bench_001", ["guillotine", "extreme_points"])
        >>> "Benchmark: bench_001" in print_summary(bm)
        True
    """
    lines = [
        "=" * 60,
        f"Benchmark: {metrics.benchmark_id}",
        f"Strategies: {', '.join(metrics.strategies)}",
        "=" * 60,
        f"Runs: {len(metrics.runs)}    Errors: {metrics.errors_count}",
        "",
        f"{'Strategy':<18}{'Runs':>6}{'Avg %':>9}{'Median %':>10}{'Min %':>8}{'Max %':>8}{'Avg ms':>10}",
    ]
    for s in metrics.stats().values():
        lines.append(
            f"{s.strategy:<18}{s.runs:>6}{s.avg_utilization_pct:>9.2f}"
            f"{s.median_utilization_pct:>10.2f}{s.min_utilization_pct:>8.2f}"
            f"{s.max_utilization_pct:>8.2f}{s.avg_elapsed_ms:>10.1f}"
        )
    best = metrics.best_strategy()
    lines += [
        "",
        f"Best strategy: {best if best else 'n/a'}",
        f"Runtime: {metrics.runtime_seconds:.1f} seconds",
        "=" * 60,
    ]
    return "\n".join(lines)
