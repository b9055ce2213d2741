"""Command-line runner: pack, combine and benchmark jobs."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Sequence

from loadopt.combination import optimize_combination, summarize_combination
from loadopt.config import Dimension, Item, PackingConfig
from loadopt.engine import PackingEngine, PackingResult
from loadopt.errors import LoadOptError
from loadopt.geometry import PRESETS, ContainerGeometry, as_dimension
from loadopt.monitoring.metrics import (
    BenchmarkMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from loadopt.runner.dataset import generate_items, get_item_ordering
from loadopt.runner.jobs import (
    ContainerSpec,
    ItemSpec,
    load_benchmark_job,
    load_combination_job,
    load_pack_job,
)
from loadopt.spatial import INDEX_REGISTRY

logger = logging.getLogger(__name__)


class BenchmarkRunner:
    """
    Compares spatial index strategies on the same container and item set.

    Every item is packed once per strategy; each run becomes a RunMetrics
    row and the per-strategy statistics are aggregated in BenchmarkMetrics.
    """

    def __init__(
        self,
        strategies: Sequence[str] = ("guillotine", "extreme_points"),
        config: PackingConfig | None = None,
        results_dir: Path | str | None = None,
    ):
        """
        Args:
            strategies: Registered strategy names to compare
            config: Base packing configuration (strategy is overridden per run)
            results_dir: Where to write JSON/CSV results (None: don't write)
        """
        self.strategies = list(strategies)
        self.config = config or PackingConfig()
        self.results_dir = Path(results_dir) if results_dir is not None else None

    def run_benchmark(
        self,
        container: ContainerGeometry | Dimension,
        items: Iterable[Item],
    ) -> BenchmarkMetrics:
        """
        Pack every item with every strategy.

        Runs that raise a LoadOptError (e.g. an occupancy grid over the
        cell limit) are counted as errors and the benchmark continues.
        """
        container_dims = as_dimension(container)
        benchmark_id = f"bench_{datetime.now(timezone.utc).strftime('%Y%m%d_%H%M%S')}"
        metrics = BenchmarkMetrics(benchmark_id=benchmark_id, strategies=self.strategies)

        run_id = 0
        for item in items:
            for strategy in self.strategies:
                run_id += 1
                config = replace(self.config, strategy=strategy)
                try:
                    result = PackingEngine(container_dims, item, config).run()
                except LoadOptError as exc:
                    logger.warning("Run %d (%s, item %d) failed: %s", run_id, strategy, item.id, exc)
                    metrics.record_error()
                    continue
                metrics.add_run(RunMetrics.from_result(run_id, result))

        metrics.mark_complete()
        if self.results_dir is not None:
            self._save_results(metrics)
        return metrics

    def _save_results(self, metrics: BenchmarkMetrics) -> None:
        json_path = self.results_dir / f"{metrics.benchmark_id}.json"
        csv_path = self.results_dir / f"{metrics.benchmark_id}_runs.csv"
        export_to_json(metrics, json_path)
        export_to_csv(metrics, csv_path)
        print(f"Saved results to {json_path} and {csv_path}")


def run_benchmark(
    container: ContainerGeometry | Dimension,
    items: Iterable[Item],
    strategies: Sequence[str] = ("guillotine", "extreme_points"),
    config: PackingConfig | None = None,
    results_dir: Path | str | None = None,
) -> BenchmarkMetrics:
    """Functional shortcut for ``BenchmarkRunner(...).run_benchmark(...)``."""
    runner = BenchmarkRunner(strategies=strategies, config=config, results_dir=results_dir)
    return runner.run_benchmark(container, items)


# ─────────────────────────────────────────────────────────────────────────────
# Sub-commands
# ─────────────────────────────────────────────────────────────────────────────

def _write_json(data: dict, output: str | None) -> None:
    if not output:
        return
    path = Path(output)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w") as f:
        json.dump(data, f, indent=2)
    print(f"Saved result to {path}")


def _format_pack(result: PackingResult) -> str:
    lines = [
        "=" * 60,
        f"Strategy:    {result.strategy}",
        f"Container:   {result.container} cm",
        f"Item:        {result.item} cm",
        "=" * 60,
        f"Placed:      {result.placed_count} / {result.theoretical_max} (theoretical max)",
        f"Utilization: {result.utilization:.2f}%",
        f"Iterations:  {result.iterations}",
        f"Stopped:     {result.termination.value}",
        f"Runtime:     {result.elapsed_ms:.1f} ms",
        "=" * 60,
    ]
    return "\n".join(lines)


def cmd_pack(args: argparse.Namespace) -> int:
    if args.job:
        job = load_pack_job(args.job)
        container = job.container.to_geometry()
        item = job.item.to_item()
        config = job.packing_config()
    else:
        if not (args.container and args.item):
            raise LoadOptError("pack needs a job file or both --container and --item")
        container = ContainerSpec.model_validate(
            {"preset": args.container} if args.container in PRESETS
            else {"dims": args.container, "unit": args.unit}
        ).to_geometry()
        item = ItemSpec(dims=args.item, unit=args.item_unit or args.unit).to_item()
        config = PackingConfig()

    overrides = {}
    if args.strategy:
        overrides["strategy"] = args.strategy
    if args.steps:
        overrides["record_steps"] = True
    if overrides:
        config = replace(config, **overrides)

    result = PackingEngine(as_dimension(container), item, config).run()
    print(_format_pack(result))
    _write_json(result.to_dict(include_steps=args.steps), args.output)
    return 0


def cmd_combine(args: argparse.Namespace) -> int:
    job = load_combination_job(args.job)
    budget = job.budget()
    combination = optimize_combination(job.candidates(), budget, job.combination_config())
    summary = summarize_combination(combination, budget)

    print("=" * 60)
    print(f"{'Product':<24}{'Qty':>6}{'Volume cm3':>14}{'Weight kg':>12}")
    for cand in combination:
        print(f"{cand.name:<24}{cand.quantity:>6}{cand.total_volume:>14.1f}{cand.total_weight:>12.2f}")
    print("=" * 60)
    print(f"Volume utilization: {summary.volume_utilization:.2f}%")
    print(f"Weight utilization: {summary.weight_utilization:.2f}%")
    if not summary.within_budget:
        print("WARNING: one unit of every product already exceeds the budget")

    _write_json(
        {"products": [c.to_dict() for c in combination], "summary": summary.to_dict()},
        args.output,
    )
    return 0


def cmd_benchmark(args: argparse.Namespace) -> int:
    if args.job:
        job = load_benchmark_job(args.job)
        container = job.container.to_geometry()
        items = get_item_ordering(job.ordering)(job.item_list())
        strategies = args.strategies or job.strategies
        config = job.packing_config()
    else:
        container = ContainerSpec.model_validate(args.container).to_geometry()
        items = generate_items(count=args.random, seed=args.seed)
        strategies = args.strategies or list(INDEX_REGISTRY)
        config = PackingConfig()

    metrics = run_benchmark(
        container, items,
        strategies=strategies, config=config, results_dir=args.results_dir,
    )
    print(print_summary(metrics))
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Entry point
# ─────────────────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="loadopt",
        description="Carton and container loading optimizer",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log progress at INFO level")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("pack", help="Pack one item type into one container")
    p.add_argument("job", nargs="?", help="YAML pack job file")
    p.add_argument("--container", help='Preset name or "LxWxH" (e.g. 20ft, 120x80x200)')
    p.add_argument("--item", help='Item "LxWxH"')
    p.add_argument("--unit", default="cm", help="Length unit of --container/--item (default: cm)")
    p.add_argument("--item-unit", help="Length unit of --item when it differs from --unit")
    p.add_argument("--strategy", choices=sorted(INDEX_REGISTRY), help="Spatial index strategy")
    p.add_argument("--steps", action="store_true", help="Record and export the step trace")
    p.add_argument("--output", help="Write the result as JSON")
    p.set_defaults(func=cmd_pack)

    c = sub.add_parser("combine", help="Optimize a multi-product combination")
    c.add_argument("job", help="YAML combination job file")
    c.add_argument("--output", help="Write the combination as JSON")
    c.set_defaults(func=cmd_combine)

    b = sub.add_parser("benchmark", help="Compare strategies on a set of items")
    b.add_argument("job", nargs="?", help="YAML benchmark job file")
    b.add_argument("--container", default="eur_pallet",
                   help="Preset or \"LxWxH\" when no job file is given (default: eur_pallet)")
    b.add_argument("--random", type=int, default=10, help="Random item types to generate (default: 10)")
    b.add_argument("--seed", type=int, default=0, help="Random seed (default: 0)")
    b.add_argument("--strategies", nargs="+", choices=sorted(INDEX_REGISTRY),
                   help="Strategies to compare (default: all)")
    b.add_argument("--results-dir", help="Directory for JSON/CSV results")
    b.set_defaults(func=cmd_benchmark)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args.func(args)
    except LoadOptError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
