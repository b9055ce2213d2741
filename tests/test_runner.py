"""
Tests for job files, item generation, benchmark metrics and the CLI.

Run with:
    python -m pytest tests/test_runner.py -v
"""

import csv
import json
import os
import sys

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from loadopt.config import Dimension, Item
from loadopt.engine import pack_detailed
from loadopt.errors import JobFileError
from loadopt.geometry import CONTAINER_20FT, CubicContainer, CylindricalContainer
from loadopt.monitoring import (
    BenchmarkMetrics,
    RunMetrics,
    export_to_csv,
    export_to_json,
    print_summary,
)
from loadopt.runner.dataset import generate_items, get_item_ordering
from loadopt.runner.experiment import main, run_benchmark
from loadopt.runner.jobs import (
    BenchmarkJob,
    ContainerSpec,
    ItemSpec,
    PackJob,
    load_combination_job,
    load_pack_job,
)


# ---------------------------------------------------------------------------
# Shared fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def write_job(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def pack_job_file(write_job):
    return write_job("pack.yaml", """
container:
  dims: [2, 1, 1]
  unit: m
item:
  dims: 50x50x50
  unit: cm
  weight: 12
strategy: extreme_points
config:
  prune_interval: 25
""")


@pytest.fixture
def combination_job_file(write_job):
    return write_job("combine.yaml", """
container: 10x1x1
max_weight: 20
products:
  - {name: A, dims: 2x1x1, weight: 5}
  - {name: B, dims: [1, 1, 1], weight: 3}
""")


def make_run(run_id, strategy, util, placed=10):
    return RunMetrics(run_id, strategy, "10x10x10", "50x50x50", placed, 125, util, placed, "no_fit")


# ---------------------------------------------------------------------------
# Dataset
# ---------------------------------------------------------------------------

class TestDataset:

    def test_seeded_generation_is_reproducible(self):
        assert generate_items(5, seed=3) == generate_items(5, seed=3)
        assert generate_items(5, seed=3) != generate_items(5, seed=4)

    def test_ranges(self):
        items = generate_items(20, seed=1, min_edge=10, max_edge=20)
        assert [it.id for it in items] == list(range(20))
        for it in items:
            assert all(10 <= v <= 20 for v in it.dimension)
            assert it.weight > 0

    def test_orderings(self):
        items = generate_items(5, seed=0)
        ordered = get_item_ordering("volume_sorted")(items)
        assert [it.volume for it in ordered] == sorted((it.volume for it in items), reverse=True)
        with pytest.raises(ValueError):
            get_item_ordering("shuffled")


# ---------------------------------------------------------------------------
# Job models
# ---------------------------------------------------------------------------

class TestJobModels:

    def test_container_from_preset_string(self):
        assert ContainerSpec.model_validate("20ft").to_geometry() is CONTAINER_20FT

    def test_container_from_dims_string(self):
        geometry = ContainerSpec.model_validate("120x80x200").to_geometry()
        assert geometry.dimension == Dimension(120, 80, 200)

    def test_preset_weight_override(self):
        spec = ContainerSpec.model_validate({"preset": "40ft", "max_weight": 20, "weight_unit": "kg"})
        geometry = spec.to_geometry()
        assert geometry.max_weight == 20
        assert geometry.length == 1203

    def test_other_shapes(self):
        cube = ContainerSpec.model_validate({"shape": "cubic", "edge": 1, "unit": "m"}).to_geometry()
        assert cube == CubicContainer(edge=100)
        cyl = ContainerSpec.model_validate({"shape": "cylindrical", "diameter": 57, "height": 88}).to_geometry()
        assert isinstance(cyl, CylindricalContainer)

    @pytest.mark.parametrize("data", [
        {"shape": "cubic"},
        {"shape": "cylindrical", "diameter": 10},
        {"preset": "53ft"},
        {"dims": "1x1x1", "colour": "red"},
    ])
    def test_container_validation(self, data):
        with pytest.raises(ValidationError):
            ContainerSpec.model_validate(data)

    def test_item_weight_units(self):
        item = ItemSpec.model_validate({"dims": "10x10x10", "weight": 10, "weight_unit": "lb"}).to_item(7)
        assert item.id == 7
        assert item.weight == pytest.approx(4.5359237)

    def test_pack_job_config(self):
        job = PackJob.model_validate({
            "container": "50x30x40",
            "item": "10x10x5",
            "strategy": "extreme_points",
            "config": {"max_placements": 5},
        })
        cfg = job.packing_config()
        assert cfg.strategy == "extreme_points"
        assert cfg.max_placements == 5

    def test_pack_job_bad_config(self):
        job = PackJob.model_validate({"container": "1x1x1", "item": "1x1x1", "config": {"bogus": 1}})
        with pytest.raises(JobFileError):
            job.packing_config()

    def test_benchmark_job_needs_items(self):
        with pytest.raises(ValidationError):
            BenchmarkJob.model_validate({"container": "20ft"})

    def test_benchmark_item_ids(self):
        job = BenchmarkJob.model_validate({
            "container": "eur_pallet",
            "items": ["10x10x10"],
            "random_items": {"count": 3, "seed": 1},
        })
        assert [it.id for it in job.item_list()] == [0, 1, 2, 3]


class TestJobFiles:

    def test_load_pack_job(self, pack_job_file):
        job = load_pack_job(pack_job_file)
        assert job.container.to_geometry().dimension == Dimension(200, 100, 100)
        assert job.item.to_item().weight == 12
        assert job.packing_config().prune_interval == 25

    def test_load_combination_job(self, combination_job_file):
        job = load_combination_job(combination_job_file)
        assert job.budget().max_volume == 10
        assert [c.unit_volume for c in job.candidates()] == [2, 1]

    def test_missing_file(self, tmp_path):
        with pytest.raises(JobFileError):
            load_pack_job(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, write_job):
        with pytest.raises(JobFileError):
            load_pack_job(write_job("bad.yaml", "container: [1, 2\n"))

    def test_not_a_mapping(self, write_job):
        with pytest.raises(JobFileError):
            load_pack_job(write_job("list.yaml", "- 1\n- 2\n"))

    def test_validation_error(self, write_job):
        with pytest.raises(JobFileError) as exc:
            load_pack_job(write_job("noitem.yaml", "container: 20ft\n"))
        assert "item" in str(exc.value)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------

class TestBenchmarkMetrics:

    def test_from_result(self):
        result = pack_detailed((50, 30, 40), "cm", (10, 10, 5), "cm")
        rm = RunMetrics.from_result(1, result)
        assert rm.placed_count == result.placed_count
        assert rm.utilization_pct == result.utilization
        assert rm.container == "50x30x40"

    def test_stats(self):
        bm = BenchmarkMetrics("b", ["guillotine", "extreme_points"])
        for i, util in enumerate([50.0, 70.0, 60.0, 90.0]):
            bm.add_run(make_run(i, "guillotine", util))
        bm.add_run(make_run(9, "extreme_points", 40.0))
        stats = bm.stats()
        g = stats["guillotine"]
        assert g.runs == 4
        assert g.avg_utilization_pct == 67.5
        assert g.median_utilization_pct == 65.0
        assert (g.min_utilization_pct, g.max_utilization_pct) == (50.0, 90.0)
        assert stats["extreme_points"].median_utilization_pct == 40.0
        assert bm.best_strategy() == "guillotine"

    def test_empty_stats(self):
        bm = BenchmarkMetrics("b", ["guillotine"])
        assert bm.stats()["guillotine"].runs == 0
        assert bm.best_strategy() is None

    def test_export(self, tmp_path):
        bm = BenchmarkMetrics("b", ["guillotine"])
        bm.add_run(make_run(1, "guillotine", 80.0))
        bm.mark_complete()

        export_to_json(bm, tmp_path / "out" / "b.json")
        data = json.loads((tmp_path / "out" / "b.json").read_text())
        assert data["stats"]["guillotine"]["avg_utilization_pct"] == 80.0
        assert len(data["runs"]) == 1

        export_to_csv(bm, tmp_path / "b.csv")
        with (tmp_path / "b.csv").open() as f:
            rows = list(csv.DictReader(f))
        assert rows[0]["strategy"] == "guillotine"

    def test_summary_text(self):
        bm = BenchmarkMetrics("bench_x", ["guillotine"])
        bm.add_run(make_run(1, "guillotine", 80.0))
        text = print_summary(bm)
        assert "Benchmark: bench_x" in text
        assert "Best strategy: guillotine" in text


class TestRunBenchmark:

    def test_every_item_with_every_strategy(self, tmp_path):
        items = generate_items(2, seed=1)
        metrics = run_benchmark(Dimension(60, 40, 40), items, results_dir=tmp_path)
        assert len(metrics.runs) == 4
        assert metrics.errors_count == 0
        assert metrics.completed_at is not None
        assert len(list(tmp_path.glob("*.json"))) == 1
        assert len(list(tmp_path.glob("*_runs.csv"))) == 1

    def test_failed_runs_are_counted(self):
        items = [Item(Dimension(10, 10, 10))]
        metrics = run_benchmark(Dimension(60, 40, 40), items, strategies=["guillotine", "skyline"])
        assert len(metrics.runs) == 1
        assert metrics.errors_count == 1


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

class TestCommandLine:

    def test_pack_inline(self, tmp_path, capsys):
        out = tmp_path / "result.json"
        code = main(["pack", "--container", "50x30x40", "--item", "10x10x5", "--output", str(out)])
        assert code == 0
        data = json.loads(out.read_text())
        assert data["theoretical_max"] == 120
        assert data["placed_count"] == len(data["placements"])
        assert "Utilization" in capsys.readouterr().out

    def test_pack_job_file(self, pack_job_file, tmp_path):
        out = tmp_path / "result.json"
        assert main(["pack", str(pack_job_file), "--steps", "--output", str(out)]) == 0
        data = json.loads(out.read_text())
        assert data["strategy"] == "extreme_points"
        assert data["placed_count"] == 16
        assert len(data["steps"]) == 16

    def test_pack_strategy_override(self, pack_job_file, tmp_path):
        out = tmp_path / "result.json"
        assert main(["pack", str(pack_job_file), "--strategy", "guillotine", "--output", str(out)]) == 0
        assert json.loads(out.read_text())["strategy"] == "guillotine"

    def test_pack_without_inputs_fails(self, capsys):
        assert main(["pack"]) == 2
        assert "error" in capsys.readouterr().err

    def test_pack_cylinder_fails(self, write_job):
        job = write_job("cyl.yaml", "container: {shape: cylindrical, diameter: 50, height: 80}\nitem: 10x10x10\n")
        assert main(["pack", str(job)]) == 2

    def test_combine(self, combination_job_file, tmp_path, capsys):
        out = tmp_path / "combo.json"
        assert main(["combine", str(combination_job_file), "--output", str(out)]) == 0
        data = json.loads(out.read_text())
        assert [p["quantity"] for p in data["products"]] == [2, 3]
        assert data["summary"]["weight_utilization_pct"] == 95.0
        assert "Volume utilization: 70.00%" in capsys.readouterr().out

    def test_combine_missing_file(self, tmp_path):
        assert main(["combine", str(tmp_path / "missing.yaml")]) == 2

    def test_benchmark_job(self, write_job, tmp_path, capsys):
        job = write_job("bench.yaml", """
container: 60x40x40
items:
  - 20x20x20
  - {dims: [30, 20, 10]}
strategies: [guillotine, extreme_points]
ordering: volume_sorted
""")
        assert main(["benchmark", str(job), "--results-dir", str(tmp_path / "results")]) == 0
        assert "Strategies: guillotine, extreme_points" in capsys.readouterr().out
        assert len(list((tmp_path / "results").glob("*.json"))) == 1

    def test_benchmark_random(self, capsys):
        code = main(["benchmark", "--container", "60x40x40", "--random", "2",
                     "--seed", "1", "--strategies", "guillotine"])
        assert code == 0
        assert "Runs: 2" in capsys.readouterr().out
