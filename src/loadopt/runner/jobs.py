"""
YAML job files for the command-line runner.

A job file describes one run of the packing engine, the combination
optimizer or a strategy benchmark.  Files are loaded with
``yaml.safe_load`` and validated by the pydantic models below; the models
then convert themselves into the core's plain dataclasses.

Example pack job:

    container: 20ft            # preset name, "LxWxH" string, or mapping
    item:
      dims: 50x30x40
      unit: cm
      weight: 12
    strategy: extreme_points
    config:
      prune_interval: 25

Container mappings:

    container: {dims: [2, 1, 1], unit: m, max_weight: 500}
    container: {shape: cubic, edge: 60}
    container: {shape: cylindrical, diameter: 57, height: 88}
    container: {preset: 40ft, max_weight: 20000}
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any, Literal, Optional, Type, TypeVar, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from loadopt.combination import CombinationCandidate, ContainerBudget
from loadopt.config import CombinationConfig, Dimension, Item, PackingConfig
from loadopt.errors import InvalidGeometryError, JobFileError
from loadopt.geometry import (
    PRESETS,
    ContainerGeometry,
    CubicContainer,
    CylindricalContainer,
    RectangularContainer,
    get_preset,
)
from loadopt.runner.dataset import generate_items
from loadopt.units import normalize_dimensions, parse_dimensions, to_centimeters, to_kilograms

DimsField = Union[str, list[float]]


def _to_dimension(dims: DimsField, unit: str) -> Dimension:
    if isinstance(dims, str):
        return parse_dimensions(dims, unit)
    return normalize_dimensions(dims, unit)


class _JobModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


# ----Containers-----
class ContainerSpec(_JobModel):
    preset: Optional[str] = None
    shape: Literal["rectangular", "cubic", "cylindrical"] = "rectangular"
    dims: Optional[DimsField] = None
    edge: Optional[float] = None
    diameter: Optional[float] = None
    height: Optional[float] = None
    unit: str = "cm"
    max_weight: Optional[float] = None
    weight_unit: str = "kg"

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"preset": data} if data in PRESETS else {"dims": data}
        return data

    @model_validator(mode="after")
    def _check_fields(self) -> "ContainerSpec":
        if self.preset is not None:
            if self.preset not in PRESETS:
                raise ValueError(f"unknown preset '{self.preset}', available: {sorted(PRESETS)}")
            return self
        required = {
            "rectangular": ("dims",),
            "cubic": ("edge",),
            "cylindrical": ("diameter", "height"),
        }[self.shape]
        missing = [name for name in required if getattr(self, name) is None]
        if missing:
            raise ValueError(f"{self.shape} container needs {', '.join(missing)}")
        return self

    def to_geometry(self) -> ContainerGeometry:
        """Container variant in centimetres and kilograms."""
        max_weight = (
            to_kilograms(self.max_weight, self.weight_unit)
            if self.max_weight is not None else None
        )
        if self.preset is not None:
            container = get_preset(self.preset)
            return replace(container, max_weight=max_weight) if max_weight is not None else container
        if self.shape == "cubic":
            return CubicContainer(edge=to_centimeters(self.edge, self.unit), max_weight=max_weight)
        if self.shape == "cylindrical":
            return CylindricalContainer(
                diameter=to_centimeters(self.diameter, self.unit),
                height=to_centimeters(self.height, self.unit),
                max_weight=max_weight,
            )
        dim = _to_dimension(self.dims, self.unit)
        return RectangularContainer(dim.length, dim.width, dim.height, max_weight=max_weight)


# ----Items-----
class ItemSpec(_JobModel):
    name: Optional[str] = None
    dims: DimsField
    unit: str = "cm"
    weight: Optional[float] = Field(default=None, ge=0)
    weight_unit: str = "kg"

    @model_validator(mode="before")
    @classmethod
    def _from_string(cls, data: Any) -> Any:
        if isinstance(data, (str, list)):
            return {"dims": data}
        return data

    def to_item(self, item_id: int = 0) -> Item:
        weight = to_kilograms(self.weight, self.weight_unit) if self.weight is not None else None
        return Item(dimension=_to_dimension(self.dims, self.unit), id=item_id, weight=weight)


class ProductSpec(_JobModel):
    name: str
    dims: DimsField
    unit: str = "cm"
    weight: float = Field(ge=0)
    weight_unit: str = "kg"

    def to_candidate(self) -> CombinationCandidate:
        return CombinationCandidate(
            name=self.name,
            unit_weight=to_kilograms(self.weight, self.weight_unit),
            unit_volume=_to_dimension(self.dims, self.unit).volume,
        )


class RandomItems(_JobModel):
    count: int = Field(default=20, ge=1)
    seed: Optional[int] = 0
    min_edge: float = Field(default=20.0, gt=0)
    max_edge: float = Field(default=60.0, gt=0)


# ----Jobs-----
class PackJob(_JobModel):
    container: ContainerSpec
    item: ItemSpec
    strategy: Optional[str] = None
    config: dict[str, Any] = Field(default_factory=dict)

    def packing_config(self) -> PackingConfig:
        return _packing_config(self.config, self.strategy)


class CombinationJob(_JobModel):
    container: ContainerSpec
    max_weight: Optional[float] = Field(default=None, gt=0)
    weight_unit: str = "kg"
    products: list[ProductSpec] = Field(min_length=1)
    config: dict[str, Any] = Field(default_factory=dict)

    def budget(self) -> ContainerBudget:
        geometry = self.container.to_geometry()
        if self.max_weight is not None:
            max_weight = to_kilograms(self.max_weight, self.weight_unit)
        elif geometry.max_weight is not None:
            max_weight = geometry.max_weight
        else:
            raise InvalidGeometryError("combination job needs max_weight (job or container)")
        return ContainerBudget(max_volume=geometry.volume, max_weight=max_weight)

    def candidates(self) -> list[CombinationCandidate]:
        return [p.to_candidate() for p in self.products]

    def combination_config(self) -> CombinationConfig:
        return _build(CombinationConfig, self.config)


class BenchmarkJob(_JobModel):
    container: ContainerSpec
    items: list[ItemSpec] = Field(default_factory=list)
    random_items: Optional[RandomItems] = None
    strategies: list[str] = Field(default_factory=lambda: ["guillotine", "extreme_points"], min_length=1)
    ordering: Literal["generated", "volume_sorted"] = "generated"
    config: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _needs_items(self) -> "BenchmarkJob":
        if not self.items and self.random_items is None:
            raise ValueError("benchmark job needs items or random_items")
        return self

    def item_list(self) -> list[Item]:
        items = [spec.to_item(i) for i, spec in enumerate(self.items)]
        if self.random_items is not None:
            r = self.random_items
            generated = generate_items(r.count, seed=r.seed, min_edge=r.min_edge, max_edge=r.max_edge)
            items += [replace(it, id=len(items) + it.id) for it in generated]
        return items

    def packing_config(self) -> PackingConfig:
        return _packing_config(self.config, None)


# ─────────────────────────────────────────────────────────────────────────────
# Loading
# ─────────────────────────────────────────────────────────────────────────────

JobT = TypeVar("JobT", bound=BaseModel)


def _build(cls, options: dict[str, Any]):
    try:
        return cls.from_dict(options)
    except (TypeError, ValueError) as exc:
        raise JobFileError(f"Invalid {cls.__name__} options: {exc}") from exc


def _packing_config(options: dict[str, Any], strategy: Optional[str]) -> PackingConfig:
    config = _build(PackingConfig, options)
    return replace(config, strategy=strategy) if strategy else config


def load_job(path: Path | str, model: Type[JobT]) -> JobT:
    """
    Read a YAML job file and validate it against *model*.

    Raises:
        JobFileError: the file is missing, not YAML, or fails validation.
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except OSError as exc:
        raise JobFileError(f"Cannot read job file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise JobFileError(f"Job file {path} is not valid YAML: {exc}") from exc

    if not isinstance(data, dict):
        raise JobFileError(f"Job file {path} must contain a mapping at the top level")
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise JobFileError(f"Invalid job file {path}:\n{exc}") from exc


def load_pack_job(path: Path | str) -> PackJob:
    return load_job(path, PackJob)


def load_combination_job(path: Path | str) -> CombinationJob:
    return load_job(path, CombinationJob)


def load_benchmark_job(path: Path | str) -> BenchmarkJob:
    return load_job(path, BenchmarkJob)
