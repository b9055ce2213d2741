"""
loadopt: carton and container loading optimizer.

    from loadopt import pack, utilization, optimize_combination

    placed = pack((50, 30, 40), "cm", (10, 10, 5), "cm")
    utilization((50, 30, 40), (10, 10, 5), placed)        # 100.0
"""

from loadopt.combination import (
    CombinationCandidate,
    CombinationSummary,
    ContainerBudget,
    optimize_combination,
    summarize_combination,
)
from loadopt.config import (
    CombinationConfig,
    Dimension,
    Item,
    Orientation,
    PackingConfig,
    PlacedItem,
    ScoringWeights,
)
from loadopt.engine import (
    EngineState,
    PackingEngine,
    PackingResult,
    StepRecord,
    Termination,
    pack,
    pack_detailed,
)
from loadopt.errors import (
    DimensionFormatError,
    GridTooLargeError,
    InvalidGeometryError,
    JobFileError,
    LoadOptError,
    UnknownStrategyError,
    UnknownUnitError,
    UnsupportedContainerError,
)
from loadopt.geometry import (
    PRESETS,
    CubicContainer,
    CylindricalContainer,
    RectangularContainer,
    container_from_spec,
    get_preset,
)
from loadopt.orientation import enumerate_orientations
from loadopt.units import normalize_dimensions, parse_dimensions, to_centimeters, to_kilograms
from loadopt.utilization import estimate_capacity, utilization, weight_utilization

__version__ = "0.1.0"

__all__ = [
    # Packing
    "pack",
    "pack_detailed",
    "PackingEngine",
    "PackingResult",
    "EngineState",
    "Termination",
    "StepRecord",
    # Data model / config
    "Dimension",
    "Item",
    "Orientation",
    "PlacedItem",
    "ScoringWeights",
    "PackingConfig",
    "CombinationConfig",
    # Geometry
    "RectangularContainer",
    "CubicContainer",
    "CylindricalContainer",
    "container_from_spec",
    "get_preset",
    "PRESETS",
    # Units / orientations
    "normalize_dimensions",
    "parse_dimensions",
    "to_centimeters",
    "to_kilograms",
    "enumerate_orientations",
    # Metrics
    "utilization",
    "weight_utilization",
    "estimate_capacity",
    # Combination
    "CombinationCandidate",
    "ContainerBudget",
    "CombinationSummary",
    "optimize_combination",
    "summarize_combination",
    # Errors
    "LoadOptError",
    "InvalidGeometryError",
    "DimensionFormatError",
    "UnknownUnitError",
    "UnsupportedContainerError",
    "GridTooLargeError",
    "UnknownStrategyError",
    "JobFileError",
]
