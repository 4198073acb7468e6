"""Tunable parameters shared by the classifier, evaluator and CLI."""

from __future__ import annotations

import math
from dataclasses import dataclass
from math import sqrt
from typing import Optional, Tuple

from .errors import ConfigurationError
from .kernel import DEFAULT_EPSILON, DEFAULT_MAX_DISTANCE

#: Cell edge length used when the caller does not give one.
DEFAULT_CELL_SIZE: Tuple[float, float, float] = (0.2, 0.2, 0.2)

#: Number of flattened cell indices handed to one worker task.
DEFAULT_BATCH_SIZE: int = 1024

# Ray origins are nudged sideways by a tiny irrational amount so that cell
# centres sitting exactly on a mesh edge (x == z diagonals of grid-aligned
# quads, for instance) are not counted twice.  No vertical component: the
# ray direction is -Y.
DEFAULT_JITTER: Tuple[float, float, float] = (
    (sqrt(2) - 1.0) * 1e-6,
    0.0,
    (sqrt(3) - 1.0) * 1e-6,
)


@dataclass(frozen=True)
class VoxelizeOptions:
    """Knobs for classification and parallel evaluation.

    Parameters
    ----------
    max_distance:
        Largest accepted hit distance along a classification ray.
    epsilon:
        Parallel-ray determinant threshold of the intersection kernel.
    batch_size:
        Flattened cell indices per work unit.  Affects speed only.
    workers:
        Thread count; ``None`` lets :class:`~concurrent.futures.ThreadPoolExecutor`
        pick, ``1`` evaluates sequentially in the calling thread.
    jitter:
        Offset added to every ray origin.  ``(0, 0, 0)`` disables it.
    """

    max_distance: float = DEFAULT_MAX_DISTANCE
    epsilon: float = DEFAULT_EPSILON
    batch_size: int = DEFAULT_BATCH_SIZE
    workers: Optional[int] = None
    jitter: Tuple[float, float, float] = DEFAULT_JITTER

    def __post_init__(self) -> None:
        if not (math.isfinite(self.max_distance) and self.max_distance > 0):
            raise ConfigurationError(f"max_distance must be positive, got {self.max_distance!r}")
        if not (math.isfinite(self.epsilon) and self.epsilon >= 0):
            raise ConfigurationError(f"epsilon must be non-negative, got {self.epsilon!r}")
        if int(self.batch_size) != self.batch_size or self.batch_size < 1:
            raise ConfigurationError(f"batch_size must be an integer >= 1, got {self.batch_size!r}")
        if self.workers is not None and (int(self.workers) != self.workers or self.workers < 1):
            raise ConfigurationError(f"workers must be an integer >= 1, got {self.workers!r}")
        jitter = tuple(float(c) for c in self.jitter)
        if len(jitter) != 3 or not all(math.isfinite(c) for c in jitter):
            raise ConfigurationError(f"jitter must be three finite numbers, got {self.jitter!r}")
        object.__setattr__(self, "jitter", jitter)
        object.__setattr__(self, "batch_size", int(self.batch_size))
        if self.workers is not None:
            object.__setattr__(self, "workers", int(self.workers))
