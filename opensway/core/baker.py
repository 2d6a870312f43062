"""
Baker - Converts live bindings into static keyframes

Baking samples the bound property once per frame over the whole timeline,
writes the samples as keyframes and removes the binding. All samples
are read before anything is written, and the binding is only removed once
the keyframes are in place.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, List, Optional

from .utils import Vec2

logger = logging.getLogger(__name__)

SAMPLE_EPSILON = 1e-9


@dataclass(frozen=True)
class TrajectorySample:
    """A single (time, value) sample"""
    time: float
    value: Vec2

    def to_dict(self) -> dict:
        return {'time': self.time, 'value': self.value.to_list()}


class Baker:
    """
    Samples a time-varying value at every frame of a timeline.

    Sample times are ``t_i = i * dt`` with ``dt = 1 / frame_rate``, for every
    i with ``t_i <= duration``.
    """

    def __init__(self, frame_rate: float, duration: float):
        if not frame_rate > 0:
            raise ValueError(f"frame_rate must be positive, got {frame_rate}")
        if not duration >= 0:
            raise ValueError(f"duration must be non-negative, got {duration}")
        self.frame_rate = float(frame_rate)
        self.duration = float(duration)

    @classmethod
    def for_document(cls, document) -> 'Baker':
        return cls(document.frame_rate, document.duration)

    @property
    def dt(self) -> float:
        return 1.0 / self.frame_rate

    def frame_count(self) -> int:
        return int(math.floor(self.duration * self.frame_rate + SAMPLE_EPSILON)) + 1

    def sample_times(self) -> List[float]:
        dt = self.dt
        return [i * dt for i in range(self.frame_count())]

    def sample(self, evaluator: Callable[[float], Vec2]) -> List[TrajectorySample]:
        return [TrajectorySample(t, evaluator(t)) for t in self.sample_times()]

    def bake_link(self, document, layer: str, pin: str) -> Optional[List[TrajectorySample]]:
        """
        Bake one bound pin of a host document.

        Returns:
            The written samples, or None if the pin has no live binding
        """
        if document.binding(layer, pin) is None:
            logger.debug("Pin '%s' on '%s' has no binding; skipping bake", pin, layer)
            return None

        samples = self.sample(lambda t: document.value_at(layer, pin, t))
        document.set_keyframes(layer, pin, samples)
        document.unbind(layer, pin)
        logger.debug("Baked %d keyframes onto '%s'", len(samples), pin)
        return samples
