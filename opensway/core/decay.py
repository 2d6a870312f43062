"""
Decay Envelope - Fades motion out after a configured start time
"""

from dataclasses import dataclass

from .params import DECAY_EPSILON, DecayShape
from .utils import MathUtils


def decay_multiplier(
    t: float,
    start: float,
    duration: float,
    shape: DecayShape = DecayShape.LINEAR
) -> float:
    """
    Multiplier in [0, 1] applied to a motion offset at time ``t``.

    Returns 1 while decay is disabled (``start <= 0``) or has not begun.
    Afterwards ``s = (t - start) / duration`` is clamped to [0, 1] and the
    result is ``1 - s`` (LINEAR) or ``1 - smoothstep(s)`` (SMOOTHSTEP).
    """
    if start <= 0 or t <= start:
        return 1.0

    s = MathUtils.clamp((t - start) / max(duration, DECAY_EPSILON))
    if shape == DecayShape.SMOOTHSTEP:
        return 1.0 - MathUtils.smoothstep(s)
    return 1.0 - s


@dataclass(frozen=True)
class DecayEnvelope:
    start: float = 0.0
    duration: float = 1.0
    shape: DecayShape = DecayShape.LINEAR

    @property
    def enabled(self) -> bool:
        return self.start > 0

    @property
    def end(self) -> float:
        return self.start + max(self.duration, DECAY_EPSILON)

    def multiplier(self, t: float) -> float:
        return decay_multiplier(t, self.start, self.duration, self.shape)
