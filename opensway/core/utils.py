"""
Vector and scalar math helpers shared by the motion engine
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple


# =============================================================================
# Vector Utilities
# =============================================================================

@dataclass(frozen=True)
class Vec2:
    """2D vector. Operations always return a new vector."""
    x: float = 0.0
    y: float = 0.0

    def __add__(self, other: 'Vec2') -> 'Vec2':
        return Vec2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: 'Vec2') -> 'Vec2':
        return Vec2(self.x - other.x, self.y - other.y)

    def __mul__(self, scalar: float) -> 'Vec2':
        return Vec2(self.x * scalar, self.y * scalar)

    def __rmul__(self, scalar: float) -> 'Vec2':
        return self.__mul__(scalar)

    def __truediv__(self, scalar: float) -> 'Vec2':
        return Vec2(self.x / scalar, self.y / scalar) if scalar != 0 else Vec2()

    def __neg__(self) -> 'Vec2':
        return Vec2(-self.x, -self.y)

    @property
    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y)

    def distance_to(self, other: 'Vec2') -> float:
        return (other - self).length

    def lerp(self, other: 'Vec2', t: float) -> 'Vec2':
        return Vec2(
            self.x + (other.x - self.x) * t,
            self.y + (other.y - self.y) * t
        )

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)

    def to_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    def to_list(self) -> list:
        return [self.x, self.y]

    @staticmethod
    def from_sequence(values: Sequence[float]) -> 'Vec2':
        """Build from ``[x, y]`` (extra components, e.g. a z value, are ignored)"""
        if len(values) < 2:
            raise ValueError(f"Expected at least 2 components, got {len(values)}")
        return Vec2(float(values[0]), float(values[1]))


# =============================================================================
# Scalar Utilities
# =============================================================================

class MathUtils:
    """Scalar helpers"""

    @staticmethod
    def clamp(value: float, min_val: float = 0.0, max_val: float = 1.0) -> float:
        return max(min_val, min(max_val, value))

    @staticmethod
    def smoothstep(s: float) -> float:
        """Hermite smoothstep 3s^2 - 2s^3 on s clamped to [0, 1]"""
        s = MathUtils.clamp(s)
        return s * s * (3.0 - 2.0 * s)
