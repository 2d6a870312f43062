import math

import pytest

from opensway.core.noise import noise01, perlin_noise_2d, signed_noise
from opensway.core.utils import MathUtils, Vec2


def test_vector_arithmetic():
    a, b = Vec2(3.0, 4.0), Vec2(1.0, -2.0)
    assert a + b == Vec2(4.0, 2.0)
    assert a - b == Vec2(2.0, 6.0)
    assert a * 2 == 2 * a == Vec2(6.0, 8.0)
    assert a / 2 == Vec2(1.5, 2.0)
    assert a / 0 == Vec2()
    assert -a == Vec2(-3.0, -4.0)
    assert a.length == 5.0
    assert a.distance_to(b) == pytest.approx(math.hypot(2, 6))
    assert a.lerp(b, 0.5) == Vec2(2.0, 1.0)


def test_from_sequence():
    assert Vec2.from_sequence([1, 2, 3]) == Vec2(1.0, 2.0)
    with pytest.raises(ValueError):
        Vec2.from_sequence([1])


def test_is_finite():
    assert Vec2(1.0, 2.0).is_finite()
    assert not Vec2(math.inf, 0.0).is_finite()


def test_scalar_helpers():
    assert MathUtils.clamp(1.5) == 1.0
    assert MathUtils.clamp(-3, -2, 2) == -2
    assert MathUtils.smoothstep(0.0) == 0.0
    assert MathUtils.smoothstep(0.5) == 0.5
    assert MathUtils.smoothstep(2.0) == 1.0


# =============================================================================
# Noise
# =============================================================================

def test_noise_is_zero_on_lattice():
    for x, y in [(0, 0), (3, 7), (-4, 12)]:
        assert perlin_noise_2d(float(x), float(y)) == 0.0


def test_noise_is_deterministic_and_bounded():
    coords = [(i * 0.37, j * 1.13) for i in range(30) for j in range(5)]
    first = [noise01(x, y) for x, y in coords]
    assert first == [noise01(x, y) for x, y in coords]
    assert all(0.0 <= v <= 1.0 for v in first)
    assert len(set(first)) > 10


def test_signed_noise_range():
    values = [signed_noise(i * 0.21, 1000.0) for i in range(100)]
    assert all(-1.0 <= v <= 1.0 for v in values)
    assert min(values) < 0 < max(values)
