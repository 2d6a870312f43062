import pytest

from opensway.core.decay import DecayEnvelope, decay_multiplier
from opensway.core.params import DecayShape

SHAPES = [DecayShape.LINEAR, DecayShape.SMOOTHSTEP]


@pytest.mark.parametrize("shape", SHAPES)
def test_endpoints(shape):
    assert decay_multiplier(1.0, 1.0, 2.0, shape) == 1.0
    assert decay_multiplier(3.0, 1.0, 2.0, shape) == 0.0
    assert decay_multiplier(10.0, 1.0, 2.0, shape) == 0.0


@pytest.mark.parametrize("shape", SHAPES)
def test_monotonically_non_increasing(shape):
    start, duration = 0.5, 1.5
    values = [decay_multiplier(start + duration * i / 100, start, duration, shape) for i in range(101)]
    assert all(a >= b for a, b in zip(values, values[1:]))
    assert all(0.0 <= v <= 1.0 for v in values)


@pytest.mark.parametrize("start", [0.0, -1.0])
def test_disabled_when_start_not_positive(start):
    for t in (0.0, 1.0, 100.0):
        assert decay_multiplier(t, start, 1.0) == 1.0


def test_shapes_differ_mid_fade():
    linear = decay_multiplier(1.25, 1.0, 1.0, DecayShape.LINEAR)
    smooth = decay_multiplier(1.25, 1.0, 1.0, DecayShape.SMOOTHSTEP)
    assert linear == pytest.approx(0.75)
    assert smooth == pytest.approx(1 - (3 * 0.25 ** 2 - 2 * 0.25 ** 3))
    assert decay_multiplier(1.5, 1.0, 1.0, DecayShape.SMOOTHSTEP) == pytest.approx(0.5)


def test_zero_duration_does_not_divide_by_zero():
    assert decay_multiplier(1.0, 1.0, 0.0) == 1.0
    assert decay_multiplier(1.01, 1.0, 0.0) == 0.0


def test_envelope_object():
    envelope = DecayEnvelope(start=2.0, duration=1.0, shape=DecayShape.SMOOTHSTEP)
    assert envelope.enabled
    assert envelope.end == 3.0
    assert envelope.multiplier(2.0) == 1.0
    assert envelope.multiplier(3.0) == 0.0
    assert not DecayEnvelope().enabled
