import pytest

from opensway.core.chain import AnchorPoint, Chain
from opensway.core.params import ControlParameterSet
from opensway.core.utils import Vec2
from opensway.host.memory import Composition

VERTICAL_PINS = [("Pin 1", (0.0, 0.0)), ("Pin 2", (0.0, 50.0)), ("Pin 3", (0.0, 100.0))]


@pytest.fixture
def vertical_chain() -> Chain:
    return Chain.from_points([AnchorPoint(name, Vec2(*pos)) for name, pos in VERTICAL_PINS])


@pytest.fixture
def sine_params() -> ControlParameterSet:
    """Procedural, noise disabled"""
    return ControlParameterSet.from_dict({
        'mode': 'procedural',
        'amplitude': 50,
        'frequency': 2,
        'chainDelay': 0.1,
        'noiseAmount': 0,
    })


@pytest.fixture
def physics_params() -> ControlParameterSet:
    return ControlParameterSet.from_dict({
        'mode': 'physics',
        'stiffness': 50,
        'damping': 30,
        'gravity': 50,
    })


@pytest.fixture
def comp() -> Composition:
    """24 fps, 2 s composition with three selected pins on 'Puppet'"""
    composition = Composition(frame_rate=24.0, duration=2.0)
    composition.add_puppet_layer("Puppet", VERTICAL_PINS)
    composition.select_pins("Puppet")
    return composition
