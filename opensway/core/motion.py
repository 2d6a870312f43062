"""
Motion Model - Offset of one chain link at time t

Three variants, selected by ``params.mode``:

- PROCEDURAL: closed-form sine + coherent noise + wind, staggered along the
  chain by ``chain_delay`` and scaled toward the tip.
- PHYSICS: spring-damper chain replayed from rest (see ``physics``).
- HYBRID: both of the above, mixed by ``physics_blend``, composed on top of
  the property's existing (upstream) value instead of the rest position.

Every function here is pure: the same arguments give the same offset.
"""

import math
from typing import Union

from .chain import Chain, ChainLink
from .decay import decay_multiplier
from .noise import noise01, signed_noise
from .params import ControlParameterSet, MotionMode
from .physics import ChainSimulator, DEFAULT_FRAME_RATE
from .utils import Vec2

NOISE_SEED_STRIDE = 1000      # Noise row per link index
NOISE_Y_OFFSET = 100.0        # Separates the x and y noise samples
WIND_NOISE_RATE = 2.0
WIND_SEED_X = 500
WIND_SEED_Y = 600
SECONDARY_AXIS_SCALE = 0.3    # y sine is a smaller, phase-shifted copy of x
NOISE_Y_SCALE = 0.5

LinkRef = Union[ChainLink, int]


def _resolve(link: LinkRef, chain: Chain) -> ChainLink:
    if isinstance(link, ChainLink):
        return link
    return chain[int(link)]


# =============================================================================
# Raw (undecayed) contributions
# =============================================================================

def procedural_motion(t: float, index: int, params: ControlParameterSet) -> Vec2:
    """Procedural offset before the decay envelope"""
    tau = t - index * params.chain_delay
    angle = 2.0 * math.pi * params.frequency * tau + params.phase_radians

    sine_x = math.sin(angle)
    sine_y = math.sin(angle + math.pi / 4) * SECONDARY_AXIS_SCALE

    noise_amt = params.noise_fraction
    seed = index * NOISE_SEED_STRIDE
    if noise_amt > 0:
        noise_x = signed_noise(tau * params.noise_scale, seed)
        noise_y = signed_noise(tau * params.noise_scale + NOISE_Y_OFFSET, seed)
    else:
        noise_x = noise_y = 0.0

    motion_x = sine_x * (1 - noise_amt) + noise_x * noise_amt
    motion_y = sine_y * (1 - noise_amt) + noise_y * noise_amt * NOISE_Y_SCALE

    wind_x = wind_y = 0.0
    if params.wind_strength != 0:
        direction = params.wind_radians
        gust_x = 1 + noise01(tau * WIND_NOISE_RATE, seed + WIND_SEED_X) * 0.5
        gust_y = 1 + noise01(tau * WIND_NOISE_RATE, seed + WIND_SEED_Y) * 0.5
        wind_x = math.cos(direction) * params.wind_strength * gust_x
        wind_y = math.sin(direction) * params.wind_strength * gust_y

    chain_mult = params.chain_falloff.multiplier(index)
    return Vec2(
        (motion_x * params.amplitude + wind_x) * chain_mult,
        (motion_y * params.amplitude + wind_y) * chain_mult
    )


def physics_motion(
    t: float,
    index: int,
    params: ControlParameterSet,
    chain: Chain,
    frame_rate: float = DEFAULT_FRAME_RATE
) -> Vec2:
    """Simulated position minus rest position, before the decay envelope"""
    simulator = ChainSimulator(chain, params, frame_rate)
    positions = simulator.positions_at(t, upto=index)
    return positions[index] - chain[index].rest_position


# =============================================================================
# Mode offsets
# =============================================================================

def procedural_offset(t: float, link: LinkRef, params: ControlParameterSet, chain: Chain) -> Vec2:
    link = _resolve(link, chain)
    decay = decay_multiplier(t, params.decay_start, params.decay_duration,
                             params.effective_decay_shape(MotionMode.PROCEDURAL))
    return procedural_motion(t, link.index, params) * decay


def physics_offset(
    t: float,
    link: LinkRef,
    params: ControlParameterSet,
    chain: Chain,
    frame_rate: float = DEFAULT_FRAME_RATE
) -> Vec2:
    link = _resolve(link, chain)
    decay = decay_multiplier(t, params.decay_start, params.decay_duration,
                             params.effective_decay_shape(MotionMode.PHYSICS))
    return physics_motion(t, link.index, params, chain, frame_rate) * decay


def hybrid_offset(
    t: float,
    link: LinkRef,
    params: ControlParameterSet,
    chain: Chain,
    frame_rate: float = DEFAULT_FRAME_RATE
) -> Vec2:
    link = _resolve(link, chain)
    procedural = procedural_motion(t, link.index, params)
    physics = physics_motion(t, link.index, params, chain, frame_rate)
    combined = procedural.lerp(physics, params.blend_fraction)
    decay = decay_multiplier(t, params.decay_start, params.decay_duration,
                             params.effective_decay_shape(MotionMode.HYBRID))
    return combined * decay


def evaluate(
    t: float,
    link: LinkRef,
    params: ControlParameterSet,
    chain: Chain,
    frame_rate: float = DEFAULT_FRAME_RATE
) -> Vec2:
    """
    Offset of ``link`` at time ``t``.

    Returns the zero vector when ``params.enabled`` is False.
    """
    if not params.enabled:
        return Vec2()

    if params.mode == MotionMode.PHYSICS:
        return physics_offset(t, link, params, chain, frame_rate)
    if params.mode == MotionMode.HYBRID:
        return hybrid_offset(t, link, params, chain, frame_rate)
    return procedural_offset(t, link, params, chain)


# =============================================================================
# Per-link model
# =============================================================================

class MotionModel:
    """
    Motion of one link of a chain.

    ``value_at`` composes the offset the way a bound property sees it:
    Procedural and Physics add it to the rest position captured at bind time,
    Hybrid adds it to the property's current upstream value.
    """

    def __init__(self, chain: Chain, link_index: int, frame_rate: float = DEFAULT_FRAME_RATE):
        if not 0 <= link_index < len(chain):
            raise IndexError(f"Link index {link_index} out of range for chain of {len(chain)}")
        self.chain = chain
        self.link = chain[link_index]
        self.frame_rate = frame_rate

    def offset_at(self, t: float, params: ControlParameterSet) -> Vec2:
        return evaluate(t, self.link, params, self.chain, self.frame_rate)

    def value_at(self, t: float, params: ControlParameterSet, base_value: Vec2) -> Vec2:
        if not params.enabled:
            return base_value
        offset = self.offset_at(t, params)
        if params.mode == MotionMode.HYBRID:
            return base_value + offset
        return self.link.rest_position + offset
