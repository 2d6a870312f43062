"""
Control Parameters - Named, bounded tunables shared by every link of a chain

Parameters arrive from the panel / CLI as a flat mapping of camelCase keys
(``amplitude``, ``chainDelay``, ...) plus a mode string. Unknown keys are
ignored and missing keys fall back to the defaults in PARAMETER_SPECS.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from .errors import InvalidParametersError

logger = logging.getLogger(__name__)

DECAY_EPSILON = 0.001


# =============================================================================
# Enums
# =============================================================================

class MotionMode(Enum):
    """Which motion model drives the chain"""
    PROCEDURAL = "procedural"
    PHYSICS = "physics"
    HYBRID = "hybrid"


class ChainFalloff(Enum):
    """Per-link amplitude multiplier, increasing toward the tip"""
    PINNED_ROOT = "pinned-root"    # index * 0.5, root does not move
    MOVING_ROOT = "moving-root"    # 1 + index * 0.3, root has baseline motion

    def multiplier(self, index: int) -> float:
        if self == ChainFalloff.MOVING_ROOT:
            return 1.0 + index * 0.3
        return index * 0.5


class DecayShape(Enum):
    """Fade-out curve of the decay envelope"""
    LINEAR = "linear"
    SMOOTHSTEP = "smoothstep"


def _parse_enum(enum_cls, value, field_name: str):
    if isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower().replace('_', '-')
    for member in enum_cls:
        if member.value == text or member.name.lower().replace('_', '-') == text:
            return member
    available = [m.value for m in enum_cls]
    raise InvalidParametersError(f"Invalid {field_name} '{value}'. Available: {available}")


# =============================================================================
# Parameter Table
# =============================================================================

@dataclass(frozen=True)
class ParameterSpec:
    """Metadata for one numeric parameter"""
    name: str            # Python attribute name
    key: str             # camelCase key used by panels and scene files
    display_name: str    # Slider name on the control layer
    default: float
    min_value: float
    max_value: float
    non_negative: bool = False
    description: str = ""


PARAMETER_SPECS = (
    ParameterSpec('amplitude', 'amplitude', 'Amplitude', 50.0, 0.0, 1000.0, True,
                  "Peak offset in pixels"),
    ParameterSpec('frequency', 'frequency', 'Frequency', 2.0, 0.0, 30.0, True,
                  "Oscillations per second"),
    ParameterSpec('phase_offset', 'phaseOffset', 'Phase Offset', 0.0, -360.0, 360.0, False,
                  "Phase in degrees"),
    ParameterSpec('chain_delay', 'chainDelay', 'Chain Delay', 0.1, 0.0, 5.0, True,
                  "Seconds of lag added per link"),
    ParameterSpec('noise_amount', 'noiseAmount', 'Noise Amount', 20.0, 0.0, 100.0, True,
                  "Noise blend in percent"),
    ParameterSpec('noise_scale', 'noiseScale', 'Noise Scale', 1.0, 0.0, 50.0, True,
                  "Noise field frequency"),
    ParameterSpec('damping', 'damping', 'Damping', 30.0, 0.0, 100.0, True,
                  "Velocity loss per physics step"),
    ParameterSpec('stiffness', 'stiffness', 'Stiffness', 50.0, 0.0, 100.0, True,
                  "Spring strength toward the parent"),
    ParameterSpec('gravity', 'gravity', 'Gravity', 0.0, -1000.0, 1000.0, False,
                  "Downward acceleration"),
    ParameterSpec('wind_direction', 'windDirection', 'Wind Direction', 0.0, -360.0, 360.0, False,
                  "Wind heading in degrees"),
    ParameterSpec('wind_strength', 'windStrength', 'Wind Strength', 0.0, 0.0, 1000.0, True,
                  "Wind offset in pixels"),
    ParameterSpec('physics_blend', 'physicsBlend', 'Physics Blend', 0.0, 0.0, 100.0, True,
                  "Hybrid mix in percent (0 = procedural, 100 = physics)"),
    ParameterSpec('decay_start', 'decayStart', 'Decay Start', 0.0, 0.0, 86400.0, False,
                  "Seconds before the fade-out begins (0 disables decay)"),
    ParameterSpec('decay_duration', 'decayDuration', 'Decay Duration', 1.0, DECAY_EPSILON, 86400.0, False,
                  "Seconds the fade-out lasts"),
)

SPECS_BY_NAME: Dict[str, ParameterSpec] = {spec.name: spec for spec in PARAMETER_SPECS}
SPECS_BY_KEY: Dict[str, ParameterSpec] = {spec.key: spec for spec in PARAMETER_SPECS}


def _lookup_spec(key: str) -> Optional[ParameterSpec]:
    return SPECS_BY_KEY.get(key) or SPECS_BY_NAME.get(key)


# =============================================================================
# Parameter Set
# =============================================================================

@dataclass(frozen=True)
class ControlParameterSet:
    """
    Validated, read-only parameters for one applied chain.

    Build instances with ``from_dict`` (or ``with_overrides``) so values are
    checked; constructing directly bypasses validation.
    """
    amplitude: float = 50.0
    frequency: float = 2.0
    phase_offset: float = 0.0
    chain_delay: float = 0.1
    noise_amount: float = 20.0
    noise_scale: float = 1.0
    damping: float = 30.0
    stiffness: float = 50.0
    gravity: float = 0.0
    wind_direction: float = 0.0
    wind_strength: float = 0.0
    physics_blend: float = 0.0
    decay_start: float = 0.0
    decay_duration: float = 1.0

    mode: MotionMode = MotionMode.PROCEDURAL
    enabled: bool = True

    # Variant selectors for the two observed topologies
    chain_falloff: ChainFalloff = ChainFalloff.PINNED_ROOT
    decay_shape: Optional[DecayShape] = None  # None = per-mode default

    @property
    def phase_radians(self) -> float:
        return math.radians(self.phase_offset)

    @property
    def wind_radians(self) -> float:
        return math.radians(self.wind_direction)

    @property
    def noise_fraction(self) -> float:
        return self.noise_amount / 100.0

    @property
    def blend_fraction(self) -> float:
        return min(1.0, max(0.0, self.physics_blend / 100.0))

    def effective_decay_shape(self, mode: Optional[MotionMode] = None) -> DecayShape:
        if self.decay_shape is not None:
            return self.decay_shape
        mode = mode or self.mode
        if mode == MotionMode.PROCEDURAL:
            return DecayShape.LINEAR
        return DecayShape.SMOOTHSTEP

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]] = None) -> 'ControlParameterSet':
        """
        Validate a flat key -> value mapping.

        Raises:
            InvalidParametersError: non-numeric, non-finite or negative-where-
                not-allowed values, or an unknown mode.
        """
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise InvalidParametersError("Invalid parameters: expected a mapping")

        values: Dict[str, Any] = {}
        for key, raw in data.items():
            spec = _lookup_spec(key)
            if spec is None:
                continue
            values[spec.name] = _validate_number(spec, raw)

        if 'mode' in data and data['mode'] is not None:
            values['mode'] = _parse_enum(MotionMode, data['mode'], 'mode')
        if 'enabled' in data and data['enabled'] is not None:
            values['enabled'] = _parse_bool(data['enabled'])
        falloff = data.get('chainFalloff', data.get('chain_falloff'))
        if falloff is not None:
            values['chain_falloff'] = _parse_enum(ChainFalloff, falloff, 'chain falloff')
        shape = data.get('decayShape', data.get('decay_shape'))
        if shape is not None:
            values['decay_shape'] = _parse_enum(DecayShape, shape, 'decay shape')

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """camelCase mapping that round-trips through ``from_dict``"""
        result: Dict[str, Any] = {}
        for spec in PARAMETER_SPECS:
            result[spec.key] = getattr(self, spec.name)
        result['mode'] = self.mode.value
        result['enabled'] = self.enabled
        result['chainFalloff'] = self.chain_falloff.value
        if self.decay_shape is not None:
            result['decayShape'] = self.decay_shape.value
        return result

    def with_overrides(self, overrides: Optional[Mapping[str, Any]] = None, **kwargs) -> 'ControlParameterSet':
        """Validated copy with some values replaced"""
        merged = self.to_dict()
        for key, value in {**(overrides or {}), **kwargs}.items():
            spec = _lookup_spec(key)
            if spec is not None:
                key = spec.key
            merged[_ENUM_KEYS.get(key, key)] = value
        return ControlParameterSet.from_dict(merged)

    def display_values(self) -> Dict[str, float]:
        """Slider name -> value, as shown on a control layer"""
        return {spec.display_name: getattr(self, spec.name) for spec in PARAMETER_SPECS}


_ENUM_KEYS = {'chain_falloff': 'chainFalloff', 'decay_shape': 'decayShape'}


def default_parameters() -> ControlParameterSet:
    return ControlParameterSet()


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ('1', 'true', 'yes', 'on'):
            return True
        if text in ('0', 'false', 'no', 'off'):
            return False
        raise InvalidParametersError(f"Invalid boolean '{value}'")
    return bool(value)


def _validate_number(spec: ParameterSpec, raw: Any) -> float:
    if isinstance(raw, bool):
        raise InvalidParametersError(f"Invalid value for {spec.key}: {raw!r}")
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidParametersError(f"Invalid value for {spec.key}: {raw!r}")

    if not math.isfinite(value):
        raise InvalidParametersError(f"{spec.key} must be finite, got {raw!r}")
    if spec.non_negative and value < 0:
        raise InvalidParametersError(f"{spec.key} must be non-negative, got {value}")

    if spec.name == 'decay_duration' and value <= 0:
        logger.debug("decayDuration %s clamped to %s", value, DECAY_EPSILON)
        return DECAY_EPSILON

    if value > spec.max_value or value < spec.min_value:
        clamped = min(spec.max_value, max(spec.min_value, value))
        logger.debug("%s %s clamped to %s", spec.key, value, clamped)
        value = clamped
    return value
