"""
OpenSway - Core Engine
"""

from .utils import Vec2, MathUtils
from .noise import perlin_noise_2d, noise01, signed_noise
from .errors import (
    ErrorKind,
    OpenSwayError,
    InsufficientPinsError,
    NoSelectionError,
    MissingRigStructureError,
    InvalidParametersError,
    BindingError,
)
from .chain import (
    AnchorPoint, ChainLink, Chain,
    RootStrategy, ChainBuilder,
    ROOT_TIE_TOLERANCE, MIN_CHAIN_PINS,
)
from .params import (
    MotionMode, ChainFalloff, DecayShape,
    ParameterSpec, PARAMETER_SPECS,
    ControlParameterSet, default_parameters,
    DECAY_EPSILON,
)
from .presets import (
    SwayPreset, PresetManager, BUILTIN_PRESETS,
    get_preset_manager, get_preset, list_presets,
)
from .decay import DecayEnvelope, decay_multiplier
from .physics import ChainSimulator, MAX_PHYSICS_FRAMES, DEFAULT_FRAME_RATE
from .motion import (
    procedural_offset, physics_offset, hybrid_offset,
    evaluate, MotionModel,
)
from .live import LiveBinding
from .baker import Baker, TrajectorySample
from .exporter import TrajectoryExporter

__all__ = [
    # Utilities
    'Vec2', 'MathUtils',
    'perlin_noise_2d', 'noise01', 'signed_noise',
    # Errors
    'ErrorKind', 'OpenSwayError', 'InsufficientPinsError', 'NoSelectionError',
    'MissingRigStructureError', 'InvalidParametersError', 'BindingError',
    # Chain
    'AnchorPoint', 'ChainLink', 'Chain', 'RootStrategy', 'ChainBuilder',
    'ROOT_TIE_TOLERANCE', 'MIN_CHAIN_PINS',
    # Parameters
    'MotionMode', 'ChainFalloff', 'DecayShape', 'ParameterSpec', 'PARAMETER_SPECS',
    'ControlParameterSet', 'default_parameters', 'DECAY_EPSILON',
    # Presets
    'SwayPreset', 'PresetManager', 'BUILTIN_PRESETS',
    'get_preset_manager', 'get_preset', 'list_presets',
    # Motion
    'DecayEnvelope', 'decay_multiplier',
    'ChainSimulator', 'MAX_PHYSICS_FRAMES', 'DEFAULT_FRAME_RATE',
    'procedural_offset', 'physics_offset', 'hybrid_offset', 'evaluate', 'MotionModel',
    # Binding and baking
    'LiveBinding', 'Baker', 'TrajectorySample', 'TrajectoryExporter',
]
