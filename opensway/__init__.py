"""
OpenSway - Secondary motion for chains of puppet pins
"""

from .core import (
    Vec2,
    AnchorPoint,
    Chain,
    ChainBuilder,
    RootStrategy,
    ControlParameterSet,
    MotionMode,
    MotionModel,
    Baker,
    TrajectoryExporter,
    OpenSwayError,
    get_preset_manager,
)
from .host import HostDocument, Composition
from .orchestrator import Orchestrator, CommandResult, PinSelection

__version__ = "0.1.0"
__all__ = [
    'Vec2',
    'AnchorPoint',
    'Chain',
    'ChainBuilder',
    'RootStrategy',
    'ControlParameterSet',
    'MotionMode',
    'MotionModel',
    'Baker',
    'TrajectoryExporter',
    'OpenSwayError',
    'HostDocument',
    'Composition',
    'Orchestrator',
    'CommandResult',
    'PinSelection',
    'apply_sway',
    'bake_scene',
]


def apply_sway(
    scene_path: str,
    preset: str = None,
    output_path: str = None,
    **overrides
) -> CommandResult:
    """
    Apply sway to the selected pins of a scene file and save it.

    Args:
        scene_path: YAML or JSON scene file
        preset: Preset name (defaults are used if None)
        output_path: Where to save (overwrites the input if None)
        **overrides: Parameter overrides, e.g. amplitude=30, mode='hybrid'

    Returns:
        The command result
    """
    params = ControlParameterSet()
    if preset:
        params = get_preset_manager().get_params(preset)
        if params is None:
            raise ValueError(f"Unknown preset: {preset}")
    if overrides:
        params = params.with_overrides(overrides)

    comp = Composition.load(scene_path)
    result = Orchestrator(comp).apply(params)
    if result.ok:
        comp.save(output_path or scene_path)
    return result


def bake_scene(scene_path: str, output_path: str = None) -> CommandResult:
    """Bake the selected pins of a scene file to keyframes and save it"""
    comp = Composition.load(scene_path)
    result = Orchestrator(comp).bake()
    if result.ok:
        comp.save(output_path or scene_path)
    return result
