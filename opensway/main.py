#!/usr/bin/env python
"""
OpenSway CLI - Secondary motion for chains of puppet pins

Usage:
    opensway <command> <scene> [options]

Examples:
    opensway pins scene.yaml                          # List pins on the selected layer
    opensway apply scene.yaml --preset hair           # Apply a preset to the selected pins
    opensway apply scene.yaml --mode hybrid --set physicsBlend=60
    opensway apply scene.yaml --order "Pin 3,Pin 1,Pin 2"
    opensway bake scene.yaml                          # Replace live sway with keyframes
    opensway export scene.yaml --format gif -o sway.gif
    opensway presets --info rope
"""

import argparse
import logging
import sys
from pathlib import Path

from .core.chain import RootStrategy
from .core.errors import OpenSwayError
from .core.exporter import TrajectoryExporter
from .core.params import ControlParameterSet, MotionMode, PARAMETER_SPECS
from .core.presets import PresetManager
from .host.memory import Composition
from .orchestrator import Orchestrator

logger = logging.getLogger(__name__)

EXPORT_FORMATS = ['json', 'csv', 'png', 'gif']


def _parse_assignments(items) -> dict:
    """Turn ['amplitude=30', 'mode=hybrid'] into a mapping"""
    overrides = {}
    for item in items or []:
        if '=' not in item:
            raise ValueError(f"Expected key=value, got '{item}'")
        key, value = item.split('=', 1)
        overrides[key.strip()] = value.strip()
    return overrides


def _build_parser() -> argparse.ArgumentParser:
    parameter_help = "\n".join(
        f"  {spec.key:<15} {spec.description} (default: {spec.default:g})"
        for spec in PARAMETER_SPECS
    )
    parser = argparse.ArgumentParser(
        prog='opensway',
        description="Secondary motion for chains of puppet pins",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Parameters (use with --set key=value):
{parameter_help}

Modes:
  procedural - Sine, noise and wind, staggered along the chain
  physics    - Spring-damper chain simulation
  hybrid     - Blend of both, added on top of existing animation
        """
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Show debug logging'
    )

    parser.add_argument(
        '--presets-dir',
        type=str,
        default=None,
        metavar='DIR',
        help='User preset directory (default: ~/.opensway/presets)'
    )

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    # === PINS ===
    pins = commands.add_parser('pins', help='List puppet pins on the selected layer')
    pins.add_argument('scene', type=str, help='Scene file (YAML or JSON)')

    # === APPLY ===
    apply = commands.add_parser('apply', help='Apply live sway to the selected pins')
    apply.add_argument('scene', type=str, help='Scene file (YAML or JSON)')
    apply.add_argument(
        '-p', '--preset',
        type=str,
        default=None,
        metavar='NAME',
        help='Start from a preset (e.g. hair, rope, cloth, tail)'
    )
    apply.add_argument(
        '-m', '--mode',
        type=str,
        default=None,
        choices=[m.value for m in MotionMode],
        help='Motion mode'
    )
    apply.add_argument(
        '--set',
        dest='assignments',
        action='append',
        default=[],
        metavar='KEY=VALUE',
        help='Override a parameter (repeatable)'
    )
    apply.add_argument(
        '--order',
        type=str,
        default=None,
        metavar='NAMES',
        help='Comma-separated pin names, root first, instead of automatic ordering'
    )
    apply.add_argument(
        '--root',
        type=str,
        default=RootStrategy.TOPMOST.value,
        choices=[r.value for r in RootStrategy],
        help='How the chain root is chosen (default: topmost)'
    )
    apply.add_argument('-o', '--output', type=str, default=None, help='Save to this path instead')

    # === REMOVE ===
    remove = commands.add_parser('remove', help='Remove live sway from the selected pins')
    remove.add_argument('scene', type=str, help='Scene file (YAML or JSON)')
    remove.add_argument('-o', '--output', type=str, default=None, help='Save to this path instead')

    # === BAKE ===
    bake = commands.add_parser('bake', help='Bake live sway on the selected pins to keyframes')
    bake.add_argument('scene', type=str, help='Scene file (YAML or JSON)')
    bake.add_argument('-o', '--output', type=str, default=None, help='Save to this path instead')

    # === EXPORT ===
    export = commands.add_parser('export', help='Sample pin trajectories and export them')
    export.add_argument('scene', type=str, help='Scene file (YAML or JSON)')
    export.add_argument(
        '-f', '--format',
        type=str,
        default='json',
        choices=EXPORT_FORMATS,
        help='Output format (default: json)'
    )
    export.add_argument('-o', '--output', type=str, required=True, help='Output path')

    # === PRESETS ===
    presets = commands.add_parser('presets', help='List presets')
    presets.add_argument(
        '--info',
        type=str,
        default=None,
        metavar='NAME',
        help='Show detailed info about a preset'
    )

    return parser


def _resolve_params(args, manager: PresetManager) -> ControlParameterSet:
    params = ControlParameterSet()
    if args.preset:
        params = manager.get_params(args.preset)
        if params is None:
            raise ValueError(f"Preset '{args.preset}' not found")
    overrides = _parse_assignments(args.assignments)
    if args.mode:
        overrides['mode'] = args.mode
    if overrides:
        params = params.with_overrides(overrides)
    return params


def _report(result) -> int:
    if not result.ok:
        print(f"Error: {result.message}")
        return 1
    print(result.message)
    return 0


def _cmd_presets(args, manager: PresetManager) -> int:
    if args.info:
        info = manager.get_preset_info(args.info)
        if not info:
            print(f"Error: Preset '{args.info}' not found")
            print("Use 'opensway presets' to see available presets")
            return 1

        print(f"Preset: {info['name']}")
        if info['description']:
            print(f"Description: {info['description']}")
        print(f"Source: {'user' if info['is_user'] else 'built-in'}")
        print("\nSettings:")
        for key, value in info['parameters'].items():
            print(f"  {key}: {value}")
        if info['tags']:
            print(f"\nTags: {', '.join(info['tags'])}")
        return 0

    print("Available Sway Presets:\n")
    for name in manager.list_all():
        preset = manager.get(name)
        desc = preset.description[:50] + "..." if len(preset.description) > 50 else preset.description
        marker = "" if manager.is_builtin(name) else " (user)"
        print(f"  {name:<12} - {desc}{marker}")
    print(f"\nTotal: {len(manager.list_all())} presets")
    print("Details: opensway presets --info <name>")
    return 0


def _cmd_pins(comp: Composition) -> int:
    orchestrator = Orchestrator(comp)
    pins = orchestrator.list_pins()
    layer = comp.selected_layer()
    print(f"Layer: {layer} ({len(pins)} pins)")
    for pin in pins:
        marker = "*" if pin.selected else " "
        bound = comp.binding(layer, pin.name)
        suffix = f"  -> {bound.control_name}" if bound else ""
        print(f" {marker} {pin.name:<16} ({pin.position.x:.1f}, {pin.position.y:.1f}){suffix}")
    return 0


def _cmd_export(args, comp: Composition) -> int:
    trajectories = Orchestrator(comp).preview()
    output = Path(args.output)

    if args.format == 'json':
        TrajectoryExporter.to_json(trajectories, output, frame_rate=comp.frame_rate)
    elif args.format == 'csv':
        TrajectoryExporter.to_csv(trajectories, output)
    elif args.format == 'png':
        TrajectoryExporter.to_png(trajectories, output)
    elif args.format == 'gif':
        TrajectoryExporter.to_gif(trajectories, output, frame_rate=comp.frame_rate)

    frames = max(len(s) for s in trajectories.values())
    print(f"Exported {len(trajectories)} pins x {frames} frames to {output}")
    return 0


def run(argv=None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s'
    )

    manager = PresetManager(Path(args.presets_dir) if args.presets_dir else None)

    if args.command == 'presets':
        return _cmd_presets(args, manager)

    scene = Path(args.scene)
    if not scene.exists():
        print(f"Error: Scene file not found: {scene}")
        return 1

    try:
        comp = Composition.load(scene)

        if args.command == 'pins':
            return _cmd_pins(comp)
        if args.command == 'export':
            return _cmd_export(args, comp)

        orchestrator = Orchestrator(comp, RootStrategy.parse(getattr(args, 'root', 'topmost')))
        if args.command == 'apply':
            params = _resolve_params(args, manager)
            if args.order:
                order = [name.strip() for name in args.order.split(',') if name.strip()]
                result = orchestrator.apply_with_order(params, order)
            else:
                result = orchestrator.apply(params)
        elif args.command == 'remove':
            result = orchestrator.remove()
        else:
            result = orchestrator.bake()
    except (OpenSwayError, ValueError) as e:
        message = e.message if isinstance(e, OpenSwayError) else str(e)
        print(f"Error: {message}")
        return 1

    status = _report(result)
    # Partial commands still changed the scene
    if result.ok or result.links:
        output = Path(args.output) if args.output else scene
        comp.save(output)
        logger.debug("Scene written to %s", output)
    return status


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
