"""
In-Memory Composition - A self-contained host document

Holds layers, puppet pins and control layers in plain Python objects and
round-trips them through YAML or JSON scene files. Used by the command line
tool and by the test suite.
"""

import bisect
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from ..core.chain import AnchorPoint
from ..core.errors import BindingError, MissingRigStructureError
from ..core.live import LiveBinding
from ..core.params import ControlParameterSet
from ..core.utils import Vec2
from .base import HostDocument

logger = logging.getLogger(__name__)

KEYFRAME_TIME_DIGITS = 9


# =============================================================================
# Scene Objects
# =============================================================================

@dataclass
class PinProperty:
    """A puppet pin's position property"""
    name: str
    position: Vec2
    selected: bool = False
    keyframes: List[tuple] = field(default_factory=list)  # sorted (time, Vec2)
    binding: Optional[LiveBinding] = None

    def base_value_at(self, t: float) -> Vec2:
        """Keyframed value with linear interpolation, held past either end"""
        if not self.keyframes:
            return self.position
        times = [k[0] for k in self.keyframes]
        i = bisect.bisect_right(times, t)
        if i == 0:
            return self.keyframes[0][1]
        if i == len(self.keyframes):
            return self.keyframes[-1][1]
        t0, v0 = self.keyframes[i - 1]
        t1, v1 = self.keyframes[i]
        if t1 == t0:
            return v1
        return v0.lerp(v1, (t - t0) / (t1 - t0))

    def set_keyframes(self, samples: Sequence) -> None:
        """Merge samples in, replacing keyframes at the same time"""
        merged = {round(t, KEYFRAME_TIME_DIGITS): (t, v) for t, v in self.keyframes}
        for sample in samples:
            merged[round(sample.time, KEYFRAME_TIME_DIGITS)] = (sample.time, sample.value)
        self.keyframes = sorted(merged.values(), key=lambda k: k[0])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name, 'position': self.position.to_list()}
        if self.selected:
            data['selected'] = True
        if self.keyframes:
            data['keyframes'] = [[t, v.to_list()] for t, v in self.keyframes]
        if self.binding is not None:
            data['binding'] = self.binding.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PinProperty':
        keyframes = sorted(
            ((float(t), Vec2.from_sequence(v)) for t, v in data.get('keyframes', [])),
            key=lambda k: k[0],
        )
        binding = data.get('binding')
        return cls(
            name=str(data['name']),
            position=Vec2.from_sequence(data.get('position', (0.0, 0.0))),
            selected=bool(data.get('selected', False)),
            keyframes=keyframes,
            binding=LiveBinding.from_dict(binding) if binding else None,
        )


@dataclass
class Layer:
    """
    A layer in the composition.

    A layer with ``pins`` carries a puppet rig; a layer with ``controls`` is
    a control layer holding sway parameters.
    """
    name: str
    selected: bool = False
    pins: Optional[Dict[str, PinProperty]] = None
    controls: Optional[ControlParameterSet] = None

    @property
    def has_rig(self) -> bool:
        return self.pins is not None

    @property
    def is_control(self) -> bool:
        return self.controls is not None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {'name': self.name}
        if self.selected:
            data['selected'] = True
        if self.pins is not None:
            data['puppet'] = {'pins': [pin.to_dict() for pin in self.pins.values()]}
        if self.controls is not None:
            data['control'] = self.controls.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Layer':
        pins = None
        if 'puppet' in data:
            puppet = data['puppet'] or {}
            pins = {}
            for pin_data in puppet.get('pins', []):
                pin = PinProperty.from_dict(pin_data)
                pins[pin.name] = pin
        controls = None
        if 'control' in data:
            controls = ControlParameterSet.from_dict(data['control'] or {})
        return cls(
            name=str(data['name']),
            selected=bool(data.get('selected', False)),
            pins=pins,
            controls=controls,
        )


# =============================================================================
# Composition
# =============================================================================

class Composition(HostDocument):
    """In-memory host document"""

    def __init__(
        self,
        name: str = "Comp 1",
        frame_rate: float = 24.0,
        duration: float = 5.0,
        time: float = 0.0,
    ):
        self.name = name
        self._frame_rate = float(frame_rate)
        self._duration = float(duration)
        self.time = float(time)
        self.layers: Dict[str, Layer] = {}

    @property
    def frame_rate(self) -> float:
        return self._frame_rate

    @property
    def duration(self) -> float:
        return self._duration

    # --- Building ----------------------------------------------------------

    def add_layer(self, layer: Layer) -> Layer:
        if layer.name in self.layers:
            raise ValueError(f"Layer '{layer.name}' already exists")
        self.layers[layer.name] = layer
        return layer

    def add_puppet_layer(self, name: str, pins: Sequence, selected: bool = True) -> Layer:
        """
        Add a rigged layer.

        Args:
            name: Layer name
            pins: (name, (x, y)) pairs or PinProperty objects
            selected: Whether the layer is selected
        """
        properties = {}
        for pin in pins:
            if not isinstance(pin, PinProperty):
                pin_name, position = pin
                pin = PinProperty(pin_name, Vec2.from_sequence(position))
            properties[pin.name] = pin
        return self.add_layer(Layer(name, selected=selected, pins=properties))

    def select_pins(self, layer: str, names: Optional[Sequence[str]] = None) -> None:
        """Select the named pins (all pins if ``names`` is None) and the layer"""
        target = self.layers[layer]
        for other in self.layers.values():
            other.selected = other is target
        for pin in (target.pins or {}).values():
            pin.selected = names is None or pin.name in names

    def pin(self, layer: str, pin: str) -> PinProperty:
        target = self.layers.get(layer)
        if target is None or target.pins is None:
            raise MissingRigStructureError(f"Layer '{layer}' has no puppet pins.")
        if pin not in target.pins:
            raise BindingError(f"Pin '{pin}' not found on layer '{layer}'.")
        return target.pins[pin]

    # --- Pin source --------------------------------------------------------

    def layer_names(self) -> List[str]:
        return list(self.layers)

    def selected_layer(self) -> Optional[str]:
        for layer in self.layers.values():
            if layer.selected:
                return layer.name
        return None

    def puppet_pins(self, layer: str) -> Optional[List[AnchorPoint]]:
        target = self.layers.get(layer)
        if target is None or target.pins is None:
            return None
        return [
            AnchorPoint(pin.name, pin.base_value_at(self.time), pin.selected)
            for pin in target.pins.values()
        ]

    # --- Control layers ----------------------------------------------------

    def has_layer(self, name: str) -> bool:
        return name in self.layers

    def add_control_layer(self, name: str, params: ControlParameterSet) -> None:
        if name in self.layers:
            raise BindingError(f"A layer named '{name}' already exists.")
        self.layers[name] = Layer(name, controls=params)

    def control_params(self, name: str) -> Optional[ControlParameterSet]:
        layer = self.layers.get(name)
        return layer.controls if layer is not None else None

    def set_control_params(self, name: str, params: ControlParameterSet) -> None:
        layer = self.layers.get(name)
        if layer is None or not layer.is_control:
            raise KeyError(name)
        layer.controls = params

    def remove_control_layer(self, name: str) -> bool:
        layer = self.layers.get(name)
        if layer is None or not layer.is_control:
            return False
        del self.layers[name]
        return True

    def control_layers(self) -> List[str]:
        return [layer.name for layer in self.layers.values() if layer.is_control]

    # --- Value sink --------------------------------------------------------

    def binding(self, layer: str, pin: str) -> Optional[LiveBinding]:
        return self.pin(layer, pin).binding

    def bind(self, layer: str, pin: str, binding: LiveBinding) -> None:
        self.pin(layer, pin).binding = binding

    def unbind(self, layer: str, pin: str) -> Optional[LiveBinding]:
        prop = self.pin(layer, pin)
        binding, prop.binding = prop.binding, None
        return binding

    def base_value_at(self, layer: str, pin: str, t: float) -> Vec2:
        return self.pin(layer, pin).base_value_at(t)

    def set_keyframes(self, layer: str, pin: str, samples: Sequence) -> None:
        self.pin(layer, pin).set_keyframes(samples)

    # --- Serialization -----------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            'composition': {
                'name': self.name,
                'frameRate': self.frame_rate,
                'duration': self.duration,
                'time': self.time,
            },
            'layers': [layer.to_dict() for layer in self.layers.values()],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Composition':
        meta = data.get('composition', {}) or {}
        comp = cls(
            name=meta.get('name', "Comp 1"),
            frame_rate=meta.get('frameRate', 24.0),
            duration=meta.get('duration', 5.0),
            time=meta.get('time', 0.0),
        )
        for layer_data in data.get('layers', []) or []:
            comp.add_layer(Layer.from_dict(layer_data))
        return comp

    @classmethod
    def load(cls, path: str | Path) -> 'Composition':
        """Load a scene from a .yaml/.yml or .json file"""
        path = Path(path)
        with open(path, 'r') as f:
            if path.suffix.lower() == '.json':
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Scene file '{path}' does not contain a mapping")
        logger.debug("Loaded scene %s", path)
        return cls.from_dict(data)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            if path.suffix.lower() == '.json':
                json.dump(self.to_dict(), f, indent=2)
            else:
                yaml.safe_dump(self.to_dict(), f, default_flow_style=None, sort_keys=False)
        logger.debug("Saved scene %s", path)
        return path
