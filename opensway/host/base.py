"""
Host Document - What OpenSway needs from the document it animates

The engine never reaches into a host's object model directly. A host (an
animation package, a scene file, a test double) implements this interface.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from ..core.chain import AnchorPoint
from ..core.live import LiveBinding
from ..core.params import ControlParameterSet
from ..core.utils import Vec2


class HostDocument(ABC):
    """Abstract host document"""

    # --- Timeline metadata -------------------------------------------------

    @property
    @abstractmethod
    def frame_rate(self) -> float:
        """Frames per second"""

    @property
    @abstractmethod
    def duration(self) -> float:
        """Total duration in seconds"""

    # --- Pin source --------------------------------------------------------

    @abstractmethod
    def selected_layer(self) -> Optional[str]:
        """Name of the selected layer, or None"""

    @abstractmethod
    def puppet_pins(self, layer: str) -> Optional[List[AnchorPoint]]:
        """All pins of the layer's rig, or None if the layer has no rig"""

    # --- Control layers ----------------------------------------------------

    @abstractmethod
    def has_layer(self, name: str) -> bool:
        pass

    @abstractmethod
    def add_control_layer(self, name: str, params: ControlParameterSet) -> None:
        """Create a control layer. Raises BindingError on a name collision."""

    @abstractmethod
    def control_params(self, name: str) -> Optional[ControlParameterSet]:
        pass

    @abstractmethod
    def remove_control_layer(self, name: str) -> bool:
        pass

    @abstractmethod
    def control_layers(self) -> List[str]:
        pass

    # --- Value sink --------------------------------------------------------

    @abstractmethod
    def binding(self, layer: str, pin: str) -> Optional[LiveBinding]:
        pass

    @abstractmethod
    def bind(self, layer: str, pin: str, binding: LiveBinding) -> None:
        """Attach a live binding. Raises BindingError if the write is rejected."""

    @abstractmethod
    def unbind(self, layer: str, pin: str) -> Optional[LiveBinding]:
        """Detach and return the binding, if any"""

    @abstractmethod
    def base_value_at(self, layer: str, pin: str, t: float) -> Vec2:
        """The property's value at ``t`` ignoring any binding"""

    @abstractmethod
    def set_keyframes(self, layer: str, pin: str, samples: Sequence) -> None:
        """Write discrete (time, value) samples as keyframes"""

    # --- Shared behaviour --------------------------------------------------

    def value_at(self, layer: str, pin: str, t: float) -> Vec2:
        """The property's value at ``t`` including its binding"""
        base = self.base_value_at(layer, pin, t)
        binding = self.binding(layer, pin)
        if binding is None:
            return base
        return binding.evaluate(self, t, base)

    def bindings(self) -> List[LiveBinding]:
        """Every live binding in the document"""
        result = []
        for layer in self.layer_names():
            for pin in self.puppet_pins(layer) or []:
                binding = self.binding(layer, pin.name)
                if binding is not None:
                    result.append(binding)
        return result

    @abstractmethod
    def layer_names(self) -> List[str]:
        pass
