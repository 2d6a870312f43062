"""
Orchestrator - Runs user commands against a host document

Each command reads the current pin selection, does its work through the
host interface and reports a CommandResult. Expected failures (too few pins,
nothing selected, invalid parameters, rejected writes) are turned into a
result with an error kind; anything else propagates.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .core.baker import Baker, TrajectorySample
from .core.chain import AnchorPoint, ChainBuilder, RootStrategy
from .core.errors import (
    BindingError,
    ErrorKind,
    MissingRigStructureError,
    NoSelectionError,
    OpenSwayError,
)
from .core.live import LiveBinding
from .core.params import ControlParameterSet

logger = logging.getLogger(__name__)

CONTROL_PREFIX = "OpenSway_"
CONTROL_BASE_NAME = CONTROL_PREFIX + "Control"

ParamsLike = Union[ControlParameterSet, Mapping[str, Any], None]

_PAST_TENSE = {"apply": "Applied to", "remove": "Removed sway from", "bake": "Baked"}


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class PinSelection:
    """The selected pins of one rigged layer"""
    layer: str
    pins: Tuple[AnchorPoint, ...]

    @property
    def names(self) -> List[str]:
        return [p.name for p in self.pins]


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a user command"""
    command: str
    links: int = 0
    error: Optional[ErrorKind] = None
    message: str = ""
    control_name: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(cls, command: str, error: OpenSwayError, links: int = 0, control_name: str = None) -> 'CommandResult':
        return cls(command, links, error.kind, error.message, control_name)


# =============================================================================
# Orchestrator
# =============================================================================

class Orchestrator:
    """
    Applies, removes and bakes sway motion on a host document.

    Usage:
        orchestrator = Orchestrator(document)
        result = orchestrator.apply({'amplitude': 30, 'mode': 'hybrid'})
        if not result.ok:
            print(result.message)
    """

    def __init__(self, document, root_strategy: RootStrategy = RootStrategy.TOPMOST):
        self.document = document
        self.builder = ChainBuilder(RootStrategy.parse(root_strategy))

    # --- Selection ---------------------------------------------------------

    def _rigged_layer(self) -> Tuple[str, List[AnchorPoint]]:
        layer = self.document.selected_layer()
        if layer is None:
            raise NoSelectionError("Please select a layer with puppet pins.")
        pins = self.document.puppet_pins(layer)
        if pins is None:
            raise MissingRigStructureError(f"Layer '{layer}' has no puppet pins.")
        return layer, pins

    def current_selection(self) -> PinSelection:
        """Selected pins of the selected layer, in document order"""
        layer, pins = self._rigged_layer()
        return PinSelection(layer, tuple(p for p in pins if p.selected))

    def list_pins(self) -> List[AnchorPoint]:
        """Every pin on the selected layer, selected or not"""
        _, pins = self._rigged_layer()
        return list(pins)

    # --- Control layers ----------------------------------------------------

    def unique_control_name(self) -> str:
        name = CONTROL_BASE_NAME
        counter = 2
        while self.document.has_layer(name):
            name = f"{CONTROL_BASE_NAME}_{counter}"
            counter += 1
        return name

    def prune_controls(self) -> List[str]:
        """Remove control layers that no binding references any more"""
        referenced = {b.control_name for b in self.document.bindings()}
        removed = []
        for name in self.document.control_layers():
            if name.startswith(CONTROL_PREFIX) and name not in referenced:
                self.document.remove_control_layer(name)
                removed.append(name)
        if removed:
            logger.info("Removed unused control layers: %s", ", ".join(removed))
        return removed

    # --- Commands ----------------------------------------------------------

    def apply(self, params: ParamsLike = None, selection: Optional[PinSelection] = None) -> CommandResult:
        """Build a chain from the selected pins and bind each of them"""
        try:
            params = self._params(params)
            selection = selection or self.current_selection()
            chain = self.builder.build(selection.pins)
        except OpenSwayError as e:
            return CommandResult.failure('apply', e)
        return self._bind_chain('apply', selection.layer, chain, params)

    def apply_with_order(
        self,
        params: ParamsLike,
        order: Sequence[str],
        selection: Optional[PinSelection] = None,
    ) -> CommandResult:
        """Bind the named pins as a chain in exactly the given order"""
        try:
            params = self._params(params)
            if selection is None:
                layer, pins = self._rigged_layer()
                selection = PinSelection(layer, tuple(pins))
            chain = self.builder.from_order(selection.pins, order)
        except OpenSwayError as e:
            return CommandResult.failure('apply', e)
        return self._bind_chain('apply', selection.layer, chain, params)

    def remove(self, selection: Optional[PinSelection] = None) -> CommandResult:
        """Detach bindings from the selected pins"""
        try:
            selection = self._require_pins(selection)
        except OpenSwayError as e:
            return CommandResult.failure('remove', e)

        removed = 0
        try:
            for name in selection.names:
                if self.document.unbind(selection.layer, name) is not None:
                    removed += 1
        except BindingError as e:
            return self._partial('remove', removed, len(selection.pins), e)

        self.prune_controls()
        logger.info("Removed sway from %d pins", removed)
        return CommandResult('remove', removed, message=f"Removed sway from {removed} pins.")

    def bake(self, selection: Optional[PinSelection] = None) -> CommandResult:
        """Replace live bindings on the selected pins with keyframes"""
        try:
            selection = self._require_pins(selection)
            baker = Baker.for_document(self.document)
        except OpenSwayError as e:
            return CommandResult.failure('bake', e)

        baked = 0
        try:
            for name in selection.names:
                if baker.bake_link(self.document, selection.layer, name) is not None:
                    baked += 1
        except BindingError as e:
            return self._partial('bake', baked, len(selection.pins), e)

        self.prune_controls()
        logger.info("Baked %d pins", baked)
        return CommandResult('bake', baked, message=f"Baked {baked} pins to keyframes.")

    def preview(self, selection: Optional[PinSelection] = None) -> Dict[str, List[TrajectorySample]]:
        """Sample every pin on the selected layer without changing the document"""
        if selection is None:
            layer, pins = self._rigged_layer()
            selection = PinSelection(layer, tuple(pins))
        baker = Baker.for_document(self.document)
        return {
            name: baker.sample(lambda t, name=name: self.document.value_at(selection.layer, name, t))
            for name in selection.names
        }

    # --- Helpers -----------------------------------------------------------

    @staticmethod
    def _params(params: ParamsLike) -> ControlParameterSet:
        if isinstance(params, ControlParameterSet):
            return params
        return ControlParameterSet.from_dict(params)

    def _require_pins(self, selection: Optional[PinSelection]) -> PinSelection:
        selection = selection or self.current_selection()
        if not selection.pins:
            raise NoSelectionError("Please select puppet pins.")
        return selection

    def _bind_chain(self, command: str, layer: str, chain, params: ControlParameterSet) -> CommandResult:
        control_name = self.unique_control_name()
        try:
            self.document.add_control_layer(control_name, params)
        except BindingError as e:
            return CommandResult.failure(command, e)

        bound = 0
        try:
            for link in chain:
                self.document.bind(layer, link.name, LiveBinding(control_name, chain, link.index))
                bound += 1
        except BindingError as e:
            return self._partial(command, bound, len(chain), e, control_name)

        self.prune_controls()
        logger.info("Applied %s sway to %d pins via %s", params.mode.value, bound, control_name)
        return CommandResult(
            command, bound,
            message=f"Applied {params.mode.value} sway to {bound} pins.",
            control_name=control_name,
        )

    def _partial(
        self,
        command: str,
        done: int,
        total: int,
        error: BindingError,
        control_name: Optional[str] = None,
    ) -> CommandResult:
        """Report a command that stopped on a rejected write after changing `done` pins"""
        logger.warning("%s stopped after %d of %d pins: %s", command.capitalize(), done, total, error.message)
        self.prune_controls()
        verb = _PAST_TENSE.get(command, command)
        return CommandResult(
            command, done, ErrorKind.BINDING_FAILURE,
            f"{verb} {done} of {total} pins: {error.message}", control_name,
        )
