import math

import pytest

from opensway.core.chain import RootStrategy
from opensway.core.errors import BindingError, ErrorKind
from opensway.core.params import ControlParameterSet
from opensway.core.utils import Vec2
from opensway.host.memory import Composition, PinProperty
from opensway.orchestrator import CONTROL_BASE_NAME, Orchestrator, PinSelection

SINE = {'mode': 'procedural', 'amplitude': 50, 'frequency': 2, 'chainDelay': 0.1, 'noiseAmount': 0}


# =============================================================================
# Apply
# =============================================================================

def test_end_to_end_three_pin_sway(comp):
    result = Orchestrator(comp).apply(SINE)
    assert result.ok
    assert result.links == 3
    assert result.control_name == CONTROL_BASE_NAME
    assert comp.control_layers() == [CONTROL_BASE_NAME]

    # Root never moves; at t=0 it sits exactly at rest
    assert comp.value_at("Puppet", "Pin 1", 0.0) == Vec2(0.0, 0.0)
    assert comp.value_at("Puppet", "Pin 1", 0.25) == Vec2(0.0, 0.0)

    # Tip at a quarter period: tau = 0.25 - 2 * 0.1
    tip = comp.value_at("Puppet", "Pin 3", 0.25)
    angle = 2 * math.pi * 2 * 0.05
    assert tip.x == pytest.approx(0.0 + 50 * math.sin(angle))
    assert tip.y == pytest.approx(100.0 + 50 * 0.3 * math.sin(angle + math.pi / 4))


def test_tip_at_time_zero_is_staggered_by_chain_delay(comp):
    Orchestrator(comp).apply(SINE)
    tip = comp.value_at("Puppet", "Pin 3", 0.0)
    angle = 2 * math.pi * 2 * -0.2
    assert tip.x == pytest.approx(50 * math.sin(angle))
    assert tip.y == pytest.approx(100.0 + 15 * math.sin(angle + math.pi / 4))


def test_phase_offset_zero_gives_rest_for_unstaggered_chain(comp):
    Orchestrator(comp).apply({**SINE, 'chainDelay': 0})
    for pin in ("Pin 1", "Pin 2", "Pin 3"):
        value = comp.value_at("Puppet", pin, 0.0)
        assert value.x == pytest.approx(comp.pin("Puppet", pin).position.x)


def test_control_layer_edits_change_live_motion(comp):
    Orchestrator(comp).apply(SINE)
    before = comp.value_at("Puppet", "Pin 3", 0.25)
    comp.set_control_params(CONTROL_BASE_NAME, ControlParameterSet.from_dict({**SINE, 'amplitude': 100}))
    after = comp.value_at("Puppet", "Pin 3", 0.25)
    assert after.x == pytest.approx(before.x * 2)


def test_hybrid_composes_on_existing_animation(comp):
    pin = comp.pin("Puppet", "Pin 3")
    pin.keyframes = [(0.0, Vec2(0.0, 100.0)), (1.0, Vec2(80.0, 100.0))]
    Orchestrator(comp).apply({**SINE, 'mode': 'hybrid'})

    binding = comp.binding("Puppet", "Pin 3")
    params = comp.control_params(binding.control_name)
    offset_value = binding.evaluate(comp, 0.5, Vec2(0.0, 0.0))
    assert comp.value_at("Puppet", "Pin 3", 0.5) == Vec2(40.0, 100.0) + offset_value

    # Procedural ignores the upstream keyframes and works from the rest position
    comp.set_control_params(binding.control_name, params.with_overrides(mode='procedural'))
    procedural = comp.value_at("Puppet", "Pin 3", 0.5)
    assert procedural == binding.link.rest_position + offset_value


def test_reapply_replaces_control_layer(comp):
    orchestrator = Orchestrator(comp)
    orchestrator.apply(SINE)
    second = orchestrator.apply({**SINE, 'amplitude': 10})
    assert second.control_name == CONTROL_BASE_NAME + "_2"
    assert comp.control_layers() == [CONTROL_BASE_NAME + "_2"]
    assert comp.binding("Puppet", "Pin 1").control_name == CONTROL_BASE_NAME + "_2"


def test_separate_chains_keep_their_controls(comp):
    comp.layers["Puppet"].pins["Pin 4"] = PinProperty("Pin 4", Vec2(200.0, 0.0))
    comp.layers["Puppet"].pins["Pin 5"] = PinProperty("Pin 5", Vec2(200.0, 60.0))
    orchestrator = Orchestrator(comp)

    comp.select_pins("Puppet", ["Pin 1", "Pin 2", "Pin 3"])
    orchestrator.apply(SINE)
    comp.select_pins("Puppet", ["Pin 4", "Pin 5"])
    result = orchestrator.apply({**SINE, 'mode': 'physics'})

    assert result.links == 2
    assert comp.control_layers() == [CONTROL_BASE_NAME, CONTROL_BASE_NAME + "_2"]


def test_unique_name_skips_unrelated_layers(comp):
    comp.add_control_layer(CONTROL_BASE_NAME, ControlParameterSet())
    comp.add_control_layer(CONTROL_BASE_NAME + "_2", ControlParameterSet())
    assert Orchestrator(comp).unique_control_name() == CONTROL_BASE_NAME + "_3"


def test_apply_with_order(comp):
    result = Orchestrator(comp).apply_with_order(SINE, ["Pin 3", "Pin 2", "Pin 1"])
    assert result.ok
    binding = comp.binding("Puppet", "Pin 3")
    assert binding.link_index == 0
    assert binding.chain.names == ["Pin 3", "Pin 2", "Pin 1"]
    # Pin 3 is now the pinned root
    assert comp.value_at("Puppet", "Pin 3", 0.4) == Vec2(0.0, 100.0)


def test_first_selected_root_strategy():
    comp = Composition(frame_rate=24.0, duration=1.0)
    comp.add_puppet_layer("Tail", [("tip", (0, 100)), ("mid", (0, 50)), ("base", (0, 0))])
    comp.select_pins("Tail")
    Orchestrator(comp, RootStrategy.FIRST_SELECTED).apply(SINE)
    assert comp.binding("Tail", "tip").link_index == 0
    assert comp.binding("Tail", "base").link_index == 2


def test_explicit_selection(comp):
    pins = tuple(p for p in comp.puppet_pins("Puppet") if p.name != "Pin 2")
    result = Orchestrator(comp).apply(SINE, PinSelection("Puppet", pins))
    assert result.links == 2
    assert comp.binding("Puppet", "Pin 2") is None


# =============================================================================
# Errors
# =============================================================================

def test_no_layer_selected(comp):
    comp.layers["Puppet"].selected = False
    result = Orchestrator(comp).apply(SINE)
    assert not result.ok
    assert result.error == ErrorKind.NO_SELECTION
    assert result.message


def test_layer_without_rig():
    comp = Composition()
    comp.add_control_layer("Null 1", ControlParameterSet())
    comp.layers["Null 1"].selected = True
    result = Orchestrator(comp).apply(SINE)
    assert result.error == ErrorKind.MISSING_RIG_STRUCTURE


def test_too_few_selected_pins(comp):
    comp.select_pins("Puppet", ["Pin 1"])
    result = Orchestrator(comp).apply(SINE)
    assert result.error == ErrorKind.INSUFFICIENT_PINS
    assert result.links == 0
    assert comp.control_layers() == []


def test_invalid_parameters_fail_before_mutation(comp):
    result = Orchestrator(comp).apply({'amplitude': 'huge'})
    assert result.error == ErrorKind.INVALID_PARAMETERS
    assert comp.control_layers() == []
    assert comp.binding("Puppet", "Pin 1") is None


class FlakyComposition(Composition):
    """Rejects one kind of write to one pin"""

    def __init__(self, reject: str, exc=BindingError, on: str = "bind", **kwargs):
        super().__init__(**kwargs)
        self.reject = reject
        self.exc = exc
        self.on = on

    def _check(self, action, pin):
        if action == self.on and pin == self.reject:
            raise self.exc(f"Cannot {action} on '{pin}'")

    def bind(self, layer, pin, binding):
        self._check("bind", pin)
        super().bind(layer, pin, binding)

    def unbind(self, layer, pin):
        self._check("unbind", pin)
        return super().unbind(layer, pin)

    def set_keyframes(self, layer, pin, samples):
        self._check("set_keyframes", pin)
        super().set_keyframes(layer, pin, samples)


def _flaky_puppet(reject, on="bind"):
    comp = FlakyComposition(reject, on=on, duration=1)
    comp.add_puppet_layer("Puppet", [("Pin 1", (0, 0)), ("Pin 2", (0, 50)), ("Pin 3", (0, 100))])
    comp.select_pins("Puppet")
    return comp


def test_binding_failure_is_partial():
    comp = FlakyComposition("Pin 3")
    comp.add_puppet_layer("Puppet", [("Pin 1", (0, 0)), ("Pin 2", (0, 50)), ("Pin 3", (0, 100))])
    comp.select_pins("Puppet")

    result = Orchestrator(comp).apply(SINE)
    assert result.error == ErrorKind.BINDING_FAILURE
    assert result.links == 2
    assert "2 of 3" in result.message
    assert comp.binding("Puppet", "Pin 1") is not None
    assert comp.binding("Puppet", "Pin 2") is not None
    assert comp.binding("Puppet", "Pin 3") is None
    assert comp.control_layers() == [CONTROL_BASE_NAME]


def test_unexpected_errors_propagate():
    comp = FlakyComposition("Pin 2", exc=RuntimeError)
    comp.add_puppet_layer("Puppet", [("Pin 1", (0, 0)), ("Pin 2", (0, 50))])
    comp.select_pins("Puppet")
    with pytest.raises(RuntimeError):
        Orchestrator(comp).apply(SINE)


def test_bake_failure_reports_pins_already_baked():
    comp = _flaky_puppet("Pin 3", on="set_keyframes")
    orchestrator = Orchestrator(comp)
    assert orchestrator.apply(SINE).ok

    result = orchestrator.bake()
    assert result.error == ErrorKind.BINDING_FAILURE
    assert result.links == 2
    assert "2 of 3" in result.message
    for name in ("Pin 1", "Pin 2"):
        assert comp.binding("Puppet", name) is None
        assert len(comp.pin("Puppet", name).keyframes) == 25
    # The rejected pin keeps its live binding, and so its control layer
    assert comp.binding("Puppet", "Pin 3") is not None
    assert comp.pin("Puppet", "Pin 3").keyframes == []
    assert comp.control_layers() == [CONTROL_BASE_NAME]


def test_remove_failure_reports_pins_already_removed():
    comp = _flaky_puppet("Pin 2", on="unbind")
    orchestrator = Orchestrator(comp)
    orchestrator.apply(SINE)

    result = orchestrator.remove()
    assert result.error == ErrorKind.BINDING_FAILURE
    assert result.links == 1
    assert result.message.startswith("Removed sway from 1 of 3 pins")
    assert comp.binding("Puppet", "Pin 1") is None
    assert comp.binding("Puppet", "Pin 2") is not None
    assert comp.control_layers() == [CONTROL_BASE_NAME]


# =============================================================================
# Remove / bake / list
# =============================================================================

def test_remove_restores_rest_and_prunes_control(comp):
    orchestrator = Orchestrator(comp)
    orchestrator.apply(SINE)
    result = orchestrator.remove()
    assert result.ok
    assert result.links == 3
    assert comp.control_layers() == []
    assert comp.value_at("Puppet", "Pin 3", 0.25) == Vec2(0.0, 100.0)


def test_remove_partial_selection_keeps_control(comp):
    orchestrator = Orchestrator(comp)
    orchestrator.apply(SINE)
    comp.select_pins("Puppet", ["Pin 3"])
    result = orchestrator.remove()
    assert result.links == 1
    assert comp.control_layers() == [CONTROL_BASE_NAME]


def test_remove_needs_selected_pins(comp):
    comp.select_pins("Puppet", [])
    assert Orchestrator(comp).remove().error == ErrorKind.NO_SELECTION


def test_bake_writes_keyframes_and_prunes(comp):
    orchestrator = Orchestrator(comp)
    orchestrator.apply(SINE)
    live = [comp.value_at("Puppet", "Pin 3", i / 24) for i in range(49)]

    result = orchestrator.bake()
    assert result.ok
    assert result.links == 3
    assert comp.control_layers() == []
    assert len(comp.pin("Puppet", "Pin 3").keyframes) == 49
    for i, value in enumerate(live):
        baked = comp.value_at("Puppet", "Pin 3", i / 24)
        assert baked.x == pytest.approx(value.x, abs=1e-9)
        assert baked.y == pytest.approx(value.y, abs=1e-9)


def test_bake_counts_only_bound_pins(comp):
    orchestrator = Orchestrator(comp)
    comp.select_pins("Puppet", ["Pin 1", "Pin 2"])
    orchestrator.apply(SINE)
    comp.select_pins("Puppet")
    assert orchestrator.bake().links == 2
    assert comp.pin("Puppet", "Pin 3").keyframes == []


def test_list_pins_includes_unselected(comp):
    comp.select_pins("Puppet", ["Pin 2"])
    pins = Orchestrator(comp).list_pins()
    assert [p.name for p in pins] == ["Pin 1", "Pin 2", "Pin 3"]
    assert [p.selected for p in pins] == [False, True, False]


def test_preview_does_not_mutate(comp):
    orchestrator = Orchestrator(comp)
    orchestrator.apply(SINE)
    trajectories = orchestrator.preview()
    assert set(trajectories) == {"Pin 1", "Pin 2", "Pin 3"}
    assert len(trajectories["Pin 3"]) == 49
    assert comp.binding("Puppet", "Pin 3") is not None
    assert comp.pin("Puppet", "Pin 3").keyframes == []


# =============================================================================
# Scene files
# =============================================================================

@pytest.mark.parametrize("suffix", [".yaml", ".json"])
def test_bindings_survive_save_and_load(tmp_path, comp, suffix):
    Orchestrator(comp).apply({**SINE, 'mode': 'hybrid', 'gravity': 12, 'physicsBlend': 30})
    path = comp.save(tmp_path / f"scene{suffix}")

    loaded = Composition.load(path)
    assert loaded.control_layers() == [CONTROL_BASE_NAME]
    assert loaded.control_params(CONTROL_BASE_NAME) == comp.control_params(CONTROL_BASE_NAME)
    for t in (0.0, 0.3, 1.2):
        assert loaded.value_at("Puppet", "Pin 3", t) == comp.value_at("Puppet", "Pin 3", t)
