"""Tests for SchematicController."""

import logging

import pytest
from controllers.schematic_controller import SchematicController
from models.schematic import SchematicModel
from models.stroke import NetClass, Stroke
from wiring.geometry import Rect
from tests.conftest import S1, S2, make_component, make_wire


@pytest.fixture
def snapshots():
    taken = []
    return taken, lambda: taken.append(True)


@pytest.fixture
def controller(settings, snapshots):
    _, callback = snapshots
    return SchematicController(settings=settings, snapshot_callback=callback)


@pytest.fixture
def scenario_controller(scenario_a_model, settings):
    return SchematicController(scenario_a_model, settings=settings)


def _points(wires):
    return [list(w.points) for w in wires]


class TestObserverPattern:
    def test_add_observer(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.clear()
        assert recorded == [("schematic_cleared", None)]

    def test_remove_observer(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.remove_observer(callback)
        controller.clear()
        assert recorded == []

    def test_duplicate_observer_not_added(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.add_observer(callback)
        controller.clear()
        assert len(recorded) == 1

    def test_failing_observer_is_logged(self, controller, caplog):
        def broken(event, data):
            raise RuntimeError("view is gone")

        controller.add_observer(broken)
        with caplog.at_level(logging.ERROR, logger="controllers.schematic_controller"):
            controller.clear()
        assert "view is gone" in caplog.text


class TestComponentOperations:
    def test_add_component_generates_id(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        comp = controller.add_component("Resistor", (51.0, 1.0))
        assert comp.component_id == "R1"
        assert comp.position == (50.0, 0.0)
        assert ("component_added", comp) in recorded

    def test_ids_increment_per_symbol(self, controller):
        assert controller.add_component("Resistor", (0, 0)).component_id == "R1"
        assert controller.add_component("Resistor", (0, 100)).component_id == "R2"
        assert controller.add_component("Battery", (0, 200)).component_id == "V1"

    def test_placing_on_a_wire_embeds_the_part(self, controller):
        controller.add_wire([(0, 0), (100, 0)], stroke=S1)
        controller.add_component("Resistor", (50, 0))
        assert _points(controller.model.wires) == [[(0, 0), (40, 0)], [(60, 0), (100, 0)]]
        assert all(w.stroke == S1 for w in controller.model.wires)
        assert controller.topology.comp_to_swp == {"R1": "swp1"}

    def test_takes_one_snapshot(self, controller, snapshots):
        taken, _ = snapshots
        controller.add_component("Resistor", (50, 0))
        assert len(taken) == 1

    def test_remove_component_mends_the_run(self, controller, events):
        recorded, callback = events
        controller.add_wire([(0, 0), (100, 0)], stroke=S1)
        controller.add_component("Resistor", (50, 0))
        controller.add_observer(callback)
        wires = controller.remove_component("R1")
        assert _points(wires) == [[(0, 0), (100, 0)]]
        assert wires[0].stroke == S1
        assert ("component_removed", "R1") in recorded
        assert "R1" not in controller.model.components

    def test_remove_component_at_branch_does_not_mend(self, settings):
        model = SchematicModel(
            components={"R1": make_component("Resistor", "R1", (50, 0))},
            wires=[
                make_wire("A", (0, 0), (40, 0)),
                make_wire("C", (40, 0), (40, 30)),
                make_wire("B", (60, 0), (100, 0)),
            ],
        )
        ctrl = SchematicController(model, settings=settings)
        wires = ctrl.remove_component("R1")
        assert len(wires) == 3

    def test_remove_unknown_component_is_a_no_op(self, controller, snapshots):
        taken, _ = snapshots
        controller.remove_component("R99")
        assert taken == []

    def test_rotate_component(self, scenario_controller, events):
        recorded, callback = events
        scenario_controller.add_observer(callback)
        scenario_controller.rotate_component("R1")
        comp = scenario_controller.model.components["R1"]
        assert comp.rotation == 90
        assert ("component_rotated", comp) in recorded
        assert scenario_controller.topology.comp_to_swp == {}

    def test_rotate_counter_clockwise(self, scenario_controller):
        scenario_controller.rotate_component("R1", clockwise=False)
        assert scenario_controller.model.components["R1"].rotation == 270

    def test_rotating_onto_a_wire_breaks_it(self, settings):
        model = SchematicModel(
            components={"Q1": make_component("BJT NPN", "Q1", (100, 0))},
            wires=[make_wire("w", (0, 0), (200, 0))],
        )
        ctrl = SchematicController(model, settings=settings)
        ctrl.rotate_component("Q1")
        assert sorted(_points(ctrl.model.wires)) == [
            [(0, 0), (90, 0)],
            [(90, 0), (100, 0)],
            [(100, 0), (110, 0)],
            [(110, 0), (200, 0)],
        ]


class TestWireOperations:
    def test_add_wire_explodes_polyline(self, controller):
        wires = controller.add_wire([(0, 0), (50, 0), (50, 50)])
        assert _points(wires) == [[(0, 0), (50, 0)], [(50, 0), (50, 50)]]

    def test_degenerate_wire_is_ignored(self, controller, snapshots):
        taken, _ = snapshots
        assert controller.add_wire([(5, 5), (5, 5)]) == []
        assert taken == []

    def test_add_wire_through_part_breaks_at_pins(self, controller):
        controller.add_component("Resistor", (50, 0))
        wires = controller.add_wire([(0, 0), (100, 0)])
        assert _points(wires) == [[(0, 0), (40, 0)], [(60, 0), (100, 0)]]

    def test_collinear_extension_is_unified(self, controller):
        first = controller.add_wire([(0, 0), (50, 0)], stroke=S2)
        wires = controller.add_wire([(50, 0), (100, 0)])
        assert _points(wires) == [[(0, 0), (100, 0)]]
        assert wires[0].id == first[0].id
        assert wires[0].stroke == S2

    def test_wire_added_event(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.add_wire([(0, 0), (50, 0)], net_id="vcc")
        added = [data for event, data in recorded if event == "wire_added"]
        assert len(added) == 1
        assert added[0].net_id == "vcc"

    def test_remove_wire_unifies_leftovers(self, settings):
        model = SchematicModel(wires=[
            make_wire("h1", (0, 0), (50, 0)),
            make_wire("h2", (50, 0), (100, 0)),
            make_wire("v", (50, 0), (50, 50)),
        ])
        ctrl = SchematicController(model, settings=settings)
        wires = ctrl.remove_wire("v")
        assert _points(wires) == [[(0, 0), (100, 0)]]
        assert wires[0].id == "h1"

    def test_remove_unknown_wire(self, controller, snapshots):
        taken, _ = snapshots
        controller.remove_wire("missing")
        assert taken == []

    def test_remove_wire_segment(self, settings):
        model = SchematicModel(wires=[make_wire("p", (0, 0), (10, 0), (10, 10))])
        ctrl = SchematicController(model, settings=settings)
        assert _points(ctrl.remove_wire_segment("p", 0)) == [[(10, 0), (10, 10)]]

    def test_remove_wire_segment_out_of_range(self, settings):
        model = SchematicModel(wires=[make_wire("p", (0, 0), (10, 0))])
        ctrl = SchematicController(model, settings=settings)
        assert ctrl.remove_wire_segment("p", 5) == model.wires

    def test_isolate_wire_segment(self, settings, snapshots):
        taken, callback = snapshots
        model = SchematicModel(wires=[make_wire("p", (0, 0), (10, 0), (10, 10), (20, 10), stroke=S1)])
        ctrl = SchematicController(model, settings=settings, snapshot_callback=callback)
        isolated = ctrl.isolate_wire_segment("p", 1)
        assert isolated.points == ((10, 0), (10, 10))
        assert isolated.stroke == S1
        assert isolated in ctrl.model.wires
        assert len(ctrl.model.wires) == 3
        assert taken == [True]

    def test_isolate_single_segment_wire_returns_it(self, settings, snapshots):
        taken, callback = snapshots
        model = SchematicModel(wires=[make_wire("w", (0, 0), (10, 0))])
        ctrl = SchematicController(model, settings=settings, snapshot_callback=callback)
        assert ctrl.isolate_wire_segment("w", 0) is model.wires[0]
        assert ctrl.isolate_wire_segment("w", 1) is None
        assert ctrl.isolate_wire_segment("missing", 0) is None
        assert taken == []


class TestWirePrimitives:
    def test_break_then_mend(self, settings):
        model = SchematicModel(wires=[make_wire("w", (0, 0), (100, 0), stroke=S1)])
        ctrl = SchematicController(model, settings=settings)
        wires, broke = ctrl.break_at_pins([(50, 0)])
        assert broke
        assert _points(wires) == [[(0, 0), (50, 0)], [(50, 0), (100, 0)]]
        wires = ctrl.mend_at_points((50, 0), (50, 0))
        assert _points(wires) == [[(0, 0), (100, 0)]]
        assert wires[0].stroke == S1

    def test_break_with_no_hit_takes_no_snapshot(self, controller, snapshots):
        taken, _ = snapshots
        controller.add_wire([(0, 0), (100, 0)])
        taken.clear()
        _, broke = controller.break_at_pins([(50, 30)])
        assert not broke
        assert taken == []

    def test_mend_needs_two_wires(self, settings):
        model = SchematicModel(wires=[make_wire("w", (0, 0), (100, 0))])
        ctrl = SchematicController(model, settings=settings)
        assert ctrl.mend_at_points((100, 0), (100, 0)) == model.wires

    def test_normalize_and_unify(self, settings):
        model = SchematicModel(wires=[
            make_wire("p", (0, 0), (10, 0), (10, 10)),
            make_wire("a", (20, 20), (30, 20)),
            make_wire("b", (30, 20), (40, 20)),
        ])
        ctrl = SchematicController(model, settings=settings)
        assert len(ctrl.normalize_all_wires()) == 4
        assert _points(ctrl.unify_inline_wires())[-1] == [(20, 20), (40, 20)]


class TestMoveGesture:
    def test_collapse_mode(self, scenario_controller):
        assert scenario_controller.begin_move("R1") == "collapse"
        assert scenario_controller.update_move("R1", (55, 0))
        wires = scenario_controller.finish_move("R1")
        assert _points(wires) == [[(0, 0), (45, 0)], [(65, 0), (100, 0)]]

    def test_free_mode(self, controller):
        comp = controller.add_component("Resistor", (50, 50))
        assert controller.begin_move(comp.component_id) == "free"
        assert controller.update_move(comp.component_id, (101, 99))
        assert comp.position == (100, 100)
        controller.finish_move(comp.component_id)
        assert comp.position == (100, 100)

    def test_begin_unknown_component(self, controller):
        assert controller.begin_move("R9") is None

    def test_free_move_attaches_to_wires(self, controller):
        controller.add_wire([(0, 0), (100, 0)])
        comp = controller.add_component("Resistor", (50, 50))
        assert controller.move_component_by(comp.component_id, 0, -50)
        assert _points(controller.model.wires) == [[(0, 0), (40, 0)], [(60, 0), (100, 0)]]
        assert controller.topology.comp_to_swp == {comp.component_id: "swp1"}

    def test_free_move_rejects_overlap(self, controller):
        controller.add_component("Resistor", (50, 0))
        other = controller.add_component("Resistor", (50, 50))
        assert not controller.move_component_by(other.component_id, 5, -50)
        assert other.position == (50, 50)

    def test_slide_mode(self, settings):
        model = SchematicModel(
            components={
                "R1": make_component("Resistor", "R1", (50, 0)),
                "GND1": make_component("Ground", "GND1", (40, 0)),
                "GND2": make_component("Ground", "GND2", (60, 0)),
            },
            wires=[make_wire("A", (0, 0), (40, 0)), make_wire("B", (60, 0), (100, 0))],
        )
        ctrl = SchematicController(model, settings=settings)
        assert ctrl.begin_move("R1") == "slide"
        assert ctrl.update_move("R1", (20, 0))
        assert _points(ctrl.model.wires) == [[(0, 0), (10, 0)], [(30, 0), (100, 0)]]
        ctrl.finish_move("R1")
        assert model.components["R1"].position == (20, 0)

    def test_abort_free_move(self, controller):
        comp = controller.add_component("Resistor", (50, 50))
        controller.begin_move(comp.component_id)
        controller.update_move(comp.component_id, (200, 200))
        controller.abort_move(comp.component_id)
        assert comp.position == (50, 50)

    def test_abort_collapse(self, scenario_controller, scenario_a):
        _, original = scenario_a
        scenario_controller.begin_move("R1")
        scenario_controller.update_move("R1", (70, 0))
        assert scenario_controller.abort_move("R1") == original
        assert scenario_controller.model.components["R1"].position == (50, 0)

    def test_update_without_begin(self, scenario_controller):
        assert not scenario_controller.update_move("R1", (55, 0))

    def test_move_component_by_runs_the_whole_gesture(self, scenario_controller):
        assert scenario_controller.move_component_by("R1", 5, 0)
        assert _points(scenario_controller.model.wires) == [[(0, 0), (45, 0)], [(65, 0), (100, 0)]]
        assert [w.stroke for w in scenario_controller.model.wires] == [S1, S2]
        assert scenario_controller.moves.active is None

    def test_other_edits_finish_an_active_collapse(self, scenario_controller):
        scenario_controller.begin_move("R1")
        scenario_controller.update_move("R1", (55, 0))
        scenario_controller.add_wire([(0, 50), (100, 50)])
        assert scenario_controller.moves.active is None
        assert [(0, 0), (45, 0)] in _points(scenario_controller.model.wires)

    def test_beginning_another_move_finishes_free_move(self, controller):
        a = controller.add_component("Resistor", (50, 50))
        b = controller.add_component("Resistor", (50, 150))
        controller.begin_move(a.component_id)
        controller.update_move(a.component_id, (100, 50))
        assert controller.begin_move(b.component_id) == "free"
        assert not controller.update_move(a.component_id, (0, 50))
        assert a.position == (100, 50)


class TestQueries:
    def test_swp_lookups(self, scenario_controller):
        swp = scenario_controller.swp_for_component("R1")
        assert scenario_controller.swp_for_wire("A") is swp
        assert scenario_controller.swp_for_wire("B", 0) is swp
        assert scenario_controller.swp_for_wire("nope") is None

    def test_segment_index_at(self, settings):
        model = SchematicModel(wires=[make_wire("p", (0, 0), (10, 0), (10, 10))])
        ctrl = SchematicController(model, settings=settings)
        assert ctrl.segment_index_at("p", (4, 1)) == 0
        assert ctrl.segment_index_at("p", (11, 7)) == 1
        assert ctrl.segment_index_at("nope", (0, 0)) is None

    def test_effective_stroke_uses_wire_override(self, scenario_controller):
        resolved = scenario_controller.effective_stroke_for("A")
        assert resolved.width == S1.width
        assert resolved.color == S1.color

    def test_effective_stroke_uses_net_class(self, settings):
        model = SchematicModel(wires=[make_wire("w", (0, 0), (10, 0), net_id="vcc")])
        model.net_classes["vcc"] = NetClass(id="vcc", name="VCC", wire=Stroke(width=1.0))
        ctrl = SchematicController(model, settings=settings)
        assert ctrl.effective_stroke_for("w").width == 1.0

    def test_effective_stroke_for_unknown_wire(self, controller):
        assert controller.effective_stroke_for("nope") is None

    def test_wires_in_rect(self, scenario_controller):
        found = scenario_controller.wires_in_rect(Rect(30, -5, 20, 10))
        assert [w.id for w in found] == ["A"]


class TestJunctions:
    def test_manual_junction(self, controller):
        controller.add_junction((10, 10))
        assert len(controller.model.junctions) == 1
        assert controller.topology.junctions[0].manual

    def test_suppress_hides_automatic_dot(self, controller):
        controller.add_wire([(0, 0), (20, 0)])
        controller.add_wire([(10, 0), (10, 10)])
        assert len(controller.topology.junctions) == 1
        controller.suppress_junction((10, 0))
        assert all(j.suppressed for j in controller.topology.junctions)

    def test_replacing_junction_at_same_point(self, controller):
        controller.add_junction((10, 10))
        controller.suppress_junction((10, 10))
        assert len(controller.model.junctions) == 1


class TestDocument:
    def test_round_trip(self, scenario_controller, settings):
        data = scenario_controller.to_dict()
        other = SchematicController(settings=settings)
        other.load_from_dict(data)
        assert _points(other.model.wires) == _points(scenario_controller.model.wires)
        assert [w.stroke for w in other.model.wires] == [S1, S2]
        assert other.topology.comp_to_swp == {"R1": "swp1"}

    def test_load_repairs_wire_under_part(self, controller):
        controller.load_from_dict({
            "components": [{"id": "R1", "type": "Resistor", "value": "1k", "pos": {"x": 50, "y": 0}}],
            "wires": [{"id": "wire7", "points": [{"x": 0, "y": 0}, {"x": 100, "y": 0}], "color": "#ff0000"}],
        })
        wires = controller.model.wires
        assert _points(wires) == [[(0, 0), (40, 0)], [(60, 0), (100, 0)]]
        assert [w.id for w in wires] == ["wire8", "wire11"]
        assert all(w.color == "#ff0000" for w in wires)

    def test_load_breaks_wire_at_single_pin_part(self, controller):
        controller.load_from_dict({
            "components": [{"id": "GND1", "type": "Ground", "pos": {"x": 100, "y": 0}}],
            "wires": [{"id": "wire1", "points": [{"x": 0, "y": 0}, {"x": 200, "y": 0}]}],
        })
        assert sorted(_points(controller.model.wires)) == [[(0, 0), (100, 0)], [(100, 0), (200, 0)]]

    def test_load_reseeds_component_counter(self, controller):
        controller.load_from_dict({
            "components": [{"id": "R4", "type": "resistor", "x": 0, "y": 100, "rot": 0}],
            "wires": [],
        })
        assert controller.add_component("Resistor", (0, 0)).component_id == "R5"

    def test_load_drops_short_wires(self, controller, caplog):
        with caplog.at_level(logging.WARNING, logger="controllers.schematic_controller"):
            controller.load_from_dict({
                "components": [],
                "wires": [{"id": "w1", "points": [{"x": 0, "y": 0}]}],
            })
        assert controller.model.wires == []
        assert "w1" in caplog.text

    def test_load_notifies(self, controller, events):
        recorded, callback = events
        controller.add_observer(callback)
        controller.load_from_dict({"components": [], "wires": []})
        assert recorded[-1] == ("model_loaded", None)

    @pytest.mark.parametrize("bad", [
        [],
        {"wires": []},
        {"components": [], "wires": [{"points": []}]},
        {"components": [], "wires": [{"id": "w", "points": [{"x": "a", "y": 0}]}]},
        {"components": [{"id": "R1"}], "wires": []},
        {"components": [{"id": "R1", "type": "Resistor", "pos": {"x": 0}}], "wires": []},
        {"components": [], "wires": [{"id": "w", "points": []}, {"id": "w", "points": []}]},
    ])
    def test_invalid_documents_raise(self, controller, bad):
        with pytest.raises(ValueError):
            controller.load_from_dict(bad)

    def test_failed_load_keeps_model(self, scenario_controller):
        with pytest.raises(ValueError):
            scenario_controller.load_from_dict({"components": "nope", "wires": []})
        assert "R1" in scenario_controller.model.components

    def test_to_dict_finishes_active_collapse(self, scenario_controller):
        scenario_controller.begin_move("R1")
        data = scenario_controller.to_dict()
        assert len(data["wires"]) == 2
        assert scenario_controller.moves.active is None

    def test_clear(self, scenario_controller):
        scenario_controller.clear()
        assert scenario_controller.model.components == {}
        assert scenario_controller.model.wires == []
        assert scenario_controller.topology.swps == []
