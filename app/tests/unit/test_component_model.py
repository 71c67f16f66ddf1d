"""Tests for ComponentData pin geometry and serialization."""

from models.component import COMPONENT_TYPES, TWO_PIN_TYPES, ComponentData
from tests.conftest import GRID, make_component


class TestPins:
    def test_two_pin_horizontal(self):
        r = make_component("Resistor", "R1", (50, 0))
        assert r.get_terminal_positions(GRID) == [(40, 0), (60, 0)]
        assert r.pin_axis(GRID) == "x"

    def test_two_pin_rotated_quarter_turn(self):
        r = make_component("Resistor", "R1", (50, 0), rotation=90)
        assert r.get_terminal_positions(GRID) == [(50, -10), (50, 10)]
        assert r.pin_axis(GRID) == "y"

    def test_rotation_keeps_integral_coordinates(self):
        r = make_component("Capacitor", "C1", (24, 24), rotation=270)
        pins = r.get_terminal_positions(24)
        assert all(float(c).is_integer() for p in pins for c in p)

    def test_candidate_position(self):
        r = make_component("Resistor", "R1", (50, 0))
        assert r.get_terminal_positions(GRID, (0, 5)) == [(-10, 5), (10, 5)]
        assert r.position == (50.0, 0.0)

    def test_bjt_has_three_pins(self):
        q = make_component("BJT NPN", "Q1", (0, 0))
        assert q.get_terminal_positions(GRID) == [(0, 0), (0, -10), (0, 10)]
        assert q.pin_axis(GRID) is None

    def test_ground_has_one_pin(self):
        g = make_component("Ground", "GND1", (5, 5))
        assert g.get_terminal_positions(GRID) == [(5, 5)]
        assert not g.is_two_pin

    def test_two_pin_types_are_known_types(self):
        assert TWO_PIN_TYPES <= set(COMPONENT_TYPES)


class TestBoundingRect:
    def test_two_pin_not_padded_along_axis(self):
        r = make_component("Resistor", "R1", (50, 0))
        assert r.get_bounding_rect(GRID) == (40, -2.5, 60, 2.5)

    def test_vertical_two_pin(self):
        r = make_component("Resistor", "R1", (0, 0), rotation=90)
        assert r.get_bounding_rect(GRID) == (-2.5, -10, 2.5, 10)

    def test_bjt_padded_all_round(self):
        q = make_component("BJT PNP", "Q1", (0, 0))
        assert q.get_bounding_rect(GRID) == (-5, -15, 5, 15)


class TestSerialization:
    def test_to_dict_shape(self):
        r = ComponentData("R1", "Resistor", (10, 20), 90)
        assert r.to_dict() == {
            "type": "Resistor",
            "id": "R1",
            "pos": {"x": 10.0, "y": 20.0},
            "rotation": 90,
        }

    def test_round_trip(self):
        r = ComponentData("R1", "Resistor", (10, 20), 180)
        restored = ComponentData.from_dict(r.to_dict())
        assert restored.position == r.position
        assert restored.rotation == 180

    def test_legacy_type_and_flat_fields(self):
        comp = ComponentData.from_dict({"id": "Q1", "type": "npn", "x": 5, "y": 6, "rot": 450})
        assert comp.component_type == "BJT NPN"
        assert comp.position == (5.0, 6.0)
        assert comp.rotation == 90

    def test_netlist_fields_are_ignored(self):
        comp = ComponentData.from_dict({"id": "R1", "type": "Resistor", "value": "2k", "pos": {"x": 0, "y": 0}})
        assert "value" not in comp.to_dict()
