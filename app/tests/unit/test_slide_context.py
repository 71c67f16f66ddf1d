"""Tests for the slide-context move fallback."""

from controllers.slide_context import apply_slide, build_slide_context
from tests.conftest import S1, make_component, make_wire


def _setup():
    r = make_component("Resistor", "R1", (50, 0))
    wires = [make_wire("A", (0, 0), (40, 0), stroke=S1), make_wire("B", (60, 0), (100, 0))]
    return r, wires


class TestBuildSlideContext:
    def test_range_from_far_vertices(self, settings):
        r, wires = _setup()
        ctx = build_slide_context(r, wires, settings)
        assert ctx.axis == "x"
        assert ctx.fixed == 0
        assert (ctx.min_center, ctx.max_center) == (10, 90)
        assert (ctx.wire_a_id, ctx.wire_b_id) == ("A", "B")
        assert (ctx.pin_a, ctx.pin_b) == ((40, 0), (60, 0))

    def test_wire_order_does_not_matter(self, settings):
        r, wires = _setup()
        ctx = build_slide_context(r, list(reversed(wires)), settings)
        assert (ctx.wire_a_id, ctx.wire_b_id) == ("A", "B")

    def test_vertical_part(self, settings):
        r = make_component("Resistor", "R1", (0, 50), rotation=90)
        wires = [make_wire("A", (0, 0), (0, 40)), make_wire("B", (0, 60), (0, 100))]
        ctx = build_slide_context(r, wires, settings)
        assert ctx.axis == "y"
        assert (ctx.min_center, ctx.max_center) == (10, 90)

    def test_branch_at_pin_is_not_slidable(self, settings):
        r, wires = _setup()
        wires.append(make_wire("C", (40, 0), (40, 30)))
        assert build_slide_context(r, wires, settings) is None

    def test_perpendicular_wire_is_not_slidable(self, settings):
        r = make_component("Resistor", "R1", (50, 0))
        wires = [make_wire("A", (40, 0), (40, 30)), make_wire("B", (60, 0), (100, 0))]
        assert build_slide_context(r, wires, settings) is None

    def test_wire_doubling_back_over_part_is_not_slidable(self, settings):
        r = make_component("Resistor", "R1", (50, 0))
        wires = [make_wire("A", (40, 0), (55, 0)), make_wire("B", (60, 0), (100, 0))]
        assert build_slide_context(r, wires, settings) is None

    def test_missing_wire(self, settings):
        r, wires = _setup()
        assert build_slide_context(r, wires[:1], settings) is None

    def test_multi_pin_part(self, settings):
        q = make_component("BJT NPN", "Q1", (0, 0))
        assert build_slide_context(q, [], settings) is None


class TestApplySlide:
    def test_drags_touching_endpoints(self, settings):
        r, wires = _setup()
        ctx = build_slide_context(r, wires, settings)
        out = apply_slide(ctx, r, 55, wires, settings)
        assert [w.points for w in out] == [((0, 0), (45, 0)), ((65, 0), (100, 0))]
        assert out[0].stroke == S1
        assert out[0].id == "A"
        assert (ctx.pin_a, ctx.pin_b) == ((45, 0), (65, 0))

    def test_consecutive_slides(self, settings):
        r, wires = _setup()
        ctx = build_slide_context(r, wires, settings)
        wires = apply_slide(ctx, r, 55, wires, settings)
        wires = apply_slide(ctx, r, 30, wires, settings)
        assert [w.points for w in wires] == [((0, 0), (20, 0)), ((40, 0), (100, 0))]

    def test_zero_length_wire_is_rejected(self, settings):
        r, wires = _setup()
        ctx = build_slide_context(r, wires, settings)
        assert apply_slide(ctx, r, 10, wires, settings) is None
        assert ctx.pin_a == (40, 0)

    def test_vanished_wire(self, settings):
        r, wires = _setup()
        ctx = build_slide_context(r, wires, settings)
        assert apply_slide(ctx, r, 55, wires[1:], settings) is None
