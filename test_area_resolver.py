"""
Test Area Resolver
==================
Section merging, exclusion subtraction and the algebra error boundary.
"""

import pytest

from area_resolver import (AreaResolver, composite_bounds, resolve_area, sections_area,
                           suggest_connected_section, validate_sections)
from tile_geometry import GeometryUtils
from tile_models import (CircleExclusion, ErrorKind, FreeformExclusion, RectExclusion,
                         Section, TriangleExclusion)


def test_sections_sharing_an_edge_merge_into_one_polygon():
    sections = [Section(0, 0, 100, 100), Section(100, 0, 100, 100)]
    result = resolve_area(sections)

    assert result.ok
    assert len(result.multi_polygon) == 1
    assert result.net_area_cm2 == pytest.approx(20000.0)
    assert result.warnings == []


def test_disjoint_sections_warn_about_disconnection():
    sections = [Section(0, 0, 100, 100), Section(300, 0, 100, 100)]
    result = resolve_area(sections)

    assert result.ok
    assert len(result.multi_polygon) == 2
    assert [w.title for w in result.warnings] == ["Disconnected sections"]
    assert "2 separate areas" in result.warnings[0].text


def test_overlapping_sections_count_once():
    sections = [Section(0, 0, 100, 100), Section(50, 0, 100, 100)]
    assert sections_area(sections) == pytest.approx(15000.0)


def test_invalid_sections_are_ignored():
    result = resolve_area([Section(0, 0, 100, 100), Section(0, 0, 0, 50)])
    assert result.ok
    assert result.net_area_cm2 == pytest.approx(10000.0)


def test_no_sections_and_no_valid_sections_are_errors():
    empty = resolve_area([])
    assert not empty.ok
    assert empty.error == "No sections defined"
    assert empty.error_kind == ErrorKind.AREA

    invalid = resolve_area([Section(0, 0, -10, 50)])
    assert not invalid.ok
    assert invalid.error == "No valid sections"


def test_output_rings_are_closed_and_counter_clockwise():
    result = resolve_area([Section(0, 0, 100, 50)], [RectExclusion(40, 10, 20, 20)])
    outer, hole = result.multi_polygon[0]

    assert outer[0] == outer[-1]
    assert GeometryUtils.signed_ring_area(outer) > 0
    assert GeometryUtils.signed_ring_area(hole) < 0
    assert result.net_area_cm2 == pytest.approx(5000.0 - 400.0)


def test_each_exclusion_shape_is_subtracted():
    room = [Section(0, 0, 200, 200)]
    exclusions = [
        RectExclusion(10, 10, 20, 20),
        CircleExclusion(100, 100, 10),
        TriangleExclusion((150, 150), (190, 150), (150, 190)),
        FreeformExclusion([(10, 150), (40, 150), (40, 180), (10, 180)]),
    ]
    result = resolve_area(room, exclusions)

    expected = 40000.0 - sum(e.area() for e in exclusions)
    assert result.net_area_cm2 == pytest.approx(expected)
    assert exclusions[1].area() == pytest.approx(0.5 * 48 * 100 * 0.1305262, rel=1e-5)


def test_exclusions_never_increase_area():
    room = [Section(0, 0, 100, 100)]
    base = resolve_area(room).net_area_cm2
    more = resolve_area(room, [RectExclusion(80, 80, 50, 50)]).net_area_cm2
    assert more <= base
    assert more == pytest.approx(10000.0 - 400.0)


def test_degenerate_exclusions_contribute_nothing():
    room = [Section(0, 0, 100, 100)]
    exclusions = [RectExclusion(10, 10, 0, 20), CircleExclusion(50, 50, 0),
                  FreeformExclusion([(0, 0), (10, 10)])]
    assert resolve_area(room, exclusions).net_area_cm2 == pytest.approx(10000.0)


def test_exclusion_covering_everything_leaves_empty_area():
    result = resolve_area([Section(0, 0, 100, 100)], [RectExclusion(-10, -10, 200, 200)])
    assert result.ok
    assert result.multi_polygon == []
    assert result.net_area_cm2 == 0.0


def test_algebra_failure_becomes_area_error(failing_algebra):
    result = AreaResolver(failing_algebra).resolve([Section(0, 0, 100, 100)])
    assert not result.ok
    assert result.multi_polygon is None
    assert result.error_kind == ErrorKind.AREA
    assert "union unavailable" in result.error


def test_unexpected_algebra_errors_stay_inside_the_resolver(broken_algebra):
    result = resolve_area([Section(0, 0, 100, 100)], [], algebra=broken_algebra)
    assert result.multi_polygon is None
    assert result.error_kind == ErrorKind.AREA
    assert "union crashed" in result.error


def test_unexpected_difference_error_keeps_section_warnings(broken_algebra):
    class UnionOnly(type(broken_algebra)):
        def union(self, shapes):
            return [polygon for shape in shapes for polygon in shape]

    sections = [Section(0, 0, 50, 50), Section(200, 200, 50, 50)]
    result = AreaResolver(UnionOnly()).resolve(sections, [RectExclusion(10, 10, 5, 5)])

    assert not result.ok
    assert "difference crashed" in result.error
    assert [w.title for w in result.warnings] == ["Disconnected sections"]


def test_composite_bounds_spans_valid_sections():
    sections = [Section(0, 0, 100, 100), Section(100, 50, 50, 200), Section(500, 500, 0, 0)]
    assert composite_bounds(sections) == (0, 0, 150, 250)
    assert composite_bounds([]) is None


def test_validate_sections_reports_invalid_dimensions():
    result = validate_sections([Section(0, 0, 0, 100, label="Hall")])
    titles = [e.title for e in result.errors]
    assert "Invalid width in Hall" in titles
    assert "No valid sections" in titles
    assert not result.ok


def test_suggested_section_shares_an_edge():
    sections = [Section(0, 0, 400, 200)]
    right = suggest_connected_section(sections, "right")
    assert (right.x, right.y, right.width_cm, right.height_cm) == (400, 0, 300, 200)

    bottom = suggest_connected_section(sections, "bottom")
    assert (bottom.x, bottom.y, bottom.width_cm, bottom.height_cm) == (0, 200, 400, 200)

    merged = resolve_area(sections + [right, bottom])
    assert len(merged.multi_polygon) == 1

    with pytest.raises(ValueError):
        suggest_connected_section(sections, "diagonal")
