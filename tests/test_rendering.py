"""
Tests for the rendering projection.
"""

import pytest

from drainsketch.core.feature_model import FeatureModel
from drainsketch.core.rendering import (
    ALERT_COLOR,
    ELEMENT_STYLES,
    LinePattern,
    RenderingProjection,
    display_text,
    layer_definitions,
    project,
    render_feature,
)
from drainsketch.models.feature import DesignFeature, ElementType

LINE = {"type": "LineString", "coordinates": [[-80.927, 29.0258], [-80.927, 29.0268]]}
POINT = {"type": "Point", "coordinates": [-80.927, 29.0258]}
SQUARE = {
    "type": "Polygon",
    "coordinates": [[[0.0, 0.0], [0.001, 0.0], [0.001, 0.001], [0.0, 0.001], [0.0, 0.0]]],
}


def feature(feature_id, element_type, geometry, **kwargs) -> DesignFeature:
    return DesignFeature(id=feature_id, geometry=geometry, element_type=element_type, **kwargs)


class TestStyles:
    """Tests for per-type styling."""

    def test_every_type_has_a_style(self) -> None:
        assert set(ELEMENT_STYLES) == set(ElementType)

    def test_line_patterns(self) -> None:
        assert ELEMENT_STYLES[ElementType.HYDROBLOX_RUN].pattern is LinePattern.SOLID
        assert ELEMENT_STYLES[ElementType.PARALLEL_ROW].pattern is LinePattern.DASHED
        assert ELEMENT_STYLES[ElementType.EXISTING_SWALE].dash_array == (6, 3)
        assert ELEMENT_STYLES[ElementType.EXISTING_FRENCH_DRAIN].pattern is LinePattern.DOTTED

    def test_point_types_have_icons(self) -> None:
        for element_type in (ElementType.TRANSITION_BOX, ElementType.STORMWATER_BOX, ElementType.DOWNSPOUT):
            assert ELEMENT_STYLES[element_type].icon


class TestRenderFeature:
    """Tests for single-feature rendering."""

    def test_line_label_includes_length(self) -> None:
        rendered = render_feature(feature("r", ElementType.HYDROBLOX_RUN, LINE))
        assert rendered.label == "HydroBlox"
        assert rendered.display_text == "HydroBlox 365'"
        assert rendered.color == "#2563eb"
        assert rendered.alert is False

    def test_polygon_and_point_labels(self) -> None:
        water = feature("w", ElementType.STANDING_WATER, SQUARE)
        box = feature("t", ElementType.TRANSITION_BOX, POINT)
        assert display_text(water) == "Water"
        assert display_text(box) == "T-Box"
        assert render_feature(box).icon == "transition-box-icon"

    def test_failed_pipe_uses_alert_color(self) -> None:
        pipe = feature("p", ElementType.EXISTING_PIPE, LINE)
        assert render_feature(pipe).color == "#14b8a6"

        model = FeatureModel([pipe])
        model.toggle_status("p")
        rendered = render_feature(model.get("p"))

        assert rendered.alert is True
        assert rendered.color == ALERT_COLOR

    def test_failed_downspout_switches_icon(self) -> None:
        downspout = feature("d", ElementType.DOWNSPOUT, POINT, status="failed")
        rendered = render_feature(downspout)
        assert rendered.icon == "downspout-failed-icon"
        assert rendered.color == ALERT_COLOR

    def test_problem_area_is_red_but_not_alert(self) -> None:
        rendered = render_feature(feature("x", ElementType.PROBLEM_AREA, SQUARE))
        assert rendered.color == "#ef4444"
        assert rendered.alert is False

    def test_projection_does_not_mutate(self) -> None:
        original = feature("r", ElementType.HYDROBLOX_RUN, LINE)
        snapshot = original.to_geojson()
        project([original])
        assert original.to_geojson() == snapshot


class TestLayerDefinitions:
    """Tests for static layer definitions."""

    def test_layers_cover_all_types(self) -> None:
        layers = layer_definitions()
        assert {layer["elementType"] for layer in layers} == {t.value for t in ElementType}
        assert len({layer["id"] for layer in layers}) == len(layers)

    def test_polygon_types_get_fill_and_outline(self) -> None:
        layers = [l for l in layer_definitions() if l["elementType"] == "standing-water"]
        assert sorted(l["kind"] for l in layers) == ["fill", "line"]
        fill = next(l for l in layers if l["kind"] == "fill")
        assert fill["opacity"] == 0.3

    def test_status_types_declare_failed_color(self) -> None:
        by_id = {layer["id"]: layer for layer in layer_definitions()}
        assert by_id["existing-pipe-line"]["failedColor"] == ALERT_COLOR
        assert by_id["downspout-symbol"]["failedIcon"] == "downspout-failed-icon"
        assert "failedColor" not in by_id["hydroblox-run-line"]
        assert by_id["parallel-row-line"]["dashArray"] == [4, 2]


class TestRenderingProjection:
    """Tests for the live projection."""

    @pytest.fixture
    def model(self) -> FeatureModel:
        return FeatureModel()

    def test_recomputes_on_change(self, model: FeatureModel) -> None:
        projection = RenderingProjection(model)
        published = []
        projection.subscribe(published.append)

        model.add(feature("p", ElementType.EXISTING_PIPE, LINE))
        model.toggle_status("p")

        assert len(published) == 2
        assert published[0][0].alert is False
        assert published[1][0].alert is True
        assert projection.rendered[0].color == ALERT_COLOR

    def test_geojson_source(self, model: FeatureModel) -> None:
        projection = RenderingProjection(model)
        model.add(feature("r", ElementType.HYDROBLOX_RUN, LINE))

        source = projection.to_geojson()
        props = source["features"][0]["properties"]

        assert source["type"] == "FeatureCollection"
        assert props["label"] == "HydroBlox"
        assert props["displayText"] == "HydroBlox 365'"
        assert props["lengthFt"] == 365
        assert props["pattern"] == "solid"
        assert props["alert"] is False

    def test_close_stops_following(self, model: FeatureModel) -> None:
        projection = RenderingProjection(model)
        projection.close()
        model.add(feature("r", ElementType.HYDROBLOX_RUN, LINE))
        assert projection.rendered == []
