#!/usr/bin/env python3
"""
Test multi-point capture and the detail forms that follow it
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from calculations.errors import DetailsValidationError
from data.equipment_catalog import PanelOrientation
from drawing.drawing_tools import (
    ArrayConfigDetails, CableDetails, ContainmentDetails, DrawingToolManager, MultiPointTool,
    RoofPitchDetails, ToolPhase, ToolType, details_class_for, tool_requires_scale,
)

RATIO = 0.1


def test_mv_line_commits_without_details():
    tool = MultiPointTool(ToolType.LINE_MV)
    finished = []
    tool.finished.connect(finished.append)

    tool.click((0, 0), RATIO)
    tool.click((30, 40), RATIO)
    geometry = tool.finish(RATIO)

    assert geometry is not None
    assert geometry.path_length_px == 50.0
    assert geometry.path_length_m == pytest.approx(5.0)
    assert tool.phase == ToolPhase.COMMITTED
    assert finished == [geometry]


def test_finish_needs_minimum_points():
    tool = MultiPointTool(ToolType.LINE_DC)
    tool.click((0, 0), RATIO)
    assert tool.finish(RATIO) is None
    assert tool.phase == ToolPhase.CAPTURING


def test_repeated_click_is_ignored():
    tool = MultiPointTool(ToolType.LINE_MV)
    tool.click((5, 5), RATIO)
    tool.click((5, 5), RATIO)
    assert len(tool.points) == 1


def test_lv_line_waits_for_cable_details():
    tool = MultiPointTool(ToolType.LINE_LV)
    requested = []
    tool.details_requested.connect(requested.append)
    tool.click((0, 0), RATIO)
    tool.click((100, 0), RATIO)

    assert tool.finish(RATIO) is None
    assert tool.phase == ToolPhase.PENDING_DETAILS
    assert len(requested) == 1

    with pytest.raises(DetailsValidationError):
        tool.submit_details({'termination_count': 2})
    assert tool.phase == ToolPhase.PENDING_DETAILS

    geometry = tool.submit_details({'cable_type': '4C 16mm', 'termination_count': '2', 'start_height_m': 3})
    assert geometry.details == CableDetails(cable_type='4C 16mm', termination_count=2, start_height_m=3.0)
    assert geometry.path_length_m == pytest.approx(10.0)
    assert tool.phase == ToolPhase.COMMITTED


def test_cancelling_details_discards_capture():
    tool = MultiPointTool(ToolType.CABLE_TRAY)
    tool.click((0, 0), RATIO)
    tool.click((10, 0), RATIO)
    tool.finish(RATIO)
    tool.cancel_details()
    assert tool.phase == ToolPhase.IDLE
    assert tool.pending is None
    assert tool.points == []


def test_zone_closes_near_first_vertex():
    tool = MultiPointTool(ToolType.ZONE, close_tolerance=5)
    for point in [(0, 0), (100, 0), (100, 100)]:
        assert tool.click(point, RATIO) is None
    geometry = tool.click((2, 2), RATIO)

    assert geometry.points == ((0, 0), (100, 0), (100, 100))
    assert geometry.area_px == 5000.0
    assert geometry.area_m2 == pytest.approx(50.0)


def test_roof_mask_without_scale_has_no_area():
    tool = MultiPointTool(ToolType.ROOF_MASK)
    for point in [(0, 0), (100, 0), (100, 100), (0, 100)]:
        assert tool.click(point) is None
    geometry = tool.finish()
    assert geometry.points == ((0, 0), (100, 0), (100, 100), (0, 100))
    assert geometry.area_px == 10000.0
    assert geometry.area_m2 is None


def test_click_near_first_vertex_closes_instead_of_adding():
    tool = MultiPointTool(ToolType.ROOF_MASK)
    for point in [(0, 0), (10, 0), (10, 10)]:
        assert tool.click(point) is None

    geometry = tool.click((0, 10))

    assert geometry.points == ((0, 0), (10, 0), (10, 10))
    assert geometry.area_px == 50.0
    assert tool.finish() is None


def test_double_click_adds_point_and_finishes():
    tool = MultiPointTool(ToolType.LINE_MV)
    tool.click((0, 0), RATIO)
    geometry = tool.double_click((0, 20), RATIO)
    assert geometry.points == ((0, 0), (0, 20))


def test_escape_cancels_capture():
    tool = MultiPointTool(ToolType.ZONE)
    tool.click((0, 0), RATIO)
    tool.click((10, 0), RATIO)
    tool.escape()
    assert tool.phase == ToolPhase.IDLE
    assert tool.points == []


def test_tool_requirements():
    assert tool_requires_scale(ToolType.ZONE)
    assert tool_requires_scale(ToolType.LINE_MV)
    assert tool_requires_scale(ToolType.EQUIPMENT)
    assert tool_requires_scale(ToolType.PV_ARRAY)
    assert not tool_requires_scale(ToolType.ROOF_MASK)
    assert not tool_requires_scale(ToolType.SELECT)

    assert details_class_for(ToolType.LINE_LV) is CableDetails
    assert details_class_for(ToolType.LINE_MV) is None
    assert details_class_for(ToolType.TELKOM_BASKET) is ContainmentDetails
    assert details_class_for(ToolType.SLEEVES) is None


def test_only_multi_point_tools_capture():
    with pytest.raises(ValueError):
        MultiPointTool(ToolType.EQUIPMENT)


class TestDetailForms:

    def test_cable_termination_count_must_be_whole(self):
        with pytest.raises(DetailsValidationError) as exc:
            CableDetails.from_form({'cable_type': 'x', 'termination_count': 2.5})
        assert exc.value.field_name == 'termination_count'

    def test_containment_size_required(self):
        with pytest.raises(DetailsValidationError):
            ContainmentDetails.from_form({'size': '  '})
        assert ContainmentDetails.from_form({'size': '300mm'}).size == '300mm'

    def test_roof_pitch_range(self):
        assert RoofPitchDetails.from_form({'pitch_degrees': '30'}).pitch_degrees == 30.0
        with pytest.raises(DetailsValidationError):
            RoofPitchDetails.from_form({'pitch_degrees': 95})
        with pytest.raises(DetailsValidationError):
            RoofPitchDetails.from_form({})

    def test_array_config(self):
        config = ArrayConfigDetails.from_form({'rows': 2, 'columns': '3', 'orientation': 'landscape'})
        assert config == ArrayConfigDetails(2, 3, PanelOrientation.LANDSCAPE)
        with pytest.raises(DetailsValidationError):
            ArrayConfigDetails.from_form({'rows': 0, 'columns': 3, 'orientation': 'portrait'})
        with pytest.raises(DetailsValidationError):
            ArrayConfigDetails.from_form({'rows': 1, 'columns': 3, 'orientation': 'diagonal'})


def test_switching_tools_abandons_capture():
    manager = DrawingToolManager()
    manager.set_tool(ToolType.LINE_MV)
    manager.current_tool.click((0, 0), RATIO)
    capture = manager.current_tool

    manager.set_tool(ToolType.ZONE)

    assert capture.phase == ToolPhase.IDLE
    assert manager.current_tool.tool_type == ToolType.ZONE
    manager.set_tool(ToolType.SELECT)
    assert manager.current_tool is None
