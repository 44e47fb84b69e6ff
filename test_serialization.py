#!/usr/bin/env python3
"""
Test the JSON codec for saved designs, including tolerant loading
"""

import json
import logging
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from data.equipment_catalog import ContainmentType, EquipmentType, PanelOrientation, VoltageClass
from models.design_state import (
    Containment, DesignPurpose, DesignState, EquipmentItem, PVArrayItem, PVPanelConfig,
    RoofMask, ScaleInfo, SupplyLine, SupplyZone, Task, TaskStatus,
)
from models.serialization import design_state_from_dict, design_state_to_dict


def full_state():
    return DesignState(
        equipment=(EquipmentItem('eq-1', EquipmentType.INVERTER, (10, 20), 90.0, 0.5, 0.5, 'INV-1'),),
        lines=(SupplyLine('l-1', [(0, 0), (100, 0)], 5.0, VoltageClass.LV, 1.0, 2.0, '4C 16mm', 2,
                          'L1', 'MB', 'DB1'),),
        zones=(SupplyZone('z-1', [(0, 0), (10, 0), (10, 10)], 0.125, 'Zone A'),),
        containment=(Containment('c-1', ContainmentType.CABLE_TRAY, '300mm', [(0, 0), (0, 50)], 2.5),),
        roof_masks=(RoofMask('r-1', [(0, 0), (100, 0), (100, 100), (0, 100)], 25.0, 90.0, 25.0),),
        pv_arrays=(PVArrayItem('pv-1', 'r-1', 2, 4, PanelOrientation.LANDSCAPE, (50, 50), 45.0),),
        tasks=(Task('t-1', 'Confirm tray route', TaskStatus.IN_PROGRESS, 'c-1', 'Sam'),),
        scale_info=ScaleInfo(100.0, 5.0, 0.05),
        design_purpose=DesignPurpose.PV_DESIGN,
        pv_panel_config=PVPanelConfig(2.1, 1.0, 450.0),
    )


def test_saved_shape_uses_camel_case_keys():
    data = design_state_to_dict(full_state())

    assert set(data) == {
        'equipment', 'lines', 'zones', 'containment', 'roofMasks', 'pvArrays', 'tasks',
        'scaleInfo', 'designPurpose', 'pvPanelConfig',
    }
    line = data['lines'][0]
    assert line['totalLength'] == pytest.approx(8.0)
    assert line['from'] == 'MB' and line['to'] == 'DB1'
    assert data['scaleInfo'] == {'pixelDistance': 100.0, 'realDistanceMeters': 5.0, 'ratioMetersPerPixel': 0.05}
    assert data['pvPanelConfig'] == {'length': 2.1, 'width': 1.0, 'wattage': 450.0}
    assert data['designPurpose'] == 'PV design'
    assert data['roofMasks'][0]['azimuthDegrees'] == 90.0
    # survives a trip through real JSON text
    json.dumps(data)


def test_save_then_load_restores_state():
    state = full_state()
    assert design_state_from_dict(json.loads(json.dumps(design_state_to_dict(state)))) == state


def test_missing_collections_load_empty():
    state = design_state_from_dict({'lines': [{'id': 'l', 'points': [{'x': 0, 'y': 0}, {'x': 1, 'y': 0}],
                                               'pathLength': 1.0, 'voltageClass': 'mv'}]})
    assert len(state.lines) == 1
    assert state.equipment == () and state.roof_masks == ()
    assert not state.scale_info.is_set
    assert state.pv_panel_config is None
    assert design_state_from_dict(None) == DesignState()


def test_snake_case_and_legacy_keys():
    data = {
        'roof_masks': [{
            'id': 'r-1', 'points': [[0, 0], [10, 0], [10, 10]], 'pitch': 30, 'direction': 180,
        }],
        'pv_arrays': [{
            'id': 'pv-1', 'roof_mask_id': 'r-1', 'rows': 1, 'columns': 2, 'position': {'x': 5, 'y': 2},
        }],
        'equipment': [{'id': 'e-1', 'type': 'Generator', 'position': [1, 2], 'rotation': 45}],
        'scale_info': {'pixel_distance': 200, 'real_distance_m': 10, 'ratio': 0.05},
        'design_purpose': 'BUDGET_MARKUP',
    }
    state = design_state_from_dict(data)

    mask = state.roof_masks[0]
    assert mask.pitch_degrees == 30.0
    # legacy compass bearing 180 (screen down) is azimuth 90
    assert mask.azimuth_degrees == pytest.approx(90.0)
    assert mask.area_m2 is None
    assert state.pv_arrays[0].orientation == PanelOrientation.PORTRAIT
    assert state.equipment[0].equipment_type == EquipmentType.GENERATOR
    assert state.equipment[0].rotation_degrees == 45.0
    assert state.ratio == 0.05
    assert state.design_purpose == DesignPurpose.BUDGET_MARKUP


def test_stored_total_length_is_ignored():
    data = {'lines': [{'id': 'l', 'points': [[0, 0], [1, 0]], 'pathLength': 4.0, 'startHeightM': 1.0,
                       'voltageClass': 'dc', 'totalLength': 999}]}
    assert design_state_from_dict(data).lines[0].total_length == pytest.approx(5.0)


def test_malformed_entities_are_skipped(caplog):
    data = {
        'zones': [
            {'id': 'ok', 'points': [[0, 0], [1, 0], [1, 1]], 'areaM2': 0.5},
            {'id': 'too-few', 'points': [[0, 0]], 'areaM2': 0.5},
            {'points': [[0, 0], [1, 0], [1, 1]], 'areaM2': 0.5},
            'not a zone',
        ],
        'equipment': [{'id': 'e', 'equipmentType': 'Flux Capacitor', 'anchorPoint': [0, 0]}],
        'tasks': 'nope',
        'pvPanelConfig': {'length': 'long'},
    }
    with caplog.at_level(logging.WARNING, logger='models.serialization'):
        state = design_state_from_dict(data)

    assert [z.id for z in state.zones] == ['ok']
    assert state.equipment == ()
    assert state.tasks == ()
    assert state.pv_panel_config is None
    assert len(caplog.records) >= 5
