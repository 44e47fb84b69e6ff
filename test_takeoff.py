#!/usr/bin/env python3
"""
Test quantity takeoff summaries
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from calculations.result_types import ResultStatus
from calculations.takeoff import summarize_design
from data.equipment_catalog import ContainmentType, EquipmentType
from models.design_state import (
    Containment, DesignPurpose, DesignState, EquipmentItem, PVArrayItem, PVPanelConfig,
    RoofMask, ScaleInfo, SupplyLine, SupplyZone, Task,
)

ROOF = RoofMask('r-1', [(0, 0), (100, 0), (100, 100), (0, 100)], 20.0, 90.0, 25.0)


def design():
    return DesignState(
        equipment=(
            EquipmentItem('e-1', EquipmentType.SOCKET_DOUBLE, (0, 0), 0.0, 0.5, 0.5),
            EquipmentItem('e-2', EquipmentType.SOCKET_DOUBLE, (5, 0), 0.0, 0.5, 0.5),
            EquipmentItem('e-3', EquipmentType.INVERTER, (9, 0), 0.0, 0.5, 0.5),
        ),
        lines=(
            SupplyLine('l-1', [(0, 0), (1, 0)], 10.0, 'lv', 2.0, 1.0, '4C 16mm', 2),
            SupplyLine('l-2', [(0, 0), (1, 0)], 5.0, 'lv', cable_type='4C 16mm', termination_count=2),
            SupplyLine('l-3', [(0, 0), (1, 0)], 7.5, 'dc'),
            SupplyLine('l-4', [(0, 0), (1, 0)], 100.0, 'mv'),
        ),
        containment=(
            Containment('c-1', ContainmentType.CABLE_TRAY, '300mm', [(0, 0), (1, 0)], 4.0),
            Containment('c-2', ContainmentType.CABLE_TRAY, '300mm', [(0, 0), (1, 0)], 6.0),
            Containment('c-3', ContainmentType.CONDUIT_20MM, '20mm Conduit', [(0, 0), (1, 0)], 3.0),
        ),
        zones=(
            SupplyZone('z-1', [(0, 0), (1, 0), (1, 1)], 12.0),
            SupplyZone('z-2', [(0, 0), (1, 0), (1, 1)], 8.0),
        ),
        roof_masks=(ROOF,),
        pv_arrays=(
            PVArrayItem('pv-1', 'r-1', 2, 5, 'portrait', (50, 50)),
            PVArrayItem('pv-2', 'r-1', 1, 4, 'landscape', (20, 20)),
        ),
        tasks=(Task('t-1', 'Open'), Task('t-2', 'Closed', status='Done')),
        scale_info=ScaleInfo(100.0, 5.0, 0.05),
        design_purpose=DesignPurpose.BUDGET_MARKUP,
        pv_panel_config=PVPanelConfig(2.0, 1.0, 400.0),
    )


def test_summary_totals():
    result = summarize_design(design())
    summary = result.data

    assert result.is_complete
    assert result.to_dict()["status"] == "complete"
    assert summary.equipment_counts == {'Double Socket': 2, 'Inverter': 1}
    assert summary.cable_length_by_voltage['lv'] == pytest.approx(18.0)
    assert summary.cable_length_by_voltage['mv'] == pytest.approx(100.0)
    assert summary.cable_length_by_type == {'4C 16mm': pytest.approx(18.0)}
    assert summary.termination_count == 4
    assert summary.ac_cable_m == pytest.approx(18.0)
    assert summary.dc_cable_m == pytest.approx(7.5)
    assert summary.containment_length == {
        'Cable Tray': {'300mm': pytest.approx(10.0)},
        '20mm Conduit': {'20mm Conduit': pytest.approx(3.0)},
    }
    assert summary.zone_count == 2
    assert summary.zone_area_m2 == pytest.approx(20.0)
    assert summary.roof_area_m2 == pytest.approx(25.0)
    assert summary.panel_count == 14
    assert summary.capacity_kwp == pytest.approx(5.6)
    assert summary.open_task_count == 1
    assert result.metadata['design_purpose'] == 'Budget mark-up'


def test_summary_as_dict_includes_cable_split():
    data = summarize_design(design()).data.as_dict()
    assert data['dc_cable_m'] == pytest.approx(7.5)
    assert data['panel_count'] == 14


def test_empty_design_warns_about_scale():
    result = summarize_design(DesignState())
    assert result.status == ResultStatus.PARTIAL
    assert result.data.panel_count == 0
    assert "Drawing scale has not been set" in result.warnings


def test_missing_wattage_and_unmeasured_roofs_warn():
    state = DesignState(
        roof_masks=(RoofMask('r-1', [(0, 0), (10, 0), (10, 10)], 0.0, 0.0),),
        pv_arrays=(PVArrayItem('pv-1', 'r-1', 1, 1, 'portrait', (8, 2)),),
        scale_info=ScaleInfo(100.0, 5.0, 0.05),
    )
    result = summarize_design(state)
    assert result.data.capacity_kwp == 0.0
    assert len(result.warnings) == 2
