#!/usr/bin/env python3
"""
Test design state entities and the pure updater functions
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from calculations.errors import InvalidGeometryError
from data.equipment_catalog import ContainmentType, EquipmentType, VoltageClass
from models.design_state import (
    Containment, DesignState, EntityKind, EquipmentItem, PVArrayItem, RoofMask, ScaleInfo,
    SupplyLine, SupplyZone, Task, TaskStatus,
)
from models.design_updates import (
    add_pv_array, cascade_ids, move_entity, move_zone_vertex, remove_entity_cascade,
    set_roof_pitch, update_line_details, upsert_task,
)

ROOF = RoofMask('roof-1', [(0, 0), (100, 0), (100, 100), (0, 100)], 20.0, 90.0)
OTHER_ROOF = RoofMask('roof-2', [(200, 0), (300, 0), (300, 100)], 10.0, 0.0)


def sample_state():
    return DesignState(
        equipment=(EquipmentItem('eq-1', EquipmentType.GENERATOR, (5, 5), 0.0, 0.5, 0.5),),
        roof_masks=(ROOF, OTHER_ROOF),
        pv_arrays=(
            PVArrayItem('pv-1', 'roof-1', 1, 2, 'portrait', (50, 50)),
            PVArrayItem('pv-2', 'roof-1', 1, 2, 'landscape', (20, 20)),
            PVArrayItem('pv-3', 'roof-2', 1, 1, 'portrait', (280, 10)),
        ),
        tasks=(
            Task('t-1', 'Check array', linked_item_id='pv-1'),
            Task('t-2', 'Check roof', linked_item_id='roof-1'),
            Task('t-3', 'Order generator', linked_item_id='eq-1'),
            Task('t-4', 'General'),
        ),
        scale_info=ScaleInfo(100.0, 5.0, 0.05),
    )


def test_supply_line_total_length():
    line = SupplyLine('l-1', [(0, 0), (10, 0)], 12.5, 'lv', start_height_m=3.0, end_height_m=1.5)
    assert line.voltage_class == VoltageClass.LV
    assert line.total_length == pytest.approx(17.0)


def test_entities_need_enough_points():
    with pytest.raises(InvalidGeometryError):
        SupplyLine('l-1', [(0, 0)], 1.0, 'mv')
    with pytest.raises(InvalidGeometryError):
        SupplyZone('z-1', [(0, 0), (1, 1)], 1.0)
    with pytest.raises(InvalidGeometryError):
        Containment('c-1', ContainmentType.SLEEVES, 'Sleeves', [(0, 0)], 1.0)


def test_equal_states_compare_equal():
    assert sample_state() == sample_state()
    assert DesignState().ratio is None
    assert sample_state().ratio == 0.05


def test_lookup_helpers():
    state = sample_state()
    assert state.find_entity('pv-2').kind == EntityKind.PV_ARRAY
    assert state.find_entity('missing') is None
    assert state.roof_mask_at((50, 50)) is ROOF
    assert state.roof_mask_at((150, 50)) is None
    assert [t.id for t in state.tasks_for('eq-1')] == ['t-3']
    assert len(list(state.entities())) == 10


def test_deleting_roof_mask_cascades_to_arrays_and_tasks():
    state = sample_state()
    assert cascade_ids(state, 'roof-1') == {'roof-1', 'pv-1', 'pv-2', 't-1', 't-2'}

    after = remove_entity_cascade(state, 'roof-1')

    assert [m.id for m in after.roof_masks] == ['roof-2']
    assert [a.id for a in after.pv_arrays] == ['pv-3']
    assert [t.id for t in after.tasks] == ['t-3', 't-4']
    assert after.equipment == state.equipment


def test_deleting_equipment_removes_linked_tasks():
    after = remove_entity_cascade(sample_state(), 'eq-1')
    assert after.equipment == ()
    assert [t.id for t in after.tasks] == ['t-1', 't-2', 't-4']


def test_deleting_unknown_id_is_noop():
    state = sample_state()
    assert remove_entity_cascade(state, 'nope') is state


def test_move_entity():
    state = sample_state()
    moved = move_entity(state, 'eq-1', 10, -5)
    assert moved.equipment[0].anchor_point == (15, 0)
    moved = move_entity(moved, 'roof-2', 1, 1)
    assert moved.roof_masks[1].points[0] == (201, 1)
    assert move_entity(state, 'eq-1', 0, 0) is state


def test_move_pv_array_stays_inside_roof_mask():
    state = sample_state()

    inside = move_entity(state, 'pv-1', 20, 30)
    assert inside.find_entity('pv-1').anchor_point == (70, 80)

    assert move_entity(state, 'pv-1', 100, 0) is state
    assert move_entity(state, 'pv-3', -75, 0) is state


def test_move_roof_mask_carries_its_arrays():
    state = sample_state()

    moved = move_entity(state, 'roof-2', 1, 1)

    assert moved.find_entity('pv-3').anchor_point == (281, 11)
    assert moved.find_entity('pv-1').anchor_point == (50, 50)
    assert moved.roof_mask_at((281, 11)).id == 'roof-2'


def test_move_zone_vertex_recomputes_area():
    zone = SupplyZone('z-1', [(0, 0), (100, 0), (100, 100), (0, 100)], 25.0)
    state = DesignState(zones=(zone,), scale_info=ScaleInfo(100.0, 5.0, 0.05))

    after = move_zone_vertex(state, 'z-1', 2, (100, 200))

    assert after.zones[0].points[2] == (100, 200)
    assert after.zones[0].area_m2 == pytest.approx(37.5)
    assert move_zone_vertex(state, 'z-1', 9, (0, 0)) is state


def test_update_line_details_rederives_total():
    line = SupplyLine('l-1', [(0, 0), (10, 0)], 10.0, 'lv', cable_type='4C 16mm')
    state = DesignState(lines=(line,))

    after = update_line_details(state, 'l-1', end_height_m=2.0, cable_type='4C 25mm', bogus='x')

    assert after.lines[0].cable_type == '4C 25mm'
    assert after.lines[0].total_length == pytest.approx(12.0)


def test_set_roof_pitch():
    after = set_roof_pitch(sample_state(), 'roof-2', 35)
    assert after.roof_masks[1].pitch_degrees == 35.0


def test_upsert_task():
    state = upsert_task(DesignState(), Task('t-1', 'Survey'))
    state = upsert_task(state, Task('t-1', 'Survey', status='Done'))
    assert len(state.tasks) == 1
    assert state.tasks[0].status == TaskStatus.DONE


def test_add_pv_array_checks_anchor():
    state = DesignState(roof_masks=(ROOF,))
    outside = PVArrayItem('pv-9', 'roof-1', 1, 1, 'portrait', (150, 50))
    assert add_pv_array(state, outside) is state
    inside = PVArrayItem('pv-9', 'roof-1', 1, 1, 'portrait', (50, 50))
    assert add_pv_array(state, inside).pv_arrays == (inside,)
