"""
Design takeoff - quantity summaries for a marked-up floor plan

Counts equipment, totals cable and containment runs and sums areas and PV
capacity. Everything is read straight from the stored entity values, so the
figures match what was recorded at draw time even after a recalibration.
"""

from collections import Counter, defaultdict
from dataclasses import asdict, dataclass, field
from typing import Dict

from models.design_state import DesignState, TaskStatus
from data.equipment_catalog import VoltageClass
from .debug_logger import debug_logger
from .pv_layout import array_capacity_kwp
from .result_types import CalculationResult


@dataclass
class DesignSummary:
    equipment_counts: Dict[str, int] = field(default_factory=dict)
    cable_length_by_voltage: Dict[str, float] = field(default_factory=dict)
    cable_length_by_type: Dict[str, float] = field(default_factory=dict)
    termination_count: int = 0
    containment_length: Dict[str, Dict[str, float]] = field(default_factory=dict)
    zone_count: int = 0
    zone_area_m2: float = 0.0
    roof_mask_count: int = 0
    roof_area_m2: float = 0.0
    panel_count: int = 0
    capacity_kwp: float = 0.0
    open_task_count: int = 0

    @property
    def dc_cable_m(self) -> float:
        return self.cable_length_by_voltage.get(VoltageClass.DC.value, 0.0)

    @property
    def ac_cable_m(self) -> float:
        """Low-voltage AC cabling"""
        return self.cable_length_by_voltage.get(VoltageClass.LV.value, 0.0)

    def as_dict(self) -> dict:
        data = asdict(self)
        data['dc_cable_m'] = self.dc_cable_m
        data['ac_cable_m'] = self.ac_cable_m
        return data


def summarize_design(state: DesignState) -> CalculationResult[DesignSummary]:
    """Build the takeoff for one design state"""
    summary = DesignSummary()
    result = CalculationResult(summary)

    counts = Counter(item.equipment_type.value for item in state.equipment)
    summary.equipment_counts = dict(sorted(counts.items()))

    by_voltage = defaultdict(float)
    by_type = defaultdict(float)
    for line in state.lines:
        by_voltage[line.voltage_class.value] += line.total_length
        if line.cable_type:
            by_type[line.cable_type] += line.total_length
        summary.termination_count += line.termination_count
    summary.cable_length_by_voltage = dict(by_voltage)
    summary.cable_length_by_type = dict(sorted(by_type.items()))

    containment = defaultdict(lambda: defaultdict(float))
    for item in state.containment:
        containment[item.containment_type.value][item.size] += item.length
    summary.containment_length = {name: dict(sizes) for name, sizes in sorted(containment.items())}

    summary.zone_count = len(state.zones)
    summary.zone_area_m2 = sum(zone.area_m2 for zone in state.zones)

    summary.roof_mask_count = len(state.roof_masks)
    unmeasured = [mask.id for mask in state.roof_masks if mask.area_m2 is None]
    summary.roof_area_m2 = sum(mask.area_m2 for mask in state.roof_masks if mask.area_m2 is not None)
    if unmeasured:
        result.add_warning(f"{len(unmeasured)} roof mask(s) were drawn before calibration and have no area")

    summary.panel_count = sum(array.panel_count for array in state.pv_arrays)
    if state.pv_panel_config is not None:
        summary.capacity_kwp = array_capacity_kwp(summary.panel_count, state.pv_panel_config.wattage)
    elif summary.panel_count:
        result.add_warning("PV panel wattage is not configured; capacity not calculated")

    summary.open_task_count = sum(1 for task in state.tasks if task.status != TaskStatus.DONE)

    if not state.scale_info.is_set:
        result.add_warning("Drawing scale has not been set")
    result.set_metadata('design_purpose', state.design_purpose.value if state.design_purpose else None)
    result.set_metadata('ratio', state.ratio)

    debug_logger.debug("Takeoff", "Design summarized", {
        'equipment': len(state.equipment),
        'lines': len(state.lines),
        'panels': summary.panel_count,
        'warnings': len(result.warnings)
    })
    return result
