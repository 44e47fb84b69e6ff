"""
Markup Controller - Routes every command through one reducer that owns the history
"""

import uuid
from dataclasses import asdict
from enum import Enum
from functools import partial
from typing import Callable, Optional

from PySide6.QtCore import QObject, Qt, Signal

from calculations.debug_logger import debug_logger
from calculations.errors import DetailsValidationError, MarkupError, ScaleNotSetError
from calculations.geometry import (
    Point, SnapKind, as_point, distance, distance_to_polyline, point_in_oriented_rect,
    point_in_polygon,
)
from models.design_state import (
    Containment, DesignPurpose, DesignState, PVPanelConfig, SupplyLine, SupplyZone, Task, TaskStatus,
)
from models.design_updates import (
    add_entity, add_pv_array, move_entity, move_zone_vertex, remove_entity_cascade,
    set_design_purpose, set_pv_panel_config, set_roof_pitch, set_scale_info,
    update_line_details, upsert_task,
)
from models.serialization import design_state_from_dict
from utils.settings_manager import MarkupConfig
from . import commands as cmd
from .drawing_tools import (
    CONTAINMENT_TOOLS, LINE_TOOLS, MULTI_POINT_TOOLS, PLACEMENT_TOOLS, CableDetails,
    DrawingToolManager, RoofPitchDetails, ToolPhase, ToolType, tool_requires_scale,
)
from .equipment_placement import EquipmentPlacementTool, equipment_footprint_px
from .history import HistoryManager
from .pv_tools import ArrayPlacementTool, RoofMaskWorkflow, RoofPhase, array_rect
from .scale_manager import CalibrationPhase, ScaleManager
from .viewport import Viewport

NO_SCALE_NOTICE = "Set the drawing scale before drawing measured items."
NO_PANEL_NOTICE = "Configure the PV panel (length, width, wattage) first."

# Symbol size used for hit-testing equipment loaded without a scale
UNSCALED_SYMBOL_PX = 12.0


class KeyAction(Enum):
    UNDO = "undo"
    REDO = "redo"
    ROTATE = "rotate"
    RESET_VIEW = "reset_view"
    CANCEL = "cancel"
    FINISH = "finish"


def _enum_int(value) -> int:
    return int(getattr(value, 'value', value))


def resolve_key_action(key, modifiers=0) -> Optional[KeyAction]:
    """Map a Qt key event onto the markup key bindings"""
    key = _enum_int(key)
    mods = _enum_int(modifiers)
    command = mods & (_enum_int(Qt.ControlModifier) | _enum_int(Qt.MetaModifier))
    shift = mods & _enum_int(Qt.ShiftModifier)

    if command:
        if key == _enum_int(Qt.Key_Z):
            return KeyAction.REDO if shift else KeyAction.UNDO
        if key == _enum_int(Qt.Key_Y):
            return KeyAction.REDO
        return None
    if key == _enum_int(Qt.Key_R):
        return KeyAction.ROTATE
    if key == _enum_int(Qt.Key_F):
        return KeyAction.RESET_VIEW
    if key == _enum_int(Qt.Key_Escape):
        return KeyAction.CANCEL
    if key in (_enum_int(Qt.Key_Return), _enum_int(Qt.Key_Enter)):
        return KeyAction.FINISH
    return None


class _Drag:
    """In-progress pointer drag"""

    def __init__(self, mode, target=None, last=None, index=None):
        self.mode = mode  # 'pan', 'move' or 'vertex'
        self.target = target
        self.last = last
        self.index = index


class MarkupController(QObject):
    """Owns the history and every markup tool; UI code only dispatches commands.

    Rejected commands (missing scale, invalid forms, clicks outside a roof
    mask) are reported through `notice` and never change the design state.
    """

    state_changed = Signal(object)  # DesignState
    notice = Signal(str)
    tool_changed = Signal(object)  # ToolType
    selection_changed = Signal(object)  # item id or None
    details_requested = Signal(str)  # 'cable', 'containment_size', 'real_length', 'roof_pitch'

    def __init__(self, initial_state: Optional[DesignState] = None,
                 config: Optional[MarkupConfig] = None,
                 id_factory: Optional[Callable[[], str]] = None,
                 confirm: Optional[Callable[[str], bool]] = None):
        super().__init__()
        self.config = config or MarkupConfig()
        self.id_factory = id_factory or (lambda: str(uuid.uuid4()))
        # Deletes are refused unless a confirmation step is supplied
        self.confirm = confirm or (lambda message: False)

        self.history = HistoryManager(initial_state)
        self.scale_manager = ScaleManager(self.state.scale_info)
        self.tools = DrawingToolManager(self.config.close_tolerance_px)
        self.equipment_tool = EquipmentPlacementTool(rotation_step=self.config.rotation_step_degrees)
        self.roof_workflow = RoofMaskWorkflow(self.config.close_tolerance_px)
        self.array_tool = ArrayPlacementTool()
        self.viewport = Viewport()
        self.tools.register(self.roof_workflow.capture)

        self.snapping_enabled = self.config.snapping_enabled
        self.selected_id: Optional[str] = None
        self._drag: Optional[_Drag] = None

        self.history.state_changed.connect(self.state_changed)
        self.scale_manager.recalibration_warning.connect(self._notify)
        for source in (self.equipment_tool, self.roof_workflow, self.array_tool):
            source.notice.connect(self._notify)

        self._handlers = {
            cmd.SelectTool: self._on_select_tool,
            cmd.PointerDown: self._on_pointer_down,
            cmd.PointerMove: self._on_pointer_move,
            cmd.PointerUp: self._on_pointer_up,
            cmd.DoubleClick: self._on_double_click,
            cmd.Wheel: self._on_wheel,
            cmd.KeyPress: self._on_key_press,
            cmd.SetPageSize: self._on_set_page_size,
            cmd.ResetView: lambda c: self.viewport.fit(),
            cmd.RotatePlacement: lambda c: self._rotate_placement(),
            cmd.ToggleSnapping: self._on_toggle_snapping,
            cmd.SubmitDetails: self._on_submit_details,
            cmd.CancelDetails: self._on_cancel_details,
            cmd.SubmitRealLength: self._on_submit_real_length,
            cmd.SubmitRoofPitch: self._on_submit_roof_pitch,
            cmd.ConfigureArray: self._on_configure_array,
            cmd.SetPanelConfig: self._on_set_panel_config,
            cmd.SetDesignPurpose: self._on_set_design_purpose,
            cmd.PlaceEquipment: self._on_place_equipment,
            cmd.PlacePVArray: self._on_place_pv_array,
            cmd.CompleteGeometry: self._on_complete_geometry,
            cmd.SelectItem: self._on_select_item,
            cmd.DeleteSelected: self._on_delete_selected,
            cmd.UpdateLineDetails: self._on_update_line_details,
            cmd.UpdateRoofPitch: self._on_update_roof_pitch,
            cmd.MoveZoneVertex: self._on_move_zone_vertex,
            cmd.UpsertTask: self._on_upsert_task,
            cmd.Undo: lambda c: self._undo(),
            cmd.Redo: lambda c: self._redo(),
            cmd.LoadDesign: self._on_load_design,
        }

    # --- public -------------------------------------------------------------

    @property
    def state(self) -> DesignState:
        return self.history.current

    @property
    def active_tool(self) -> ToolType:
        return self.tools.current_tool_type

    @property
    def placement_rotation(self) -> float:
        return self.equipment_tool.rotation_degrees

    def dispatch(self, command) -> bool:
        """Apply one command. Returns False when it was rejected."""
        handler = self._handlers.get(type(command))
        if handler is None:
            raise TypeError(f"Unsupported command: {type(command).__name__}")
        try:
            handler(command)
        except MarkupError as e:
            debug_logger.log_rejection("MarkupController", str(e), {'command': type(command).__name__})
            self._notify(str(e))
            return False
        return True

    def hit_test(self, doc_point) -> Optional[str]:
        """Id of the topmost entity under a document point"""
        state = self.state
        ratio = state.ratio
        tolerance = self._doc_tolerance(self.config.close_tolerance_px)

        for item in reversed(state.equipment):
            if ratio:
                width, height = equipment_footprint_px(item, ratio)
            else:
                width = height = self._doc_tolerance(UNSCALED_SYMBOL_PX)
            if point_in_oriented_rect(doc_point, item.anchor_point, width, height, item.rotation_degrees):
                return item.id
        if ratio and state.pv_panel_config is not None:
            for array in reversed(state.pv_arrays):
                rect = array_rect(array, state)
                if point_in_oriented_rect(doc_point, rect.center, rect.width, rect.height, rect.rotation):
                    return array.id
        for item in reversed(state.lines + state.containment):
            if distance_to_polyline(doc_point, item.points) <= tolerance:
                return item.id
        for shape in reversed(state.zones + state.roof_masks):
            if point_in_polygon(doc_point, shape.points):
                return shape.id
        return None

    # --- helpers ------------------------------------------------------------

    def _notify(self, message: str):
        debug_logger.log_notice("MarkupController", message)
        self.notice.emit(message)

    def _doc_tolerance(self, screen_px: float) -> float:
        return self.viewport.screen_to_document_distance(screen_px)

    def _snap_tolerance(self, kind: SnapKind) -> float:
        if kind == SnapKind.CORNER:
            return self._doc_tolerance(self.config.corner_tolerance_px)
        return self._doc_tolerance(self.config.edge_tolerance_px)

    def _commit(self, updater, action: str) -> bool:
        return self.history.commit(updater, action)

    def _select(self, item_id: Optional[str]):
        if item_id != self.selected_id:
            self.selected_id = item_id
            self.selection_changed.emit(item_id)

    def _select_tool(self, tool_type: ToolType, equipment_type=None):
        previous = self.active_tool
        if tool_type == ToolType.PV_ARRAY and self.state.pv_panel_config is None:
            self._notify(NO_PANEL_NOTICE)
            return
        self.tools.set_tool(tool_type)
        if previous == ToolType.SCALE and tool_type != ToolType.SCALE:
            self.scale_manager.cancel()
        # Leaving the roof flow before the direction is set drops the mask
        if self.roof_workflow.active and tool_type != ToolType.ROOF_DIRECTION:
            self.roof_workflow.cancel()
        if tool_type == ToolType.ROOF_MASK:
            self.roof_workflow.start()
        if tool_type == ToolType.EQUIPMENT and equipment_type is not None:
            self.equipment_tool.set_equipment_type(equipment_type)
        if tool_type not in PLACEMENT_TOOLS:
            self.equipment_tool.reset_rotation()
            self.equipment_tool.clear_preview()
        if tool_type != ToolType.SELECT:
            self._select(None)
        self.tool_changed.emit(tool_type)

    def _sync_after_jump(self):
        self.scale_manager.sync(self.state.scale_info)
        if self.state.find_entity(self.selected_id) is None:
            self._select(None)

    # --- entity construction ------------------------------------------------

    def _entity_from_geometry(self, geometry):
        tool_type = geometry.tool_type
        details = geometry.details
        if tool_type in LINE_TOOLS:
            extra = asdict(details) if details is not None else {}
            return SupplyLine(
                id=self.id_factory(),
                points=geometry.points,
                path_length=geometry.path_length_m,
                voltage_class=LINE_TOOLS[tool_type],
                **extra
            )
        if tool_type in CONTAINMENT_TOOLS:
            containment_type = CONTAINMENT_TOOLS[tool_type]
            return Containment(
                id=self.id_factory(),
                containment_type=containment_type,
                size=details.size if details is not None else containment_type.value,
                points=geometry.points,
                length=geometry.path_length_m,
            )
        if tool_type == ToolType.ZONE:
            return SupplyZone(id=self.id_factory(), points=geometry.points, area_m2=geometry.area_m2)
        raise ValueError(f"No entity for {tool_type}")

    def _handle_capture(self, tool, geometry):
        if geometry is not None:
            if geometry.path_length_m is None and geometry.area_m2 is None:
                raise ScaleNotSetError(NO_SCALE_NOTICE)
            entity = self._entity_from_geometry(geometry)
            self._commit(partial(add_entity, entity=entity), f"add {entity.kind.value}")
        elif tool.phase == ToolPhase.PENDING_DETAILS:
            kind = 'cable' if tool.tool_type in LINE_TOOLS else 'containment_size'
            self.details_requested.emit(kind)

    # --- pointer ------------------------------------------------------------

    def _on_select_tool(self, command):
        self._select_tool(command.tool_type, command.equipment_type)

    def _on_pointer_down(self, command):
        screen = Point(command.x, command.y)
        if command.button == 'middle' or (command.button == 'left' and self.active_tool == ToolType.PAN):
            self._drag = _Drag('pan', last=screen)
            return
        if command.button != 'left':
            return
        self._document_click(self.viewport.to_document(screen))

    def _document_click(self, doc: Point):
        tool = self.active_tool
        ratio = self.state.ratio
        if tool == ToolType.SELECT:
            self._begin_select(doc)
        elif tool == ToolType.SCALE:
            self._scale_click(doc)
        elif tool == ToolType.ROOF_MASK:
            self.roof_workflow.click(doc, ratio, self._doc_tolerance(self.config.close_tolerance_px))
            if self.roof_workflow.phase == RoofPhase.PROMPT_PITCH:
                self.details_requested.emit('roof_pitch')
        elif tool == ToolType.ROOF_DIRECTION:
            self._direction_click(doc)
        elif tool == ToolType.EQUIPMENT:
            self._place_equipment(doc)
        elif tool == ToolType.PV_ARRAY:
            self._place_array(doc)
        elif tool in MULTI_POINT_TOOLS:
            if tool_requires_scale(tool) and ratio is None:
                raise ScaleNotSetError(NO_SCALE_NOTICE)
            capture = self.tools.current_tool
            geometry = capture.click(doc, ratio, self._doc_tolerance(self.config.close_tolerance_px))
            self._handle_capture(capture, geometry)

    def _begin_select(self, doc: Point):
        zone = next((z for z in self.state.zones if z.id == self.selected_id), None)
        if zone is not None:
            tolerance = self._doc_tolerance(self.config.close_tolerance_px)
            for index, vertex in enumerate(zone.points):
                if distance(doc, vertex) <= tolerance:
                    self.history.begin_gesture()
                    self._drag = _Drag('vertex', target=zone.id, index=index)
                    return
        hit = self.hit_test(doc)
        self._select(hit)
        if hit is not None:
            self.history.begin_gesture()
            self._drag = _Drag('move', target=hit, last=doc)

    def _on_pointer_move(self, command):
        screen = Point(command.x, command.y)
        doc = self.viewport.to_document(screen)
        drag = self._drag
        if drag is not None and drag.mode == 'pan':
            self.viewport.pan(screen.x - drag.last.x, screen.y - drag.last.y)
            drag.last = screen
        elif drag is not None and drag.mode == 'move':
            dx, dy = doc.x - drag.last.x, doc.y - drag.last.y
            # A rejected step keeps the reference point so the item resumes from it
            if self.history.live_update(partial(move_entity, entity_id=drag.target, dx=dx, dy=dy)):
                drag.last = doc
        elif drag is not None and drag.mode == 'vertex':
            self.history.live_update(partial(move_zone_vertex, zone_id=drag.target, index=drag.index, point=doc))
        elif self.active_tool == ToolType.EQUIPMENT and self.state.ratio is not None:
            self.equipment_tool.move(doc)
        elif self.active_tool == ToolType.PV_ARRAY and self.state.ratio is not None:
            self.array_tool.move(doc, self.state, self.placement_rotation,
                                 self.snapping_enabled, self._snap_tolerance)

    def _on_pointer_up(self, command):
        drag, self._drag = self._drag, None
        if drag is not None and drag.mode in ('move', 'vertex'):
            self.history.end_gesture('move' if drag.mode == 'move' else 'edit vertex')

    def _on_double_click(self, command):
        doc = self.viewport.to_document(Point(command.x, command.y))
        ratio = self.state.ratio
        if self.active_tool == ToolType.ROOF_MASK:
            self.roof_workflow.double_click(doc, ratio)
            if self.roof_workflow.phase == RoofPhase.PROMPT_PITCH:
                self.details_requested.emit('roof_pitch')
        elif self.active_tool in MULTI_POINT_TOOLS:
            capture = self.tools.current_tool
            self._handle_capture(capture, capture.double_click(doc, ratio))

    def _on_wheel(self, command):
        self.viewport.wheel((command.x, command.y), command.delta)

    def _on_set_page_size(self, command):
        self.viewport.set_page_dimensions(command.page_width, command.page_height)
        self.viewport.set_canvas_size(command.canvas_width, command.canvas_height)
        self.viewport.fit()

    # --- keyboard -----------------------------------------------------------

    def _on_key_press(self, command):
        action = resolve_key_action(command.key, command.modifiers)
        if action == KeyAction.UNDO:
            self._undo()
        elif action == KeyAction.REDO:
            self._redo()
        elif action == KeyAction.ROTATE:
            self._rotate_placement()
        elif action == KeyAction.RESET_VIEW:
            self.viewport.fit()
        elif action == KeyAction.CANCEL:
            self._cancel_in_progress()
        elif action == KeyAction.FINISH:
            self._finish_drawing()

    def _rotate_placement(self):
        if self.active_tool not in PLACEMENT_TOOLS:
            return
        self.equipment_tool.rotate()
        if self.array_tool.preview_anchor is not None:
            self.array_tool.move(self.array_tool.preview_anchor, self.state, self.placement_rotation,
                                 self.snapping_enabled, self._snap_tolerance)

    def _finish_drawing(self):
        ratio = self.state.ratio
        if self.active_tool == ToolType.ROOF_MASK:
            self.roof_workflow.finish(ratio)
            if self.roof_workflow.phase == RoofPhase.PROMPT_PITCH:
                self.details_requested.emit('roof_pitch')
        elif self.active_tool in MULTI_POINT_TOOLS:
            capture = self.tools.current_tool
            self._handle_capture(capture, capture.finish(ratio))

    def _cancel_in_progress(self):
        self.tools.cancel_current_tool()
        if self.roof_workflow.active:
            self.roof_workflow.cancel()
            if self.active_tool == ToolType.ROOF_MASK:
                self.roof_workflow.start()
        self.scale_manager.cancel()
        drag, self._drag = self._drag, None
        if drag is not None and drag.mode in ('move', 'vertex'):
            self.history.end_gesture()

    def _on_toggle_snapping(self, command):
        self.snapping_enabled = (not self.snapping_enabled) if command.enabled is None else bool(command.enabled)

    # --- scale --------------------------------------------------------------

    def _scale_click(self, doc: Point):
        manager = self.scale_manager
        if manager.phase in (CalibrationPhase.LINE_DRAWN, CalibrationPhase.AWAITING_REAL_LENGTH):
            return
        if not manager.line_in_progress:
            manager.begin_reference_line(doc)
            return
        manager.complete_reference_line(doc)
        manager.request_real_length()
        self.details_requested.emit('real_length')

    def _on_submit_real_length(self, command):
        info = self.scale_manager.submit_real_length(command.value)
        self._commit(partial(set_scale_info, scale_info=info), "calibrate scale")
        self._select_tool(ToolType.SELECT)

    # --- forms --------------------------------------------------------------

    def _on_submit_details(self, command):
        capture = self.tools.current_tool
        if capture is None or capture.phase != ToolPhase.PENDING_DETAILS:
            raise DetailsValidationError('form', "no drawing is waiting for details")
        self._handle_capture(capture, capture.submit_details(command.form))

    def _on_cancel_details(self, command):
        capture = self.tools.current_tool
        if capture is not None and capture.phase == ToolPhase.PENDING_DETAILS:
            capture.cancel_details()
        if self.scale_manager.phase in (CalibrationPhase.LINE_DRAWN, CalibrationPhase.AWAITING_REAL_LENGTH):
            self.scale_manager.cancel()
        if self.roof_workflow.phase == RoofPhase.PROMPT_PITCH:
            self.roof_workflow.cancel()

    def _on_submit_roof_pitch(self, command):
        if self.roof_workflow.phase != RoofPhase.PROMPT_PITCH:
            raise DetailsValidationError('pitch_degrees', "no roof mask is waiting for a pitch")
        self.roof_workflow.submit_pitch(command.form)
        self._select_tool(ToolType.ROOF_DIRECTION)

    def _direction_click(self, doc: Point):
        if self.roof_workflow.phase != RoofPhase.SET_DIRECTION:
            self._notify("Draw a roof mask before setting its direction.")
            return
        mask = self.roof_workflow.direction_click(
            doc, self.id_factory, self._doc_tolerance(self.config.close_tolerance_px)
        )
        if mask is not None:
            self._commit(partial(add_entity, entity=mask), "add roofMask")
            self._select_tool(ToolType.SELECT)

    def _on_configure_array(self, command):
        if self.array_tool.configure(command.form, self.state.pv_panel_config) is not None:
            self._select_tool(ToolType.PV_ARRAY)

    def _on_set_panel_config(self, command):
        values = {}
        for name in ('length_m', 'width_m', 'wattage'):
            raw = getattr(command, name)
            try:
                values[name] = float(raw)
            except (TypeError, ValueError):
                raise DetailsValidationError(name, "must be a number")
            if values[name] <= 0:
                raise DetailsValidationError(name, "must be greater than zero")
        self._commit(partial(set_pv_panel_config, config=PVPanelConfig(**values)), "set panel config")

    def _on_set_design_purpose(self, command):
        try:
            purpose = DesignPurpose(command.purpose)
        except ValueError:
            raise DetailsValidationError('purpose', f"unknown design purpose {command.purpose!r}")
        self._commit(partial(set_design_purpose, purpose=purpose), "set design purpose")

    # --- placement ----------------------------------------------------------

    def _place_equipment(self, doc: Point, rotation_degrees: Optional[float] = None):
        item = self.equipment_tool.place(doc, self.state.scale_info, self.id_factory, rotation_degrees)
        if item is not None:
            self._commit(partial(add_entity, entity=item), "add equipment")

    def _place_array(self, doc: Point):
        array = self.array_tool.place(doc, self.state, self.placement_rotation, self.snapping_enabled,
                                      self._snap_tolerance, self.id_factory)
        if array is not None:
            self._commit(partial(add_pv_array, array=array), "add pvArray")

    def _on_place_equipment(self, command):
        rotation = command.rotation_degrees
        if rotation is not None:
            try:
                rotation = float(rotation)
            except (TypeError, ValueError):
                raise DetailsValidationError('rotation_degrees', "must be a number")
        self.equipment_tool.set_equipment_type(command.equipment_type)
        self._place_equipment(Point(command.x, command.y), rotation)

    def _on_place_pv_array(self, command):
        self._place_array(Point(command.x, command.y))

    def _on_complete_geometry(self, command):
        if command.tool_type not in MULTI_POINT_TOOLS:
            raise ValueError(f"{command.tool_type} does not capture geometry")
        if self.active_tool != command.tool_type:
            self._select_tool(command.tool_type)
        for point in command.points:
            self._document_click(as_point(point))
        self._finish_drawing()
        capture = self.tools.current_tool
        if command.details is not None and capture.phase == ToolPhase.PENDING_DETAILS:
            self._handle_capture(capture, capture.submit_details(command.details))

    # --- selection and edits ------------------------------------------------

    def _on_select_item(self, command):
        if command.item_id is not None and self.state.find_entity(command.item_id) is None:
            self._notify("That item no longer exists.")
            self._select(None)
            return
        self._select(command.item_id)

    def _on_delete_selected(self, command):
        entity = self.state.find_entity(self.selected_id)
        if entity is None:
            self._select(None)
            return
        confirmed = command.confirmed
        if confirmed is None:
            confirmed = bool(self.confirm(f"Delete this {entity.kind.value} and everything linked to it?"))
        if not confirmed:
            debug_logger.debug("MarkupController", "Delete declined", {'id': entity.id})
            return
        if self._commit(partial(remove_entity_cascade, entity_id=entity.id), f"delete {entity.kind.value}"):
            self._select(None)

    def _on_update_line_details(self, command):
        line = next((l for l in self.state.lines if l.id == command.line_id), None)
        if line is None:
            self._notify("That cable run no longer exists.")
            return
        current = {
            'cable_type': line.cable_type or line.voltage_class.value.upper(),
            'termination_count': line.termination_count,
            'start_height_m': line.start_height_m,
            'end_height_m': line.end_height_m,
            'label': line.label,
            'from_label': line.from_label,
            'to_label': line.to_label,
        }
        current.update(command.form)
        details = CableDetails.from_form(current)
        self._commit(partial(update_line_details, line_id=line.id, **asdict(details)), "edit cable")

    def _on_update_roof_pitch(self, command):
        pitch = RoofPitchDetails.from_form(command.form).pitch_degrees
        self._commit(partial(set_roof_pitch, mask_id=command.mask_id, pitch_degrees=pitch), "edit roof pitch")

    def _on_move_zone_vertex(self, command):
        self._commit(
            partial(move_zone_vertex, zone_id=command.zone_id, index=command.index,
                    point=Point(command.x, command.y)),
            "edit vertex",
        )

    def _on_upsert_task(self, command):
        if not command.title or not command.title.strip():
            raise DetailsValidationError('title', "is required")
        existing = next((t for t in self.state.tasks if t.id == command.task_id), None)
        if command.linked_item_id is not None and self.state.find_entity(command.linked_item_id) is None:
            self._notify("The linked item no longer exists.")
            return
        try:
            status = TaskStatus(command.status) if command.status is not None else (
                existing.status if existing else TaskStatus.TODO)
        except ValueError:
            raise DetailsValidationError('status', f"unknown status {command.status!r}")
        task = Task(
            id=command.task_id or self.id_factory(),
            title=command.title.strip(),
            status=status,
            linked_item_id=command.linked_item_id,
            assigned_to=command.assigned_to,
        )
        self._commit(partial(upsert_task, task=task), "save task")

    # --- history ------------------------------------------------------------

    def _undo(self):
        self._drag = None
        if self.history.undo():
            self._sync_after_jump()

    def _redo(self):
        self._drag = None
        if self.history.redo():
            self._sync_after_jump()

    def _on_load_design(self, command):
        design = command.design
        state = design if isinstance(design, DesignState) else design_state_from_dict(design)
        self._drag = None
        self.tools.cancel_current_tool()
        self.roof_workflow.cancel()
        self.array_tool.clear()
        self.history.reset_with(state)
        self._select_tool(ToolType.SELECT)
        self._sync_after_jump()
        debug_logger.info("MarkupController", "Design loaded", {
            'entities': sum(1 for _ in state.entities()),
            'ratio': state.ratio
        })
