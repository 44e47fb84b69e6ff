"""
Standard electrical equipment and containment library for floor-plan markup
"""

from enum import Enum


class EquipmentType(Enum):
    """Placeable equipment symbols"""
    RMU = "Ring Main Unit"
    SUBSTATION = "Substation"
    MAIN_BOARD = "Main Board"
    SUB_BOARD = "Sub Board"
    DISTRIBUTION_BOARD = "Distribution Board"
    TELEPHONE_BOARD = "Telephone Board"
    GENERATOR = "Generator"
    INVERTER = "Inverter"
    DC_COMBINER = "DC Combiner Box"
    AC_DISCONNECT = "AC Disconnect"
    POLE_LIGHT = "Pole Light"
    POLE_MOUNTED_LIGHT = "Pole Mounted Light"
    WALL_MOUNTED_LIGHT = "Wall Mounted Light"
    CEILING_LIGHT = "Ceiling Light"
    CEILING_FLOODLIGHT = "Ceiling Floodlight"
    FLOODLIGHT = "Floodlight"
    LED_STRIP_LIGHT = "LED Strip Light"
    FLUORESCENT_1_TUBE = "Fluorescent 1 Tube"
    FLUORESCENT_2_TUBE = "Fluorescent 2 Tube"
    RECESSED_LIGHT_600 = "Recessed Light 600x600"
    RECESSED_LIGHT_1200 = "Recessed Light 1200x600"
    PHOTO_CELL = "Photo Cell"
    GENERAL_LIGHT_SWITCH = "General Light Switch"
    TWO_WAY_LIGHT_SWITCH = "Two Way Light Switch"
    DIMMER_SWITCH = "Dimmer Switch"
    WATERTIGHT_LIGHT_SWITCH = "Watertight Light Switch"
    MOTION_SENSOR = "Motion Sensor"
    SOCKET_16A = "16A Socket"
    SOCKET_DOUBLE = "Double Socket"
    SOCKET_16A_TP = "16A TP Socket"
    CLEAN_POWER_OUTLET = "Clean Power Outlet"
    EMERGENCY_SOCKET = "Emergency Socket"
    UPS_SOCKET = "UPS Socket"
    SINGLE_PHASE_OUTLET = "Single Phase Outlet"
    THREE_PHASE_OUTLET = "Three Phase Outlet"
    GEYSER_OUTLET = "Geyser Outlet"
    FLUSH_FLOOR_OUTLET = "Flush Floor Outlet"
    BOX_FLUSH_FLOOR = "Box Flush Floor"
    WORKSTATION_OUTLET = "Workstation Outlet"
    DATA_SOCKET = "Data Socket"
    TELEPHONE_OUTLET = "Telephone Outlet"
    TV_OUTLET = "TV Outlet"
    AC_CONTROLLER_BOX = "AC Controller Box"
    BREAK_GLASS_UNIT = "Break Glass Unit"
    CCTV_CAMERA = "CCTV Camera"
    MANHOLE = "Manhole"
    DRAWBOX_50 = "Drawbox 50"
    DRAWBOX_100 = "Drawbox 100"


class ContainmentType(Enum):
    """Cable containment systems drawn as polylines"""
    CABLE_TRAY = "Cable Tray"
    TELKOM_BASKET = "Telkom Basket"
    SECURITY_BASKET = "Security Basket"
    SLEEVES = "Sleeves"
    POWERSKIRTING = "Powerskirting"
    P2000_TRUNKING = "P2000 Trunking"
    P8000_TRUNKING = "P8000 Trunking"
    P9000_TRUNKING = "P9000 Trunking"
    CONDUIT_20MM = "20mm Conduit"
    CONDUIT_25MM = "25mm Conduit"
    CONDUIT_32MM = "32mm Conduit"
    CONDUIT_40MM = "40mm Conduit"
    CONDUIT_50MM = "50mm Conduit"


class VoltageClass(Enum):
    """Supply line voltage classes"""
    MV = "mv"
    LV = "lv"
    DC = "dc"


class PanelOrientation(Enum):
    """PV panel orientation within an array"""
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


# Default footprint (meters, square) for symbols without a catalog size
DEFAULT_EQUIPMENT_SIZE_M = 0.5

# Real-world footprints in meters as (width, height)
EQUIPMENT_REAL_SIZES = {
    EquipmentType.LED_STRIP_LIGHT: (1.2, 0.15),
    EquipmentType.RECESSED_LIGHT_1200: (1.2, 0.15),
    EquipmentType.FLUORESCENT_2_TUBE: (1.2, 0.15),
    EquipmentType.RECESSED_LIGHT_600: (0.6, 0.6),
}

# Containment sized by an explicit form entry; everything else is sized by its type
SIZED_CONTAINMENT_TYPES = frozenset({
    ContainmentType.CABLE_TRAY,
    ContainmentType.TELKOM_BASKET,
    ContainmentType.SECURITY_BASKET,
})

# Typical size choices offered for sized containment (mm)
STANDARD_CONTAINMENT_SIZES = {
    ContainmentType.CABLE_TRAY: ['100mm', '150mm', '200mm', '300mm', '450mm', '600mm'],
    ContainmentType.TELKOM_BASKET: ['50mm', '100mm', '150mm', '200mm'],
    ContainmentType.SECURITY_BASKET: ['50mm', '100mm', '150mm', '200mm'],
}


def real_size_for(equipment_type):
    """Return the (width_m, height_m) footprint of an equipment symbol"""
    equipment_type = EquipmentType(equipment_type)
    return EQUIPMENT_REAL_SIZES.get(
        equipment_type, (DEFAULT_EQUIPMENT_SIZE_M, DEFAULT_EQUIPMENT_SIZE_M)
    )


def requires_size(containment_type):
    """True when drawing this containment type needs a size from the user"""
    return ContainmentType(containment_type) in SIZED_CONTAINMENT_TYPES
