# ControllerState - Canonical machine status from per-firmware reports
#
# Grbl, Marlin, Smoothie and TinyG push their status objects with
# different key paths. normalize() folds any of them into a single
# MachineStatus snapshot. Snapshots are immutable; every status push
# produces a new one.

import logging
from collections import namedtuple

from .Errors import UnrecognizedFirmware
from .Units import METRIC_UNITS, UNITS_MODAL

log = logging.getLogger(__name__)

# Firmware families
GRBL = "Grbl"
MARLIN = "Marlin"
SMOOTHIE = "Smoothie"
TINYG = "TinyG"

FIRMWARES = (GRBL, MARLIN, SMOOTHIE, TINYG)

# Machine states
GRBL_MACHINE_STATE_IDLE = "Idle"
SMOOTHIE_MACHINE_STATE_IDLE = "Idle"

# TinyG reports its machine state as a number
TINYG_MACHINE_STATE_INITIALIZING = 0
TINYG_MACHINE_STATE_READY = 1
TINYG_MACHINE_STATE_ALARM = 2
TINYG_MACHINE_STATE_STOP = 3
TINYG_MACHINE_STATE_END = 4
TINYG_MACHINE_STATE_RUN = 5
TINYG_MACHINE_STATE_HOLD = 6
TINYG_MACHINE_STATE_PROBE = 7

# Work coordinate systems and their G10 L20 P-register
WCS = ("G54", "G55", "G56", "G57", "G58", "G59")
WCS_REGISTER = {wcs: i for i, wcs in enumerate(WCS, 1)}
DEFAULT_WCS = WCS[0]


# Key paths per firmware: (units/wcs modal group, machine state).
# Marlin has no machine state and never reports a wcs.
_STATUS_PATHS = {
    GRBL: (("parserstate", "modal"), ("status", "machineState")),
    MARLIN: (("modal",), None),
    SMOOTHIE: (("parserstate", "modal"), ("status", "machineState")),
    TINYG: (("sr", "modal"), ("sr", "machineState")),
}


MachineStatus = namedtuple(
    "MachineStatus",
    ["firmware", "unit", "wcs", "machine_state", "connected", "port"],
)
MachineStatus.__doc__ = """Canonical controller snapshot.

firmware       one of FIRMWARES, or None before the first report
unit           METRIC_UNITS or IMPERIAL_UNITS
wcs            active work coordinate system (G54..G59)
machine_state  opaque per-firmware readiness token
connected      True while the serial port is open
port           port name reported on connect
"""


def default_status(firmware=None, port=None, connected=False):
    return MachineStatus(
        firmware=firmware,
        unit=METRIC_UNITS,
        wcs=DEFAULT_WCS,
        machine_state=None,
        connected=connected,
        port=port,
    )


def get_path(obj, path, default=None):
    """Walk nested mappings along ``path``.

    Anything that is not a mapping on the way counts as missing.
    """
    for key in path:
        if not isinstance(obj, dict):
            return default
        obj = obj.get(key)
        if obj is None:
            return default
    return obj


def wcs_register(wcs):
    """Return the G10 P-register (1..6) for a WCS, 1 when unknown."""
    if not isinstance(wcs, str):
        return 1
    return WCS_REGISTER.get(wcs, 1)


def _status_paths(firmware):
    try:
        return _STATUS_PATHS[firmware]
    except (KeyError, TypeError):
        raise UnrecognizedFirmware(repr(firmware)) from None


def normalize(firmware, raw_status, previous=None):
    """Fold a firmware status report into a new MachineStatus.

    Args:
        firmware: Controller type as reported by the transport.
        raw_status: Deserialized status object for that firmware.
        previous: The MachineStatus being replaced.

    Returns:
        MachineStatus: the new snapshot. When the firmware is not
        recognized, ``previous`` is returned untouched. A missing or
        unknown unit token keeps the previous unit; a missing or
        unknown wcs falls back to G54.
    """
    if previous is None:
        previous = default_status()

    try:
        modal_path, state_path = _status_paths(firmware)
    except UnrecognizedFirmware as e:
        log.warning("%s, keeping previous controller state", e)
        return previous

    modal = get_path(raw_status, modal_path, {})
    unit = previous.unit
    wcs = DEFAULT_WCS
    if isinstance(modal, dict):
        token = modal.get("units")
        if isinstance(token, str):
            unit = UNITS_MODAL.get(token, unit)
        if modal.get("wcs") in WCS:
            wcs = modal["wcs"]

    machine_state = None
    if state_path is not None:
        machine_state = get_path(raw_status, state_path)

    return previous._replace(
        firmware=firmware,
        unit=unit,
        wcs=wcs,
        machine_state=machine_state,
    )


def units_changed(previous, current):
    return previous.unit != current.unit
