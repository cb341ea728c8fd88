# GCodeStatus - G-code sender progress and bounding box tracking
#
# Follows the sender progress reports and the bounding box of the
# loaded program. Bounding boxes arrive in millimeters and are reported
# in the controller's display unit, which is tracked through the same
# normalizer the probe session uses.

import logging

from .ControllerState import default_status, normalize
from .Transport import (
    CONTROLLER_STATE, GCODE_BBOX, GCODE_UNLOAD, SENDER_STATUS,
    SERIALPORT_CLOSE, SERIALPORT_OPEN,
)
from .Units import map_position_to_units

log = logging.getLogger(__name__)

AXES = ("x", "y", "z")

SENDER_FIELDS = (
    "total",
    "sent",
    "received",
    "startTime",
    "finishTime",
    "elapsedTime",
    "remainingTime",
)


def _empty_bbox():
    return {
        "min": dict.fromkeys(AXES, 0),
        "max": dict.fromkeys(AXES, 0),
        "delta": dict.fromkeys(AXES, 0),
    }


class GCodeStatus:
    """Sender progress and program bounding box for one connection."""

    def __init__(self):
        self._bus = None
        self._handlers = {
            SERIALPORT_OPEN: self.on_connect,
            SERIALPORT_CLOSE: self.on_disconnect,
            CONTROLLER_STATE: self.on_controller_state,
            SENDER_STATUS: self.on_sender_status,
            GCODE_BBOX: self.on_bbox,
            GCODE_UNLOAD: self.on_unload,
        }
        self._reset()

    def _reset(self):
        self.status = default_status()
        self.sender = dict.fromkeys(SENDER_FIELDS, 0)
        self._bbox = _empty_bbox()

    @property
    def unit(self):
        return self.status.unit

    # ------------------------------------------------------------------
    def attach(self, bus):
        self.detach()
        self._bus = bus
        bus.on_many(self._handlers)

    def detach(self):
        if self._bus is not None:
            self._bus.off_many(self._handlers)
            self._bus = None

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def on_connect(self, options):
        options = options or {}
        self.status = self.status._replace(
            port=options.get("port"), connected=True)

    def on_disconnect(self, options=None):
        self._reset()

    def on_controller_state(self, controller_type, state):
        self.status = normalize(controller_type, state, self.status)

    def on_sender_status(self, data):
        """Update progress counters; fields absent from ``data`` keep
        their last value."""
        data = data or {}
        for field in SENDER_FIELDS:
            if field in data:
                self.sender[field] = data[field]

    def on_bbox(self, bbox):
        bbox = bbox or {}
        lo = bbox.get("min", {})
        hi = bbox.get("max", {})
        box = _empty_bbox()
        for axis in AXES:
            box["min"][axis] = lo.get(axis, 0)
            box["max"][axis] = hi.get(axis, 0)
            box["delta"][axis] = box["max"][axis] - box["min"][axis]
        self._bbox = box
        log.debug("Bounding box %s", box)

    def on_unload(self):
        self._bbox = _empty_bbox()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def bbox(self):
        """Bounding box {min, max, delta} in the display unit."""
        unit = self.unit
        return {
            corner: {
                axis: map_position_to_units(pos, unit)
                for axis, pos in position.items()
            }
            for corner, position in self._bbox.items()
        }

    def progress(self):
        return dict(self.sender)
