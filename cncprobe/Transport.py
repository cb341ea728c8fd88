# Transport - Controller transport interface
#
# The real serial transport lives outside this package. It publishes
# the events below on an EventBus and accepts batched G-code through
# submit(). LoopbackTransport implements the same surface in-process:
# it records submitted batches and lets callers replay controller
# events.

import logging
from queue import Queue

from .EventBus import EventBus

log = logging.getLogger(__name__)

# Events published by the transport
SERIALPORT_OPEN = "serialport:open"        # (options)
SERIALPORT_CLOSE = "serialport:close"      # (options)
CONTROLLER_STATE = "controller:state"      # (type, state)
WORKFLOW_STATE = "workflow:state"          # (state)
SENDER_STATUS = "sender:status"            # (data)
GCODE_BBOX = "gcode:bbox"                  # (bbox)
GCODE_UNLOAD = "gcode:unload"              # ()


class LoopbackTransport:
    """In-process transport that records G-code instead of sending it."""

    def __init__(self, bus=None):
        self.bus = bus if bus is not None else EventBus()
        self.submitted = Queue()
        self.port = None
        self.controller_type = None

    # ------------------------------------------------------------------
    # Outgoing
    # ------------------------------------------------------------------
    def submit(self, lines):
        """Queue one batch of G-code lines.

        Returns:
            True if the batch was accepted (port open).
        """
        if self.port is None:
            log.debug("Dropping %d lines, port closed", len(lines))
            return False
        self.submitted.put(list(lines))
        return True

    def drain(self):
        """Return and clear all submitted batches, oldest first."""
        batches = []
        while not self.submitted.empty():
            batches.append(self.submitted.get())
        return batches

    # ------------------------------------------------------------------
    # Incoming (replayed controller events)
    # ------------------------------------------------------------------
    def open(self, port, controller_type):
        self.port = port
        self.controller_type = controller_type
        self.bus.emit(SERIALPORT_OPEN, {
            "port": port,
            "controllerType": controller_type,
        })

    def close(self):
        options = {"port": self.port}
        self.port = None
        self.controller_type = None
        self.bus.emit(SERIALPORT_CLOSE, options)

    def controller_state(self, controller_type, state):
        self.bus.emit(CONTROLLER_STATE, controller_type, state)

    def workflow_state(self, state):
        self.bus.emit(WORKFLOW_STATE, state)

    def sender_status(self, data):
        self.bus.emit(SENDER_STATUS, data)

    def gcode_bbox(self, bbox):
        self.bus.emit(GCODE_BBOX, bbox)

    def gcode_unload(self):
        self.bus.emit(GCODE_UNLOAD)
