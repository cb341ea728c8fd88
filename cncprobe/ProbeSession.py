# ProbeSession - Probe widget state machine
#
# Owns the probe parameters and the canonical machine status, reacts to
# transport events (port open/close, controller state, workflow state)
# and, on request, generates a probe cycle and submits it to the
# transport as one batch.
#
#   disconnected --open--> idle --run_probe--> awaiting-probe-result
#        ^                  ^                          |
#        +------close-------+-----workflow idle--------+
#
# Parameters are kept in the controller's current units (what the user
# sees and what the generated G-code uses) and persisted in millimeters.

import logging
import math
from collections import namedtuple

from .ControllerState import default_status, normalize, units_changed
from .Errors import InvalidParameter, NotReady
from .ProbeCycle import AXES, PROBE_COMMANDS, ProbeParameters, generate
from .Readiness import WORKFLOW_STATE_IDLE
from .Readiness import can_probe as readiness_can_probe
from .Transport import (
    CONTROLLER_STATE, SERIALPORT_CLOSE, SERIALPORT_OPEN, WORKFLOW_STATE,
)
from .Units import map_units_to_value, map_value_to_units

log = logging.getLogger(__name__)

# Session states
DISCONNECTED = "disconnected"
IDLE = "idle"
AWAITING_PROBE_RESULT = "awaiting-probe-result"

# Persisted configuration keys (values in mm)
NUMERIC_KEYS = (
    ("depth", "probeDepth"),
    ("feedrate", "probeFeedrate"),
    ("touch_plate_height", "touchPlateHeight"),
    ("retraction_distance", "retractionDistance"),
)


SessionSnapshot = namedtuple(
    "SessionSnapshot",
    ["state", "status", "params", "workflow", "can_probe"],
)


def _to_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def _to_number(value):
    """Coerce edited input to float, keeping it raw when it is not numeric."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return value
    return value


def _persistable(value):
    return (
        isinstance(value, float)
        and math.isfinite(value)
        and value >= 0
    )


class ProbeSession:
    """Probe widget controller.

    Collaborators are injected:
        transport: anything with submit(lines). A False return means
            the batch was refused.
        config: persisted store with get(key, default) / set(key, value).
    """

    def __init__(self, transport, config):
        self.transport = transport
        self.config = config
        self._observers = []
        self._bus = None
        self._handlers = {
            SERIALPORT_OPEN: self.on_connect,
            SERIALPORT_CLOSE: self.on_disconnect,
            CONTROLLER_STATE: self.on_controller_state,
            WORKFLOW_STATE: self.on_workflow_state,
        }
        # Skip exactly one flush after a unit change, so a value that was
        # only re-rendered in the other unit is not written back.
        self._units_did_change = False
        self._reset()

    # ------------------------------------------------------------------
    # Initial state
    # ------------------------------------------------------------------
    def _reset(self):
        self.state = DISCONNECTED
        self.status = default_status()
        self.workflow = WORKFLOW_STATE_IDLE
        self.params = self._load_parameters()
        self._units_did_change = False

    def _load_parameters(self):
        axis = self.config.get("probeAxis", "Z")
        if axis not in AXES:
            axis = "Z"
        command = self.config.get("probeCommand", "G38.2")
        if command not in PROBE_COMMANDS:
            command = "G38.2"
        return ProbeParameters(
            axis=axis,
            command=command,
            use_tlo=_to_bool(self.config.get("useTLO", False)),
            **self._load_numbers(self.status.unit)
        )

    def _load_numbers(self, unit):
        numbers = {}
        for field, key in NUMERIC_KEYS:
            numbers[field] = map_value_to_units(self.config.get(key, 0), unit)
        return numbers

    # ------------------------------------------------------------------
    # Event feed
    # ------------------------------------------------------------------
    def attach(self, bus):
        """Subscribe to the transport events published on ``bus``."""
        self.detach()
        self._bus = bus
        bus.on_many(self._handlers)

    def detach(self):
        if self._bus is not None:
            self._bus.off_many(self._handlers)
            self._bus = None

    def on_connect(self, options):
        options = options or {}
        port = options.get("port")
        firmware = options.get("controllerType")
        log.info("Connected to %s (%s)", port, firmware)
        self.state = IDLE
        self.status = default_status(
            firmware=firmware, port=port, connected=True)
        self._notify()

    def on_disconnect(self, options=None):
        log.info("Disconnected from %s", self.status.port)
        self._reset()
        self._notify()

    def on_controller_state(self, controller_type, state):
        if self.state == DISCONNECTED:
            log.debug("Ignoring controller state while disconnected")
            return

        previous = self.status
        status = normalize(controller_type, state, previous)
        if units_changed(previous, status):
            self._units_did_change = True
        self.status = status

        # Re-render the persisted values in the (possibly new) unit
        self.params = self.params._replace(**self._load_numbers(status.unit))
        self._flush()
        self._notify()

    def on_workflow_state(self, workflow):
        if self.state == DISCONNECTED:
            log.debug("Ignoring workflow state while disconnected")
            return
        self.workflow = workflow
        if (self.state == AWAITING_PROBE_RESULT
                and workflow == WORKFLOW_STATE_IDLE):
            self.state = IDLE
        self._notify()

    # ------------------------------------------------------------------
    # Parameter edits
    # ------------------------------------------------------------------
    def edit_axis(self, axis):
        if axis not in AXES:
            raise InvalidParameter(f"probe axis must be one of X, Y, Z, "
                                   f"got {axis!r}")
        self._update(axis=axis)

    def edit_command(self, command):
        if command not in PROBE_COMMANDS:
            raise InvalidParameter(f"unknown probe command {command!r}")
        self._update(command=command)

    def toggle_tlo(self):
        self._update(use_tlo=not self.params.use_tlo)

    def edit_depth(self, value):
        self._update(depth=_to_number(value))

    def edit_feedrate(self, value):
        self._update(feedrate=_to_number(value))

    def edit_plate_height(self, value):
        self._update(touch_plate_height=_to_number(value))

    def edit_retraction(self, value):
        self._update(retraction_distance=_to_number(value))

    def _update(self, **changes):
        self.params = self.params._replace(**changes)
        self._flush()
        self._notify()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _flush(self):
        if self._units_did_change:
            self._units_did_change = False
            log.debug("Units changed, configuration not saved this cycle")
            return

        params = self.params
        self.config.set("probeAxis", params.axis)
        self.config.set("probeCommand", params.command)
        self.config.set("useTLO", bool(params.use_tlo))

        unit = self.status.unit
        for field, key in NUMERIC_KEYS:
            value = getattr(params, field)
            if not _persistable(value):
                log.debug("Not saving %s=%r", key, value)
                continue
            # An unedited value re-rendered in inches would lose precision
            if value == map_value_to_units(self.config.get(key, 0), unit):
                continue
            self.config.set(key, map_units_to_value(value, unit))

    # ------------------------------------------------------------------
    # Probe
    # ------------------------------------------------------------------
    def can_probe(self):
        return readiness_can_probe(
            self.status, self.workflow, self.status.connected)

    def preview_probe(self):
        """Commented command list for the current parameters.

        Raises:
            InvalidParameter: on malformed parameters.
        """
        return generate(self.params, self.status.wcs, comments=True)

    def run_probe(self):
        """Generate the probe cycle and submit it as a single batch.

        Returns:
            The submitted list of G-code lines.

        Raises:
            NotReady: the machine cannot probe now; nothing is sent.
            InvalidParameter: malformed parameters; nothing is sent.
        """
        if not self.can_probe():
            raise NotReady("machine is not ready to probe")

        lines = generate(self.params, self.status.wcs)
        if self.transport.submit(lines) is False:
            raise NotReady("Not connected or already running.")

        log.info("Probe cycle submitted (%d lines, %s)",
                 len(lines), "TLO" if self.params.use_tlo else self.status.wcs)
        self.state = AWAITING_PROBE_RESULT
        self._notify()
        return lines

    # ------------------------------------------------------------------
    # Snapshots for presentation
    # ------------------------------------------------------------------
    def snapshot(self):
        return SessionSnapshot(
            state=self.state,
            status=self.status,
            params=self.params,
            workflow=self.workflow,
            can_probe=self.can_probe(),
        )

    def observe(self, callback):
        """Register callback(snapshot), called after every change."""
        if callback not in self._observers:
            self._observers.append(callback)

    def unobserve(self, callback):
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self):
        snapshot = self.snapshot()
        for callback in list(self._observers):
            try:
                callback(snapshot)
            except Exception:
                log.exception("Probe session observer %r failed", callback)
