# Readiness - Decide whether a probe cycle may be started
#
# A probe may only run on an open connection, with an idle workflow,
# on a supported firmware whose machine state reports it is ready.

from .ControllerState import (
    FIRMWARES, GRBL, MARLIN, SMOOTHIE, TINYG,
    GRBL_MACHINE_STATE_IDLE,
    SMOOTHIE_MACHINE_STATE_IDLE,
    TINYG_MACHINE_STATE_READY,
    TINYG_MACHINE_STATE_STOP,
    TINYG_MACHINE_STATE_END,
)

# Workflow states
WORKFLOW_STATE_IDLE = "idle"
WORKFLOW_STATE_PAUSED = "paused"
WORKFLOW_STATE_RUNNING = "running"

# Machine states accepted per firmware. None means the firmware has no
# machine state and always passes.
# TinyG also accepts its stopped and ended states.
READY_STATES = {
    GRBL: (GRBL_MACHINE_STATE_IDLE,),
    MARLIN: None,
    SMOOTHIE: (SMOOTHIE_MACHINE_STATE_IDLE,),
    TINYG: (
        TINYG_MACHINE_STATE_READY,
        TINYG_MACHINE_STATE_STOP,
        TINYG_MACHINE_STATE_END,
    ),
}


def machine_ready(firmware, machine_state):
    if firmware not in FIRMWARES:
        return False
    states = READY_STATES[firmware]
    if states is None:
        return True
    # bool is an int; True must not pass for TinyG's READY (1)
    if isinstance(machine_state, bool):
        return False
    return machine_state in states


def can_probe(status, workflow, connected):
    """Return True when a probe cycle may be started.

    Args:
        status: Current MachineStatus.
        workflow: Current workflow state.
        connected: Whether the serial port is open.
    """
    if not connected:
        return False
    if workflow != WORKFLOW_STATE_IDLE:
        return False
    firmware = getattr(status, "firmware", None)
    if not isinstance(firmware, str):
        return False
    return machine_ready(firmware, getattr(status, "machine_state", None))
