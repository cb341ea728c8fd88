# ProbeCycle - G-code generation for touch-plate probe cycles
#
# Builds the ordered command list for a single-axis probe against a
# touch plate. The result is applied either as a tool length offset
# (G43.1) or as a zero offset of the active work coordinate system
# (G10 L20). Parameters are validated before any line is produced, so
# a failed generation never yields a partial sequence.

import math
from collections import namedtuple

from .ControllerState import wcs_register
from .Errors import InvalidParameter

AXES = ("X", "Y", "Z")

PROBE_COMMANDS = ("G38.2", "G38.3", "G38.4", "G38.5")

# Probe toward the workpiece (stop on contact); the others probe away
# (stop on loss of contact).
TOWARD_WORKPIECE = ("G38.2", "G38.3")

DWELL_SECONDS = 1

# Fixed-point places written for non-integral numbers
FMT_DECIMALS = 6


ProbeParameters = namedtuple(
    "ProbeParameters",
    [
        "axis",
        "command",
        "use_tlo",
        "depth",
        "feedrate",
        "touch_plate_height",
        "retraction_distance",
    ],
)


def default_parameters():
    return ProbeParameters(
        axis="Z",
        command="G38.2",
        use_tlo=False,
        depth=0.0,
        feedrate=0.0,
        touch_plate_height=0.0,
        retraction_distance=0.0,
    )


def fmt(value):
    """Format a parameter value the way it is written on the wire.

    Floats are written in fixed-point without trailing zeros
    (10.0 -> "10", 5e-05 -> "0.00005"); controllers reject exponents.
    Strings (offset expressions) are emitted verbatim.
    """
    if isinstance(value, float):
        text = f"{value:.{FMT_DECIMALS}f}".rstrip("0").rstrip(".")
        return "0" if text == "-0" else text
    return str(value)


def gcode(cmd, params=None):
    """Render a single G-code line.

    Args:
        cmd: Mnemonic, e.g. "G10", or a "; comment".
        params: Ordered (letter, value) pairs or a dict.
            Every pair is emitted, zero included.
    """
    if not params:
        return cmd
    if isinstance(params, dict):
        params = params.items()
    words = [f"{letter.upper()}{fmt(value)}" for letter, value in params]
    return " ".join([cmd] + words)


def is_toward_workpiece(command):
    return command in TOWARD_WORKPIECE


def _is_number(value):
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _check_distance(name, value):
    if not _is_number(value) or value < 0:
        raise InvalidParameter(
            f"{name} must be a finite non-negative number, got {value!r}")


def validate(params):
    """Raise InvalidParameter unless ``params`` can be turned into G-code."""
    if params.axis not in AXES:
        raise InvalidParameter(f"probe axis must be one of X, Y, Z, "
                               f"got {params.axis!r}")
    if params.command not in PROBE_COMMANDS:
        raise InvalidParameter(f"unknown probe command {params.command!r}")
    _check_distance("probe depth", params.depth)
    _check_distance("probe feedrate", params.feedrate)
    _check_distance("retraction distance", params.retraction_distance)
    if not _is_number(params.touch_plate_height):
        raise InvalidParameter(
            "touch plate height must be a finite number, "
            f"got {params.touch_plate_height!r}")


class ProbeCycleBuilder:
    """Ordered command list with optional comment lines."""

    def __init__(self, comments=False):
        self.comments = comments
        self.lines = []

    def comment(self, text):
        if self.comments:
            self.lines.append(gcode(f"; {text}"))
        return self

    def add(self, cmd, params=None):
        self.lines.append(gcode(cmd, params))
        return self

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------
    def probe(self, axis, command, depth, feedrate):
        distance = -depth if is_toward_workpiece(command) else depth
        self.comment(f"{axis}-Probe")
        self.add("G91")
        self.add(command, [(axis, distance), ("F", feedrate)])
        self.add("G90")
        return self

    def retract(self, axis, distance):
        self.comment("Retract from the touch plate")
        self.add("G91")
        self.add("G0", [(axis, distance)])
        self.add("G90")
        return self


def tlo_commands(params, comments=False):
    """Probe, then apply the touch plate height as a tool length offset."""
    axis = params.axis
    height = fmt(params.touch_plate_height)
    posname = f"pos{axis.lower()}"
    if is_toward_workpiece(params.command):
        offset = f"[{posname}-{height}]"
    else:
        offset = f"[{posname}+{height}]"

    b = ProbeCycleBuilder(comments)
    b.comment("Cancel tool length offset")
    b.add("G49")
    b.probe(axis, params.command, params.depth, params.feedrate)
    b.comment("A dwell time of one second")
    b.add("G4", [("P", DWELL_SECONDS)])
    b.comment("Set tool length offset")
    b.add("G43.1", [(axis, offset)])
    b.retract(axis, params.retraction_distance)
    return b.lines


def wcs_commands(params, wcs, comments=False):
    """Probe, then zero the active WCS at the touch plate height."""
    axis = params.axis
    b = ProbeCycleBuilder(comments)
    b.probe(axis, params.command, params.depth, params.feedrate)
    b.comment(f"Set the active WCS {axis}0")
    b.add("G10", [
        ("L", 20),
        ("P", wcs_register(wcs)),
        (axis, params.touch_plate_height),
    ])
    b.retract(axis, params.retraction_distance)
    return b.lines


def generate(params, wcs, comments=False):
    """Generate the probe cycle for ``params`` on the active ``wcs``.

    Args:
        params: ProbeParameters in the controller's current units.
        wcs: Active work coordinate system (G54..G59).
        comments: Interleave "; ..." lines describing each step.

    Returns:
        list of G-code lines, in execution order.

    Raises:
        InvalidParameter: if the parameters are malformed. Nothing is
            generated in that case.
    """
    validate(params)
    if params.use_tlo:
        return tlo_commands(params, comments)
    return wcs_commands(params, wcs, comments)
