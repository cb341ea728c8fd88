# Errors - Exception types for the probe engine
#
# None of these is fatal: each leaves the previous valid state intact.


class ProbeError(RuntimeError):
    """Base class for probe engine errors."""

    prefix = "Probe Error"

    def __init__(self, message):
        self.original_message = message
        super().__init__(f"{self.prefix}: {message}")

    def __str__(self):
        return f"{self.prefix}: {self.original_message}"


class NotReady(ProbeError):
    """A probe cycle was requested while the machine cannot probe."""

    prefix = "Not Ready"


class InvalidParameter(ProbeError):
    """Malformed numeric or enumeration input to probe generation."""

    prefix = "Invalid Parameter"


class UnrecognizedFirmware(ProbeError):
    """Controller type outside the supported firmware families."""

    prefix = "Unrecognized Firmware"
