# WidgetConfig - Persisted per-widget key/value configuration
#
# An ini file holds one section per widget id; dotted keys are plain
# option names inside that section. Typed getters never raise: any
# missing or unparsable value falls back to the default.

import configparser
import logging
import os

log = logging.getLogger(__name__)

__prg__ = "cncprobe"

iniUser = os.path.expanduser(f"~/.{__prg__}")


def newConfiguration():
    config = configparser.ConfigParser(interpolation=None)
    config.optionxform = str  # keep camelCase keys as written
    return config


# -----------------------------------------------------------------------------
# Load configuration
# -----------------------------------------------------------------------------
def loadConfiguration(filenames=None, config=None):
    """Read one or more ini files into ``config`` (a new parser if None).

    Missing files are skipped.
    """
    if config is None:
        config = newConfiguration()
    if filenames is None:
        filenames = [iniUser]
    elif isinstance(filenames, (str, os.PathLike)):
        filenames = [filenames]
    read = config.read(filenames)
    log.debug("Loaded configuration from %s", read)
    return config


# -----------------------------------------------------------------------------
# Save configuration file
# -----------------------------------------------------------------------------
def saveConfiguration(config, filename=None):
    if filename is None:
        filename = iniUser
    with open(filename, "w") as f:
        config.write(f)


class WidgetConfig:
    """get/set access to one widget's section of the configuration."""

    def __init__(self, widget_id, config=None):
        self.widget_id = widget_id
        self.config = config if config is not None else newConfiguration()

    def _addSection(self):
        if not self.config.has_section(self.widget_id):
            self.config.add_section(self.widget_id)

    # ----------------------------------------------------------------------
    def get(self, key, default=None):
        try:
            return self.config.get(self.widget_id, key)
        except (configparser.NoSectionError, configparser.NoOptionError):
            return default

    # ----------------------------------------------------------------------
    def set(self, key, value):
        self._addSection()
        if isinstance(value, bool):
            value = int(value)
        self.config.set(self.widget_id, key, str(value))

    # ----------------------------------------------------------------------
    def has(self, key):
        return self.config.has_option(self.widget_id, key)

    # ----------------------------------------------------------------------
    def getStr(self, key, default=""):
        return self.get(key, default)

    # ----------------------------------------------------------------------
    def getFloat(self, key, default=0.0):
        try:
            return float(self.get(key, default))
        except (TypeError, ValueError):
            return default

    # ----------------------------------------------------------------------
    def getBool(self, key, default=False):
        try:
            return bool(int(self.get(key, default)))
        except (TypeError, ValueError):
            return default
