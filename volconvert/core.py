"""Settings and small helpers shared by the converters."""

import os
import gzip
import logging
import configparser


user_settings_dir = os.path.expanduser("~/.volconvert")
user_settings = os.path.join(user_settings_dir, "settings.ini")

default_settings = {
    "nrrd": {"frame_order": "slice-major"},
    "logging": {"level": "WARNING"},
    "dicom": {"root_uid": "", "modality": "OT"},
}


def get_settings_path():
    """Return the settings file to read: $VOLCONVERT_SETTINGS if set,
    otherwise ~/.volconvert/settings.ini."""

    return fullpath(os.environ.get("VOLCONVERT_SETTINGS", user_settings))


def get_config(path=None):
    """Load settings on top of the built-in defaults. A missing settings file
    is not an error; defaults are used."""

    config = configparser.ConfigParser()
    config.read_dict(default_settings)
    if path is None:
        path = get_settings_path()
    if path and os.path.isfile(path):
        config.read(path)
    return config


def get_log_level(config=None):
    """Get numeric logging level from the [logging] section."""

    if config is None:
        config = get_config()
    name = config.get("logging", "level", fallback="WARNING").upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unrecognised logging level {name!r} in settings")
    return level


def fullpath(path=""):
    """Evaluate full path, expanding '~', environment variables, and
    symbolic links."""

    expanded = ""
    if path:
        tmp = os.path.expandvars(path.strip())
        tmp = os.path.abspath(os.path.expanduser(tmp))
        expanded = os.path.realpath(tmp)
    return expanded


def open_file(path):
    """Open a file for binary reading, transparently decompressing it if the
    name ends in .gz."""

    if str(path).endswith(".gz"):
        return gzip.open(path, "rb")
    return open(path, "rb")


def companion_path(path, ext):
    """Replace the extension of <path> (including any .gz) with <ext>."""

    path = str(path)
    if path.endswith(".gz"):
        path = path[:-3]
    return os.path.splitext(path)[0] + ext


def decode_text(raw):
    """Decode a fixed-width, NUL-padded ASCII header field."""

    return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace").strip()
