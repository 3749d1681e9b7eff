"""methodreg — call object methods by name.

This package exposes a thread-safe `Registry` that collects the public
methods of registered objects under qualified names such as
``"com.example.device.monitor.Display"`` and calls them with runtime
argument checking and conversion.
"""
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from pathlib import Path
from typing import Optional

from methodreg.core import (
    ConversionPolicy,
    MethodEntry,
    OverwritePolicy,
    Registry,
)
from methodreg.exceptions import (
    AlreadyRegisteredError,
    ArgumentCountMismatchError,
    ArgumentMismatchError,
    ArgumentTypeMismatchError,
    ConversionError,
    InvalidInstanceError,
    MethodNotFoundError,
    RegistryError,
    ReturnTypeMismatchError,
)


def _read_version_file() -> Optional[str]:
    try:
        return Path(__file__).with_name("VERSION").read_text(encoding="utf8").strip()
    except OSError:
        return None


def _get_version() -> str:
    # 1) Try to read installed distribution metadata
    try:
        return _pkg_version("methodreg")
    except PackageNotFoundError:
        pass

    # 2) Try a VERSION file shipped next to the package
    v = _read_version_file()
    if v:
        return v

    # 3) Fall back to a safe default
    return "0.0.0"


__version__ = _get_version()


__all__ = [
    "Registry",
    "MethodEntry",
    "ConversionPolicy",
    "OverwritePolicy",
    "RegistryError",
    "AlreadyRegisteredError",
    "ArgumentMismatchError",
    "ArgumentCountMismatchError",
    "ArgumentTypeMismatchError",
    "ConversionError",
    "InvalidInstanceError",
    "MethodNotFoundError",
    "ReturnTypeMismatchError",
    "__version__",
]
