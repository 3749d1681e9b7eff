from typing import Any, Optional


class RegistryError(Exception):
    """Base class for all methodreg errors."""


class AlreadyRegisteredError(RegistryError):
    """Raised on a name collision when overwriting is forbidden."""


class InvalidInstanceError(RegistryError, TypeError):
    """Raised when `register` is given something that is not an object
    instance of a user-defined class (a class, a module, a builtin value)."""


class MethodNotFoundError(RegistryError, LookupError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Method {name!r} not found")


class ConversionError(RegistryError, TypeError):
    """Raised by the conversion policy when a value cannot be re-typed."""

    def __init__(self, source: Any, target: Any, message: Optional[str] = None):
        self.source = source
        self.target = target
        super().__init__(message or f"{source!r} is not convertible to {target!r}")


class ArgumentMismatchError(RegistryError, TypeError):
    """Base class for call-time argument errors."""


class ArgumentCountMismatchError(ArgumentMismatchError):
    def __init__(self, name: str, expected: int, given: int) -> None:
        self.name = name
        self.expected = expected
        self.given = given
        super().__init__(
            f"{name} takes {expected} argument(s) but {given} were given"
        )


class ArgumentTypeMismatchError(ArgumentMismatchError):
    def __init__(self, name: str, position: int, source: Any, target: Any) -> None:
        self.name = name
        self.position = position
        self.source = source
        self.target = target
        super().__init__(
            f"{name}: argument {position} of type {source!r} "
            f"is not convertible to {target!r}"
        )


class ReturnTypeMismatchError(RegistryError, TypeError):
    """Raised when a method's result does not fit its declared return types."""


__all__ = [
    "RegistryError",
    "AlreadyRegisteredError",
    "InvalidInstanceError",
    "MethodNotFoundError",
    "ConversionError",
    "ArgumentMismatchError",
    "ArgumentCountMismatchError",
    "ArgumentTypeMismatchError",
    "ReturnTypeMismatchError",
]
