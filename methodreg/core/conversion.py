import logging
from decimal import Decimal
from fractions import Fraction
from types import UnionType
from typing import (
    Any,
    Dict,
    Iterator,
    Literal,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
    Union,
    get_args,
    get_origin,
)

from methodreg._types import ConversionKey, Converter
from methodreg.exceptions import ConversionError

logger = logging.getLogger(__name__)

NoneType = type(None)

# Errors a converter may raise for a value that is out of range or malformed.
_CONVERTER_ERRORS = (ValueError, OverflowError, TypeError, ArithmeticError)


def _encode(value: str) -> bytes:
    return value.encode("utf-8")


def _encode_mutable(value: str) -> bytearray:
    return bytearray(value, "utf-8")


def _decode(value: Any) -> str:
    return bytes(value).decode("utf-8")


DEFAULT_CONVERSIONS: Dict[ConversionKey, Converter] = {
    # numeric widening
    (int, float): float,
    (int, complex): complex,
    (float, complex): complex,
    # numeric narrowing, truncates toward zero
    (float, int): int,
    (Decimal, int): int,
    (Fraction, int): int,
    (Decimal, float): float,
    (Fraction, float): float,
    # exact numeric types
    (int, Decimal): Decimal,
    (float, Decimal): Decimal,
    (int, Fraction): Fraction,
    (float, Fraction): Fraction,
    # string-like
    (str, bytes): _encode,
    (str, bytearray): _encode_mutable,
    (bytes, str): _decode,
    (bytearray, str): _decode,
    (bytes, bytearray): bytearray,
    (bytearray, bytes): bytes,
}


def resolve_type(target: Any) -> Any:
    """Strip `NewType` wrappers down to the runtime class."""
    while hasattr(target, "__supertype__"):
        target = target.__supertype__
    return target


def accepts_anything(target: Any) -> bool:
    return target is Any or target is object or isinstance(target, TypeVar)


def is_union(target: Any) -> bool:
    origin = get_origin(target)
    return origin is Union or origin is UnionType


def is_plain_class(target: Any) -> bool:
    # list[int] passes isinstance(..., type) on 3.10 but is not usable there.
    return isinstance(target, type) and get_origin(target) is None


def _matches_literal(value: Any, target: Any) -> bool:
    return any(type(value) is type(arg) and value == arg for arg in get_args(target))


def _bool_for_number(source: type, target: type) -> bool:
    # bool is an int subclass but never stands in for a number.
    return issubclass(source, bool) and target in (int, float, complex)


def _subclass_of(source: type, target: type) -> bool:
    return not _bool_for_number(source, target) and issubclass(source, target)


def _matches_class(value: Any, target: type) -> bool:
    return not _bool_for_number(type(value), target) and isinstance(value, target)


class ConversionPolicy:
    """
    Explicit table of the conversions allowed when marshaling values to a
    declared type.

    A value whose type already satisfies the declared type passes unchanged.
    Otherwise the rule registered for the exact pair
    ``(type(value), declared type)`` is applied. There is no implicit
    fallback: a pair missing from the table is not convertible.

    Examples:
        >>> policy = ConversionPolicy()
        >>> policy.convert(3, float)
        3.0
        >>> policy.convert("abc", bytes)
        b'abc'
        >>> @policy.register(str, int)
        ... def parse_int(value: str) -> int:
        ...     return int(value, 10)
        >>> policy.convert("42", int)
        42
    """

    def __init__(self, rules: Optional[Mapping[ConversionKey, Converter]] = None):
        self._rules: Dict[ConversionKey, Converter] = dict(
            DEFAULT_CONVERSIONS if rules is None else rules
        )

    def register(
        self, source: type, target: type, converter: Optional[Converter] = None
    ) -> Any:
        """
        Add or replace the rule converting ``source`` values to ``target``.

        Can be called directly with a converter, or used as a decorator when
        ``converter`` is omitted.

        Raises:
            TypeError: If source or target is not a class, or the converter
                is not callable.
        """
        if not is_plain_class(source) or not is_plain_class(target):
            raise TypeError("Conversion rules are keyed by classes")

        def decorator(func: Converter) -> Converter:
            if not callable(func):
                raise TypeError(f"Converter must be callable, got {type(func)}")
            self._rules[(source, target)] = func
            logger.debug(
                "Conversion rule %s -> %s registered", source.__name__, target.__name__
            )
            return func

        if converter is None:
            return decorator
        return decorator(converter)

    def can_convert(self, source: type, target: Any) -> bool:
        """
        Whether values of class ``source`` are accepted for ``target`` by
        `convert`, either unchanged or through a rule.

        Literal targets depend on the value, not its class, and always
        answer False. A True answer does not promise that every value
        converts: ``float("inf")`` still fails for ``int``.
        """
        target = resolve_type(target)
        if accepts_anything(target):
            return True
        if target is None or target is NoneType:
            return source is NoneType
        if is_union(target):
            return any(self.can_convert(source, m) for m in get_args(target))
        origin = get_origin(target)
        if origin is Literal:
            return False
        if origin is not None:
            return isinstance(origin, type) and issubclass(source, origin)
        if not is_plain_class(target):
            return False
        return _subclass_of(source, target) or (source, target) in self._rules

    def copy(self) -> "ConversionPolicy":
        return type(self)(self._rules)

    def convert(self, value: Any, target: Any) -> Any:
        """
        Return ``value`` re-typed to the declared type ``target``.

        Raises:
            ConversionError: If the value does not satisfy the declared type
                and no rule converts it.
        """
        target = resolve_type(target)
        if accepts_anything(target):
            return value
        if target is None or target is NoneType:
            if value is None:
                return None
            raise ConversionError(type(value), target)
        if is_union(target):
            return self._convert_union(value, target)

        origin = get_origin(target)
        if origin is Literal:
            if _matches_literal(value, target):
                return value
            raise ConversionError(type(value), target)
        if origin is not None:
            # Parameterized generics are only checked against their origin.
            if isinstance(origin, type) and isinstance(value, origin):
                return value
            raise ConversionError(type(value), target)
        if not is_plain_class(target):
            raise ConversionError(
                type(value), target, f"Unsupported declared type {target!r}"
            )

        if _matches_class(value, target):
            return value
        converter = self._rules.get((type(value), target))
        if converter is None:
            raise ConversionError(type(value), target)
        try:
            return converter(value)
        except _CONVERTER_ERRORS as exc:
            raise ConversionError(
                type(value), target, f"Cannot convert {value!r} to {target!r}: {exc}"
            ) from exc

    def _convert_union(self, value: Any, target: Any) -> Any:
        members: Tuple[Any, ...] = get_args(target)
        for member in members:
            if self._matches_exactly(value, resolve_type(member)):
                return value
        for member in members:
            try:
                return self.convert(value, member)
            except ConversionError:
                continue
        raise ConversionError(type(value), target)

    @staticmethod
    def _matches_exactly(value: Any, target: Any) -> bool:
        if accepts_anything(target):
            return True
        if target is None or target is NoneType:
            return value is None
        return is_plain_class(target) and _matches_class(value, target)

    def __contains__(self, key: object) -> bool:
        return key in self._rules

    def __iter__(self) -> Iterator[ConversionKey]:
        return iter(list(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({len(self._rules)} rules)"


__all__ = [
    "ConversionPolicy",
    "DEFAULT_CONVERSIONS",
    "accepts_anything",
    "is_plain_class",
    "is_union",
    "resolve_type",
]
