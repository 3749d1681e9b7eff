from typing import Any, Callable, Tuple, TypeVar

K = TypeVar("K", bound=str)
V = TypeVar("V")

# A converter re-types a single value, e.g. int -> float.
Converter = Callable[[Any], Any]

# Conversion rules are keyed by (source type, target type).
ConversionKey = Tuple[type, type]

# Declared parameter or return types of a method, in order.
TypeList = Tuple[Any, ...]

__all__ = ["K", "V", "Converter", "ConversionKey", "TypeList"]
