import inspect
from dataclasses import dataclass, field
from types import MethodType
from typing import (
    Any,
    Callable,
    Dict,
    Iterator,
    List,
    Optional,
    Sequence,
    Tuple,
    get_args,
    get_origin,
    get_type_hints,
)

from methodreg._types import TypeList
from methodreg.core.conversion import ConversionPolicy
from methodreg.core.utils import NoneType, format_signature
from methodreg.exceptions import (
    ArgumentCountMismatchError,
    ArgumentTypeMismatchError,
    ConversionError,
    InvalidInstanceError,
    ReturnTypeMismatchError,
)

_UNSUPPORTED_KINDS = (
    inspect.Parameter.VAR_POSITIONAL,
    inspect.Parameter.VAR_KEYWORD,
    inspect.Parameter.KEYWORD_ONLY,
)


def exported_methods(cls: type) -> Iterator[Tuple[str, Callable[..., Any]]]:
    """Yield ``(name, function)`` for the public instance methods of ``cls``,
    inherited ones included, sorted by name.

    Static lookup is used so that staticmethods, classmethods and properties
    are not mistaken for instance methods.
    """
    for name in sorted(dir(cls)):
        if name.startswith("_"):
            continue
        attr = inspect.getattr_static(cls, name)
        if inspect.isfunction(attr):
            yield name, attr


def is_supported(function: Callable[..., Any]) -> bool:
    """Only methods taking a receiver plus plain positional parameters can be
    called by name."""
    params = list(inspect.signature(function).parameters.values())
    if not params or params[0].kind not in (
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
    ):
        return False
    return not any(p.kind in _UNSUPPORTED_KINDS for p in params)


def split_return_types(hints: Dict[str, Any]) -> TypeList:
    """Turn a return annotation into the ordered list of returned types.

    ``-> None`` means no values, ``-> Tuple[A, B]`` means two values and a
    missing annotation means a single value of any type.
    """
    if "return" not in hints:
        return (Any,)
    ret = hints["return"]
    if ret is None or ret is NoneType:
        return ()
    if get_origin(ret) is tuple:
        args = get_args(ret)
        if args and args[-1] is not Ellipsis and args != ((),):
            return tuple(args)
    return (ret,)


@dataclass(frozen=True, eq=False)
class MethodEntry:
    """
    One registered method: the receiver it is bound to, the unbound function
    and its declared types.

    ``param_types[0]`` is always the receiver's class; the arguments a caller
    supplies are matched against ``param_types[1:]``. Entries are immutable
    once built. Entries compare by identity.
    """

    name: str
    param_types: TypeList
    return_types: TypeList
    signature: str
    receiver: Any = field(repr=False)
    function: Callable[..., Any] = field(repr=False)
    conversions: ConversionPolicy = field(repr=False)

    @classmethod
    def from_method(
        cls,
        name: str,
        receiver: Any,
        function: Callable[..., Any],
        conversions: ConversionPolicy,
    ) -> "MethodEntry":
        """
        Introspect ``function`` and build its entry.

        Raises:
            InvalidInstanceError: If the method's annotations cannot be
                resolved.
        """
        try:
            hints = get_type_hints(function)
        except (NameError, TypeError) as exc:
            raise InvalidInstanceError(
                f"Cannot resolve annotations of {name}: {exc}"
            ) from exc

        params = list(inspect.signature(function).parameters)[1:]
        param_types = (type(receiver),) + tuple(hints.get(p, Any) for p in params)
        return_types = split_return_types(hints)
        return cls(
            name=name,
            param_types=param_types,
            return_types=return_types,
            signature=format_signature(name, param_types[1:], return_types),
            receiver=receiver,
            function=function,
            conversions=conversions,
        )

    @property
    def arity(self) -> int:
        return len(self.param_types) - 1

    @property
    def argument_types(self) -> TypeList:
        return self.param_types[1:]

    @property
    def bound(self) -> Callable[..., Any]:
        return MethodType(self.function, self.receiver)

    def match(self, args: Sequence[Any]) -> List[Any]:
        """
        Check ``args`` against the declared argument types and return them
        converted where needed.

        Raises:
            ArgumentCountMismatchError: If the number of arguments differs.
            ArgumentTypeMismatchError: If an argument is not convertible.
        """
        if len(args) != self.arity:
            raise ArgumentCountMismatchError(self.name, self.arity, len(args))
        converted = []
        for position, (value, target) in enumerate(zip(args, self.argument_types)):
            try:
                converted.append(self.conversions.convert(value, target))
            except ConversionError as exc:
                raise ArgumentTypeMismatchError(
                    self.name, position, type(value), target
                ) from exc
        return converted

    def invoke(self, args: Sequence[Any]) -> Optional[List[Any]]:
        """Call the method with already matched arguments and re-type its
        results."""
        result = self.function(self.receiver, *args)
        return self._collect(result)

    def _collect(self, result: Any) -> Optional[List[Any]]:
        if not self.return_types:
            return None
        if len(self.return_types) == 1:
            values: Sequence[Any] = (result,)
        elif isinstance(result, tuple) and len(result) == len(self.return_types):
            values = result
        else:
            raise ReturnTypeMismatchError(
                f"{self.name} must return a tuple of "
                f"{len(self.return_types)} values, got {result!r}"
            )
        out = []
        for position, (value, target) in enumerate(zip(values, self.return_types)):
            try:
                out.append(self.conversions.convert(value, target))
            except ConversionError as exc:
                raise ReturnTypeMismatchError(
                    f"{self.name}: return value {position} of type "
                    f"{type(value)!r} is not convertible to {target!r}"
                ) from exc
        return out

    def __call__(self, *args: Any) -> Optional[List[Any]]:
        return self.invoke(self.match(args))

    def __str__(self) -> str:
        return self.signature
