from enum import IntEnum
from typing import TYPE_CHECKING, Any, Callable, Iterable, cast, get_origin

from methodreg._storage import MemoryStorage, StorageProtocol
from methodreg._types import K, V

if TYPE_CHECKING:  # pragma: no cover
    from methodreg.core.registry import Registry

NoneType = type(None)


def locked_method(method: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to lock method calls for thread safety."""

    def wrapper(self: "Registry", *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            return method(self, *args, **kwargs)

    return wrapper


def _make_default_store() -> StorageProtocol[K, V]:
    """Create a default StorageProtocol[K, V] instance.

    Construct the concrete MemoryStorage() at runtime and cast it to the
    protocol with generics so the module-level type inference remains
    precise. Localizes the unavoidable cast to one place.
    """
    return cast(StorageProtocol[K, V], MemoryStorage())


class OverwritePolicy(IntEnum):
    FORBID = 0
    ALLOW = 1
    WARN = 2


def qualified_name(namespace: str, type_name: str, method_name: str) -> str:
    """Build the ``[namespace.]TypeName.method_name`` key of a method."""
    prefix = f"{namespace}." if namespace else ""
    return f"{prefix}{type_name}.{method_name}"


def type_name(tp: Any) -> str:
    """Human readable name of a declared type, as shown in signatures.

    Classes render as their ``__name__``; ``typing`` constructs render as
    their repr without the ``typing.`` prefix.

        >>> type_name(int)
        'int'
        >>> from typing import Optional
        >>> type_name(Optional[int])
        'Optional[int]'
    """
    if tp is None or tp is NoneType:
        return "None"
    # NewType
    if hasattr(tp, "__supertype__"):
        return str(tp.__name__)
    if isinstance(tp, type) and get_origin(tp) is None:
        return tp.__name__
    return repr(tp).replace("typing.", "")


def format_signature(
    name: str, arg_types: Iterable[Any], return_types: Iterable[Any]
) -> str:
    """
    Render ``name(arg1,arg2) ret``.

    More than one return type is parenthesized, ``(ret1,ret2)``, and no
    return type leaves the trailing separator in place.

        >>> format_signature("service.stop", [bool], [])
        'service.stop(bool) '
        >>> format_signature("service.info", [], [str, int])
        'service.info() (str,int)'
    """
    args = ",".join(type_name(t) for t in arg_types)
    rets = [type_name(t) for t in return_types]
    ret = ",".join(rets)
    if len(rets) > 1:
        ret = f"({ret})"
    return f"{name}({args}) {ret}"
