import contextlib
import json
import logging
from threading import RLock
from typing import (
    Any,
    ContextManager,
    Dict,
    Iterator,
    List,
    Mapping,
    Optional,
    Tuple,
)

from methodreg._storage import StorageProtocol
from methodreg.core.conversion import ConversionPolicy
from methodreg.core.method_entry import MethodEntry, exported_methods, is_supported
from methodreg.core.utils import (
    OverwritePolicy,
    _make_default_store,
    locked_method,
    qualified_name,
)
from methodreg.exceptions import (
    AlreadyRegisteredError,
    InvalidInstanceError,
    MethodNotFoundError,
)

logger = logging.getLogger(__name__)


class Registry(Mapping[str, MethodEntry]):
    """
    Thread-safe registry of object methods callable by name.

    Registering an object exposes each of its public methods under
    ``[namespace.]TypeName.method_name``. Calls are checked against the
    method's annotations and arguments are converted where the conversion
    policy allows it. The registry reads as a Mapping of qualified name to
    MethodEntry; entries are never removed.

    Arguments:
        namespace: Optional prefix for every qualified name.

    Raises:
        MethodNotFoundError: If calling or looking up a name that is not
            registered.
        ArgumentMismatchError: If call arguments do not fit the method.
        InvalidInstanceError: If registering something that is not an
            instance of a user-defined class.

    Examples:
        >>> class monitor:
        ...     def Display(self) -> str:
        ...         return "Display()"
        >>> registry = Registry("com.example.device")
        >>> registry.register(monitor())
        ['com.example.device.monitor.Display']
        >>> registry.dump()
        ['com.example.device.monitor.Display() str']
        >>> registry.call("com.example.device.monitor.Display")
        ['Display()']
    """

    def __init__(
        self,
        namespace: str = "",
        *,
        lock: Optional[RLock] = None,
        log_level: int = logging.WARNING,
        overwrite_policy: int = OverwritePolicy.ALLOW,
        conversions: Optional[ConversionPolicy] = None,
        store: Optional[StorageProtocol[str, MethodEntry]] = None,
    ) -> None:
        """
        Initialize the Registry.

        Args:
            namespace: Prefix prepended, with a dot, to every qualified name
                generated by later `register` calls. Fixed for the lifetime
                of the registry.
            lock: An optional threading.RLock or similar object for thread safety.
            log_level: Logging level for the registry logger.
            overwrite_policy: Policy for handling name collisions:
                0 - Forbid overwriting
                1 - Allow overwriting, last registration wins (default)
                2 - Warn on overwriting
            conversions: Conversion policy used to marshal arguments and
                results. Defaults to a copy of the default policy.
            store: An optional storage backend implementing StorageProtocol.

        Raises:
            TypeError: If the namespace is not a string, or the provided lock
                does not implement context manager methods.
            ValueError: If log_level is not a valid logging level, or the
                namespace contains whitespace.

        Example:
            registry = Registry("com.example", log_level=logging.DEBUG)
        """
        if not isinstance(namespace, str):
            raise TypeError(
                f"Registry namespace must be a string, got {type(namespace)}"
            )
        if any(c.isspace() for c in namespace):
            raise ValueError("Registry namespace cannot contain whitespace characters")

        if lock is not None and not all(
            hasattr(lock, method)
            for method in ("__enter__", "__exit__", "acquire", "release")
        ):
            raise TypeError("lock must be a threading.RLock or similar object")

        if not (50 >= log_level >= 0):
            raise ValueError("log_level must be a valid logging level between 0 and 50")

        if conversions is not None and not isinstance(conversions, ConversionPolicy):
            raise TypeError("conversions must be a ConversionPolicy")

        self._namespace = namespace
        self._lock: RLock = lock or RLock()
        self._store: StorageProtocol[str, MethodEntry] = (
            store if store is not None else _make_default_store()
        )
        self._overwrite_policy = OverwritePolicy(overwrite_policy)
        self._conversions = (
            conversions if conversions is not None else ConversionPolicy()
        )
        logger.setLevel(log_level)

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def conversions(self) -> ConversionPolicy:
        """Rules applied to methods registered from now on. Existing entries
        keep a copy of the rules taken when they were registered."""
        return self._conversions

    def qualified_name(self, type_name: str, method_name: str) -> str:
        return qualified_name(self._namespace, type_name, method_name)

    @locked_method
    def register(self, *instances: Any) -> List[str]:
        """
        Register the public methods of each instance.

        Every instance is validated and introspected before anything is
        stored, so a failing call leaves the registry unchanged.

        Args:
            instances: Objects whose methods become callable by name. The
                registry keeps a reference to each object; it is not copied.
        Returns:
            The qualified names registered by this call.

        Raises:
            InvalidInstanceError: If an instance is a class, a module, a
                function or a builtin value, or its annotations cannot be
                resolved.
            AlreadyRegisteredError: If a name is taken and the overwrite
                policy forbids overwriting.
        """
        for obj in instances:
            self._validate_instance(obj)

        # entries keep the rules in force when they were registered
        conversions = self._conversions.copy()
        pending: Dict[str, MethodEntry] = {}
        for obj in instances:
            for name, entry in self._entries_for(obj, conversions):
                if name in pending or name in self._store:
                    self._on_collision(name)
                pending[name] = entry

        self._store.update(pending)
        for entry in pending.values():
            logger.debug("Registered %s", entry.signature)
        return list(pending)

    @locked_method
    def call(self, name: str, *args: Any) -> Optional[List[Any]]:
        """
        Call a registered method by its qualified name.

        Arguments are checked against the declared parameter types before the
        method runs; a failed check has no side effects.

        Returns:
            The method's results converted to their declared types, or None
            when the method declares no return value.

        Raises:
            MethodNotFoundError: If the name is not registered.
            ArgumentCountMismatchError: If the number of arguments differs
                from the method's parameters.
            ArgumentTypeMismatchError: If an argument is not convertible to
                its declared type.
            ReturnTypeMismatchError: If a result does not fit the declared
                return types.
        """
        entry = self._lookup(name)
        logger.debug("Calling %s with %d argument(s)", name, len(args))
        return entry(*args)

    @locked_method
    def dump(self) -> List[str]:
        """
        Signature strings of all registered methods.

        The order follows the storage backend and should not be relied on.
        """
        return [entry.signature for entry in self._store.to_dict().values()]

    @locked_method
    def get(
        self, key: str, default: Optional[MethodEntry] = None
    ) -> Optional[MethodEntry]:
        """
        Get the entry for the given name, or return default if not found.
        """
        return self._store.get(key, default)

    @locked_method
    def snapshot(self) -> Dict[str, MethodEntry]:
        return self._store.to_dict()

    def to_dict(self) -> Dict[str, str]:
        """Map each qualified name to its signature string."""
        return {name: entry.signature for name, entry in self.snapshot().items()}

    def to_json(self, **kwargs: Any) -> str:
        """
        Serialize the qualified names and signatures to a JSON string.
        """
        return json.dumps(self.to_dict(), **kwargs)

    def bulk(self) -> ContextManager["Registry"]:
        """
        Context manager for holding the lock across several operations.

        Returns:
            A context manager that yields the registry.

        Usage:
            with registry.bulk() as reg:
                reg.register(service)
                reg.call("service.run")
        """

        @contextlib.contextmanager
        def _bulk_ctx() -> Iterator[Registry]:
            self._lock.acquire()
            try:
                yield self
            finally:
                self._lock.release()

        return _bulk_ctx()

    def _entries_for(
        self, obj: Any, conversions: ConversionPolicy
    ) -> Iterator[Tuple[str, MethodEntry]]:
        cls = type(obj)
        for method_name, function in exported_methods(cls):
            if not is_supported(function):
                logger.debug(
                    "Skipping %s.%s: variadic or keyword-only parameters",
                    cls.__name__,
                    method_name,
                )
                continue
            name = self.qualified_name(cls.__name__, method_name)
            yield name, MethodEntry.from_method(
                name, obj, function, conversions
            )

    def _on_collision(self, name: str) -> None:
        if self._overwrite_policy == OverwritePolicy.FORBID:
            raise AlreadyRegisteredError(f"Method {name!r} is already registered")
        if self._overwrite_policy == OverwritePolicy.WARN:
            logger.warning("Overwriting registered method %s", name)

    @staticmethod
    def _validate_instance(obj: Any) -> None:
        if isinstance(obj, type):
            raise InvalidInstanceError(
                f"Expected an instance, got the class {obj.__name__!r}"
            )
        # modules, functions, None and builtin values all live in builtins
        if type(obj).__module__ == "builtins":
            raise InvalidInstanceError(
                "Expected an instance of a user-defined class, "
                f"got {type(obj).__name__!r}"
            )

    def _lookup(self, key: str) -> MethodEntry:
        if not isinstance(key, str):
            raise TypeError(f"Method name must be a string, got {type(key)}")
        entry = self._store.get(key)
        if entry is None:
            raise MethodNotFoundError(key)
        return entry

    @locked_method
    def __getitem__(self, key: str) -> MethodEntry:
        return self._lookup(key)

    @locked_method
    def __iter__(self) -> Iterator[str]:
        return iter(list(self._store.keys()))

    @locked_method
    def __len__(self) -> int:
        return len(self._store)

    @locked_method
    def __contains__(self, key: object) -> bool:
        return key in self._store

    @locked_method
    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"namespace={self._namespace!r}, {list(self._store.keys())!r})"
        )
