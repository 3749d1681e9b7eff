import json
import logging

import pytest

from methodreg import (
    AlreadyRegisteredError,
    ArgumentMismatchError,
    InvalidInstanceError,
    MethodNotFoundError,
    OverwritePolicy,
    Registry,
    RegistryError,
)


class unresolved:
    def load(self, source: "MissingType") -> None:  # type: ignore # noqa: F821
        pass


def helper() -> None:
    pass


def test_registering_a_class_instead_of_an_instance(svc) -> None:
    r = Registry()
    with pytest.raises(InvalidInstanceError):
        r.register(type(svc))
    assert len(r) == 0


@pytest.mark.parametrize("value", [5, "text", [1, 2], None, helper, json])
def test_registering_builtin_values(value: object) -> None:
    r = Registry()
    with pytest.raises(InvalidInstanceError):
        r.register(value)


def test_invalid_instance_is_a_type_error() -> None:
    r = Registry()
    with pytest.raises(TypeError):
        r.register(42)


def test_failed_registration_stores_nothing(svc, mon) -> None:
    r = Registry()
    with pytest.raises(InvalidInstanceError):
        r.register(svc, mon, 3)
    assert len(r) == 0
    assert r.dump() == []


def test_unresolvable_annotations(svc) -> None:
    r = Registry()
    with pytest.raises(InvalidInstanceError):
        r.register(svc, unresolved())
    assert len(r) == 0


def test_forbidden_overwrite_leaves_registry_unchanged(svc) -> None:
    r = Registry(overwrite_policy=OverwritePolicy.FORBID)
    r.register(svc)
    other = type(svc)()
    with pytest.raises(AlreadyRegisteredError):
        r.register(other)
    assert r["service.run"].receiver is svc


def test_forbidden_overwrite_within_one_call(svc) -> None:
    r = Registry(overwrite_policy=OverwritePolicy.FORBID)
    with pytest.raises(AlreadyRegisteredError):
        r.register(svc, type(svc)())
    assert len(r) == 0


def test_warned_overwrite_is_logged(svc, caplog: pytest.LogCaptureFixture) -> None:
    r = Registry(overwrite_policy=OverwritePolicy.WARN)
    r.register(svc)
    with caplog.at_level(logging.WARNING, logger="methodreg.core.registry"):
        r.register(type(svc)())
    assert "Overwriting registered method service.run" in caplog.text
    assert len(r) == 5


def test_access_before_registration_raises() -> None:
    r = Registry()
    with pytest.raises(MethodNotFoundError):
        _ = r["missing"]
    with pytest.raises(LookupError):
        r.call("missing")


def test_lookup_with_non_string_name(svc) -> None:
    r = Registry()
    r.register(svc)
    with pytest.raises(TypeError):
        _ = r[1]  # type: ignore
    with pytest.raises(TypeError):
        r.call(1)  # type: ignore


def test_get_returns_default_instead_of_raising() -> None:
    r = Registry()
    assert r.get("unknown") is None
    assert "unknown" not in r


def test_registry_errors_share_a_base_class(svc) -> None:
    r = Registry()
    r.register(svc)
    with pytest.raises(RegistryError):
        r.call("service.nope")
    with pytest.raises(ArgumentMismatchError):
        r.call("service.stop", "yes")


def test_failed_call_does_not_corrupt_the_registry(svc) -> None:
    r = Registry()
    r.register(svc)
    before = sorted(r.dump())
    with pytest.raises(ArgumentMismatchError):
        r.call("service.stop", 1, 2)
    assert sorted(r.dump()) == before
    r.call("service.run")
    assert r.call("service.is_running") == [True]


def test_to_json_lists_signatures(svc) -> None:
    r = Registry()
    r.register(svc)
    data = json.loads(r.to_json(sort_keys=True))
    assert data["service.stop"] == "service.stop(bool) "
    assert data["service.is_running"] == "service.is_running() bool"


def test_registry_is_read_only(svc) -> None:
    r = Registry()
    r.register(svc)
    with pytest.raises(TypeError):
        r["service.run"] = r["service.stop"]  # type: ignore
    with pytest.raises(TypeError):
        del r["service.run"]  # type: ignore


def test_bulk_context_does_not_swallow_exceptions(svc) -> None:
    r = Registry()
    with pytest.raises(ValueError):
        with r.bulk() as reg:
            reg.register(svc)
            raise ValueError("force exit")
    # confirm lock released
    assert r.call("service.is_running") == [False]
