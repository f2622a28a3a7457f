"""Resource registries: in-memory and HTTP-backed."""
import pytest
import requests

from wtt.core.resource_registry import HttpResourceRegistry, InMemoryResourceRegistry
from wtt.utils.exceptions import ExternalServiceError, NotFoundError


class FakeResponse:
    def __init__(self, status_code=200, body=None, invalid_json=False):
        self.status_code = status_code
        self._body = body
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("no json")
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def _registry(session):
    return HttpResourceRegistry("http://resources.local/api/resources/", timeout=2.5, session=session)


def test_in_memory_registry():
    registry = InMemoryResourceRegistry({"res-42": "Printer"})
    registry.register("res-7", "Beamer")

    assert registry.resolve_resource_name("res-42") == "Printer"
    assert registry.resolve_resource_name("res-7") == "Beamer"
    with pytest.raises(NotFoundError):
        registry.resolve_resource_name("res-0")


def test_http_registry_uses_name_field():
    session = FakeSession(FakeResponse(body={"id": "res-42", "name": "Printer"}))

    assert _registry(session).resolve_resource_name("res-42") == "Printer"
    assert session.calls == [("http://resources.local/api/resources/res-42", 2.5)]


def test_http_registry_builds_name_from_person_fields():
    session = FakeSession(FakeResponse(body={"first_name": "Anna", "last_name": "Muster"}))

    assert _registry(session).resolve_resource_name("res-8") == "Anna Muster"


def test_http_registry_not_found():
    with pytest.raises(NotFoundError):
        _registry(FakeSession(FakeResponse(status_code=404))).resolve_resource_name("res-0")


@pytest.mark.parametrize("response", [
    FakeResponse(status_code=500),
    FakeResponse(body={"id": "res-1"}),
    FakeResponse(body=["not", "an", "object"]),
    FakeResponse(invalid_json=True),
])
def test_http_registry_bad_responses(response):
    with pytest.raises(ExternalServiceError):
        _registry(FakeSession(response)).resolve_resource_name("res-1")


@pytest.mark.parametrize("error", [
    requests.exceptions.Timeout("slow"),
    requests.exceptions.ConnectionError("refused"),
])
def test_http_registry_transport_errors(error):
    with pytest.raises(ExternalServiceError):
        _registry(FakeSession(error=error)).resolve_resource_name("res-1")


def test_http_registry_with_store(store, acme):
    store.registry = _registry(FakeSession(FakeResponse(body={"name": "Plotter"})))
    project = store.create_project(acme.id, {"title": "Phase1"})

    ref = store.add_resource_ref(acme.id, project.id, {"resource_id": "res-99"})

    assert ref.resource_name == "Plotter"
