"""Error types and their HTTP mapping."""
import json

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from wtt.utils.errors import register_exception_handlers, wtt_exception_handler
from wtt.utils.exceptions import (
    DuplicateError, ExternalServiceError, InternalConsistencyError,
    NotFoundError, PersistenceError, ValidationError, WttException
)


@pytest.mark.parametrize("exc, code, status", [
    (ValidationError("bad"), "VALIDATION_ERROR", 400),
    (NotFoundError("gone"), "NOT_FOUND", 404),
    (DuplicateError("twice"), "DUPLICATE", 409),
    (InternalConsistencyError("orphan"), "INTERNAL_CONSISTENCY", 500),
    (ExternalServiceError("down"), "EXTERNAL_SERVICE_ERROR", 502),
    (PersistenceError("corrupt"), "PERSISTENCE_ERROR", 500),
])
def test_exception_codes(exc, code, status):
    assert isinstance(exc, WttException)
    assert exc.code == code
    assert exc.status_code == status


def test_handler_envelope():
    response = wtt_exception_handler(None, NotFoundError("company with ID <x> was not found."))

    body = json.loads(response.body)
    assert response.status_code == 404
    assert body["success"] is False
    assert body["error"]["code"] == "NOT_FOUND"
    assert body["error"]["message"] == "company with ID <x> was not found."
    assert body["meta"]["timestamp"].endswith("Z")


def test_registered_handler_maps_store_errors(store):
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/companies/{company_id}")
    def read_company(company_id: str):
        return store.read_company(company_id).model_dump(mode="json")

    client = TestClient(app)
    response = client.get("/companies/missing")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    company = store.create_company({"title": "Acme", "org_id": "org-1"})
    assert client.get(f"/companies/{company.id}").json()["title"] == "Acme"
