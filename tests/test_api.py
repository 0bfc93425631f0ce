"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from datamove.api.main import app
from datamove.api.routes.plans import get_compiler
from datamove.constants import ACCESS_CHECK_QUERY
from datamove.models import FieldDescriptor
from datamove.services import MigrationPlanCompiler

from .conftest import SOURCE, TARGET


@pytest.fixture
def client(server, credentials):
    app.dependency_overrides[get_compiler] = lambda: MigrationPlanCompiler(
        credentials=credentials, api_factory=server.client_factory
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


def compile_request(objects, **kwargs):
    body = {
        "script": {"objects": objects},
        "source_username": SOURCE,
        "target_username": TARGET,
    }
    body.update(kwargs)
    return body


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        assert response.json() == {"status": "healthy"}


class TestCompilePlan:
    """Test POST /api/plans/compile"""

    def test_compile(self, client):
        response = client.post("/api/plans/compile", json=compile_request([
            {"query": "SELECT Name, RecordTypeId FROM Account", "operation": "Insert"},
        ]))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 2
        assert data["source"] == {"name": SOURCE, "media": "org", "is_person_account_enabled": True}
        assert [o["name"] for o in data["objects"]] == ["Account", "RecordType"]
        account = data["objects"][0]
        assert account["operation"] == "Insert"
        assert account["external_id"] == "Id"
        assert account["fields"] == ["Name", "RecordTypeId", "Id"]
        assert data["objects"][1]["is_extra_object"]
        assert data["errors"] == []

    def test_csv_target(self, client):
        response = client.post("/api/plans/compile", json=compile_request(
            [{"query": "SELECT Name FROM Account"}], target_username="csvfile"
        ))

        assert response.status_code == 200
        assert response.json()["target"]["media"] == "file"

    def test_malformed_query(self, client):
        response = client.post("/api/plans/compile", json=compile_request([
            {"name": "Broken", "query": "SELECT Name Account"},
        ]))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error_type"] == "MalformedQueryError"
        assert detail["entity_name"] == "Broken"

    def test_invalid_operation(self, client):
        response = client.post("/api/plans/compile", json=compile_request([
            {"query": "SELECT Name FROM Account", "operation": "Merge"},
        ]))

        assert response.status_code == 400
        assert response.json()["detail"]["error_type"] == "InvalidOperationError"

    def test_no_objects(self, client):
        response = client.post("/api/plans/compile", json=compile_request([]))

        assert response.status_code == 400
        assert response.json()["detail"]["error_type"] == "NoObjectsDefinedError"

    def test_access_expired(self, client, server):
        server.fail(TARGET, ACCESS_CHECK_QUERY)

        response = client.post("/api/plans/compile", json=compile_request([
            {"query": "SELECT Name FROM Account"},
        ]))

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["error_type"] == "EndpointAccessExpiredError"
        assert detail["endpoint_name"] == TARGET

    def test_continue_on_error(self, client):
        response = client.post("/api/plans/compile", json=compile_request([
            {"query": "SELECT Name FROM Account"},
            {"name": "Broken", "query": "SELECT Name Contact"},
        ], continue_on_error=True))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert len(data["errors"]) == 1
        assert data["errors"][0]["entity_name"] == "Broken"

    def test_describe(self, client, server):
        for endpoint_name in (SOURCE, TARGET):
            server.add_describe(endpoint_name, "Account", [
                FieldDescriptor("Id"),
                FieldDescriptor("Name", creatable=True, updateable=True),
            ])

        response = client.post("/api/plans/compile", json=compile_request(
            [{"query": "SELECT Name FROM Account", "operation": "Upsert"}], describe=True
        ))

        assert response.status_code == 200
        assert response.json()["objects"][0]["fields_to_update"] == ["Name"]

    def test_invalid_request(self, client):
        response = client.post("/api/plans/compile", json={"script": {"objects": []}})

        assert response.status_code == 422
