"""
Tests for the sap_b1.api gateway.
"""

from urllib.parse import unquote

import pytest
from unittest.mock import Mock
from fastapi.testclient import TestClient

from sap_b1.api.gateway import ServiceLayerGateway, create_app
from sap_b1.batch.models import BatchRecord, BatchResult
from sap_b1.core.errors import ProtocolDecodeError, RequestRejected, TransportError
from sap_b1.core.models import PagedResult

API_KEY = "test-key"
HEADERS = {"x-api-key": API_KEY}


@pytest.fixture
def executor():
    return Mock()


@pytest.fixture
def client(executor):
    gateway = ServiceLayerGateway(api_key=API_KEY, executor=executor)
    return TestClient(create_app(gateway=gateway, validate_on_startup=False))


class TestHealth:
    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["ok"] is True


class TestApiKey:
    def test_wrong_key_rejected(self, client, executor):
        r = client.post("/execute", json={"path": "Items"}, headers={"x-api-key": "nope"})
        assert r.status_code == 401
        executor.execute.assert_not_called()

    def test_missing_key_rejected(self, client):
        r = client.post("/execute", json={"path": "Items"})
        assert r.status_code == 422

    def test_unconfigured_key_rejects_everything(self, executor, monkeypatch):
        monkeypatch.delenv("SAP_B1_API_KEY", raising=False)
        gateway = ServiceLayerGateway(api_key="", executor=executor)
        client = TestClient(create_app(gateway=gateway, validate_on_startup=False))

        r = client.post(
            "/execute",
            json={"method": "DELETE", "path": "Items('A1')"},
            headers={"x-api-key": "anything"},
        )

        assert r.status_code == 503
        executor.execute.assert_not_called()
        assert client.get("/health").status_code == 200


class TestExecute:
    def test_paged_get(self, client, executor):
        executor.execute.return_value = PagedResult(
            items=[{"ItemCode": "A001"}],
            previous=True,
            next=False,
            data={"value": [{"ItemCode": "A001"}]},
        )

        r = client.post(
            "/execute",
            json={"method": "get", "path": "Items", "page": 1, "page_size": 1},
            headers=HEADERS,
        )

        # literal methods are case sensitive
        assert r.status_code == 422

        r = client.post(
            "/execute",
            json={"method": "GET", "path": "Items", "page": 1, "page_size": 1},
            headers=HEADERS,
        )

        assert r.status_code == 200
        assert r.json()["items"] == [{"ItemCode": "A001"}]
        assert r.json()["previous"] is True
        assert r.json()["next"] is False
        operation = executor.execute.call_args.args[0]
        assert operation.method == "GET"
        assert operation.path == "Items"
        assert executor.execute.call_args.kwargs["page"] == 1
        assert executor.execute.call_args.kwargs["page_size"] == 1

    def test_post_body(self, client, executor):
        executor.execute.return_value = PagedResult(items=[], data={"CardCode": "C1"})

        r = client.post(
            "/execute",
            json={"method": "POST", "path": "BusinessPartners", "body": {"CardCode": "C1"}},
            headers=HEADERS,
        )

        assert r.status_code == 200
        assert r.json()["data"] == {"CardCode": "C1"}
        assert executor.execute.call_args.args[0].body == {"CardCode": "C1"}

    def test_invalid_page_size(self, client):
        r = client.post("/execute", json={"path": "Items", "page_size": 0}, headers=HEADERS)
        assert r.status_code == 422

    def test_upstream_rejection_maps_to_502(self, client, executor):
        executor.execute.side_effect = RequestRejected(404, "not found", "https://b1/b1s/v1/Items('X')")

        r = client.post("/execute", json={"path": "Items('X')"}, headers=HEADERS)

        assert r.status_code == 502
        assert r.json()["detail"]["upstream_status"] == 404

    def test_transport_failure_maps_to_504(self, client, executor):
        executor.execute.side_effect = TransportError("https://b1/b1s/v1/Items", "timed out")

        r = client.post("/execute", json={"path": "Items"}, headers=HEADERS)

        assert r.status_code == 504
        assert r.json()["detail"]["url"] == "https://b1/b1s/v1/Items"


class TestBatch:
    def test_batch(self, client, executor):
        executor.execute_batch.return_value = BatchResult([
            BatchRecord(content_id="1", http_code=201, http_status="Created", body={"CardCode": "C1"}),
            BatchRecord(content_id="2", http_code=200, error=ProtocolDecodeError("{", "Expecting value")),
        ])

        r = client.post(
            "/batch",
            json={
                "transaction": True,
                "operations": [
                    {"method": "POST", "path": "BusinessPartners", "body": {"CardCode": "C1"}},
                    {"method": "GET", "path": "Items('A001')"},
                ],
            },
            headers=HEADERS,
        )

        assert r.status_code == 200
        data = r.json()
        assert data["count"] == 2
        assert data["records"][0]["http_code"] == 201
        assert data["records"][1]["error"].startswith("Malformed JSON")
        batch = executor.execute_batch.call_args.args[0]
        assert batch.transactional is True
        assert [op.method for op in batch.operations] == ["POST", "GET"]

    def test_empty_batch_rejected(self, client, executor):
        r = client.post("/batch", json={"operations": []}, headers=HEADERS)
        assert r.status_code == 422
        executor.execute_batch.assert_not_called()


class TestSmlsvc:
    def test_query_string_is_forwarded(self, client, executor):
        executor.execute_smlsvc.return_value = {"value": [{"ItemCode": "A001"}]}

        r = client.get("/smlsvc/sml.svc/ItemView?$top=1", headers=HEADERS)

        assert r.status_code == 200
        assert r.json() == {"value": [{"ItemCode": "A001"}]}
        target = executor.execute_smlsvc.call_args.args[0]
        assert unquote(target) == "sml.svc/ItemView?$top=1"
