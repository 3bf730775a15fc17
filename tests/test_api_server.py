"""Tests for stratus.api.server module.

This module tests the Flask routes: customer scoping, instance and group
reads, direct ingest, onboarding and the health check.
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from conftest import dumps, make_db_instance, make_instance, make_load_balancer, make_security_group
from stratus.api.server import create_app
from stratus.errors import StoreError
from stratus.onboarding import OnboardResponse, ScanSummary


@pytest.fixture
def populated(client, headers):
    """Ingest a small account through the API."""
    docs = [
        ("Instance", make_instance(instance_id="i-1")),
        ("Instance", make_instance(instance_id="i-2", groups=[])),
        ("DBInstance", make_db_instance()),
        ("SecurityGroup", make_security_group()),
        ("LoadBalancerDescription", make_load_balancer(instance_ids=("i-1", "i-2"))),
    ]
    for tag, doc in docs:
        resp = client.post(f"/entity/{tag}", data=dumps(doc), headers=headers)
        assert resp.status_code == 200
    return client


@pytest.fixture
def onboarder():
    mock = MagicMock()

    def onboard(req):
        req.validate()
        return OnboardResponse(request_id="req-1")

    mock.onboard.side_effect = onboard
    mock.get_scan.return_value = None
    return mock


@pytest.fixture
def onboard_client(repository, settings, onboarder):
    app = create_app(repository, onboarder=onboarder, settings=settings)
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


class TestHealth:
    """Tests for /health."""

    def test_healthy(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["status"] == "ok"
        assert data["checks"]["database"] == "ok"
        assert "version" in data

    def test_degraded(self, mock_repository, settings):
        mock_repository.health_check.return_value = False
        app = create_app(mock_repository, settings=settings)
        resp = app.test_client().get("/health")
        assert resp.status_code == 503
        assert resp.get_json()["checks"]["onboarding"] == "disabled"


class TestCustomerScope:
    """Every data route requires the Customer-Id header."""

    @pytest.mark.parametrize("path", [
        "/instances",
        "/instances/ec2/count",
        "/groups",
        "/group/security/sg-1",
        "/instance/ec2/i-1",
        "/onboard/req-1",
        "/customer",
    ])
    def test_missing_header(self, client, path):
        resp = client.get(path)
        assert resp.status_code == 400
        assert "Customer-Id" in resp.get_json()["error"]

    def test_other_customer_sees_nothing(self, populated):
        resp = populated.get("/instances", headers={"Customer-Id": "cust-2"})
        assert resp.get_json() == {"instances": []}


class TestInstances:
    """Tests for instance routes."""

    def test_list_all(self, populated, headers):
        resp = populated.get("/instances", headers=headers)
        assert resp.status_code == 200
        ids = [i.get("InstanceId") or i.get("DBInstanceIdentifier") for i in resp.get_json()["instances"]]
        assert sorted(ids) == ["db-1", "i-1", "i-2"]

    def test_list_by_type(self, populated, headers):
        resp = populated.get("/instances/rds", headers=headers)
        assert [i["DBInstanceIdentifier"] for i in resp.get_json()["instances"]] == ["db-1"]

    def test_list_by_group(self, populated, headers):
        resp = populated.get("/instances/ec2?group_id=sg-1", headers=headers)
        assert [i["InstanceId"] for i in resp.get_json()["instances"]] == ["i-1"]

    def test_count(self, populated, headers):
        assert populated.get("/instances/count", headers=headers).get_json() == {"count": 3}
        assert populated.get("/instances/ec2/count", headers=headers).get_json() == {"count": 2}
        resp = populated.get("/instances/count?group_id=lb-1", headers=headers)
        assert resp.get_json() == {"count": 2}

    def test_get_instance_returns_stored_json(self, populated, headers):
        resp = populated.get("/instance/ec2/i-1", headers=headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/json"
        data = resp.get_json()
        assert data["InstanceId"] == "i-1"
        assert data["State"] == {"Code": 16, "Name": "running"}

    def test_get_instance_not_found(self, populated, headers):
        resp = populated.get("/instance/ec2/i-missing", headers=headers)
        assert resp.status_code == 404

    def test_get_instance_wrong_type(self, populated, headers):
        assert populated.get("/instance/rds/i-1", headers=headers).status_code == 404


class TestGroups:
    """Tests for group routes."""

    def test_list_groups_with_counts(self, populated, headers):
        resp = populated.get("/groups", headers=headers)
        groups = {g["group"].get("GroupId") or g["group"].get("LoadBalancerName"): g["instance_count"]
                  for g in resp.get_json()["groups"]}
        assert groups["sg-1"] == 1
        assert groups["lb-1"] == 2

    def test_list_groups_by_type(self, populated, headers):
        resp = populated.get("/groups/elb", headers=headers)
        assert [g["group"]["LoadBalancerName"] for g in resp.get_json()["groups"]] == ["lb-1"]

    def test_count_groups(self, populated, headers):
        assert populated.get("/groups/elb/count", headers=headers).get_json() == {"count": 1}

    def test_get_group_detail(self, populated, headers):
        resp = populated.get("/group/elb/lb-1", headers=headers)
        assert resp.status_code == 200
        data = resp.get_json()
        assert data["group"]["LoadBalancerName"] == "lb-1"
        assert [i["InstanceId"] for i in data["instances"]] == ["i-1", "i-2"]
        assert data["instance_count"] == 2

    def test_get_group_member_filter(self, populated, headers):
        resp = populated.get("/group/security/sg-db?instance_type=rds", headers=headers)
        data = resp.get_json()
        assert [i["DBInstanceIdentifier"] for i in data["instances"]] == ["db-1"]

    def test_get_group_wrong_type(self, populated, headers):
        assert populated.get("/group/elb/sg-1", headers=headers).status_code == 404

    def test_get_group_not_found(self, populated, headers):
        assert populated.get("/group/security/sg-missing", headers=headers).status_code == 404


class TestCustomer:
    """Tests for /customer."""

    def test_not_found_before_first_scan(self, client, headers):
        resp = client.get("/customer", headers=headers)
        assert resp.status_code == 404

    def test_last_sync(self, client, repository, headers):
        repository.record_sync("cust-1")

        resp = client.get("/customer", headers=headers)
        assert resp.status_code == 200
        customer = resp.get_json()["customer"]
        assert customer["id"] == "cust-1"
        assert customer["last_sync"]

    def test_other_customer(self, client, repository):
        repository.record_sync("cust-1")
        assert client.get("/customer", headers={"Customer-Id": "cust-2"}).status_code == 404

    def test_store_failure(self, mock_repository, settings, headers):
        mock_repository.get_customer.side_effect = StoreError("connection refused")
        client = create_app(mock_repository, settings=settings).test_client()
        resp = client.get("/customer", headers=headers)
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Database error"


class TestPutEntity:
    """Tests for POST /entity/<source_tag>."""

    def test_stores_and_returns_type(self, client, headers, security_group_payload):
        resp = client.post("/entity/SecurityGroup", data=security_group_payload, headers=headers)
        assert resp.get_json() == {"type": "security"}

    def test_network_kind_accepted_not_stored(self, client, headers):
        resp = client.post("/entity/Subnet", data=dumps({"SubnetId": "subnet-1"}), headers=headers)
        assert resp.status_code == 200
        assert resp.get_json() == {"type": None}

    def test_unknown_tag(self, client, headers):
        resp = client.post("/entity/NatGateway", data=b"{}", headers=headers)
        assert resp.status_code == 400

    def test_malformed_payload(self, client, headers):
        resp = client.post("/entity/Instance", data=b"{oops", headers=headers)
        assert resp.status_code == 400

    def test_missing_identifier(self, client, headers):
        resp = client.post("/entity/Instance", data=dumps({"InstanceType": "t3.micro"}), headers=headers)
        assert resp.status_code == 400
        assert "instance id" in resp.get_json()["error"]

    def test_store_failure(self, mock_repository, settings, headers, instance_payload):
        mock_repository.put_entity.side_effect = StoreError("connection refused")
        client = create_app(mock_repository, settings=settings).test_client()
        resp = client.post("/entity/Instance", data=instance_payload, headers=headers)
        assert resp.status_code == 500
        assert resp.get_json()["error"] == "Database error"

    def test_replays_are_idempotent(self, client, headers, instance_payload):
        for _ in range(3):
            client.post("/entity/Instance", data=instance_payload, headers=headers)
        assert client.get("/instances/count", headers=headers).get_json() == {"count": 1}


class TestOnboard:
    """Tests for the onboarding routes."""

    def test_accepted(self, onboard_client, onboarder, onboard_body):
        resp = onboard_client.post("/onboard", json=onboard_body)
        assert resp.status_code == 202
        assert resp.get_json() == {"request_id": "req-1"}
        request = onboarder.onboard.call_args.args[0]
        assert request.customer_id == "cust-1"

    def test_customer_from_header(self, onboard_client, onboarder, onboard_body, headers):
        del onboard_body["customer_id"]
        resp = onboard_client.post("/onboard", json=onboard_body, headers=headers)
        assert resp.status_code == 202
        assert onboarder.onboard.call_args.args[0].customer_id == "cust-1"

    def test_missing_field(self, onboard_client, onboard_body):
        del onboard_body["secret_key"]
        resp = onboard_client.post("/onboard", json=onboard_body)
        assert resp.status_code == 400
        assert resp.get_json()["details"] == {"field": "secret_key"}

    def test_missing_customer(self, onboard_client, onboard_body):
        del onboard_body["customer_id"]
        assert onboard_client.post("/onboard", json=onboard_body).status_code == 400

    def test_requires_json(self, onboard_client):
        resp = onboard_client.post("/onboard", data="customer_id=c", content_type="text/plain")
        assert resp.status_code == 400

    def test_disabled_without_onboarder(self, repository, settings, onboard_body):
        client = create_app(repository, settings=settings).test_client()
        assert client.post("/onboard", json=onboard_body).status_code == 503

    def test_scan_status(self, onboard_client, onboarder, headers):
        summary = ScanSummary(request_id="req-1", customer_id="cust-1", user_id="u", region="us-east-1")
        onboarder.get_scan.return_value = summary

        resp = onboard_client.get("/onboard/req-1", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["state"] == "created"

    def test_scan_status_other_customer(self, onboard_client, onboarder):
        onboarder.get_scan.return_value = ScanSummary(
            request_id="req-1", customer_id="cust-1", user_id="u", region="us-east-1"
        )
        resp = onboard_client.get("/onboard/req-1", headers={"Customer-Id": "cust-2"})
        assert resp.status_code == 404

    def test_scan_status_unknown(self, client, headers):
        assert client.get("/onboard/nope", headers=headers).status_code == 404


class TestErrors:
    def test_unknown_route(self, client):
        resp = client.get("/nope")
        assert resp.status_code == 404
        assert json.loads(resp.data) == {"error": "Not found"}

    def test_method_not_allowed(self, client, headers):
        assert client.delete("/instances", headers=headers).status_code == 405
