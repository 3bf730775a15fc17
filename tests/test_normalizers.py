"""Tests for stratus.normalizers."""

import json

import pytest

from conftest import dumps, make_db_instance, make_instance, make_load_balancer, make_security_group
from stratus.constants import EXPECTED_TAGS
from stratus.core.entities import Group, Instance, RouteTable, Subnet
from stratus.errors import (
    DecodeError,
    MissingGroupId,
    MissingIdentifier,
    MissingInstanceId,
    MissingRouteTableId,
    MissingSubnetId,
)
from stratus.normalizers import normalize, normalizers


class TestRegistryCoverage:
    """The registry covers exactly the known source tags."""

    def test_registered_tags_match_expected(self):
        assert normalizers.tags == EXPECTED_TAGS

    def test_unknown_tag_returns_none(self):
        assert normalize("NatGateway", "cust-1", b"{}") is None


class TestInstanceNormalizer:
    """Tests for EC2 instance normalization."""

    def test_instance_fields(self):
        entity = normalize("Instance", "cust-1", dumps(make_instance()))
        assert isinstance(entity, Instance)
        assert entity.id == "i-0abc123"
        assert entity.customer_id == "cust-1"
        assert entity.type == "ec2"

    def test_security_group_stubs(self):
        entity = normalize("Instance", "cust-1", dumps(make_instance(groups=[
            {"GroupId": "sg-1", "GroupName": "web"},
            {"GroupId": "sg-2", "GroupName": "ssh"},
        ])))
        assert [g.name for g in entity.groups] == ["sg-1", "sg-2"]
        assert all(g.type == "security" for g in entity.groups)
        assert all(g.customer_id == "cust-1" for g in entity.groups)
        assert json.loads(entity.groups[1].data)["GroupName"] == "ssh"

    def test_stubs_do_not_point_back(self):
        entity = normalize("Instance", "cust-1", dumps(make_instance()))
        assert entity.groups[0].instances == []

    def test_malformed_reference_dropped(self):
        entity = normalize("Instance", "cust-1", dumps(make_instance(groups=[
            {"GroupName": "no-id"},
            "not-an-object",
            {"GroupId": "sg-ok"},
        ])))
        assert [g.name for g in entity.groups] == ["sg-ok"]

    def test_unknown_fields_preserved(self):
        entity = normalize("Instance", "cust-1", dumps(make_instance(Architecture="arm64")))
        data = json.loads(entity.data)
        assert data["Architecture"] == "arm64"
        assert data["InstanceId"] == "i-0abc123"

    def test_null_fields_dropped(self):
        entity = normalize("Instance", "cust-1", dumps(make_instance(KeyName=None)))
        assert "KeyName" not in json.loads(entity.to_json())

    def test_missing_id_raises(self):
        doc = make_instance()
        del doc["InstanceId"]
        with pytest.raises(MissingInstanceId):
            normalize("Instance", "cust-1", dumps(doc))

    def test_empty_id_raises(self):
        with pytest.raises(MissingInstanceId):
            normalize("Instance", "cust-1", dumps(make_instance(instance_id="")))

    def test_malformed_json_raises(self):
        with pytest.raises(DecodeError):
            normalize("Instance", "cust-1", b"{not json")

    def test_non_object_raises(self):
        with pytest.raises(DecodeError):
            normalize("Instance", "cust-1", b"[1, 2, 3]")

    def test_wrong_field_type_raises(self):
        with pytest.raises(DecodeError):
            normalize("Instance", "cust-1", dumps({"InstanceId": "i-1", "SecurityGroups": "sg-1"}))

    def test_accepts_str_payload(self):
        entity = normalize("Instance", "cust-1", json.dumps(make_instance()))
        assert entity.id == "i-0abc123"


class TestDBInstanceNormalizer:
    """Tests for RDS instance normalization."""

    def test_db_instance(self):
        entity = normalize("DBInstance", "cust-1", dumps(make_db_instance()))
        assert isinstance(entity, Instance)
        assert entity.id == "db-1"
        assert entity.type == "rds"

    def test_both_group_kinds_resolved(self):
        entity = normalize("DBInstance", "cust-1", dumps(make_db_instance()))
        groups = {(g.name, g.type) for g in entity.groups}
        assert groups == {("legacy-db", "rds-security"), ("sg-db", "security")}

    def test_vpc_group_stub_keyed_by_group_id(self):
        entity = normalize("DBInstance", "cust-1", dumps(make_db_instance()))
        vpc_group = next(g for g in entity.groups if g.type == "security")
        assert json.loads(vpc_group.data) == {"GroupId": "sg-db"}

    def test_missing_identifier(self):
        with pytest.raises(MissingInstanceId):
            normalize("DBInstance", "cust-1", dumps({"Engine": "mysql"}))


class TestGroupNormalizers:
    """Tests for the four group kinds."""

    def test_security_group_keyed_by_id(self):
        entity = normalize("SecurityGroup", "cust-1", dumps(make_security_group()))
        assert isinstance(entity, Group)
        assert entity.name == "sg-1"
        assert entity.type == "security"
        assert entity.instances == []

    def test_db_security_group(self):
        entity = normalize("DBSecurityGroup", "cust-1", dumps({
            "DBSecurityGroupName": "legacy-db",
            "DBSecurityGroupDescription": "old",
        }))
        assert entity.name == "legacy-db"
        assert entity.type == "rds-security"

    def test_load_balancer_members(self):
        entity = normalize("LoadBalancerDescription", "cust-1", dumps(make_load_balancer()))
        assert entity.name == "lb-1"
        assert entity.type == "elb"
        assert [i.id for i in entity.instances] == ["i-1", "i-2"]
        assert all(i.type == "ec2" for i in entity.instances)

    def test_autoscaling_group_members(self):
        entity = normalize("AutoScalingGroup", "cust-1", dumps({
            "AutoScalingGroupName": "asg-1",
            "MinSize": 1,
            "MaxSize": 3,
            "Instances": [{"InstanceId": "i-9", "LifecycleState": "InService"}, {}],
        }))
        assert entity.type == "autoscaling"
        assert [i.id for i in entity.instances] == ["i-9"]

    @pytest.mark.parametrize("tag", [
        "SecurityGroup",
        "DBSecurityGroup",
        "LoadBalancerDescription",
        "AutoScalingGroup",
    ])
    def test_missing_group_id(self, tag):
        with pytest.raises(MissingGroupId):
            normalize(tag, "cust-1", b"{}")


class TestNetworkNormalizers:
    """Route tables and subnets are validated but carry no references."""

    def test_route_table(self):
        entity = normalize("RouteTable", "cust-1", dumps({"RouteTableId": "rtb-1", "Routes": []}))
        assert isinstance(entity, RouteTable)
        assert entity.id == "rtb-1"

    def test_subnet(self):
        entity = normalize("Subnet", "cust-1", dumps({"SubnetId": "subnet-1", "CidrBlock": "10.0.0.0/24"}))
        assert isinstance(entity, Subnet)
        assert json.loads(entity.to_json())["CidrBlock"] == "10.0.0.0/24"

    def test_missing_route_table_id(self):
        with pytest.raises(MissingRouteTableId):
            normalize("RouteTable", "cust-1", b"{}")

    def test_missing_subnet_id(self):
        with pytest.raises(MissingSubnetId) as exc_info:
            normalize("Subnet", "cust-1", b'{"VpcId": "vpc-1"}')
        assert isinstance(exc_info.value, MissingIdentifier)
