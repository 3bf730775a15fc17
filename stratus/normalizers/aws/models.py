"""Pydantic models for the AWS resource shapes the scanner emits.

Field aliases are the AWS API member names. Only the members Stratus reads
or that describe the resource are declared; everything else is kept as an
extra field so that re-serialization preserves the whole document.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AWSResource(BaseModel):
    """Base model: AWS member names in, AWS member names out."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    def to_data(self) -> str:
        """Canonical JSON for storage."""
        return self.model_dump_json(by_alias=True, exclude_none=True)


class InstanceData(AWSResource):
    instance_id: Optional[str] = Field(default=None, alias="InstanceId")
    instance_type: Optional[str] = Field(default=None, alias="InstanceType")
    image_id: Optional[str] = Field(default=None, alias="ImageId")
    key_name: Optional[str] = Field(default=None, alias="KeyName")
    vpc_id: Optional[str] = Field(default=None, alias="VpcId")
    subnet_id: Optional[str] = Field(default=None, alias="SubnetId")
    private_ip_address: Optional[str] = Field(default=None, alias="PrivateIpAddress")
    public_ip_address: Optional[str] = Field(default=None, alias="PublicIpAddress")
    private_dns_name: Optional[str] = Field(default=None, alias="PrivateDnsName")
    public_dns_name: Optional[str] = Field(default=None, alias="PublicDnsName")
    state: Optional[Dict[str, Any]] = Field(default=None, alias="State")
    placement: Optional[Dict[str, Any]] = Field(default=None, alias="Placement")
    tags: Optional[List[Any]] = Field(default=None, alias="Tags")
    security_groups: Optional[List[Any]] = Field(default=None, alias="SecurityGroups")


class DBInstanceData(AWSResource):
    db_instance_identifier: Optional[str] = Field(default=None, alias="DBInstanceIdentifier")
    db_instance_class: Optional[str] = Field(default=None, alias="DBInstanceClass")
    db_instance_status: Optional[str] = Field(default=None, alias="DBInstanceStatus")
    engine: Optional[str] = Field(default=None, alias="Engine")
    engine_version: Optional[str] = Field(default=None, alias="EngineVersion")
    availability_zone: Optional[str] = Field(default=None, alias="AvailabilityZone")
    multi_az: Optional[bool] = Field(default=None, alias="MultiAZ")
    publicly_accessible: Optional[bool] = Field(default=None, alias="PubliclyAccessible")
    endpoint: Optional[Dict[str, Any]] = Field(default=None, alias="Endpoint")
    vpc_security_groups: Optional[List[Any]] = Field(default=None, alias="VpcSecurityGroups")
    db_security_groups: Optional[List[Any]] = Field(default=None, alias="DBSecurityGroups")


class SecurityGroupData(AWSResource):
    group_id: Optional[str] = Field(default=None, alias="GroupId")
    group_name: Optional[str] = Field(default=None, alias="GroupName")
    description: Optional[str] = Field(default=None, alias="Description")
    vpc_id: Optional[str] = Field(default=None, alias="VpcId")
    owner_id: Optional[str] = Field(default=None, alias="OwnerId")
    ip_permissions: Optional[List[Any]] = Field(default=None, alias="IpPermissions")
    ip_permissions_egress: Optional[List[Any]] = Field(default=None, alias="IpPermissionsEgress")


class DBSecurityGroupData(AWSResource):
    db_security_group_name: Optional[str] = Field(default=None, alias="DBSecurityGroupName")
    db_security_group_description: Optional[str] = Field(default=None, alias="DBSecurityGroupDescription")
    owner_id: Optional[str] = Field(default=None, alias="OwnerId")
    vpc_id: Optional[str] = Field(default=None, alias="VpcId")
    ec2_security_groups: Optional[List[Any]] = Field(default=None, alias="EC2SecurityGroups")


class LoadBalancerData(AWSResource):
    load_balancer_name: Optional[str] = Field(default=None, alias="LoadBalancerName")
    dns_name: Optional[str] = Field(default=None, alias="DNSName")
    scheme: Optional[str] = Field(default=None, alias="Scheme")
    vpc_id: Optional[str] = Field(default=None, alias="VPCId")
    subnets: Optional[List[Any]] = Field(default=None, alias="Subnets")
    security_groups: Optional[List[Any]] = Field(default=None, alias="SecurityGroups")
    availability_zones: Optional[List[Any]] = Field(default=None, alias="AvailabilityZones")
    health_check: Optional[Dict[str, Any]] = Field(default=None, alias="HealthCheck")
    instances: Optional[List[Any]] = Field(default=None, alias="Instances")


class AutoScalingGroupData(AWSResource):
    auto_scaling_group_name: Optional[str] = Field(default=None, alias="AutoScalingGroupName")
    launch_configuration_name: Optional[str] = Field(default=None, alias="LaunchConfigurationName")
    min_size: Optional[int] = Field(default=None, alias="MinSize")
    max_size: Optional[int] = Field(default=None, alias="MaxSize")
    desired_capacity: Optional[int] = Field(default=None, alias="DesiredCapacity")
    vpc_zone_identifier: Optional[str] = Field(default=None, alias="VPCZoneIdentifier")
    availability_zones: Optional[List[Any]] = Field(default=None, alias="AvailabilityZones")
    load_balancer_names: Optional[List[Any]] = Field(default=None, alias="LoadBalancerNames")
    tags: Optional[List[Any]] = Field(default=None, alias="Tags")
    instances: Optional[List[Any]] = Field(default=None, alias="Instances")


class RouteTableData(AWSResource):
    route_table_id: Optional[str] = Field(default=None, alias="RouteTableId")
    vpc_id: Optional[str] = Field(default=None, alias="VpcId")
    routes: Optional[List[Any]] = Field(default=None, alias="Routes")
    associations: Optional[List[Any]] = Field(default=None, alias="Associations")
    tags: Optional[List[Any]] = Field(default=None, alias="Tags")


class SubnetData(AWSResource):
    subnet_id: Optional[str] = Field(default=None, alias="SubnetId")
    vpc_id: Optional[str] = Field(default=None, alias="VpcId")
    cidr_block: Optional[str] = Field(default=None, alias="CidrBlock")
    availability_zone: Optional[str] = Field(default=None, alias="AvailabilityZone")
    state: Optional[str] = Field(default=None, alias="State")
    map_public_ip_on_launch: Optional[bool] = Field(default=None, alias="MapPublicIpOnLaunch")
    available_ip_address_count: Optional[int] = Field(default=None, alias="AvailableIpAddressCount")
