"""Builders turning decoded AWS models into canonical entities.

Builders validate the natural identifier of the resource and resolve its
embedded references into stubs of the other entity kind. A reference that
cannot be built is dropped; the owning entity is still returned.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from stratus.constants import (
    AUTOSCALING_GROUP_TYPE,
    DB_INSTANCE_TYPE,
    DB_SECURITY_GROUP_TYPE,
    INSTANCE_TYPE,
    LOAD_BALANCER_TYPE,
    SECURITY_GROUP_TYPE,
)
from stratus.core.entities import Group, Instance, RouteTable, Subnet
from stratus.errors import (
    DecodeError,
    MissingGroupId,
    MissingIdentifier,
    MissingInstanceId,
    MissingRouteTableId,
    MissingSubnetId,
)
from stratus.normalizers.aws.models import (
    AutoScalingGroupData,
    AWSResource,
    DBInstanceData,
    DBSecurityGroupData,
    InstanceData,
    LoadBalancerData,
    RouteTableData,
    SecurityGroupData,
    SubnetData,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=AWSResource)
E = TypeVar("E")


def decode(model: Type[M], payload: Union[bytes, str]) -> M:
    """Decode a JSON document into a source model.

    Raises:
        DecodeError: If the payload is not a JSON object of the right shape
    """
    try:
        return model.model_validate_json(payload)
    except ValidationError as exc:
        raise DecodeError(f"invalid {model.__name__} payload: {exc.errors()[0]['msg']}") from exc


def resolve_references(
    customer_id: str,
    refs: Optional[Iterable[Any]],
    model: Type[M],
    builder: Callable[[str, M], E],
    field_map: Dict[str, str],
) -> List[E]:
    """Build stubs for embedded references, skipping the ones that fail.

    Args:
        customer_id: Owning customer
        refs: Embedded reference objects from the source document
        model: Source model the reference is projected onto
        builder: Builder for the referenced entity kind
        field_map: Target member name -> member name in the reference

    Returns:
        Stubs for every reference that validated
    """
    resolved: List[E] = []
    for ref in refs or []:
        if not isinstance(ref, dict):
            logger.debug(f"Dropping non-object {model.__name__} reference")
            continue
        projected = {
            target: ref[source]
            for target, source in field_map.items()
            if ref.get(source) is not None
        }
        try:
            resolved.append(builder(customer_id, model.model_validate(projected)))
        except (ValidationError, MissingIdentifier) as exc:
            logger.debug(f"Dropping {model.__name__} reference: {exc}")
    return resolved


# Groups

def build_security_group(customer_id: str, data: SecurityGroupData) -> Group:
    if not data.group_id:
        raise MissingGroupId()
    return Group(
        name=data.group_id,
        customer_id=customer_id,
        type=SECURITY_GROUP_TYPE,
        data=data.to_data(),
    )


def build_db_security_group(customer_id: str, data: DBSecurityGroupData) -> Group:
    if not data.db_security_group_name:
        raise MissingGroupId()
    return Group(
        name=data.db_security_group_name,
        customer_id=customer_id,
        type=DB_SECURITY_GROUP_TYPE,
        data=data.to_data(),
    )


def build_load_balancer(customer_id: str, data: LoadBalancerData) -> Group:
    if not data.load_balancer_name:
        raise MissingGroupId()
    return Group(
        name=data.load_balancer_name,
        customer_id=customer_id,
        type=LOAD_BALANCER_TYPE,
        data=data.to_data(),
        instances=resolve_references(
            customer_id, data.instances, InstanceData, build_instance,
            {"InstanceId": "InstanceId"},
        ),
    )


def build_autoscaling_group(customer_id: str, data: AutoScalingGroupData) -> Group:
    if not data.auto_scaling_group_name:
        raise MissingGroupId()
    return Group(
        name=data.auto_scaling_group_name,
        customer_id=customer_id,
        type=AUTOSCALING_GROUP_TYPE,
        data=data.to_data(),
        instances=resolve_references(
            customer_id, data.instances, InstanceData, build_instance,
            {"InstanceId": "InstanceId"},
        ),
    )


# Instances

def build_instance(customer_id: str, data: InstanceData) -> Instance:
    if not data.instance_id:
        raise MissingInstanceId()
    return Instance(
        id=data.instance_id,
        customer_id=customer_id,
        type=INSTANCE_TYPE,
        data=data.to_data(),
        groups=resolve_references(
            customer_id, data.security_groups, SecurityGroupData, build_security_group,
            {"GroupId": "GroupId", "GroupName": "GroupName"},
        ),
    )


def build_db_instance(customer_id: str, data: DBInstanceData) -> Instance:
    if not data.db_instance_identifier:
        raise MissingInstanceId()
    groups = resolve_references(
        customer_id, data.db_security_groups, DBSecurityGroupData, build_db_security_group,
        {"DBSecurityGroupName": "DBSecurityGroupName"},
    )
    groups.extend(resolve_references(
        customer_id, data.vpc_security_groups, SecurityGroupData, build_security_group,
        {"GroupId": "VpcSecurityGroupId"},
    ))
    return Instance(
        id=data.db_instance_identifier,
        customer_id=customer_id,
        type=DB_INSTANCE_TYPE,
        data=data.to_data(),
        groups=groups,
    )


# Network resources (normalized, not persisted)

def build_route_table(customer_id: str, data: RouteTableData) -> RouteTable:
    if not data.route_table_id:
        raise MissingRouteTableId()
    return RouteTable(id=data.route_table_id, customer_id=customer_id, data=data.to_data())


def build_subnet(customer_id: str, data: SubnetData) -> Subnet:
    if not data.subnet_id:
        raise MissingSubnetId()
    return Subnet(id=data.subnet_id, customer_id=customer_id, data=data.to_data())
