"""Normalizers for grouping resources.

Security groups are keyed by GroupId (names are not unique across VPCs);
the other group kinds are keyed by their name.
"""

from typing import Union

from stratus.constants import (
    AUTOSCALING_GROUP_TAG,
    DB_SECURITY_GROUP_TAG,
    LOAD_BALANCER_TAG,
    SECURITY_GROUP_TAG,
)
from stratus.core.entities import Group
from stratus.core.registry import normalizers
from stratus.normalizers.aws.builders import (
    build_autoscaling_group,
    build_db_security_group,
    build_load_balancer,
    build_security_group,
    decode,
)
from stratus.normalizers.aws.models import (
    AutoScalingGroupData,
    DBSecurityGroupData,
    LoadBalancerData,
    SecurityGroupData,
)


@normalizers.register(SECURITY_GROUP_TAG)
def normalize_security_group(customer_id: str, payload: Union[bytes, str]) -> Group:
    return build_security_group(customer_id, decode(SecurityGroupData, payload))


@normalizers.register(DB_SECURITY_GROUP_TAG)
def normalize_db_security_group(customer_id: str, payload: Union[bytes, str]) -> Group:
    return build_db_security_group(customer_id, decode(DBSecurityGroupData, payload))


@normalizers.register(LOAD_BALANCER_TAG)
def normalize_load_balancer(customer_id: str, payload: Union[bytes, str]) -> Group:
    return build_load_balancer(customer_id, decode(LoadBalancerData, payload))


@normalizers.register(AUTOSCALING_GROUP_TAG)
def normalize_autoscaling_group(customer_id: str, payload: Union[bytes, str]) -> Group:
    return build_autoscaling_group(customer_id, decode(AutoScalingGroupData, payload))
