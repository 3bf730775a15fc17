"""Normalizers for network resources that are validated but not stored."""

from typing import Union

from stratus.constants import ROUTE_TABLE_TAG, SUBNET_TAG
from stratus.core.entities import RouteTable, Subnet
from stratus.core.registry import normalizers
from stratus.normalizers.aws.builders import build_route_table, build_subnet, decode
from stratus.normalizers.aws.models import RouteTableData, SubnetData


@normalizers.register(ROUTE_TABLE_TAG)
def normalize_route_table(customer_id: str, payload: Union[bytes, str]) -> RouteTable:
    return build_route_table(customer_id, decode(RouteTableData, payload))


@normalizers.register(SUBNET_TAG)
def normalize_subnet(customer_id: str, payload: Union[bytes, str]) -> Subnet:
    return build_subnet(customer_id, decode(SubnetData, payload))
