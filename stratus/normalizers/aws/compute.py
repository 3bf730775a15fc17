"""Normalizers for compute resources: EC2 and RDS instances."""

from typing import Union

from stratus.constants import DB_INSTANCE_TAG, INSTANCE_TAG
from stratus.core.entities import Instance
from stratus.core.registry import normalizers
from stratus.normalizers.aws.builders import build_db_instance, build_instance, decode
from stratus.normalizers.aws.models import DBInstanceData, InstanceData


@normalizers.register(INSTANCE_TAG)
def normalize_instance(customer_id: str, payload: Union[bytes, str]) -> Instance:
    return build_instance(customer_id, decode(InstanceData, payload))


@normalizers.register(DB_INSTANCE_TAG)
def normalize_db_instance(customer_id: str, payload: Union[bytes, str]) -> Instance:
    return build_db_instance(customer_id, decode(DBInstanceData, payload))
