"""Inbound message envelope.

Every message on the queue is a JSON object naming the customer, the
source tag of the resource and the resource document itself:

    {"customer_id": "...", "type": "SecurityGroup", "event": "{...}"}

The resource document is normally a JSON string; a JSON object is also
accepted and re-encoded.
"""

from __future__ import annotations

import json
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from stratus.errors import DecodeError


class Event(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer_id: str
    type: str
    event: str

    @field_validator("event", mode="before")
    @classmethod
    def _encode_object(cls, value: Any) -> Any:
        if isinstance(value, (dict, list)):
            return json.dumps(value)
        return value

    @classmethod
    def decode(cls, body: Union[bytes, str]) -> "Event":
        """Parse a raw message body.

        Raises:
            DecodeError: If the body is not a valid envelope
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as exc:
            raise DecodeError(f"invalid event envelope: {exc.errors()[0]['msg']}") from exc

    def encode(self) -> str:
        return self.model_dump_json()
