"""Queue subscriptions feeding the consumer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

import boto3

from stratus.constants import DEFAULT_RECEIVE_WAIT, MAX_RECEIVE_BATCH

logger = logging.getLogger(__name__)


@dataclass
class Message:
    """A received message; receipt identifies it for acknowledgement."""
    body: str
    receipt: str
    message_id: Optional[str] = None


class Subscription(ABC):
    """A source of messages that must be acknowledged once handled."""

    @abstractmethod
    def receive(self, max_messages: int = 1, wait_seconds: int = DEFAULT_RECEIVE_WAIT) -> List[Message]:
        """Block up to wait_seconds for at most max_messages messages."""
        pass

    @abstractmethod
    def ack(self, message: Message) -> None:
        pass

    def close(self) -> None:
        pass


class SqsSubscription(Subscription):
    """Long-polling subscription to one SQS queue.

    Acknowledging deletes the message; anything not acknowledged becomes
    visible again after the queue's visibility timeout.
    """

    def __init__(self, queue_url: str, client: Any = None, region: Optional[str] = None):
        if not queue_url:
            raise ValueError("queue_url is required")
        self.queue_url = queue_url
        self.client = client or boto3.client("sqs", region_name=region)

    def receive(self, max_messages: int = 1, wait_seconds: int = DEFAULT_RECEIVE_WAIT) -> List[Message]:
        response = self.client.receive_message(
            QueueUrl=self.queue_url,
            MaxNumberOfMessages=max(1, min(max_messages, MAX_RECEIVE_BATCH)),
            WaitTimeSeconds=wait_seconds,
        )
        return [
            Message(body=m["Body"], receipt=m["ReceiptHandle"], message_id=m.get("MessageId"))
            for m in response.get("Messages", [])
        ]

    def ack(self, message: Message) -> None:
        self.client.delete_message(QueueUrl=self.queue_url, ReceiptHandle=message.receipt)

    def close(self) -> None:
        logger.debug(f"Closing subscription to {self.queue_url}")
        self.client.close()
