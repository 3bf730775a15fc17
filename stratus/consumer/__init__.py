"""Queue consumer for steady-state resource ingestion."""

from stratus.consumer.events import Event
from stratus.consumer.subscription import Message, SqsSubscription, Subscription
from stratus.consumer.worker import Consumer

__all__ = ["Consumer", "Event", "Message", "SqsSubscription", "Subscription"]
