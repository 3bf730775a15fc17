"""Steady-state ingestion of resource events from a queue.

A fixed pool of worker threads each loop receive -> handle -> ack.
Shutdown waits for messages being handled, not for idle polls. A
message that cannot be decoded, normalized or stored is logged and
acknowledged anyway: the stream keeps flowing and the message is lost.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import List, Optional, Union

from stratus.constants import DEFAULT_RECEIVE_WAIT, DEFAULT_SHUTDOWN_TIMEOUT
from stratus.consumer.events import Event
from stratus.consumer.subscription import Message, Subscription
from stratus.errors import DecodeError, MissingIdentifier, ShutdownTimeout, StoreError
from stratus.normalizers import normalize
from stratus.repositories.base import EntityRepository

logger = logging.getLogger(__name__)

# Pause after a failed receive before polling again
RECEIVE_BACKOFF = 1.0


class Consumer:
    """Consumes resource events and writes them through the repository.

    Attributes:
        subscription: Message source
        repository: Store every normalized entity is written to
        concurrency: Number of worker threads
        shutdown_event: Set once stop() has been called
    """

    def __init__(
        self,
        subscription: Subscription,
        repository: EntityRepository,
        concurrency: int = 1,
        wait_seconds: int = DEFAULT_RECEIVE_WAIT,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.subscription = subscription
        self.repository = repository
        self.concurrency = concurrency
        self.wait_seconds = wait_seconds
        self.shutdown_event = threading.Event()
        self._threads: List[threading.Thread] = []
        self._in_flight = 0
        self._idle = threading.Condition()

    def handle_message(self, body: Union[bytes, str]) -> Optional[str]:
        """Decode, normalize and store one message.

        Returns:
            The stored entity type, or None if nothing was stored
        """
        try:
            event = Event.decode(body)
            entity = normalize(event.type, event.customer_id, event.event)
            if entity is None:
                logger.debug(f"Ignoring event of type {event.type}")
                return None
            stored = self.repository.put_entity(entity)
        except DecodeError as e:
            logger.warning(f"Dropping undecodable message: {e}")
            return None
        except MissingIdentifier as e:
            logger.warning(f"Dropping {event.type} event for {event.customer_id}: {e}")
            return None
        except StoreError as e:
            logger.error(f"Dropping {event.type} event for {event.customer_id}: {e}")
            return None
        logger.debug(f"Stored {stored} for {event.customer_id}")
        return stored

    def _run(self) -> None:
        while not self.shutdown_event.is_set():
            try:
                messages = self.subscription.receive(max_messages=1, wait_seconds=self.wait_seconds)
            except Exception as e:
                logger.warning(f"Receive failed: {type(e).__name__}: {e}")
                self.shutdown_event.wait(RECEIVE_BACKOFF)
                continue

            for message in messages:
                with self._idle:
                    if self.shutdown_event.is_set():
                        # Left unacknowledged; redelivered after the visibility timeout
                        return
                    self._in_flight += 1
                try:
                    self._handle_and_ack(message)
                finally:
                    with self._idle:
                        self._in_flight -= 1
                        self._idle.notify_all()

    def _handle_and_ack(self, message: Message) -> None:
        self.handle_message(message.body)
        try:
            self.subscription.ack(message)
        except Exception as e:
            logger.warning(f"Ack failed for {message.message_id}: {type(e).__name__}")

    def start(self) -> None:
        """Start the worker threads."""
        if self._threads:
            raise RuntimeError("consumer already started")
        for n in range(self.concurrency):
            thread = threading.Thread(target=self._run, name=f"consumer-{n}", daemon=True)
            thread.start()
            self._threads.append(thread)
        logger.info(f"Consumer started with {self.concurrency} workers")

    @property
    def running(self) -> bool:
        return any(t.is_alive() for t in self._threads)

    @property
    def in_flight(self) -> int:
        """Number of messages currently being handled."""
        with self._idle:
            return self._in_flight

    def stop(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        """Stop taking messages and wait for in-flight handlers.

        Workers blocked in an idle receive are not waited on beyond the
        timeout; they exit when their poll returns and hand back anything
        they received unacknowledged.

        Raises:
            ShutdownTimeout: If a handler is still running after timeout seconds
        """
        deadline = time.time() + timeout
        with self._idle:
            self.shutdown_event.set()
            self._idle.wait_for(lambda: self._in_flight == 0, timeout)
            busy = self._in_flight

        if not busy:
            for thread in self._threads:
                thread.join(max(0.0, deadline - time.time()))
            polling = [t.name for t in self._threads if t.is_alive()]
            if polling:
                logger.info(f"Workers still polling at shutdown: {', '.join(polling)}")

        try:
            self.subscription.close()
        except Exception as e:
            logger.warning(f"Closing subscription failed: {type(e).__name__}")
        if busy:
            raise ShutdownTimeout(f"{busy} handlers still running after {timeout}s")
        logger.info("Consumer stopped")
