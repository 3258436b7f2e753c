"""Replication transport adapters."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

import httpx

from audio_echo.domain.sessions import SessionStarted
from audio_echo.signals import Signal, Unsubscribe

_logger = logging.getLogger(__name__)


class ReplicationBroadcaster(Protocol):
    """Authoritative-side delivery of lifecycle notifications."""

    def broadcast_started(self, notification: SessionStarted) -> None:
        """Send a start notification to every dependent peer."""

    def send_started(self, peer_id: str, notification: SessionStarted) -> None:
        """Send a start notification to one dependent peer."""

    def broadcast_stopped(self, session_id: str) -> None:
        """Send a stop notification to every dependent peer."""


class ReplicationChannel(Protocol):
    """Dependent-side link to the authoritative peer."""

    def request_catch_up(self) -> None:
        """Ask the authoritative peer to resend active persistent sessions."""

    def on_started(self, handler: Callable[[SessionStarted], None]) -> Unsubscribe:
        """Register a listener for start notifications."""

    def on_stopped(self, handler: Callable[[str], None]) -> Unsubscribe:
        """Register a listener for stop notifications."""


@dataclass(frozen=True)
class _Delivery:
    method: str
    url: str
    payload: dict[str, object] | None


@dataclass
class _Outbox:
    """Sends queued requests one at a time, in submission order."""

    http_client: httpx.AsyncClient
    timeout: float
    _queue: asyncio.Queue[_Delivery] = field(default_factory=asyncio.Queue)
    _worker: asyncio.Task[None] | None = None

    def submit(self, delivery: _Delivery) -> None:
        self._queue.put_nowait(delivery)

    async def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.create_task(self._run())

    async def flush(self) -> None:
        await self._queue.join()

    async def close(self) -> None:
        if self._worker is not None:
            try:
                await asyncio.wait_for(self._queue.join(), timeout=self.timeout)
            except TimeoutError:
                _logger.warning(
                    "Dropping undelivered replication requests: count=%s",
                    self._queue.qsize(),
                )
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        await self.http_client.aclose()

    async def _run(self) -> None:
        while True:
            delivery = await self._queue.get()
            try:
                response = await self.http_client.request(
                    delivery.method,
                    delivery.url,
                    json=delivery.payload,
                    timeout=self.timeout,
                )
                response.raise_for_status()
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                _logger.warning(
                    "Replication delivery failed: %s %s: %s",
                    delivery.method,
                    delivery.url,
                    exc,
                )
            finally:
                self._queue.task_done()


def started_payload(notification: SessionStarted) -> dict[str, object]:
    """Serialize a start notification for the wire."""
    return {
        "session_id": notification.session_id,
        "group": notification.group,
        "config": notification.config.to_payload(),
    }


@dataclass
class HttpxReplicationBroadcaster:
    """Broadcaster that posts notifications to registered peers over HTTP."""

    outbox: _Outbox
    peers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def create(
        cls, timeout: float = 5.0, http_client: httpx.AsyncClient | None = None
    ) -> "HttpxReplicationBroadcaster":
        """Create a broadcaster with a managed httpx session."""
        client = http_client or httpx.AsyncClient()
        return cls(outbox=_Outbox(http_client=client, timeout=timeout))

    def register_peer(self, peer_id: str, url: str) -> None:
        """Start delivering notifications to a dependent peer."""
        self.peers[peer_id] = url.rstrip("/")
        _logger.info("Dependent peer registered: peer_id=%s url=%s", peer_id, url)

    def unregister_peer(self, peer_id: str) -> bool:
        """Stop delivering to a peer; return True if it was registered."""
        removed = self.peers.pop(peer_id, None) is not None
        if removed:
            _logger.info("Dependent peer left: peer_id=%s", peer_id)
        return removed

    def broadcast_started(self, notification: SessionStarted) -> None:
        """Queue a start notification for every registered peer."""
        for peer_id in list(self.peers):
            self.send_started(peer_id, notification)

    def send_started(self, peer_id: str, notification: SessionStarted) -> None:
        """Queue a start notification for a single peer."""
        url = self.peers.get(peer_id)
        if url is None:
            _logger.warning("Unknown dependent peer: peer_id=%s", peer_id)
            return
        self.outbox.submit(
            _Delivery("POST", f"{url}/replication/started", started_payload(notification))
        )

    def broadcast_stopped(self, session_id: str) -> None:
        """Queue a stop notification for every registered peer."""
        for url in list(self.peers.values()):
            self.outbox.submit(
                _Delivery(
                    "POST", f"{url}/replication/stopped", {"session_id": session_id}
                )
            )

    async def start(self) -> None:
        """Start the delivery worker."""
        await self.outbox.start()

    async def flush(self) -> None:
        """Wait until every queued notification was attempted."""
        await self.outbox.flush()

    async def close(self) -> None:
        """Stop the delivery worker and close the HTTP session."""
        await self.outbox.close()


@dataclass
class HttpxReplicationChannel:
    """Dependent-side channel talking to the authoritative peer over HTTP."""

    outbox: _Outbox
    authoritative_url: str
    peer_id: str
    callback_url: str
    _started: Signal[[SessionStarted]] = field(default_factory=Signal)
    _stopped: Signal[[str]] = field(default_factory=Signal)

    @classmethod
    def create(  # noqa: PLR0913
        cls,
        authoritative_url: str,
        peer_id: str,
        callback_url: str,
        timeout: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> "HttpxReplicationChannel":
        """Create a channel with a managed httpx session."""
        client = http_client or httpx.AsyncClient()
        return cls(
            outbox=_Outbox(http_client=client, timeout=timeout),
            authoritative_url=authoritative_url.rstrip("/"),
            peer_id=peer_id,
            callback_url=callback_url.rstrip("/"),
        )

    def request_catch_up(self) -> None:
        """Queue a catch-up request to the authoritative peer."""
        self.outbox.submit(
            _Delivery(
                "POST",
                f"{self.authoritative_url}/replication/catch-up",
                {"peer_id": self.peer_id, "callback_url": self.callback_url},
            )
        )

    def on_started(self, handler: Callable[[SessionStarted], None]) -> Unsubscribe:
        """Register a listener for start notifications."""
        return self._started.connect(handler)

    def on_stopped(self, handler: Callable[[str], None]) -> Unsubscribe:
        """Register a listener for stop notifications."""
        return self._stopped.connect(handler)

    def dispatch_started(self, notification: SessionStarted) -> None:
        """Deliver an incoming start notification to listeners."""
        self._started.fire(notification)

    def dispatch_stopped(self, session_id: str) -> None:
        """Deliver an incoming stop notification to listeners."""
        self._stopped.fire(session_id)

    async def start(self) -> None:
        """Start the delivery worker."""
        await self.outbox.start()

    async def flush(self) -> None:
        """Wait until every queued request was attempted."""
        await self.outbox.flush()

    async def close(self) -> None:
        """Stop the delivery worker and close the HTTP session."""
        await self.outbox.close()
