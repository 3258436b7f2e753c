"""Shared test fixtures."""

from collections.abc import Callable
from dataclasses import dataclass, field

import pytest

from audio_echo.adapters.playback import HeadlessPlaybackFactory
from audio_echo.adapters.transport import ReplicationBroadcaster, ReplicationChannel
from audio_echo.config import Settings
from audio_echo.containers import AppContainer
from audio_echo.domain.sessions import PeerRole, SessionStarted
from audio_echo.services.queue import PendingQueue
from audio_echo.services.registry import RegistryState, SessionRegistry
from audio_echo.services.replication import (
    AuthoritativeReplication,
    DependentReplication,
)
from audio_echo.signals import Signal, Unsubscribe


@dataclass
class LoopbackBroadcaster(ReplicationBroadcaster):
    """Broadcaster that delivers directly to in-process channels."""

    channels: dict[str, "LoopbackChannel"] = field(default_factory=dict)
    peers: dict[str, str] = field(default_factory=dict)
    started: list[SessionStarted] = field(default_factory=list)
    sent: list[tuple[str, SessionStarted]] = field(default_factory=list)
    stopped: list[str] = field(default_factory=list)

    def register_peer(self, peer_id: str, url: str) -> None:
        self.peers[peer_id] = url.rstrip("/")

    def unregister_peer(self, peer_id: str) -> bool:
        return self.peers.pop(peer_id, None) is not None

    def broadcast_started(self, notification: SessionStarted) -> None:
        self.started.append(notification)
        for channel in list(self.channels.values()):
            channel.dispatch_started(notification)

    def send_started(self, peer_id: str, notification: SessionStarted) -> None:
        self.sent.append((peer_id, notification))
        channel = self.channels.get(peer_id)
        if channel is not None:
            channel.dispatch_started(notification)

    def broadcast_stopped(self, session_id: str) -> None:
        self.stopped.append(session_id)
        for channel in list(self.channels.values()):
            channel.dispatch_stopped(session_id)


@dataclass
class LoopbackChannel(ReplicationChannel):
    """Dependent channel wired to a loopback broadcaster."""

    peer_id: str
    broadcaster: LoopbackBroadcaster
    catch_up_handler: Callable[[str], int] | None = None
    catch_up_requests: int = 0
    _started: Signal[[SessionStarted]] = field(default_factory=Signal)
    _stopped: Signal[[str]] = field(default_factory=Signal)

    def request_catch_up(self) -> None:
        self.catch_up_requests += 1
        self.broadcaster.channels[self.peer_id] = self
        if self.catch_up_handler is not None:
            self.catch_up_handler(self.peer_id)

    def on_started(self, handler: Callable[[SessionStarted], None]) -> Unsubscribe:
        return self._started.connect(handler)

    def on_stopped(self, handler: Callable[[str], None]) -> Unsubscribe:
        return self._stopped.connect(handler)

    def dispatch_started(self, notification: SessionStarted) -> None:
        self._started.fire(notification)

    def dispatch_stopped(self, session_id: str) -> None:
        self._stopped.fire(session_id)


def build_registry(
    role: PeerRole = PeerRole.AUTHORITATIVE,
    factory: HeadlessPlaybackFactory | None = None,
) -> SessionRegistry:
    registry = SessionRegistry(
        state=RegistryState(role=role),
        playback_factory=factory or HeadlessPlaybackFactory(),
    )
    return registry


@dataclass
class Peers:
    """An authoritative peer plus helpers to attach dependent peers."""

    authoritative: AuthoritativeReplication
    broadcaster: LoopbackBroadcaster
    factory: HeadlessPlaybackFactory

    def join(self, peer_id: str) -> tuple[DependentReplication, LoopbackChannel]:
        registry = build_registry(PeerRole.DEPENDENT)
        channel = LoopbackChannel(
            peer_id=peer_id,
            broadcaster=self.broadcaster,
            catch_up_handler=self.authoritative.handle_catch_up,
        )
        dependent = DependentReplication(registry, PendingQueue(registry), channel)
        dependent.start()
        return dependent, channel


@pytest.fixture
def playback_factory() -> HeadlessPlaybackFactory:
    return HeadlessPlaybackFactory()


@pytest.fixture
def registry(playback_factory: HeadlessPlaybackFactory) -> SessionRegistry:
    registry = build_registry(PeerRole.AUTHORITATIVE, playback_factory)
    registry.start()
    return registry


@pytest.fixture
def dependent_registry() -> SessionRegistry:
    registry = build_registry(PeerRole.DEPENDENT)
    registry.start()
    return registry


@pytest.fixture
def peers() -> Peers:
    factory = HeadlessPlaybackFactory()
    registry = build_registry(PeerRole.AUTHORITATIVE, factory)
    broadcaster = LoopbackBroadcaster()
    authoritative = AuthoritativeReplication(
        registry, PendingQueue(registry), broadcaster
    )
    authoritative.start()
    return Peers(authoritative=authoritative, broadcaster=broadcaster, factory=factory)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        peer_role=PeerRole.AUTHORITATIVE,
        peer_id="authoritative",
        authoritative_url="http://authoritative.test",
        default_volume=1.0,
    )


async def _noop() -> None:
    return None


@pytest.fixture
def container(settings: Settings) -> AppContainer:
    registry = build_registry(PeerRole.AUTHORITATIVE)
    queue = PendingQueue(registry)
    broadcaster = LoopbackBroadcaster()
    replication = AuthoritativeReplication(registry, queue, broadcaster)

    async def start_resources() -> None:
        replication.start()

    return AppContainer(
        settings=settings,
        registry=registry,
        queue=queue,
        replication=replication,
        start_resources=start_resources,
        close_resources=_noop,
        broadcaster=broadcaster,
    )


@pytest.fixture
def dependent_container() -> AppContainer:
    settings = Settings(
        peer_role=PeerRole.DEPENDENT,
        peer_id="dependent-1",
        authoritative_url="http://authoritative.test",
        public_url="http://dependent-1.test",
    )
    registry = build_registry(PeerRole.DEPENDENT)
    queue = PendingQueue(registry)
    channel = LoopbackChannel(peer_id="dependent-1", broadcaster=LoopbackBroadcaster())
    replication = DependentReplication(registry, queue, channel)

    async def start_resources() -> None:
        replication.start()

    async def close_resources() -> None:
        replication.shutdown()

    return AppContainer(
        settings=settings,
        registry=registry,
        queue=queue,
        replication=replication,
        start_resources=start_resources,
        close_resources=close_resources,
        channel=channel,
    )
