"""Playback primitive adapter."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import ClassVar, Protocol

from audio_echo.signals import Signal, Unsubscribe


class Playback(Protocol):
    """Interface for a single playable audio resource."""

    SETTABLE_PROPERTIES: ClassVar[frozenset[str]]

    name: str
    audio_id: str
    parent: str | None
    volume: float
    looped: bool

    @property
    def is_playing(self) -> bool:
        """Return True while the resource is producing sound."""

    def play(self) -> None:
        """Start playback."""

    def destroy(self) -> None:
        """Stop playback and release the resource."""

    def on_ended(self, callback: Callable[[], None]) -> Unsubscribe:
        """Call ``callback`` once when playback reaches its natural end."""

    def on_destroying(self, callback: Callable[[], None]) -> Unsubscribe:
        """Call ``callback`` when the resource is being destroyed."""


class PlaybackFactory(Protocol):
    """Creates playback primitives."""

    def create(self) -> Playback:
        """Return a new, unstarted playback."""


@dataclass(eq=False)
class HeadlessPlayback:
    """Playback that tracks state in memory without producing sound."""

    SETTABLE_PROPERTIES: ClassVar[frozenset[str]] = frozenset(
        {"looped", "playback_speed", "time_position", "pitch"}
    )

    name: str = ""
    audio_id: str = ""
    parent: str | None = None
    volume: float = 0.0
    looped: bool = False
    playback_speed: float = 1.0
    time_position: float = 0.0
    pitch: float = 1.0
    destroyed: bool = False
    _playing: bool = False
    _ended: Signal[[]] = field(default_factory=Signal, repr=False)
    _destroying: Signal[[]] = field(default_factory=Signal, repr=False)

    @property
    def is_playing(self) -> bool:
        """Return True while playback is running."""
        return self._playing

    def play(self) -> None:
        """Start playback unless the resource was destroyed."""
        if not self.destroyed:
            self._playing = True

    def finish(self) -> None:
        """Reach the natural end of the resource."""
        if not self._playing or self.looped:
            return
        self._playing = False
        self._ended.fire()

    def destroy(self) -> None:
        """Stop playback and notify destruction listeners once."""
        if self.destroyed:
            return
        self.destroyed = True
        self._destroying.fire()
        self._playing = False
        self._ended.clear()
        self._destroying.clear()

    def on_ended(self, callback: Callable[[], None]) -> Unsubscribe:
        """Register a one-shot natural-end listener."""
        return self._ended.once(callback)

    def on_destroying(self, callback: Callable[[], None]) -> Unsubscribe:
        """Register a destruction listener."""
        return self._destroying.connect(callback)


@dataclass
class HeadlessPlaybackFactory:
    """Factory for headless playbacks that remembers what it created."""

    created: list[HeadlessPlayback] = field(default_factory=list)

    def create(self) -> HeadlessPlayback:
        """Return a new headless playback."""
        playback = HeadlessPlayback()
        self.created.append(playback)
        return playback
