"""Domain models for audio sessions."""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from audio_echo.adapters.playback import Playback

DEFAULT_GROUP = "default"

# Keys owned by dedicated logic; never copied onto a playback blindly.
IDENTITY_KEYS = frozenset({"audio_id", "destroy_on_ended", "parent", "volume", "name"})


class PeerRole(StrEnum):
    """Role a peer plays in session replication."""

    AUTHORITATIVE = "authoritative"
    DEPENDENT = "dependent"


@dataclass(frozen=True)
class PlaybackConfig:
    """Caller-supplied configuration for a single play request."""

    audio_id: str
    destroy_on_ended: bool = True
    volume: float | None = None
    parent: str | None = None
    name: str | None = None
    properties: dict[str, object] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "PlaybackConfig":
        """Build a config from a loose mapping; unknown keys become properties."""
        properties = dict(payload.get("properties") or {})
        for key, value in payload.items():
            if key not in IDENTITY_KEYS and key != "properties":
                properties[key] = value
        volume = payload.get("volume")
        if isinstance(volume, bool) or not isinstance(volume, int | float):
            volume = None
        return cls(
            audio_id=str(payload["audio_id"]),
            destroy_on_ended=bool(payload.get("destroy_on_ended", True)),
            volume=None if volume is None else float(volume),
            parent=_optional_str(payload.get("parent")),
            name=_optional_str(payload.get("name")),
            properties={
                key: value
                for key, value in properties.items()
                if key not in IDENTITY_KEYS
            },
        )

    def to_payload(self) -> dict[str, object]:
        """Return the wire representation of the config."""
        return {
            "audio_id": self.audio_id,
            "destroy_on_ended": self.destroy_on_ended,
            "volume": self.volume,
            "parent": self.parent,
            "name": self.name,
            "properties": dict(self.properties),
        }


@dataclass
class AudioSession:
    """One tracked instance of requested audio playback."""

    id: str
    group: str
    config: PlaybackConfig
    playback: "Playback | None" = None
    replicates: bool = False
    subscriptions: list[Callable[[], None]] = field(default_factory=list)

    @property
    def is_placeholder(self) -> bool:
        """Return True when the session only tracks playback done elsewhere."""
        return self.playback is None

    def release(self) -> None:
        """Cancel every listener owned by this session."""
        subscriptions, self.subscriptions = self.subscriptions, []
        for unsubscribe in subscriptions:
            unsubscribe()


@dataclass(frozen=True)
class SessionStarted:
    """Notification that a session started on the authoritative peer."""

    session_id: str
    group: str
    config: PlaybackConfig


@dataclass(frozen=True)
class SessionStopped:
    """Notification that a session ended on the authoritative peer."""

    session_id: str


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    return str(value)
