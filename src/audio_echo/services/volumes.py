"""Volume levels per audio group."""

from dataclasses import dataclass, field

from audio_echo.domain.sessions import DEFAULT_GROUP


@dataclass
class GroupVolumeTable:
    """Mapping from group name to its current volume."""

    levels: dict[str, float] = field(default_factory=dict)

    def set(self, volume: float, group: str | None = None) -> str:
        """Store the volume for a group and return the resolved group name."""
        resolved = group if isinstance(group, str) else DEFAULT_GROUP
        self.levels[resolved] = volume
        return resolved

    def get(self, group: str | None = None) -> float:
        """Return the volume for a group, or 0 when it was never set."""
        resolved = group if isinstance(group, str) else DEFAULT_GROUP
        return self.levels.get(resolved, 0)
