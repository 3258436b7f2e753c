"""Lookup of play-request properties with fallbacks."""

from dataclasses import fields

from audio_echo.domain.sessions import PlaybackConfig

_FIELD_NAMES = frozenset(f.name for f in fields(PlaybackConfig)) - {"properties"}


def resolve_property(config: PlaybackConfig, name: str, default: object) -> object:
    """Return the named config value if it is set and truthy, else ``default``.

    Only declared fields are read as attributes; every other name comes from
    the pass-through ``properties`` mapping.
    """
    if name in _FIELD_NAMES:
        value = getattr(config, name)
    else:
        value = config.properties.get(name)
    return value if value else default
