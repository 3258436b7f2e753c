"""Session identifier helpers."""

from uuid import uuid4

TRANSIENT_PREFIX = "transient-"


def generate_session_id(audio_id: str) -> str:
    """Derive a unique session id from an audio resource id."""
    return f"{audio_id}-{uuid4().hex}"


def transient_session_id(audio_id: str) -> str:
    """Build an id for a replicated session that is not tracked for catch-up."""
    return f"{TRANSIENT_PREFIX}{generate_session_id(audio_id)}"


def is_transient(session_id: str) -> bool:
    """Return True when the id follows the transient replication naming."""
    return session_id.startswith(TRANSIENT_PREFIX)
