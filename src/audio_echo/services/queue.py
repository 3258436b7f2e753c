"""Buffer for requests issued before the registry starts."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from functools import partial

from audio_echo.domain.sessions import PlaybackConfig
from audio_echo.services.ids import generate_session_id
from audio_echo.services.registry import SessionRegistry

_logger = logging.getLogger(__name__)

PendingAction = Callable[[], object]


@dataclass
class PendingQueue:
    """Holds requests keyed by session id until started, then runs them in order."""

    registry: SessionRegistry
    started: bool = False
    _pending: dict[str, PendingAction] = field(default_factory=dict)

    def play(
        self,
        config: PlaybackConfig,
        session_id: str | None = None,
        group: str | None = None,
    ) -> str:
        """Play now if started, otherwise buffer; return the session id."""
        if not isinstance(session_id, str):
            session_id = generate_session_id(config.audio_id)
        self.submit(session_id, partial(self.registry.create, config, session_id, group))
        return session_id

    def submit(self, session_id: str, action: PendingAction) -> None:
        """Run ``action`` now if started, otherwise buffer it under ``session_id``."""
        if self.started:
            action()
            return
        # A newer request for the same id supersedes the buffered one.
        self._pending.pop(session_id, None)
        self._pending[session_id] = action

    def cancel(self, session_id: str) -> bool:
        """Drop a buffered request; return True if one was removed."""
        return self._pending.pop(session_id, None) is not None

    def start(self) -> None:
        """Replay buffered requests once; later calls are no-ops."""
        if self.started:
            return
        self.started = True
        pending = list(self._pending.values())
        self._pending.clear()
        for action in pending:
            action()
        if pending:
            _logger.info("Drained pending requests: count=%s", len(pending))

    def __len__(self) -> int:
        return len(self._pending)
