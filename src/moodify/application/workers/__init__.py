"""Background workers."""

from moodify.application.workers.session_sync_store import SessionState, SessionSyncStore

__all__ = ["SessionState", "SessionSyncStore"]
