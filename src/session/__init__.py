"""Session lifecycle state machine."""
from .session_machine import SessionMachine, SessionState, TickResult

__all__ = ["SessionMachine", "SessionState", "TickResult"]
