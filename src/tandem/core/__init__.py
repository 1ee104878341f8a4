"""Orchestration core: barrier, turn orchestrator and session controller."""

from .barrier import PendingOutputBarrier
from .orchestrator import TurnOrchestrator
from .session import SessionController, SessionState

__all__ = ["PendingOutputBarrier", "SessionController", "SessionState", "TurnOrchestrator"]
