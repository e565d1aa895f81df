"""
Talos auth — client session lifecycle.

    AuthLifecycleController.start()   → SessionState (SETUP / AWAITING_LOGIN / ACTIVE)
    SessionTimer                      → idle expiry for ACTIVE sessions
"""

from __future__ import annotations

from talos.auth.lifecycle import (
    AuthLifecycleController,
    AuthMethod,
    AuthStatus,
    Mode,
    Outcome,
    SessionState,
    SetupMode,
    classify,
)
from talos.auth.timer import SessionTimer

__all__ = [
    "AuthLifecycleController",
    "AuthMethod",
    "AuthStatus",
    "Mode",
    "Outcome",
    "SessionState",
    "SessionTimer",
    "SetupMode",
    "classify",
]
