# Wave status state machine: allowed transitions only.
# PROPOSED -> UNLOCKED (threshold reached, exactly once)
# UNLOCKED -> (none)      leaving participants never relock a wave
# EXPIRED is derived from expires_at, never stored

from datetime import datetime
from enum import Enum as PyEnum
from typing import Optional

from crewup.core.clock import is_expired


class WaveStatus(str, PyEnum):
    PROPOSED = "PROPOSED"
    UNLOCKED = "UNLOCKED"
    EXPIRED = "EXPIRED"


# Allowed target statuses from each stored status.
ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    WaveStatus.PROPOSED.value: {WaveStatus.UNLOCKED.value},
    WaveStatus.UNLOCKED.value: set(),
}


def check_status_transition(current: str, target: str) -> Optional[str]:
    """
    Validate status transition. Returns None if allowed, else a clear error message for HTTP 409.
    """
    allowed = ALLOWED_TRANSITIONS.get(current, set())
    if target not in allowed:
        allowed_str = ", ".join(sorted(allowed)) if allowed else "none"
        return (
            f"Transition from {current} to {target} is not allowed. "
            f"From {current} only allowed: {allowed_str}."
        )
    return None


def stored_status(unlocked: bool) -> str:
    return WaveStatus.UNLOCKED.value if unlocked else WaveStatus.PROPOSED.value


def derive_status(unlocked: bool, expires_at: datetime, now: Optional[datetime] = None) -> str:
    """
    Effective status as seen by callers. An expired wave is inert regardless of unlock state.
    """
    if is_expired(expires_at, now):
        return WaveStatus.EXPIRED.value
    return stored_status(unlocked)
