"""Lifecycle rules shared by every open-market service.

is_open_and_active is the single definition of "vendors may still bid";
the request registry, quotation registry, acceptance arbiter and the
list endpoints all call it so server validation and client display
cannot disagree.

next_transaction_status is the only place a transaction status changes.
"""

from datetime import datetime, timezone

from ..constants import (
    ACTION_ROLES,
    STEP_BY_STATUS,
    TERMINAL_STATUSES,
    VALID_TRANSITIONS,
    RequestStatus,
    Role,
    TransactionAction,
    TransactionStatus,
)
from ..exceptions import StateError


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def is_expired(deadline: datetime | None, now: datetime | None = None) -> bool:
    if deadline is None:
        return False
    now = now or datetime.now(timezone.utc)
    return _aware(now) > _aware(deadline)


def is_in_future(value: datetime, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return _aware(value) > _aware(now)


def is_open_and_active(request, now: datetime | None = None) -> bool:
    """status == open and (no deadline or now <= deadline)."""
    return request.status == RequestStatus.OPEN.value and not is_expired(
        request.deadline, now
    )


def next_transaction_status(
    current: str, action: TransactionAction
) -> TransactionStatus:
    """Return the status `action` moves a transaction to, or raise StateError."""
    try:
        status = TransactionStatus(current)
    except ValueError:
        raise StateError(f"Unknown transaction status: {current}", current)
    if status in TERMINAL_STATUSES:
        raise StateError(
            f"Cannot {action.value}: transaction is already {status.value}", status.value
        )
    target = VALID_TRANSITIONS.get(status, {}).get(action)
    if target is None:
        allowed = [
            s.value for s, actions in VALID_TRANSITIONS.items() if action in actions
        ]
        raise StateError(
            f"Cannot {action.value} a transaction in status {status.value} "
            f"(requires {'/'.join(allowed)})",
            status.value,
        )
    return target


def role_for_action(action: TransactionAction) -> Role:
    return ACTION_ROLES[action]


def step_for(status: str) -> int:
    try:
        return STEP_BY_STATUS[TransactionStatus(status)]
    except ValueError:
        return -1
