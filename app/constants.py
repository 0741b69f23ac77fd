"""Status enums and the transaction state machine table."""

from __future__ import annotations

import enum


class Role(str, enum.Enum):
    DONOR = "donor"
    CHARITY = "charity"
    VENDOR = "vendor"
    ADMIN = "admin"


class RequestStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class FundType(str, enum.Enum):
    GENERAL = "general"
    CAMPAIGN = "campaign"


class TransactionStatus(str, enum.Enum):
    PENDING = "pending"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    COMPLETED = "completed"
    REJECTED = "rejected"


class TransactionAction(str, enum.Enum):
    SHIP = "ship"
    DELIVER = "deliver"
    RELEASE_PAYMENT = "release_payment"
    REPORT_ISSUE = "report_issue"


class IssueType(str, enum.Enum):
    DAMAGED = "damaged"
    INCOMPLETE = "incomplete"
    WRONG = "wrong"
    QUALITY = "quality"
    OTHER = "other"


# Valid transitions: from_status -> {action -> to_status}
VALID_TRANSITIONS: dict[TransactionStatus, dict[TransactionAction, TransactionStatus]] = {
    TransactionStatus.PENDING: {
        TransactionAction.SHIP: TransactionStatus.SHIPPING,
    },
    TransactionStatus.SHIPPING: {
        TransactionAction.DELIVER: TransactionStatus.DELIVERED,
    },
    TransactionStatus.DELIVERED: {
        TransactionAction.RELEASE_PAYMENT: TransactionStatus.COMPLETED,
        TransactionAction.REPORT_ISSUE: TransactionStatus.REJECTED,
    },
}

# Which side of the deal may fire each action
ACTION_ROLES: dict[TransactionAction, Role] = {
    TransactionAction.SHIP: Role.VENDOR,
    TransactionAction.DELIVER: Role.VENDOR,
    TransactionAction.RELEASE_PAYMENT: Role.CHARITY,
    TransactionAction.REPORT_ISSUE: Role.CHARITY,
}

TERMINAL_STATUSES: set[TransactionStatus] = {
    TransactionStatus.COMPLETED,
    TransactionStatus.REJECTED,
}

# Funds committed to a purchase but not yet released to the vendor
IN_FLIGHT_STATUSES: set[TransactionStatus] = {
    TransactionStatus.PENDING,
    TransactionStatus.SHIPPING,
    TransactionStatus.DELIVERED,
}

# Progress bar position shown to both parties
STEP_BY_STATUS: dict[TransactionStatus, int] = {
    TransactionStatus.PENDING: 0,
    TransactionStatus.SHIPPING: 1,
    TransactionStatus.DELIVERED: 2,
    TransactionStatus.COMPLETED: 3,
    TransactionStatus.REJECTED: -1,
}
