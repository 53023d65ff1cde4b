from __future__ import annotations

import enum


class RequestStatus(enum.StrEnum):
    """State machine for item requests."""

    PENDING = "Pending"
    DEPARTMENT_APPROVED = "DepartmentApproved"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    FULFILLED = "Fulfilled"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES = frozenset({RequestStatus.FULFILLED, RequestStatus.REJECTED, RequestStatus.CANCELLED})


class Role(enum.StrEnum):
    """Actor role resolved by the authentication layer."""

    ADMIN = "Admin"
    STOCK_MANAGER = "StockManager"
    DEPARTMENT_HEAD = "DepartmentHead"
    STAFF = "Staff"
    VIEWER = "Viewer"


class AttributionKind(enum.StrEnum):
    """Which action produced a request's current status."""

    NONE = "none"
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    REQUEST = "REQUEST"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    SUBMIT = "SUBMIT"
    DEPARTMENT_APPROVE = "DEPARTMENT_APPROVE"
    APPROVE = "APPROVE"
    REJECT = "REJECT"
    FULFILL = "FULFILL"
    CANCEL = "CANCEL"
