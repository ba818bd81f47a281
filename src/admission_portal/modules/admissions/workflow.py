"""
Admissions Workflow

Status state machines for applications and documents.

Application lifecycle:

    draft -> submitted -> approved
                       -> rejected

Documents are reviewed independently of each other and of the application:
any review state can move to approved or rejected, and a replacement upload
always returns the document to pending.

These functions only mutate the in-memory entity; persistence is the
caller's job.
"""

from datetime import UTC, datetime
from uuid import UUID

from admission_portal.modules.admissions.models import (
    ApplicationStatus,
    Document,
    DocumentStatus,
    StudentApplication,
)

# Valid status transitions for the application state machine
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.DRAFT: {ApplicationStatus.SUBMITTED},
    ApplicationStatus.SUBMITTED: {
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
    },
    # Terminal states - no transitions allowed
    ApplicationStatus.APPROVED: set(),
    ApplicationStatus.REJECTED: set(),
}

# Timestamp column stamped on entry into each status
_TRANSITION_TIMESTAMPS = {
    ApplicationStatus.SUBMITTED: "submitted_at",
    ApplicationStatus.APPROVED: "approved_at",
    ApplicationStatus.REJECTED: "rejected_at",
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(
        self,
        current_status: ApplicationStatus,
        new_status: ApplicationStatus,
    ):
        self.current_status = current_status
        self.new_status = new_status
        valid_transitions = VALID_STATUS_TRANSITIONS.get(current_status, set())
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


class MissingReasonError(ValueError):
    """Raised when a rejection is attempted without a reason."""

    def __init__(self, subject: str = "rejection"):
        super().__init__(f"A reason is required for {subject}")


def _now() -> datetime:
    return datetime.now(UTC)


def _clean_reason(reason: str | None, subject: str) -> str:
    if reason is None or not reason.strip():
        raise MissingReasonError(subject)
    return reason


def can_transition(current: ApplicationStatus, new: ApplicationStatus) -> bool:
    return new in VALID_STATUS_TRANSITIONS.get(current, set())


def transition(
    application: StudentApplication,
    new_status: ApplicationStatus,
    *,
    at: datetime | None = None,
) -> StudentApplication:
    """
    Move an application to ``new_status``.

    The timestamp for the new status is set only if it has never been set.

    Raises:
        InvalidStatusTransitionError: If the move is not allowed from the current status
    """
    current = application.status
    if not can_transition(current, new_status):
        raise InvalidStatusTransitionError(current, new_status)

    application.status = new_status

    field = _TRANSITION_TIMESTAMPS.get(new_status)
    if field and getattr(application, field) is None:
        setattr(application, field, at or _now())

    return application


def submit(application: StudentApplication) -> StudentApplication:
    return transition(application, ApplicationStatus.SUBMITTED)


def complete_payment(application: StudentApplication) -> bool:
    """
    React to a completed payment.

    A draft application is submitted. In any other status this is a no-op.

    Returns:
        True if the application was submitted by this call
    """
    if application.status != ApplicationStatus.DRAFT:
        return False
    transition(application, ApplicationStatus.SUBMITTED)
    return True


def approve(application: StudentApplication) -> StudentApplication:
    return transition(application, ApplicationStatus.APPROVED)


def reject(application: StudentApplication, reason: str | None) -> StudentApplication:
    """
    Reject a submitted application.

    Raises:
        MissingReasonError: If reason is empty
        InvalidStatusTransitionError: If the application is not submitted
    """
    reason = _clean_reason(reason, "rejecting an application")
    transition(application, ApplicationStatus.REJECTED)
    application.rejection_reason = reason
    return application


# ============================================
# Document review
# ============================================


def approve_document(
    document: Document,
    reviewer_id: UUID,
    notes: str | None = None,
) -> Document:
    """Mark a document approved and record the reviewer."""
    document.status = DocumentStatus.APPROVED
    document.approved_by = reviewer_id
    document.approved_at = _now()
    document.admin_notes = notes
    document.rejection_reason = None
    return document


def reject_document(document: Document, reason: str | None) -> Document:
    """
    Mark a document rejected. Prior reviewer notes are cleared.

    Raises:
        MissingReasonError: If reason is empty
    """
    reason = _clean_reason(reason, "rejecting a document")
    document.status = DocumentStatus.REJECTED
    document.rejected_at = _now()
    document.rejection_reason = reason
    document.admin_notes = None
    return document


def replace_document(
    document: Document,
    *,
    file_name: str,
    original_name: str,
    file_path: str,
    file_size: int,
    mime_type: str,
) -> Document:
    """Swap in a new file and send the document back for review."""
    document.file_name = file_name
    document.original_name = original_name
    document.file_path = file_path
    document.file_size = file_size
    document.mime_type = mime_type
    document.uploaded_at = _now()
    document.status = DocumentStatus.PENDING
    document.rejection_reason = None
    return document
