"""Notification emission for lifecycle events.

Maps status changes, submissions and purchases to Notification records.
Emission is pure: records are built here and persisted by the caller, so a
notification exists only if the change that caused it was committed.

Emitted per event:
- submission: one success notice to the owning client, plus one notice to
  every active staff account
- status change: one notice to the owning client (nothing if the status did
  not actually change)
- purchase: one success notice to the purchasing account
"""

from typing import Iterable, Optional

from verifivue.data_management.schemas import (
    Account,
    Notification,
    NotificationType,
    PackageDef,
    RequestStatus,
    VerificationRequest,
)

STATUS_MESSAGES: dict[RequestStatus, tuple[NotificationType, str, str]] = {
    RequestStatus.DRAFT: (
        NotificationType.INFO,
        "Draft Saved",
        "Verification request for {candidate} was saved as a draft.",
    ),
    RequestStatus.PENDING: (
        NotificationType.INFO,
        "Request Pending",
        "Verification request for {candidate} is waiting to be processed.",
    ),
    RequestStatus.PROCESSING: (
        NotificationType.INFO,
        "Verification In Progress",
        "Verification for {candidate} is being processed.",
    ),
    RequestStatus.REVIEW_REQUIRED: (
        NotificationType.WARNING,
        "Review Required",
        "The document submitted for {candidate} needs review by a verification officer.",
    ),
    RequestStatus.PENDING_CLIENT_ACTION: (
        NotificationType.WARNING,
        "Action Required",
        "Please re-upload a clearer copy of the credential for {candidate}.",
    ),
    RequestStatus.INSTITUTION_OUTREACH: (
        NotificationType.INFO,
        "Contacting Institution",
        "We are contacting {institution} to confirm the credentials of {candidate}.",
    ),
    RequestStatus.VERIFIED: (
        NotificationType.SUCCESS,
        "Credentials Verified",
        "The credentials of {candidate} have been verified.",
    ),
    RequestStatus.REJECTED: (
        NotificationType.ERROR,
        "Verification Rejected",
        "Verification for {candidate} was rejected. See the final report for details.",
    ),
}


class NotificationEmitter:
    """Builds notifications for lifecycle events."""

    def on_submission(
        self,
        request: VerificationRequest,
        staff: Iterable[Account] = (),
    ) -> list[Notification]:
        notifications = [
            Notification(
                user_id=request.client_id,
                title="Request Submitted",
                message=(
                    f"Verification request for {request.candidate_name} "
                    "submitted successfully."
                ),
                type=NotificationType.SUCCESS,
                timestamp=request.submission_date,
                related_request_id=request.id,
            )
        ]
        for account in staff:
            if not account.is_staff or account.is_suspended:
                continue
            notifications.append(
                Notification(
                    user_id=account.id,
                    title="New Request Received",
                    message=(
                        f"{request.client_name or request.client_id} submitted a "
                        f"verification request for {request.candidate_name} "
                        f"({request.institution})."
                    ),
                    type=NotificationType.INFO,
                    timestamp=request.submission_date,
                    related_request_id=request.id,
                )
            )
        return notifications

    def on_transition(
        self,
        request: VerificationRequest,
        old_status: Optional[RequestStatus],
        new_status: RequestStatus,
        staff: Iterable[Account] = (),
    ) -> list[Notification]:
        """Notifications for a committed status change of ``request``.

        ``old_status`` None means the request was just created.
        """
        if old_status is None:
            return self.on_submission(request, staff)
        if old_status == new_status:
            return []
        kind, title, template = STATUS_MESSAGES[new_status]
        return [
            Notification(
                user_id=request.client_id,
                title=title,
                message=template.format(
                    candidate=request.candidate_name,
                    institution=request.institution,
                ),
                type=kind,
                timestamp=request.last_updated,
                related_request_id=request.id,
            )
        ]

    def on_purchase(self, account: Account, package: PackageDef) -> list[Notification]:
        if package.is_unlimited:
            detail = "Unlimited verifications are active for one year."
        else:
            detail = f"{package.credits} credits were added to your balance."
        return [
            Notification(
                user_id=account.id,
                title="Purchase Successful",
                message=f"{package.name} purchased. {detail}",
                type=NotificationType.SUCCESS,
            )
        ]
