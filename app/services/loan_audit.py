from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.logging import get_audit_logger
from app.models.loan_audit_event import LoanApplicationAuditEvent


logger = logging.getLogger(__name__)


EVENT_TITLES: dict[str, str] = {
    "submitted": "Loan submitted successfully",
    "cancelled": "Loan application cancelled",
    "rejected": "Loan application rejected",
    "approved": "Loan application approved",
    "awaiting_disbursement": "Awaiting disbursement",
    "disbursed": "Loan disbursed",
    "document_verified_approved": "Document verified and approved",
    "document_verified_rejected": "Document verification rejected",
    "kyc_kyb_completed": "KYC/KYB verification completed",
    "eligibility_assessment_completed": "Eligibility assessment completed",
    "credit_assessment_completed": "Credit assessment completed",
    "head_of_credit_review_completed": "Head of credit review completed",
    "internal_approval_ceo_completed": "Internal approval CEO completed",
    "sme_offer_approval_completed": "SME offer approval completed",
    "contract_uploaded": "Loan contract uploaded",
}

REVIEW_STATUS_TITLES: dict[str, str] = {
    "kyc_kyb_verification": "KYC/KYB verification in progress",
    "eligibility_check": "Eligibility check in progress",
    "credit_analysis": "Credit analysis in progress",
    "head_of_credit_review": "Head of credit review in progress",
    "internal_approval_ceo": "Internal approval (CEO) in progress",
    "committee_decision": "Committee decision in progress",
    "sme_offer_approval": "SME offer approval in progress",
    "document_generation": "Document generation in progress",
    "signing_execution": "Signing and execution in progress",
}

_REVIEW_STATUSES = frozenset(REVIEW_STATUS_TITLES)


def event_title(event_type: str, status: str | None = None) -> str:
    if event_type == "review_in_progress":
        return REVIEW_STATUS_TITLES.get(status or "", "Review in progress")
    if event_type == "status_changed":
        if status:
            return f"Status changed to {status.replace('_', ' ')}"
        return "Status changed"
    return EVENT_TITLES.get(event_type, event_type.replace("_", " ").capitalize())


def map_status_to_event_type(status: str) -> str:
    """Event type recorded when an application lands in ``status``."""
    if status in _REVIEW_STATUSES:
        return "review_in_progress"
    if status in {"approved", "rejected", "awaiting_disbursement", "disbursed", "cancelled"}:
        return status
    return "status_changed"


def _serialize(value: Any) -> Any:
    return jsonable_encoder(
        value,
        custom_encoder={
            Decimal: lambda v: str(v),
            datetime: lambda v: v.isoformat(),
            date: lambda v: v.isoformat(),
        },
    )


def _clean_details(details: dict[str, Any] | None) -> dict[str, Any] | None:
    if not details:
        return None
    cleaned = {key: value for key, value in details.items() if value is not None}
    if not cleaned:
        return None
    return _serialize(cleaned)


def log_event(
    db: AsyncSession,
    *,
    application_id,
    actor_id,
    event_type: str,
    title: str | None = None,
    description: str | None = None,
    previous_status: str | None = None,
    new_status: str | None = None,
    details: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> LoanApplicationAuditEvent:
    """Add an audit row to the session; committed with the caller's transaction."""
    entry = LoanApplicationAuditEvent(
        loan_application_id=application_id,
        performed_by_id=actor_id,
        event_type=event_type,
        title=title or event_title(event_type, new_status),
        description=description,
        status=new_status,
        previous_status=previous_status,
        new_status=new_status,
        details=_clean_details(details),
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(entry)
    return entry


def emit_audit_line(entry: LoanApplicationAuditEvent) -> None:
    """Write the committed audit event to the audit stream logger."""
    try:
        get_audit_logger().info(
            entry.title,
            extra={
                "event": {
                    "loan_application_id": str(entry.loan_application_id),
                    "performed_by_id": str(entry.performed_by_id) if entry.performed_by_id else None,
                    "event_type": entry.event_type,
                    "previous_status": entry.previous_status,
                    "new_status": entry.new_status,
                    "details": entry.details,
                }
            },
        )
    except Exception:  # pragma: no cover
        logger.warning("audit stream write failed", exc_info=True)
