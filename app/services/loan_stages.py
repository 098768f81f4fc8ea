from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.schemas.loan_review import (
    ContractStageBody,
    LoanApplicationStatus,
    LoanDocumentType,
    ReviewStageBody,
    StageBody,
    TermSheetStageBody,
)


# Notification selectors understood by StageNotifier.
NOTIFY_NONE = "none"
NOTIFY_STAGE_REVIEW = "stage_review"
NOTIFY_COMMITTEE_DECISION = "committee_decision"

# Echo kinds for the completion response.
ECHO_COMMENT = "comment"
ECHO_TERM_SHEET = "term_sheet_url"
ECHO_CONTRACT = "contract"


@dataclass(frozen=True)
class StageDescriptor:
    """Data row describing one workflow stage.

    ``comment_field``, ``completed_at_field`` and ``completed_by_field`` name
    the application columns written on completion. ``extra_updates`` are
    constant column values applied alongside the status change.
    """

    key: str
    path: str
    display_name: str
    start_status: str
    successor_status: str
    body_model: type[StageBody]
    event_type: str
    document_type: str | None = None
    comment_field: str | None = None
    completed_at_field: str | None = None
    completed_by_field: str | None = None
    echo: str = ECHO_COMMENT
    extra_updates: dict[str, Any] = field(default_factory=dict)
    notification: str = NOTIFY_NONE
    next_stage_name: str | None = None
    audit_title: str | None = None
    audit_description: str | None = None
    forbid_existing_document: bool = False

    @property
    def error_code(self) -> str:
        return f"COMPLETE_{self.key.upper()}_ERROR"

    @property
    def error_message(self) -> str:
        return f"Failed to complete {self.display_name.lower()}"


def _review_stage(
    key: str,
    *,
    path: str,
    display_name: str,
    start: LoanApplicationStatus,
    successor: LoanApplicationStatus,
    document_type: LoanDocumentType,
    next_stage_name: str,
) -> StageDescriptor:
    return StageDescriptor(
        key=key,
        path=path,
        display_name=display_name,
        start_status=start.value,
        successor_status=successor.value,
        body_model=ReviewStageBody,
        event_type=f"{key}_completed",
        document_type=document_type.value,
        comment_field=f"{key}_comment",
        completed_at_field=f"{key}_completed_at",
        completed_by_field=f"{key}_completed_by",
        notification=NOTIFY_STAGE_REVIEW,
        next_stage_name=next_stage_name,
    )


ELIGIBILITY_ASSESSMENT = _review_stage(
    "eligibility_assessment",
    path="eligibility-assessment",
    display_name="Eligibility assessment",
    start=LoanApplicationStatus.ELIGIBILITY_CHECK,
    successor=LoanApplicationStatus.CREDIT_ANALYSIS,
    document_type=LoanDocumentType.ELIGIBILITY_ASSESSMENT_SUPPORT,
    next_stage_name="Credit Analysis",
)

CREDIT_ASSESSMENT = _review_stage(
    "credit_assessment",
    path="credit-assessment",
    display_name="Credit assessment",
    start=LoanApplicationStatus.CREDIT_ANALYSIS,
    successor=LoanApplicationStatus.HEAD_OF_CREDIT_REVIEW,
    document_type=LoanDocumentType.CREDIT_ANALYSIS_REPORT,
    next_stage_name="Head of Credit Review",
)

HEAD_OF_CREDIT_REVIEW = _review_stage(
    "head_of_credit_review",
    path="head-of-credit-review",
    display_name="Head of credit review",
    start=LoanApplicationStatus.HEAD_OF_CREDIT_REVIEW,
    successor=LoanApplicationStatus.INTERNAL_APPROVAL_CEO,
    document_type=LoanDocumentType.CREDIT_ANALYSIS_REPORT,
    next_stage_name="Internal Approval - CEO",
)

INTERNAL_APPROVAL_CEO = _review_stage(
    "internal_approval_ceo",
    path="internal-approval-ceo",
    display_name="Internal approval CEO",
    start=LoanApplicationStatus.INTERNAL_APPROVAL_CEO,
    successor=LoanApplicationStatus.COMMITTEE_DECISION,
    document_type=LoanDocumentType.CREDIT_ANALYSIS_REPORT,
    next_stage_name="Committee Decision",
)

COMMITTEE_DECISION = StageDescriptor(
    key="committee_decision",
    path="committee-decision",
    display_name="Committee decision",
    start_status=LoanApplicationStatus.COMMITTEE_DECISION.value,
    successor_status=LoanApplicationStatus.SME_OFFER_APPROVAL.value,
    body_model=TermSheetStageBody,
    event_type="status_changed",
    comment_field="term_sheet_url",
    completed_at_field="term_sheet_uploaded_at",
    completed_by_field="term_sheet_uploaded_by",
    echo=ECHO_TERM_SHEET,
    notification=NOTIFY_COMMITTEE_DECISION,
    audit_title="Committee decision completed - Term sheet uploaded",
    audit_description=(
        "Term sheet uploaded and loan application moved to SME offer approval stage."
    ),
)

SME_OFFER_APPROVAL = _review_stage(
    "sme_offer_approval",
    path="sme-offer-approval",
    display_name="SME offer approval",
    start=LoanApplicationStatus.SME_OFFER_APPROVAL,
    successor=LoanApplicationStatus.DOCUMENT_GENERATION,
    document_type=LoanDocumentType.OFFER_LETTER,
    next_stage_name="Document Generation",
)

DOCUMENT_GENERATION = StageDescriptor(
    key="document_generation",
    path="contract",
    display_name="Document generation",
    start_status=LoanApplicationStatus.DOCUMENT_GENERATION.value,
    successor_status=LoanApplicationStatus.SIGNING_EXECUTION.value,
    body_model=ContractStageBody,
    event_type="contract_uploaded",
    document_type=LoanDocumentType.CONTRACT.value,
    echo=ECHO_CONTRACT,
    extra_updates={"contract_status": "contract_uploaded"},
    audit_description=(
        "Loan contract uploaded and loan moved from document generation to signing and execution."
    ),
    forbid_existing_document=True,
)


STAGES: tuple[StageDescriptor, ...] = (
    ELIGIBILITY_ASSESSMENT,
    CREDIT_ASSESSMENT,
    HEAD_OF_CREDIT_REVIEW,
    INTERNAL_APPROVAL_CEO,
    COMMITTEE_DECISION,
    SME_OFFER_APPROVAL,
    DOCUMENT_GENERATION,
)

