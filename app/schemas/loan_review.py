from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Annotated, Any
from urllib.parse import urlsplit
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class LoanApplicationStatus(str, Enum):
    KYC_KYB_VERIFICATION = "kyc_kyb_verification"
    ELIGIBILITY_CHECK = "eligibility_check"
    CREDIT_ANALYSIS = "credit_analysis"
    HEAD_OF_CREDIT_REVIEW = "head_of_credit_review"
    INTERNAL_APPROVAL_CEO = "internal_approval_ceo"
    COMMITTEE_DECISION = "committee_decision"
    SME_OFFER_APPROVAL = "sme_offer_approval"
    DOCUMENT_GENERATION = "document_generation"
    SIGNING_EXECUTION = "signing_execution"
    AWAITING_DISBURSEMENT = "awaiting_disbursement"
    APPROVED = "approved"
    REJECTED = "rejected"
    DISBURSED = "disbursed"
    CANCELLED = "cancelled"


class LoanDocumentType(str, Enum):
    ELIGIBILITY_ASSESSMENT_SUPPORT = "eligibility_assessment_support"
    CREDIT_ANALYSIS_REPORT = "credit_analysis_report"
    APPROVAL_MEMO = "approval_memo"
    COMMITTEE_DECISION_DOCUMENT = "committee_decision_document"
    OFFER_LETTER = "offer_letter"
    CONTRACT = "contract"
    DISBURSEMENT_AUTHORIZATION = "disbursement_authorization"


def _require_url(value: str) -> str:
    cleaned = value.strip()
    parts = urlsplit(cleaned)
    if not parts.scheme or not parts.netloc:
        raise ValueError("must be an absolute URL")
    return cleaned


AbsoluteUrl = Annotated[str, AfterValidator(_require_url)]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class SupportingDocumentInput(_CamelModel):
    doc_url: AbsoluteUrl = Field(min_length=1)
    doc_name: str | None = Field(default=None, max_length=255)
    notes: str | None = Field(default=None, max_length=2000)


class NextApproverInput(_CamelModel):
    next_approver_email: EmailStr
    next_approver_name: str | None = Field(default=None, max_length=255)


class StageBody(_CamelModel):
    """Caller payload for one stage.

    Subclasses expose the same three accessors so the transition engine can
    stay ignorant of stage-specific field names.
    """

    def echo_value(self) -> str | None:
        return None

    def document_inputs(self) -> list[SupportingDocumentInput]:
        return []

    def next_approver_hint(self) -> NextApproverInput | None:
        return None


class ReviewStageBody(StageBody):
    comment: str = Field(min_length=1)
    supporting_documents: list[SupportingDocumentInput] = Field(default_factory=list)
    next_approver: NextApproverInput | None = None

    @field_validator("comment")
    @classmethod
    def _comment_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("comment must not be blank")
        return value

    def echo_value(self) -> str | None:
        return self.comment

    def document_inputs(self) -> list[SupportingDocumentInput]:
        return list(self.supporting_documents)

    def next_approver_hint(self) -> NextApproverInput | None:
        return self.next_approver


class TermSheetStageBody(StageBody):
    term_sheet_url: AbsoluteUrl = Field(min_length=1)

    def echo_value(self) -> str | None:
        return self.term_sheet_url


class ContractStageBody(StageBody):
    contract_url: AbsoluteUrl = Field(min_length=1)
    doc_name: str | None = Field(default=None, min_length=1, max_length=255)
    notes: str | None = Field(default=None, min_length=1)

    def echo_value(self) -> str | None:
        return self.contract_url

    def document_inputs(self) -> list[SupportingDocumentInput]:
        return [
            SupportingDocumentInput(doc_url=self.contract_url, doc_name=self.doc_name, notes=self.notes)
        ]


class ReviewerSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    first_name: str | None = None
    last_name: str | None = None
    email: str


class LoanDocumentSummary(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: UUID
    doc_url: str
    doc_name: str | None = None
    notes: str | None = None


class StageCompletionResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    loan_application_id: UUID
    stage: str
    status: str
    previous_status: str
    completed_at: datetime
    completed_by: ReviewerSummary
    comment: str | None = None
    term_sheet_url: str | None = None
    supporting_documents: list[LoanDocumentSummary] | None = None
    contract: LoanDocumentSummary | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
