import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base


LOAN_APPLICATION_STATUSES = (
    "kyc_kyb_verification",
    "eligibility_check",
    "credit_analysis",
    "head_of_credit_review",
    "internal_approval_ceo",
    "committee_decision",
    "sme_offer_approval",
    "document_generation",
    "signing_execution",
    "awaiting_disbursement",
    "approved",
    "rejected",
    "disbursed",
    "cancelled",
)

CONTRACT_STATUSES = (
    "contract_uploaded",
    "contract_sent_for_signing",
    "contract_in_signing",
    "contract_partially_signed",
    "contract_fully_signed",
    "contract_voided",
    "contract_expired",
)


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    quoted = ", ".join(f"'{value}'" for value in values)
    return f"{column} IN ({quoted})"


class LoanApplication(Base):
    __tablename__ = "loan_applications"
    __allow_unmapped__ = True
    __table_args__ = (
        CheckConstraint(_in_clause("status", LOAN_APPLICATION_STATUSES), name="ck_loan_app_status"),
        CheckConstraint(
            f"contract_status IS NULL OR {_in_clause('contract_status', CONTRACT_STATUSES)}",
            name="ck_loan_app_contract_status",
        ),
        CheckConstraint("funding_amount >= 0", name="ck_loan_app_funding_nonneg"),
        CheckConstraint("repayment_period >= 1", name="ck_loan_app_repayment_period_positive"),
        CheckConstraint("version >= 1", name="ck_loan_app_version_positive"),
        Index("ix_loan_applications_status_deleted", "status", "deleted_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_id = Column(String(50), nullable=False, unique=True)
    business_id = Column(
        UUID(as_uuid=True),
        ForeignKey("business_profiles.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    entrepreneur_id = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    loan_product_id = Column(
        UUID(as_uuid=True),
        ForeignKey("loan_products.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    funding_amount = Column(Numeric(15, 2), nullable=False)
    funding_currency = Column(String(10), nullable=False)
    repayment_period = Column(Integer, nullable=False)
    intended_use_of_funds = Column(String(100), nullable=False)
    status = Column(String(40), nullable=False, default="kyc_kyb_verification", index=True)
    contract_status = Column(String(40), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    eligibility_assessment_comment = Column(Text, nullable=True)
    eligibility_assessment_completed_at = Column(DateTime(timezone=True), nullable=True)
    eligibility_assessment_completed_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    credit_assessment_comment = Column(Text, nullable=True)
    credit_assessment_completed_at = Column(DateTime(timezone=True), nullable=True)
    credit_assessment_completed_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    head_of_credit_review_comment = Column(Text, nullable=True)
    head_of_credit_review_completed_at = Column(DateTime(timezone=True), nullable=True)
    head_of_credit_review_completed_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    internal_approval_ceo_comment = Column(Text, nullable=True)
    internal_approval_ceo_completed_at = Column(DateTime(timezone=True), nullable=True)
    internal_approval_ceo_completed_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    sme_offer_approval_comment = Column(Text, nullable=True)
    sme_offer_approval_completed_at = Column(DateTime(timezone=True), nullable=True)
    sme_offer_approval_completed_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    term_sheet_url = Column(Text, nullable=True)
    term_sheet_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    term_sheet_uploaded_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    last_updated_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_updated_at = Column(DateTime(timezone=True), nullable=True, server_default=func.now())
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    documents = relationship("LoanDocument", back_populates="loan_application")

    __mapper_args__ = {"version_id_col": version}
