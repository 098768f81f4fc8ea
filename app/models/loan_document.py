import uuid

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.db.base import Base


DOCUMENT_TYPES = (
    "eligibility_assessment_support",
    "credit_analysis_report",
    "approval_memo",
    "committee_decision_document",
    "offer_letter",
    "contract",
    "disbursement_authorization",
)


class LoanDocument(Base):
    __tablename__ = "loan_documents"
    __allow_unmapped__ = True
    __table_args__ = (
        CheckConstraint(
            "document_type IN ("
            + ", ".join(f"'{value}'" for value in DOCUMENT_TYPES)
            + ")",
            name="ck_loan_document_type",
        ),
        Index("ix_loan_documents_loan_app_type", "loan_application_id", "document_type"),
        Index("ix_loan_documents_loan_app_deleted", "loan_application_id", "deleted_at"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    loan_application_id = Column(
        UUID(as_uuid=True),
        ForeignKey("loan_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    document_type = Column(String(50), nullable=False)
    doc_url = Column(Text, nullable=False)
    doc_name = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    uploaded_by = Column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    loan_application = relationship("LoanApplication", back_populates="documents")
