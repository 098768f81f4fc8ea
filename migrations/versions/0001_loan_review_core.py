"""loan review core tables

Revision ID: 0001_loan_review_core
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_loan_review_core"
down_revision = None
branch_labels = None
depends_on = None


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

DOCUMENT_TYPES = (
    "eligibility_assessment_support",
    "credit_analysis_report",
    "approval_memo",
    "committee_decision_document",
    "offer_letter",
    "contract",
    "disbursement_authorization",
)


def _in_clause(column: str, values: tuple[str, ...]) -> str:
    return f"{column} IN (" + ", ".join(f"'{value}'" for value in values) + ")"


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _stage_columns(prefix: str) -> list[sa.Column]:
    return [
        sa.Column(f"{prefix}_comment", sa.Text(), nullable=True),
        sa.Column(f"{prefix}_completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(f"{prefix}_completed_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.ForeignKeyConstraint([f"{prefix}_completed_by"], ["users.id"], ondelete="SET NULL"),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("clerk_id", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("first_name", sa.String(length=100), nullable=True),
        sa.Column("last_name", sa.String(length=100), nullable=True),
        sa.Column("phone_number", sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_clerk_id", "users", ["clerk_id"], unique=True)
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    op.create_table(
        "business_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "loan_products",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("term_unit", sa.String(length=40), nullable=False, server_default="months"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )

    op.create_table(
        "loan_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("loan_id", sa.String(length=50), nullable=False),
        sa.Column("business_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("entrepreneur_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("loan_product_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("funding_amount", sa.Numeric(15, 2), nullable=False),
        sa.Column("funding_currency", sa.String(length=10), nullable=False),
        sa.Column("repayment_period", sa.Integer(), nullable=False),
        sa.Column("intended_use_of_funds", sa.String(length=100), nullable=False),
        sa.Column("status", sa.String(length=40), nullable=False, server_default="kyc_kyb_verification"),
        sa.Column("contract_status", sa.String(length=40), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        *_stage_columns("eligibility_assessment"),
        *_stage_columns("credit_assessment"),
        *_stage_columns("head_of_credit_review"),
        *_stage_columns("internal_approval_ceo"),
        *_stage_columns("sme_offer_approval"),
        sa.Column("term_sheet_url", sa.Text(), nullable=True),
        sa.Column("term_sheet_uploaded_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("term_sheet_uploaded_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("last_updated_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("last_updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["business_profiles.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["entrepreneur_id"], ["users.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["loan_product_id"], ["loan_products.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["term_sheet_uploaded_by"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["last_updated_by"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("loan_id", name="uq_loan_applications_loan_id"),
        sa.CheckConstraint(_in_clause("status", LOAN_APPLICATION_STATUSES), name="ck_loan_app_status"),
        sa.CheckConstraint(
            f"contract_status IS NULL OR {_in_clause('contract_status', CONTRACT_STATUSES)}",
            name="ck_loan_app_contract_status",
        ),
        sa.CheckConstraint("funding_amount >= 0", name="ck_loan_app_funding_nonneg"),
        sa.CheckConstraint("repayment_period >= 1", name="ck_loan_app_repayment_period_positive"),
        sa.CheckConstraint("version >= 1", name="ck_loan_app_version_positive"),
    )
    op.create_index("ix_loan_applications_business_id", "loan_applications", ["business_id"])
    op.create_index("ix_loan_applications_entrepreneur_id", "loan_applications", ["entrepreneur_id"])
    op.create_index("ix_loan_applications_loan_product_id", "loan_applications", ["loan_product_id"])
    op.create_index("ix_loan_applications_status", "loan_applications", ["status"])
    op.create_index("ix_loan_applications_deleted_at", "loan_applications", ["deleted_at"])
    op.create_index(
        "ix_loan_applications_status_deleted", "loan_applications", ["status", "deleted_at"]
    )

    op.create_table(
        "loan_documents",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("loan_application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("document_type", sa.String(length=50), nullable=False),
        sa.Column("doc_url", sa.Text(), nullable=False),
        sa.Column("doc_name", sa.String(length=255), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("uploaded_by", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["loan_application_id"], ["loan_applications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="RESTRICT"),
        sa.CheckConstraint(_in_clause("document_type", DOCUMENT_TYPES), name="ck_loan_document_type"),
    )
    op.create_index("ix_loan_documents_loan_application_id", "loan_documents", ["loan_application_id"])
    op.create_index("ix_loan_documents_uploaded_by", "loan_documents", ["uploaded_by"])
    op.create_index(
        "ix_loan_documents_loan_app_type", "loan_documents", ["loan_application_id", "document_type"]
    )
    op.create_index(
        "ix_loan_documents_loan_app_deleted", "loan_documents", ["loan_application_id", "deleted_at"]
    )

    op.create_table(
        "loan_application_audit_trail",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
        sa.Column("loan_application_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("performed_by_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=50), nullable=True),
        sa.Column("previous_status", sa.String(length=50), nullable=True),
        sa.Column("new_status", sa.String(length=50), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["loan_application_id"], ["loan_applications.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["performed_by_id"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_index(
        "ix_loan_application_audit_trail_loan_application_id",
        "loan_application_audit_trail",
        ["loan_application_id"],
    )
    op.create_index(
        "ix_loan_application_audit_trail_performed_by_id",
        "loan_application_audit_trail",
        ["performed_by_id"],
    )
    op.create_index(
        "ix_loan_application_audit_trail_event_type",
        "loan_application_audit_trail",
        ["event_type"],
    )
    op.create_index(
        "ix_loan_audit_loan_app_event",
        "loan_application_audit_trail",
        ["loan_application_id", "event_type"],
    )
    op.create_index(
        "ix_loan_audit_loan_app_created",
        "loan_application_audit_trail",
        ["loan_application_id", "created_at"],
    )


def downgrade() -> None:
    op.drop_table("loan_application_audit_trail")
    op.drop_table("loan_documents")
    op.drop_table("loan_applications")
    op.drop_table("loan_products")
    op.drop_table("business_profiles")
    op.drop_index("ix_users_deleted_at", table_name="users")
    op.drop_index("ix_users_clerk_id", table_name="users")
    op.drop_table("users")
