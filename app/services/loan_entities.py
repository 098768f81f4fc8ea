from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.business_profile import BusinessProfile
from app.models.loan_application import LoanApplication
from app.models.loan_document import LoanDocument
from app.models.loan_product import LoanProduct
from app.models.user import User


def parse_entity_id(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        return None


async def get_application_for_update(db: AsyncSession, application_id: UUID) -> LoanApplication | None:
    """Load a live application and lock its row until the surrounding transaction ends."""
    stmt = (
        select(LoanApplication)
        .where(LoanApplication.id == application_id, LoanApplication.deleted_at.is_(None))
        .with_for_update()
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def resolve_reviewer(db: AsyncSession, caller_identity: str | None) -> User | None:
    if not caller_identity:
        return None
    stmt = select(User).where(User.clerk_id == caller_identity, User.deleted_at.is_(None))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def has_active_document(
    db: AsyncSession, application_id: UUID, document_type: str
) -> bool:
    stmt = (
        select(LoanDocument)
        .where(
            LoanDocument.loan_application_id == application_id,
            LoanDocument.document_type == document_type,
            LoanDocument.deleted_at.is_(None),
        )
        .limit(1)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none() is not None


async def list_documents(
    db: AsyncSession, application_id: UUID, *, document_type: str | None = None
) -> list[LoanDocument]:
    conditions = [
        LoanDocument.loan_application_id == application_id,
        LoanDocument.deleted_at.is_(None),
    ]
    if document_type:
        conditions.append(LoanDocument.document_type == document_type)
    stmt = select(LoanDocument).where(*conditions).order_by(LoanDocument.created_at.asc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_business(db: AsyncSession, business_id: UUID | None) -> BusinessProfile | None:
    if business_id is None:
        return None
    stmt = select(BusinessProfile).where(
        BusinessProfile.id == business_id, BusinessProfile.deleted_at.is_(None)
    )
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_active_user(db: AsyncSession, user_id: UUID | None) -> User | None:
    if user_id is None:
        return None
    stmt = select(User).where(User.id == user_id, User.deleted_at.is_(None))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_loan_product(db: AsyncSession, product_id: UUID | None) -> LoanProduct | None:
    if product_id is None:
        return None
    stmt = select(LoanProduct).where(LoanProduct.id == product_id, LoanProduct.deleted_at.is_(None))
    result = await db.execute(stmt)
    return result.scalar_one_or_none()
