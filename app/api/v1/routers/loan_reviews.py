from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.response_envelope import success_envelope
from app.schemas.loan_review import ContractStageBody, ReviewStageBody, TermSheetStageBody
from app.services import loan_stages
from app.services.loan_review import LoanReviewService

router = APIRouter(prefix="/loan-applications", tags=["loan-reviews"])


@router.post(
    f"/{{application_id}}/{loan_stages.ELIGIBILITY_ASSESSMENT.path}",
    summary="Complete eligibility assessment and move the loan to credit analysis",
)
async def complete_eligibility_assessment(
    application_id: str,
    payload: ReviewStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_eligibility_assessment(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="Eligibility assessment completed successfully")


@router.post(
    f"/{{application_id}}/{loan_stages.CREDIT_ASSESSMENT.path}",
    summary="Complete credit assessment and move the loan to head of credit review",
)
async def complete_credit_assessment(
    application_id: str,
    payload: ReviewStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_credit_assessment(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="Credit assessment completed successfully")


@router.post(
    f"/{{application_id}}/{loan_stages.HEAD_OF_CREDIT_REVIEW.path}",
    summary="Complete head of credit review and move the loan to internal CEO approval",
)
async def complete_head_of_credit_review(
    application_id: str,
    payload: ReviewStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_head_of_credit_review(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="Head of credit review completed successfully")


@router.post(
    f"/{{application_id}}/{loan_stages.INTERNAL_APPROVAL_CEO.path}",
    summary="Complete internal CEO approval and move the loan to committee decision",
)
async def complete_internal_approval_ceo(
    application_id: str,
    payload: ReviewStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_internal_approval_ceo(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="Internal approval completed successfully")


@router.post(
    f"/{{application_id}}/{loan_stages.COMMITTEE_DECISION.path}",
    summary="Upload the term sheet and move the loan to SME offer approval",
)
async def complete_committee_decision(
    application_id: str,
    payload: TermSheetStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_committee_decision(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="Committee decision completed successfully")


@router.post(
    f"/{{application_id}}/{loan_stages.SME_OFFER_APPROVAL.path}",
    summary="Complete SME offer approval and move the loan to document generation",
)
async def complete_sme_offer_approval(
    application_id: str,
    payload: ReviewStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_sme_offer_approval(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="SME offer approval completed successfully")


@router.post(
    f"/{{application_id}}/{loan_stages.DOCUMENT_GENERATION.path}",
    summary="Upload the loan contract and move the loan to signing and execution",
)
async def complete_document_generation(
    application_id: str,
    payload: ContractStageBody,
    db: AsyncSession = Depends(deps.get_db_session),
    caller_identity: str = Depends(deps.get_caller_identity),
    service: LoanReviewService = Depends(deps.get_loan_review_service),
) -> dict:
    result = await service.complete_document_generation(db, application_id, caller_identity, payload)
    return success_envelope(result.to_payload(), message="Loan contract uploaded successfully")
