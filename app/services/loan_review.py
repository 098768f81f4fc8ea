from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.settings import Settings
from app.schemas.loan_review import (
    LoanDocumentSummary,
    ReviewerSummary,
    StageCompletionResponse,
)
from app.services import loan_stages
from app.services.email import EmailService
from app.services.loan_stages import ECHO_CONTRACT, ECHO_TERM_SHEET, StageDescriptor
from app.services.notifications import (
    BackgroundDispatcher,
    SessionFactory,
    StageNotifier,
    WorkflowConfig,
)
from app.services.stage_transitions import StageResult, StageTransitionEngine


def build_completion_response(result: StageResult) -> StageCompletionResponse:
    stage = result.stage
    summaries = [LoanDocumentSummary.model_validate(document) for document in result.documents]
    payload: dict[str, Any] = {
        "loan_application_id": result.application_id,
        "stage": stage.key,
        "status": result.status,
        "previous_status": result.previous_status,
        "completed_at": result.completed_at,
        "completed_by": ReviewerSummary.model_validate(result.reviewer),
    }
    if stage.echo == ECHO_TERM_SHEET:
        payload["term_sheet_url"] = result.echo
    elif stage.echo == ECHO_CONTRACT:
        payload["contract"] = summaries[0] if summaries else None
    else:
        payload["comment"] = result.echo
        payload["supporting_documents"] = summaries
    return StageCompletionResponse(**payload)


class LoanReviewService:
    """Entry points for each review stage of the loan workflow."""

    def __init__(self, engine: StageTransitionEngine) -> None:
        self.engine = engine

    async def complete(
        self,
        db: AsyncSession,
        stage: StageDescriptor,
        *,
        application_id: Any,
        caller_identity: str | None,
        body: Any,
    ) -> StageCompletionResponse:
        result = await self.engine.complete_stage(
            db,
            stage,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )
        return build_completion_response(result)

    async def complete_eligibility_assessment(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.ELIGIBILITY_ASSESSMENT,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )

    async def complete_credit_assessment(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.CREDIT_ASSESSMENT,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )

    async def complete_head_of_credit_review(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.HEAD_OF_CREDIT_REVIEW,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )

    async def complete_internal_approval_ceo(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.INTERNAL_APPROVAL_CEO,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )

    async def complete_committee_decision(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.COMMITTEE_DECISION,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )

    async def complete_sme_offer_approval(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.SME_OFFER_APPROVAL,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )

    async def complete_document_generation(self, db, application_id, caller_identity, body):
        return await self.complete(
            db,
            loan_stages.DOCUMENT_GENERATION,
            application_id=application_id,
            caller_identity=caller_identity,
            body=body,
        )


def build_loan_review_service(
    settings: Settings,
    *,
    dispatcher: BackgroundDispatcher,
    session_factory: SessionFactory,
    email_service: EmailService | None = None,
) -> LoanReviewService:
    config = WorkflowConfig.from_settings(settings)
    notifier = StageNotifier(
        email_service=email_service or EmailService.from_settings(settings),
        dispatcher=dispatcher,
        session_factory=session_factory,
        config=config,
    )
    return LoanReviewService(StageTransitionEngine(config=config, notifier=notifier))
