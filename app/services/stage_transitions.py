from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.models.loan_audit_event import LoanApplicationAuditEvent
from app.models.loan_document import LoanDocument
from app.models.user import User
from app.schemas.loan_review import StageBody
from app.services import loan_audit, loan_entities
from app.services.loan_stages import ECHO_CONTRACT, ECHO_TERM_SHEET, StageDescriptor
from app.services.notifications import ApplicationSnapshot, StageNotifier, WorkflowConfig
from app.services.stage_errors import (
    ContractAlreadyExists,
    InvalidStageStatus,
    LoanApplicationNotFound,
    ReviewerUnauthorized,
    StageInternalError,
    StageTransitionError,
    StageValidationError,
)


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class StageResult:
    stage: StageDescriptor
    application_id: UUID
    previous_status: str
    status: str
    completed_at: datetime
    reviewer: User
    echo: str | None
    documents: list[LoanDocument] = field(default_factory=list)
    audit_event: LoanApplicationAuditEvent | None = None
    notification_jobs: int = 0


def validate_stage_body(stage: StageDescriptor, body: Any) -> StageBody:
    if isinstance(body, stage.body_model):
        return body
    if isinstance(body, BaseModel):
        body = body.model_dump(by_alias=True, exclude_unset=True)
    try:
        return stage.body_model.model_validate(body)
    except ValidationError as exc:
        raise StageValidationError(
            f"Invalid request body for {stage.display_name.lower()}",
            errors=exc.errors(include_url=False, include_context=False, include_input=False),
        ) from exc


def audit_description(stage: StageDescriptor, document_count: int) -> str:
    if stage.audit_description:
        return stage.audit_description
    description = f"{stage.display_name} completed."
    if document_count:
        description += f" {document_count} supporting document(s) attached."
    return description


def audit_details(
    stage: StageDescriptor, body: StageBody, documents: list[LoanDocument]
) -> dict[str, Any]:
    if stage.echo == ECHO_TERM_SHEET:
        return {"termSheetUrl": body.echo_value()}
    if stage.echo == ECHO_CONTRACT:
        contract = documents[0] if documents else None
        return {
            "contractDocumentId": contract.id if contract else None,
            "contractUrl": contract.doc_url if contract else body.echo_value(),
            "contractName": contract.doc_name if contract else None,
        }
    return {"comment": body.echo_value(), "supportingDocumentsCount": len(documents)}


class StageTransitionEngine:
    """Completes one workflow stage for one loan application.

    Preconditions are checked against the row locked with ``FOR UPDATE``;
    documents, the application update and the audit row share a single
    commit. Notifications are scheduled only after that commit succeeds.
    """

    def __init__(
        self,
        *,
        config: WorkflowConfig,
        notifier: StageNotifier | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.config = config
        self.notifier = notifier
        self.clock = clock

    async def complete_stage(
        self,
        db: AsyncSession,
        stage: StageDescriptor,
        *,
        application_id: Any,
        caller_identity: str | None,
        body: Any,
    ) -> StageResult:
        stage_body = validate_stage_body(stage, body)
        app_uuid = loan_entities.parse_entity_id(application_id)
        if app_uuid is None:
            raise LoanApplicationNotFound(application_id)

        try:
            application = await loan_entities.get_application_for_update(db, app_uuid)
            if application is None:
                raise LoanApplicationNotFound(app_uuid)
            if application.status != stage.start_status:
                raise InvalidStageStatus(expected=stage.start_status, actual=application.status)
            reviewer = await loan_entities.resolve_reviewer(db, caller_identity)
            if reviewer is None:
                raise ReviewerUnauthorized()
            if stage.forbid_existing_document and stage.document_type:
                if await loan_entities.has_active_document(db, app_uuid, stage.document_type):
                    raise ContractAlreadyExists(app_uuid)

            now = self.clock()
            previous_status = application.status

            documents: list[LoanDocument] = []
            for item in stage_body.document_inputs():
                document = LoanDocument(
                    loan_application_id=application.id,
                    document_type=stage.document_type,
                    doc_url=item.doc_url,
                    doc_name=item.doc_name,
                    notes=item.notes,
                    uploaded_by=reviewer.id,
                )
                db.add(document)
                documents.append(document)

            application.status = stage.successor_status
            if stage.comment_field:
                setattr(application, stage.comment_field, stage_body.echo_value())
            if stage.completed_at_field:
                setattr(application, stage.completed_at_field, now)
            if stage.completed_by_field:
                setattr(application, stage.completed_by_field, reviewer.id)
            for column, value in stage.extra_updates.items():
                setattr(application, column, value)
            application.last_updated_by = reviewer.id
            application.last_updated_at = now
            db.add(application)
            await db.flush()

            audit_event = loan_audit.log_event(
                db,
                application_id=application.id,
                actor_id=reviewer.id,
                event_type=stage.event_type,
                title=stage.audit_title or loan_audit.event_title(stage.event_type, stage.successor_status),
                description=audit_description(stage, len(documents)),
                previous_status=previous_status,
                new_status=stage.successor_status,
                details=audit_details(stage, stage_body, documents),
            )
            await db.commit()
        except StageTransitionError:
            await db.rollback()
            raise
        except StaleDataError as exc:
            await db.rollback()
            logger.warning(
                "Concurrent update detected while completing %s for loan application %s",
                stage.key,
                app_uuid,
            )
            raise InvalidStageStatus(
                expected=stage.start_status, actual="modified by a concurrent request"
            ) from exc
        except Exception as exc:
            logger.exception(
                "Error completing %s for loan application %s", stage.key, app_uuid
            )
            await db.rollback()
            raise StageInternalError(stage.error_code, stage.error_message) from exc

        loan_audit.emit_audit_line(audit_event)
        logger.info(
            "Loan application %s moved from %s to %s",
            app_uuid,
            previous_status,
            stage.successor_status,
        )

        result = StageResult(
            stage=stage,
            application_id=app_uuid,
            previous_status=previous_status,
            status=stage.successor_status,
            completed_at=now,
            reviewer=reviewer,
            echo=stage_body.echo_value(),
            documents=documents,
            audit_event=audit_event,
        )
        if self.notifier is not None:
            try:
                result.notification_jobs = self.notifier.notify(
                    stage,
                    ApplicationSnapshot.from_application(application),
                    next_approver=stage_body.next_approver_hint(),
                )
            except Exception:
                logger.exception(
                    "Failed to schedule notifications for loan application %s", app_uuid
                )
        return result

