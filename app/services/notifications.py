from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any
from uuid import UUID

from app.core.settings import Settings
from app.models.business_profile import BusinessProfile
from app.models.loan_application import LoanApplication
from app.models.loan_product import LoanProduct
from app.models.user import User
from app.schemas.loan_review import NextApproverInput
from app.services import loan_entities
from app.services.email import EmailSendResult, EmailService, LoanDisplayFields
from app.services.loan_stages import (
    NOTIFY_COMMITTEE_DECISION,
    NOTIFY_STAGE_REVIEW,
    StageDescriptor,
)
from app.services.notification_formatting import (
    DEFAULT_APPLICANT_EMAIL,
    DEFAULT_COMPANY_NAME,
    DEFAULT_LOAN_TYPE,
    DEFAULT_TERM_UNIT,
    DEFAULT_USE_OF_FUNDS,
    format_currency,
    format_full_name,
    format_tenure,
    login_url,
)


logger = logging.getLogger(__name__)

SessionFactory = Callable[[], Any]


@dataclass(frozen=True)
class WorkflowConfig:
    admin_url: str | None = None
    app_url: str | None = None
    notifications_enabled: bool = True
    committee_notification_email: str | None = None
    committee_notification_name: str | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "WorkflowConfig":
        return cls(
            admin_url=settings.admin_url,
            app_url=settings.app_url,
            notifications_enabled=settings.notifications_enabled,
            committee_notification_email=settings.committee_notification_email,
            committee_notification_name=settings.committee_notification_name,
        )

    @property
    def admin_login_url(self) -> str:
        return login_url(self.admin_url or self.app_url)

    @property
    def applicant_login_url(self) -> str:
        return login_url(self.app_url)


@dataclass(frozen=True)
class ApplicationSnapshot:
    """Application values captured at commit, safe to use after the session is gone."""

    id: UUID
    loan_id: str | None
    business_id: UUID | None
    entrepreneur_id: UUID | None
    loan_product_id: UUID | None
    funding_amount: Decimal | None
    funding_currency: str | None
    repayment_period: int | None
    intended_use_of_funds: str | None

    @classmethod
    def from_application(cls, application: LoanApplication) -> "ApplicationSnapshot":
        return cls(
            id=application.id,
            loan_id=application.loan_id,
            business_id=application.business_id,
            entrepreneur_id=application.entrepreneur_id,
            loan_product_id=application.loan_product_id,
            funding_amount=application.funding_amount,
            funding_currency=application.funding_currency,
            repayment_period=application.repayment_period,
            intended_use_of_funds=application.intended_use_of_funds,
        )


def build_display_fields(
    snapshot: ApplicationSnapshot,
    *,
    business: BusinessProfile | None,
    applicant: User | None,
    product: LoanProduct | None,
) -> LoanDisplayFields:
    return LoanDisplayFields(
        company_name=(business.name if business else None) or DEFAULT_COMPANY_NAME,
        applicant_name=format_full_name(
            applicant.first_name if applicant else None,
            applicant.last_name if applicant else None,
        ),
        applicant_email=(applicant.email if applicant else None) or DEFAULT_APPLICANT_EMAIL,
        applicant_phone=(applicant.phone_number if applicant else None) or None,
        loan_type=(product.name if product else None) or DEFAULT_LOAN_TYPE,
        loan_requested=format_currency(snapshot.funding_amount, snapshot.funding_currency),
        preferred_tenure=format_tenure(
            snapshot.repayment_period,
            (product.term_unit if product else None) or DEFAULT_TERM_UNIT,
        ),
        use_of_funds=snapshot.intended_use_of_funds or DEFAULT_USE_OF_FUNDS,
    )


class BackgroundDispatcher:
    """Runs notification jobs as asyncio tasks detached from the request.

    Failures are logged and dropped. ``drain`` waits for outstanding jobs and
    is used at shutdown and in tests.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def submit(self, job: Callable[[], Awaitable[Any]], *, name: str) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(self._run(job, name), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self, job: Callable[[], Awaitable[Any]], name: str) -> None:
        try:
            await job()
        except asyncio.CancelledError:
            logger.warning("Background job %s cancelled", name)
            raise
        except Exception:
            logger.exception("Background job %s failed", name)

    async def drain(self, timeout: float | None = None) -> None:
        if not self._tasks:
            return
        _, pending = await asyncio.wait(list(self._tasks), timeout=timeout)
        if pending:
            logger.warning("Background dispatcher drained with %d job(s) still running", len(pending))


class StageNotifier:
    def __init__(
        self,
        *,
        email_service: EmailService,
        dispatcher: BackgroundDispatcher,
        session_factory: SessionFactory,
        config: WorkflowConfig,
    ) -> None:
        self.email_service = email_service
        self.dispatcher = dispatcher
        self.session_factory = session_factory
        self.config = config

    def notify(
        self,
        stage: StageDescriptor,
        snapshot: ApplicationSnapshot,
        *,
        next_approver: NextApproverInput | None = None,
    ) -> int:
        """Schedule the stage's notifications; returns the number of jobs queued."""
        if not self.config.notifications_enabled:
            return 0
        if stage.notification == NOTIFY_STAGE_REVIEW:
            if next_approver is None:
                return 0
            self.dispatcher.submit(
                lambda: self._send_stage_review(stage, snapshot, next_approver),
                name=f"{stage.key}:{snapshot.id}",
            )
            return 1
        if stage.notification == NOTIFY_COMMITTEE_DECISION:
            self.dispatcher.submit(
                lambda: self._send_committee_decision(snapshot),
                name=f"{stage.key}:{snapshot.id}",
            )
            return 1
        return 0

    async def _load(
        self, snapshot: ApplicationSnapshot
    ) -> tuple[LoanDisplayFields, User | None]:
        async with self.session_factory() as db:
            business = await loan_entities.get_business(db, snapshot.business_id)
            applicant = await loan_entities.get_active_user(db, snapshot.entrepreneur_id)
            product = await loan_entities.get_loan_product(db, snapshot.loan_product_id)
        fields = build_display_fields(
            snapshot, business=business, applicant=applicant, product=product
        )
        return fields, applicant

    async def _send_stage_review(
        self,
        stage: StageDescriptor,
        snapshot: ApplicationSnapshot,
        next_approver: NextApproverInput,
    ) -> int:
        fields, _ = await self._load(snapshot)
        await self._attempt(
            "stage review",
            snapshot,
            self.email_service.send_loan_stage_review_notification(
                to=next_approver.next_approver_email,
                approver_name=next_approver.next_approver_name,
                stage_name=stage.next_stage_name or stage.display_name,
                fields=fields,
                login_url=self.config.admin_login_url,
            ),
        )
        return 1

    async def _send_committee_decision(self, snapshot: ApplicationSnapshot) -> int:
        fields, applicant = await self._load(snapshot)
        attempted = 0
        if self.config.committee_notification_email:
            attempted += 1
            await self._attempt(
                "document generation",
                snapshot,
                self.email_service.send_document_generation_notification(
                    to=self.config.committee_notification_email,
                    approver_name=self.config.committee_notification_name,
                    fields=fields,
                    login_url=self.config.admin_login_url,
                ),
            )
        else:
            logger.warning(
                "No committee notification recipient configured for loan application %s",
                snapshot.id,
            )
        if applicant is not None and applicant.email:
            attempted += 1
            await self._attempt(
                "term sheet approval",
                snapshot,
                self.email_service.send_term_sheet_approval_notification(
                    to=applicant.email,
                    first_name=applicant.first_name,
                    login_url=self.config.applicant_login_url,
                ),
            )
        return attempted

    async def _attempt(
        self, kind: str, snapshot: ApplicationSnapshot, send: Awaitable[EmailSendResult]
    ) -> EmailSendResult | None:
        try:
            result = await send
        except Exception:
            logger.exception(
                "Failed to send %s notification for loan application %s", kind, snapshot.id
            )
            return None
        if not result.success:
            logger.warning(
                "%s notification for loan application %s was not delivered: %s",
                kind.capitalize(),
                snapshot.id,
                result.error,
            )
        return result
