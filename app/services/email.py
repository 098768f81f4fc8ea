from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import httpx
import jinja2

from app.core.settings import Settings


logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"

DOCUMENT_GENERATION_SUBJECT = "Loan Request Ready for Document Generation"
TERM_SHEET_SUBJECT = "Loan Request Approved - Term Sheet Ready for Review"


@dataclass(frozen=True)
class EmailSendResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


@dataclass(frozen=True)
class LoanDisplayFields:
    """Pre-formatted applicant and loan values shared by the review emails."""

    company_name: str
    applicant_name: str
    applicant_email: str
    applicant_phone: str | None
    loan_type: str
    loan_requested: str
    preferred_tenure: str
    use_of_funds: str


class EmailTemplateRenderer:
    def __init__(self, searchpath: str | Path = TEMPLATE_DIR) -> None:
        self.template_loader = jinja2.FileSystemLoader(searchpath=str(searchpath))
        self.template_env = jinja2.Environment(
            loader=self.template_loader,
            autoescape=jinja2.select_autoescape(["html"]),
            undefined=jinja2.StrictUndefined,
        )

    def render(self, template_id: str, data: dict[str, Any]) -> str:
        template = self.template_env.get_template(template_id)
        return str(template.render(**data))


class EmailService:
    def __init__(
        self,
        *,
        api_key: str | None,
        api_url: str,
        from_email: str,
        timeout: float = 10.0,
        renderer: EmailTemplateRenderer | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.api_url = api_url
        self.from_email = from_email
        self.timeout = timeout
        self.renderer = renderer or EmailTemplateRenderer()
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs: Any) -> "EmailService":
        return cls(
            api_key=settings.email_api_key,
            api_url=settings.email_api_url,
            from_email=settings.from_email,
            timeout=settings.email_timeout_seconds,
            **kwargs,
        )

    async def send_loan_stage_review_notification(
        self,
        *,
        to: str,
        approver_name: str | None,
        stage_name: str,
        fields: LoanDisplayFields,
        login_url: str,
    ) -> EmailSendResult:
        return await self._render_and_send(
            kind="loan stage review notification",
            to=to,
            subject=f"Loan Review Required: {stage_name}",
            template_id="loan_stage_review_notification.html",
            context={
                **asdict(fields),
                "title": f"Loan Review Required: {stage_name}",
                "preview_text": f"A loan request is awaiting your {stage_name} review",
                "approver_name": approver_name,
                "stage_name": stage_name,
                "login_url": login_url,
            },
        )

    async def send_document_generation_notification(
        self,
        *,
        to: str,
        approver_name: str | None,
        fields: LoanDisplayFields,
        login_url: str,
    ) -> EmailSendResult:
        return await self._render_and_send(
            kind="document generation notification",
            to=to,
            subject=DOCUMENT_GENERATION_SUBJECT,
            template_id="document_generation_notification.html",
            context={
                **asdict(fields),
                "title": DOCUMENT_GENERATION_SUBJECT,
                "preview_text": "A loan request is ready for document generation",
                "approver_name": approver_name,
                "login_url": login_url,
            },
        )

    async def send_term_sheet_approval_notification(
        self,
        *,
        to: str,
        first_name: str | None,
        login_url: str,
    ) -> EmailSendResult:
        return await self._render_and_send(
            kind="term sheet approval notification",
            to=to,
            subject=TERM_SHEET_SUBJECT,
            template_id="term_sheet_approval_notification.html",
            context={
                "title": TERM_SHEET_SUBJECT,
                "preview_text": "Your loan request has been approved",
                "first_name": first_name,
                "login_url": login_url,
            },
        )

    async def _render_and_send(
        self,
        *,
        kind: str,
        to: str,
        subject: str,
        template_id: str,
        context: dict[str, Any],
    ) -> EmailSendResult:
        if not self.api_key:
            logger.warning("Email API key not configured; skipping %s to %s", kind, to)
            return EmailSendResult(success=False, error="Email API key is not configured")
        try:
            html = self.renderer.render(template_id, context)
        except jinja2.TemplateError as exc:
            logger.error("Failed to render %s template %s: %s", kind, template_id, exc)
            return EmailSendResult(success=False, error=str(exc))
        return await self._send(kind=kind, to=to, subject=subject, html=html)

    async def _send(self, *, kind: str, to: str, subject: str, html: str) -> EmailSendResult:
        payload = {"from": self.from_email, "to": [to], "subject": subject, "html": html}
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.api_url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Error sending %s email to %s: %s", kind, to, exc)
            return EmailSendResult(success=False, error=str(exc) or exc.__class__.__name__)

        if response.is_error:
            error = _error_message(response)
            logger.error(
                "Failed to send %s email to %s: status=%s error=%s",
                kind,
                to,
                response.status_code,
                error,
            )
            return EmailSendResult(success=False, error=error)

        message_id = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message_id = body.get("id")
        logger.info("%s email sent to %s", kind.capitalize(), to, extra={"event": {"message_id": message_id}})
        return EmailSendResult(success=True, message_id=message_id)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if message:
            return str(message)
    return f"HTTP {response.status_code}"
