from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class StageTransitionError(Exception):
    code: str
    message: str
    details: dict[str, Any] = field(default_factory=dict)
    http_status: int = 500

    def __post_init__(self) -> None:
        super().__init__(self.display_message)

    @property
    def display_message(self) -> str:
        return f"[{self.code}] {self.message}"

    def __str__(self) -> str:
        return self.display_message


class LoanApplicationNotFound(StageTransitionError):
    def __init__(self, application_id: Any) -> None:
        super().__init__(
            code="LOAN_APPLICATION_NOT_FOUND",
            message="Loan application not found",
            details={"loan_application_id": str(application_id)},
            http_status=404,
        )


class InvalidStageStatus(StageTransitionError):
    def __init__(self, *, expected: str, actual: str | None) -> None:
        super().__init__(
            code="INVALID_STATUS",
            message=(
                f"Loan application must be in '{expected}' status. Current status: {actual}"
            ),
            details={"expected_status": expected, "current_status": actual},
            http_status=400,
        )


class ContractAlreadyExists(StageTransitionError):
    def __init__(self, application_id: Any) -> None:
        super().__init__(
            code="CONTRACT_ALREADY_EXISTS",
            message="A loan contract has already been uploaded for this application",
            details={"loan_application_id": str(application_id)},
            http_status=400,
        )


class ReviewerUnauthorized(StageTransitionError):
    def __init__(self) -> None:
        super().__init__(
            code="UNAUTHORIZED",
            message="Admin user not found",
            http_status=401,
        )


class StageValidationError(StageTransitionError):
    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(
            code="VALIDATION_ERROR",
            message=message,
            details={"errors": errors or []},
            http_status=422,
        )


class StageInternalError(StageTransitionError):
    def __init__(self, code: str, message: str) -> None:
        super().__init__(code=code, message=message, http_status=500)
