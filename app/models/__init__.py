from app.models.business_profile import BusinessProfile
from app.models.loan_application import LoanApplication
from app.models.loan_audit_event import LoanApplicationAuditEvent
from app.models.loan_document import LoanDocument
from app.models.loan_product import LoanProduct
from app.models.user import User

__all__ = [
    "BusinessProfile",
    "LoanApplication",
    "LoanApplicationAuditEvent",
    "LoanDocument",
    "LoanProduct",
    "User",
]
