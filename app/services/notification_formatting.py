from __future__ import annotations

import logging
import re
from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation
from typing import Any


logger = logging.getLogger(__name__)

DEFAULT_APPLICANT_NAME = "Valued Applicant"
DEFAULT_COMPANY_NAME = "Unknown Company"
DEFAULT_APPLICANT_EMAIL = "N/A"
DEFAULT_LOAN_TYPE = "Loan Product"
DEFAULT_USE_OF_FUNDS = "Not provided"
DEFAULT_TERM_UNIT = "months"

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")

# en-US renders these codes with a symbol; anything else is prefixed with the code.
CURRENCY_SYMBOLS: dict[str, str] = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "CNY": "CN¥",
    "INR": "₹",
    "CAD": "CA$",
    "AUD": "A$",
    "NZD": "NZ$",
    "HKD": "HK$",
    "MXN": "MX$",
    "BRL": "R$",
    "ILS": "₪",
    "KRW": "₩",
    "VND": "₫",
    "PHP": "₱",
    "TWD": "NT$",
}

ZERO_DECIMAL_CURRENCIES = frozenset({"JPY", "KRW", "VND", "CLP", "ISK", "UGX", "RWF", "XAF", "XOF"})


def format_full_name(first_name: str | None, last_name: str | None) -> str:
    parts = [part.strip() for part in (first_name, last_name) if part and part.strip()]
    if not parts:
        return DEFAULT_APPLICANT_NAME
    return " ".join(parts)


def _to_decimal(amount: Any) -> Decimal | None:
    if amount is None:
        return Decimal("0")
    if isinstance(amount, bool):
        return Decimal(int(amount))
    try:
        value = Decimal(str(amount).strip() or "0")
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def format_currency(amount: Any, currency: str | None = None) -> str:
    """Render ``amount`` the way an en-US currency formatter would.

    Never raises: unparsable amounts come back as ``"<CODE> <raw>"`` and an
    unrecognised currency code as ``"<CODE> <amount>"`` with two decimals.
    """
    code = (currency or "USD").strip().upper() or "USD"
    value = _to_decimal(amount)
    if value is None:
        raw = "0" if amount is None else amount
        return f"{code} {raw}"

    if not _CURRENCY_CODE.match(code):
        logger.warning(
            "Failed to format currency, falling back to raw amount",
            extra={"event": {"amount": str(amount), "currency": currency}},
        )
        return f"{code} {value.quantize(Decimal('0.01'), rounding=ROUND_HALF_EVEN)}"

    rounded = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_EVEN)
    digits = f"{abs(rounded):,}"
    if code in ZERO_DECIMAL_CURRENCIES:
        # No minimum fraction digits, at most two.
        digits = digits.rstrip("0").rstrip(".")
    sign = "-" if rounded < 0 else ""
    symbol = CURRENCY_SYMBOLS.get(code)
    if symbol:
        return f"{sign}{symbol}{digits}"
    return f"{sign}{code} {digits}"


def format_tenure(period: Any, term_unit: str | None) -> str:
    unit = (term_unit or DEFAULT_TERM_UNIT).replace("_", " ")
    return f"{period} {unit}"


def login_url(base_url: str | None) -> str:
    if not base_url or not base_url.strip():
        return "#"
    return f"{base_url.strip().rstrip('/')}/login"
