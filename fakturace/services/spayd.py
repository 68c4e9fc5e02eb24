"""SPAYD (Short Payment Descriptor) strings for Czech QR payments.

Format reference: https://qr-platba.cz/pro-vyvojare/specifikace-formatu/
"""

from __future__ import annotations

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fakturace.models.invoice import Invoice
    from fakturace.models.user import User

SPAYD_VERSION = "SPD*1.0"
MAX_MESSAGE_LENGTH = 60
MAX_VARIABLE_SYMBOL_LENGTH = 10

_CZECH_ACCOUNT_RE = re.compile(r"^(?:(\d{0,6})-)?(\d{1,10})/(\d{4})$")
_CZECH_IBAN_RE = re.compile(r"^CZ\d{22}$")
# Letters C=12, Z=35 followed by the "00" check-digit placeholder.
_CZ_NUMERIC_SUFFIX = "123500"


def _compact(value: str) -> str:
    return re.sub(r"\s", "", value)


def is_valid_czech_account(account: str | None) -> bool:
    """Domestic ``prefix-number/bank`` or a ``CZ`` IBAN."""
    if not account:
        return False
    if account.strip().upper().startswith("CZ"):
        return is_valid_iban(account)
    return _CZECH_ACCOUNT_RE.match(account.strip()) is not None


def is_valid_iban(iban: str) -> bool:
    """Czech IBAN shape plus the ISO 13616 mod-97 check."""
    compact = _compact(iban).upper()
    if not _CZECH_IBAN_RE.match(compact):
        return False
    rearranged = compact[4:] + "1235" + compact[2:4]
    return int(rearranged) % 97 == 1


def czech_account_to_iban(account: str) -> str:
    """Convert ``[prefix-]number/bank_code`` to a Czech IBAN.

    IBAN input is returned with whitespace removed.

    Raises:
        ValueError: ``account`` is neither a domestic account nor an IBAN.
    """
    cleaned = account.strip()
    if cleaned.upper().startswith("CZ"):
        return _compact(cleaned).upper()

    match = _CZECH_ACCOUNT_RE.match(cleaned)
    if not match:
        raise ValueError(f"Invalid Czech bank account: {account!r}")
    prefix, number, bank_code = match.groups()

    bban = f"{bank_code.zfill(4)}{(prefix or '').zfill(6)}{number.zfill(10)}"
    checksum = 98 - int(bban + _CZ_NUMERIC_SUFFIX) % 97
    return f"CZ{checksum:02d}{bban}"


def format_amount(amount: Decimal | float | str) -> str:
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{value:.2f}"


def sanitize_variable_symbol(value: str | None) -> str:
    """Digits only, at most ten of them."""
    if not value:
        return ""
    return re.sub(r"\D", "", str(value))[:MAX_VARIABLE_SYMBOL_LENGTH]


def sanitize_message(value: str | None) -> str:
    if not value:
        return ""
    cleaned = re.sub(r"[\r\n]", " ", value).replace("*", "")
    return cleaned[:MAX_MESSAGE_LENGTH].strip()


def generate_spayd(
    account: str,
    amount: Decimal | float | str | None = None,
    currency: str = "CZK",
    variable_symbol: str | None = None,
    due_date: date | None = None,
    beneficiary_name: str | None = None,
    message: str | None = None,
) -> str:
    """Build a SPAYD payment string.

    Args:
        account: Domestic account or IBAN of the payee.
        amount: Amount to pay; omitted when empty or zero.
        currency: ISO currency code.
        variable_symbol: Payment reference; non-digits are stripped.
        due_date: Requested payment date.
        beneficiary_name: Payee name shown by the banking app.
        message: Message for the payee, truncated to 60 characters.

    Returns:
        ``SPD*1.0*ACC:...`` with the optional fields that have values.
    """
    parts = [SPAYD_VERSION, f"ACC:{czech_account_to_iban(account)}"]
    if amount is not None and Decimal(str(amount)) > 0:
        parts.append(f"AM:{format_amount(amount)}")
    if currency:
        parts.append(f"CC:{currency.upper()}")
    vs = sanitize_variable_symbol(variable_symbol)
    if vs:
        parts.append(f"X-VS:{vs}")
    if due_date is not None:
        parts.append(f"DT:{due_date:%Y%m%d}")
    if beneficiary_name:
        parts.append(f"RN:{beneficiary_name.replace('*', '')[:35]}")
    msg = sanitize_message(message)
    if msg:
        parts.append(f"MSG:{msg}")
    return "*".join(parts)


def invoice_spayd(invoice: Invoice, issuer: User) -> str:
    """SPAYD string for paying ``invoice`` to the issuer's bank account.

    Raises:
        ValueError: The issuer has no usable bank account.
    """
    if not issuer.bank_account:
        raise ValueError("Issuer has no bank account")
    return generate_spayd(
        account=str(issuer.bank_account),
        amount=invoice.total_amount,
        currency=str(invoice.currency or "CZK"),
        variable_symbol=invoice.invoice_number,
        due_date=invoice.due_date,
        beneficiary_name=str(issuer.name or ""),
        message=f"Faktura {invoice.invoice_number or ''}",
    )
