"""Input checks shared by the account and client flows."""

import re

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8
_ICO_WEIGHTS = (8, 7, 6, 5, 4, 3, 2)


def is_valid_email(value: str | None) -> bool:
    return bool(value) and EMAIL_RE.match(str(value).strip()) is not None


def is_valid_ico(value: str | None) -> bool:
    """Czech company ID (IČO): eight digits with a mod-11 check digit."""
    if not value:
        return False
    digits = str(value).strip()
    if not re.fullmatch(r"\d{8}", digits):
        return False
    weighted = sum(int(d) * w for d, w in zip(digits[:7], _ICO_WEIGHTS, strict=True))
    remainder = weighted % 11
    if remainder == 0:
        check = 1
    elif remainder == 1:
        check = 0
    else:
        check = 11 - remainder
    return int(digits[7]) == check
