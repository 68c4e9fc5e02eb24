"""Variable symbols identifying subscription bank transfers."""

import logging
import re
import secrets
from collections.abc import Callable

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 100
_VARIABLE_SYMBOL_RE = re.compile(r"^[1-9][0-9]{5}$")


def generate_variable_symbol() -> str:
    """Random six digit symbol that does not start with zero."""
    return f"{secrets.randbelow(9) + 1}{secrets.randbelow(100000):05d}"


def validate_variable_symbol(symbol: str | None) -> bool:
    return bool(symbol) and _VARIABLE_SYMBOL_RE.match(str(symbol)) is not None


def generate_unique_variable_symbol(exists: Callable[[str], bool]) -> str:
    """Draw symbols until ``exists`` reports one as unused.

    Raises:
        RuntimeError: No free symbol was found in ``MAX_ATTEMPTS`` draws.
    """
    for _ in range(MAX_ATTEMPTS):
        symbol = generate_variable_symbol()
        if not exists(symbol):
            return symbol
    logger.error("No free variable symbol after %d attempts", MAX_ATTEMPTS)
    raise RuntimeError(f"Unable to generate unique variable symbol after {MAX_ATTEMPTS} attempts")
