"""Company lookup in ARES, the Czech register of economic subjects."""

from __future__ import annotations

import logging
import re
from typing import Any

import httpx

from fakturace.core.config import settings
from fakturace.core.errors import ExternalServiceError, ValidationError
from fakturace.schemas.common import DEFAULT_COUNTRY

logger = logging.getLogger(__name__)

_ICO_QUERY_RE = re.compile(r"^\d{8}$")
SEARCH_PAGE_SIZE = 20
USER_AGENT = f"{settings.APP_NAME}/1.0"


def normalize_company(company: dict[str, Any]) -> dict[str, Any]:
    """Map an ARES ``ekonomickySubjekt`` onto the client fields."""
    seat = company.get("sidlo") or company.get("adresa") or {}
    house_number = (
        seat.get("cisloDomovni") or seat.get("cisloOrientacni") or seat.get("cisloPopisne") or ""
    )
    return {
        "name": company.get("obchodniJmeno") or company.get("nazev") or "",
        "company_id": str(company.get("ico") or company.get("identifikacniCislo") or ""),
        "vat_number": company.get("dic") or None,
        "address": {
            "street": seat.get("nazevUlice") or seat.get("ulice") or "",
            "house_number": str(house_number),
            "city": seat.get("nazevObce") or seat.get("obec") or "",
            "zip": str(seat.get("psc") or ""),
            "country": DEFAULT_COUNTRY,
        },
        "legal_form": str(company.get("pravniForma") or company.get("forma") or "") or None,
        "contact_email": company.get("email") or None,
        "contact_phone": company.get("telefon") or company.get("telefonniCislo") or None,
    }


class AresService:
    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.ARES_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.ARES_TIMEOUT_SECONDS

    def search(self, query: str) -> list[dict[str, Any]]:
        """Look up companies by IČO (eight digits) or by name.

        Raises:
            ValidationError: Empty query.
            ExternalServiceError: ARES failed or could not be reached.
        """
        cleaned = (query or "").strip()
        if not cleaned:
            raise ValidationError("Zadejte IČO nebo název firmy")
        by_ico = _ICO_QUERY_RE.match(cleaned) is not None
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}

        try:
            with httpx.Client(timeout=self.timeout, headers=headers) as client:
                if by_ico:
                    resp = client.get(f"{self.base_url}/ekonomicke-subjekty/{cleaned}")
                else:
                    resp = client.post(
                        f"{self.base_url}/ekonomicke-subjekty/vyhledat",
                        json={
                            "obchodniJmeno": cleaned,
                            "stavZaznamu": "AKTIVNI",
                            "stranka": 1,
                            "velikostStranky": SEARCH_PAGE_SIZE,
                        },
                    )
                if resp.status_code == 404:
                    return []
                resp.raise_for_status()
                data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("ARES lookup for %r failed: %s", cleaned, exc)
            raise ExternalServiceError(
                "Chyba při vyhledávání v ARES. Zkuste to prosím později."
            ) from exc

        if not data:
            return []
        if by_ico:
            return [normalize_company(data)]
        companies = (
            data.get("ekonomickeSubjekty")
            or (data.get("_embedded") or {}).get("ekonomickeSubjekty")
            or []
        )
        return [normalize_company(company) for company in companies]
