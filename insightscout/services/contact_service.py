# services/contact_service.py

"""
Contact finder - email and mobile lookups for a LinkedIn profile
"""

import logging
from typing import Any, Dict, Optional

import httpx

from insightscout.core.exceptions import (
    InsufficientCreditsError,
    ProviderError,
    ProviderNotConfiguredError
)

logger = logging.getLogger(__name__)

ACCEPTED_EMAIL_STATUSES = {"VERIFIED", "ACCEPT_ALL", "VALID"}


def is_linkedin_profile(url: Optional[str]) -> bool:
    return bool(url) and "linkedin.com/in/" in url


class ContactFinderService:
    def __init__(
            self,
            api_key: Optional[str],
            base_url: str = "https://api.prospeo.io",
            timeout: float = 30.0,
            http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def close(self):
        await self._client.aclose()

    async def find_email(self, linkedin_url: str) -> Optional[str]:
        """Verified work email for a profile, or None"""
        data = await self._lookup("/social-url-enrichment", linkedin_url)
        if not data:
            return None

        email = ((data.get("response") or {}).get("email") or {})
        address = email.get("email")
        status = email.get("email_status")
        if address and status in ACCEPTED_EMAIL_STATUSES:
            logger.info(f"Found email with status {status}")
            return address

        logger.info(f"Skipping email with status {status}")
        return None

    async def find_phone(self, linkedin_url: str) -> Optional[str]:
        """Mobile number for a profile, or None"""
        data = await self._lookup("/mobile-finder", linkedin_url)
        if not data:
            return None

        phone = (data.get("response") or {}).get("raw_format")
        return phone or None

    async def _lookup(self, path: str, linkedin_url: str) -> Optional[Dict[str, Any]]:
        if not self.configured:
            raise ProviderNotConfiguredError("Contact finder API key is not configured")
        if not is_linkedin_profile(linkedin_url):
            logger.info(f"Skipping {path} - invalid LinkedIn URL")
            return None

        try:
            response = await self._client.post(
                path,
                json={"url": linkedin_url},
                headers={"X-KEY": self.api_key}
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"Contact lookup {path} failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if isinstance(data, dict) and data.get("message") == "INSUFFICIENT_CREDITS":
            logger.error("Out of contact finder credits")
            raise InsufficientCreditsError("Out of contact finder credits")

        if response.is_error:
            logger.warning(f"Contact lookup {path} returned HTTP {response.status_code}: {data}")
            if response.status_code >= 500:
                raise ProviderError(f"Contact lookup {path} failed with HTTP {response.status_code}")
            return None

        if not isinstance(data, dict) or data.get("error") is not False:
            logger.info(f"No result from {path}")
            return None
        return data
