# services/founder_service.py

"""
Founder lookup - asks a chat completions API who runs a company
"""

import re
import logging
from dataclasses import dataclass
from typing import List, Optional

import httpx

from insightscout.core.exceptions import ProviderError, ProviderNotConfiguredError

logger = logging.getLogger(__name__)

FOUNDER_LINE = re.compile(r"^(Founder|CEO):\s+([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)$")

SYSTEM_PROMPT = (
    "You are a helpful assistant that provides accurate information about company "
    "founders and CEOs. Return ONLY verified founder/CEO names in a structured format. "
    "Each name must be on a new line with their role."
)

USER_PROMPT = """Find the current founder(s) or CEO of {company}. Format each person exactly like this:
Founder: FirstName LastName
CEO: FirstName LastName

Only include people where you are confident of both their role and full name. If no verified information is found, respond with "No verified founder information found."
"""


@dataclass(frozen=True)
class FounderCandidate:
    name: str
    role: str


def parse_founder_lines(text: str) -> List[FounderCandidate]:
    """Extract unique ``Role: First Last`` entries from a model reply"""
    if not text or "no verified founder" in text.lower():
        return []

    founders: List[FounderCandidate] = []
    seen = set()
    for line in text.splitlines():
        match = FOUNDER_LINE.match(line.strip())
        if not match:
            continue
        role, name = match.groups()
        if name in seen:
            continue
        seen.add(name)
        founders.append(FounderCandidate(name=name, role=role))
    return founders


class FounderLookupService:
    def __init__(
            self,
            api_key: Optional[str],
            base_url: str = "https://api.perplexity.ai",
            model: str = "sonar",
            timeout: float = 30.0,
            http_client: Optional[httpx.AsyncClient] = None
    ):
        self.api_key = api_key
        self.model = model
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(timeout, connect=10.0)
        )

    async def close(self):
        await self._client.aclose()

    async def find_founders(self, company: str) -> List[FounderCandidate]:
        """Founders and CEOs of ``company``; empty when none are verified"""
        if not self.api_key:
            raise ProviderNotConfiguredError("Founder lookup API key is not configured")

        logger.info(f"Looking up founders for '{company}'")
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": USER_PROMPT.format(company=company)}
            ],
            "max_tokens": 150,
            "temperature": 0.1,
            "top_p": 0.9
        }

        try:
            response = await self._client.post(
                "/chat/completions",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"}
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"Founder lookup failed with HTTP {e.response.status_code}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"Founder lookup failed: {e}") from e

        try:
            content = data["choices"][0]["message"]["content"] or ""
        except (KeyError, IndexError, TypeError):
            logger.warning(f"No founder information in response for '{company}'")
            return []

        founders = parse_founder_lines(content.strip())
        logger.info(f"Validated {len(founders)} founders for '{company}'")
        logger.debug(f"Raw founder reply: {content!r}")
        return founders
