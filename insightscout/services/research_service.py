# services/research_service.py

"""
Research service - the default enrichment provider

Combines founder lookup, LinkedIn profile search and contact finding into
one async callable that the job runner invokes per company.
"""

import logging
from typing import List, Optional

from insightscout.core.config import Settings
from insightscout.core.exceptions import InsufficientCreditsError, ProviderError
from insightscout.models.research import NOT_FOUND, Founder
from insightscout.scrapers.linkedin_search_scraper import LinkedInSearchScraper
from insightscout.services.contact_service import ContactFinderService
from insightscout.services.founder_service import FounderLookupService

logger = logging.getLogger(__name__)


class ResearchService:
    def __init__(
            self,
            founder_lookup: FounderLookupService,
            profile_search: LinkedInSearchScraper,
            contact_finder: ContactFinderService
    ):
        self.founder_lookup = founder_lookup
        self.profile_search = profile_search
        self.contact_finder = contact_finder
        logger.info("ResearchService initialized")

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResearchService":
        return cls(
            founder_lookup=FounderLookupService(
                api_key=settings.perplexity_api_key,
                base_url=settings.perplexity_base_url,
                model=settings.perplexity_model,
                timeout=settings.http_timeout_seconds
            ),
            profile_search=LinkedInSearchScraper(
                headless=settings.default_headless,
                timeout_ms=settings.search_timeout_ms
            ),
            contact_finder=ContactFinderService(
                api_key=settings.prospeo_api_key,
                base_url=settings.prospeo_base_url,
                timeout=settings.http_timeout_seconds
            )
        )

    async def __call__(self, company_name: str) -> List[Founder]:
        return await self.research_company(company_name)

    async def close(self):
        await self.profile_search.close()
        await self.founder_lookup.close()
        await self.contact_finder.close()

    async def research_company(self, company_name: str) -> List[Founder]:
        """Founders of a company with whatever contact details could be found"""
        logger.info(f"=== Researching company: {company_name} ===")

        candidates = await self.founder_lookup.find_founders(company_name)
        if not candidates:
            logger.info(f"No founder information found for '{company_name}'")
            return []

        founders = []
        for candidate in candidates:
            logger.info(f"Processing founder: {candidate.name}")
            linkedin_url = await self.profile_search.find_profile(candidate.name, company_name)

            email = phone = None
            if linkedin_url and self.contact_finder.configured:
                email = await self._contact(self.contact_finder.find_email, linkedin_url)
                phone = await self._contact(self.contact_finder.find_phone, linkedin_url)
            elif not linkedin_url:
                logger.info(f"No LinkedIn profile found for {candidate.name}")

            founders.append(Founder(
                name=candidate.name,
                role=candidate.role or "Founder",
                linkedin_url=linkedin_url or NOT_FOUND,
                email=email or NOT_FOUND,
                phone=phone or NOT_FOUND
            ))

        return founders

    @staticmethod
    async def _contact(lookup, linkedin_url: str) -> Optional[str]:
        try:
            return await lookup(linkedin_url)
        except InsufficientCreditsError:
            raise
        except ProviderError as e:
            logger.warning(f"Contact lookup failed for {linkedin_url}: {e}")
            return None
