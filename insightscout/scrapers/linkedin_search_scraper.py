# scrapers/linkedin_search_scraper.py

"""
LinkedIn profile search through Google, driven by Playwright
"""

import re
import asyncio
import logging
from typing import Iterable, List, Optional
from urllib.parse import parse_qs, quote_plus, urlparse
from playwright.async_api import async_playwright, Browser, Playwright

logger = logging.getLogger(__name__)

PROFILE_MARKER = "linkedin.com/in/"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _clean(value: str) -> str:
    return re.sub(r"[^\w\s]", "", value).strip()


def build_queries(founder_name: str, company_name: str) -> List[str]:
    """Search queries from most to least specific"""
    founder = _clean(founder_name)
    company = _clean(company_name)
    parts = founder.split()
    if len(parts) < 2 or not company:
        return []

    first, last = parts[0], parts[-1]
    return [
        f'site:linkedin.com/in/ "{first} {last}" "{company}"',
        f'site:linkedin.com/in/ "{founder}" founder OR ceo "{company}"',
        f'site:linkedin.com/in/ "{first} {last}" founder OR ceo',
    ]


def _unwrap(link: str) -> str:
    # Google sometimes routes results through /url?q=<target>
    if link.startswith("/url?"):
        target = parse_qs(urlparse(link).query).get("q")
        if target:
            return target[0]
    return link


def pick_profile_url(links: Iterable[str], founder_name: str) -> Optional[str]:
    """First profile link whose slug mentions the founder's first or last name"""
    parts = _clean(founder_name).lower().split()
    if len(parts) < 2:
        return None
    first, last = parts[0], parts[-1]

    for link in links:
        link = _unwrap(link or "")
        if PROFILE_MARKER not in link:
            continue
        profile_url = link.split("?")[0]
        slug = profile_url.split("/in/", 1)[1].lower()
        if first in slug or last in slug:
            return profile_url
    return None


class LinkedInSearchScraper:
    def __init__(self, headless: bool = True, timeout_ms: int = 30000):
        self.headless = headless
        self.timeout_ms = timeout_ms
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock = asyncio.Lock()
        logger.info(f"Initialized LinkedInSearchScraper (headless={headless})")

    async def _get_browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                logger.info("Launching Chromium browser")
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(
                    headless=self.headless,
                    args=['--disable-blink-features=AutomationControlled']
                )
                logger.info("Browser launched successfully")
            return self._browser

    async def close(self):
        if self._browser is not None:
            await self._browser.close()
            self._browser = None
            logger.info("Browser closed")
        if self._playwright is not None:
            await self._playwright.stop()
            self._playwright = None

    async def search_links(self, query: str) -> List[str]:
        """Result links for one Google query"""
        browser = await self._get_browser()
        context = await browser.new_context(
            viewport={'width': 1920, 'height': 1080},
            user_agent=USER_AGENT
        )
        await context.add_init_script("""
            Object.defineProperty(navigator, 'webdriver', {
                get: () => undefined
            });
        """)

        try:
            page = await context.new_page()
            await page.goto(
                f"https://www.google.com/search?q={quote_plus(query)}&num=10",
                timeout=self.timeout_ms
            )
            await page.wait_for_selector("#search", timeout=self.timeout_ms)

            links = []
            for anchor in await page.locator("#search a[href]").all():
                href = await anchor.get_attribute("href")
                if href:
                    links.append(href)
            logger.debug(f"Collected {len(links)} links for query: {query}")
            return links
        finally:
            await context.close()

    async def find_profile(self, founder_name: str, company_name: str) -> Optional[str]:
        """LinkedIn profile URL for a founder, or None when nothing matches"""
        queries = build_queries(founder_name, company_name)
        if not queries:
            logger.info(f"Skipping profile search - invalid founder name '{founder_name}'")
            return None

        for query in queries:
            logger.info(f"Trying search query: {query}")
            try:
                links = await self.search_links(query)
            except Exception as e:
                logger.warning(f"Profile search failed for query '{query}': {e}")
                continue

            profile_url = pick_profile_url(links, founder_name)
            if profile_url:
                logger.info(f"Found LinkedIn URL: {profile_url}")
                return profile_url

        logger.info(f"No matching LinkedIn profile found for '{founder_name}'")
        return None
