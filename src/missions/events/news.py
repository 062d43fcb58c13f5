"""News source: turns supply-chain headlines into mission templates.

Providers are tried in order; the first one that answers with a
well-formed article list wins and the others are not called.
"""
from __future__ import annotations

import json
import logging
import time
from typing import Iterable, Optional, Sequence

import httpx
from django.conf import settings

from .catalog import sanitize_source_url
from .types import (
    EventSource,
    ImpactType,
    MissionTemplate,
    NewsArticle,
    Relevance,
    make_template,
)

logger = logging.getLogger("simulator")

ARTICLES_PER_PROVIDER = 10
TITLE_FRAGMENT_LENGTH = 50
DESCRIPTION_FRAGMENT_LENGTH = 200

SEARCH_KEYWORDS = (
    "supply chain",
    "shipping delay",
    "logistics",
    "manufacturing",
    "curfew",
    "festival",
    "strike",
    "disaster",
)

# An article mentioning one of these is operationally relevant.
OPERATIONAL_KEYWORDS = (
    "supply",
    "shipping",
    "logistics",
    "manufacturing",
    "delay",
    "disruption",
    "strike",
    "curfew",
    "festival",
    "disaster",
)

KNOWN_LOCATIONS = (
    "Delhi",
    "Mumbai",
    "Bangalore",
    "Chennai",
    "Kolkata",
    "Hyderabad",
    "Pune",
    "India",
    "China",
    "Beijing",
    "Shanghai",
    "Guangzhou",
    "Shenzhen",
)

# First match wins.
IMPACT_RULES: tuple[tuple[ImpactType, tuple[str, ...]], ...] = (
    (ImpactType.CURFEW, ("curfew", "lockdown", "restriction")),
    (ImpactType.FESTIVAL, ("festival", "holiday", "celebration")),
    (ImpactType.LABOUR, ("strike", "labour", "labor", "worker", "unavailability")),
    (ImpactType.SHIPPING, ("shipping", "delivery", "logistics")),
    (ImpactType.SUPPLY_CHAIN, ("supply", "manufacturing", "production")),
    (ImpactType.DISASTER, ("disaster", "blast", "accident", "emergency")),
)


class NewsProviderError(Exception):
    """A provider answered, but not with something we can use."""


def _text(value, default: str = "") -> str:
    if value is None or value == "":
        return default
    return value if isinstance(value, str) else str(value)


# ---------------------------------------------------------------------------
# Provider adapters
# ---------------------------------------------------------------------------

class NewsProvider:
    """Base adapter. Subclasses describe one upstream API."""

    name = "base"
    endpoint = ""
    articles_key = "articles"

    def __init__(self, api_key: str, timeout: float = 10.0, clock=None):
        self.api_key = api_key
        self.timeout = timeout
        self.clock = clock or time.monotonic

    def __repr__(self):
        return f"<{self.__class__.__name__}>"

    def build_params(self, query: str) -> dict:
        raise NotImplementedError

    def parse_article(self, raw: dict) -> NewsArticle:
        title = _text(raw.get("title"), "Untitled")
        source = raw.get("source")
        return NewsArticle(
            title=title,
            description=_text(raw.get("description"), title),
            url=_text(raw.get("url")),
            published_at=_text(raw.get("publishedAt")),
            source=_text(source.get("name") if isinstance(source, dict) else None, "Unknown"),
        )

    def read_body(self, client: httpx.Client, query: str) -> bytes:
        """Download the response within ``timeout`` seconds in total.

        httpx only bounds each phase (connect, every read) on its own.
        """
        deadline = self.clock() + self.timeout
        body = bytearray()
        with client.stream(
            "GET",
            self.endpoint,
            params=self.build_params(query),
            timeout=self.timeout,
        ) as response:
            response.raise_for_status()
            for chunk in response.iter_bytes():
                body.extend(chunk)
                if self.clock() > deadline:
                    raise httpx.ReadTimeout(
                        f"{self.name} took longer than {self.timeout}s",
                        request=response.request,
                    )
        return bytes(body)

    def fetch(self, client: httpx.Client, query: str) -> list[NewsArticle]:
        body = self.read_body(client, query)
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise NewsProviderError(f"{self.name} returned invalid JSON") from exc
        items = data.get(self.articles_key) if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise NewsProviderError(f"{self.name} response has no '{self.articles_key}' list")
        return [
            self.parse_article(item)
            for item in items[:ARTICLES_PER_PROVIDER]
            if isinstance(item, dict)
        ]


class NewsAPIProvider(NewsProvider):
    name = "newsapi"
    endpoint = "https://newsapi.org/v2/everything"

    def build_params(self, query):
        return {
            "q": query,
            "language": "en",
            "sortBy": "publishedAt",
            "apiKey": self.api_key,
        }


class GNewsProvider(NewsProvider):
    name = "gnews"
    endpoint = "https://gnews.io/api/v4/search"

    def build_params(self, query):
        return {
            "q": query,
            "lang": "en",
            "max": ARTICLES_PER_PROVIDER,
            "apikey": self.api_key,
        }


class CurrentsProvider(NewsProvider):
    name = "currents"
    endpoint = "https://api.currentsapi.services/v1/search"
    articles_key = "news"

    def build_params(self, query):
        return {
            "keywords": query,
            "language": "en",
            "apiKey": self.api_key,
        }

    def parse_article(self, raw):
        title = _text(raw.get("title"), "Untitled")
        return NewsArticle(
            title=title,
            description=_text(raw.get("description"), title),
            url=_text(raw.get("url")),
            published_at=_text(raw.get("published")),
            source=_text(raw.get("author"), "Unknown"),
        )


PROVIDER_SETTINGS = (
    (NewsAPIProvider, "NEWS_API_KEY"),
    (GNewsProvider, "GNEWS_API_KEY"),
    (CurrentsProvider, "CURRENTS_API_KEY"),
)


def build_providers() -> list[NewsProvider]:
    """Instantiate the configured providers in priority order.

    Providers whose API key is not set are left out.
    """
    timeout = settings.NEWS_PROVIDER_TIMEOUT
    providers = []
    for provider_class, setting_name in PROVIDER_SETTINGS:
        api_key = getattr(settings, setting_name, "")
        if api_key:
            providers.append(provider_class(api_key, timeout=timeout))
    return providers


# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------

def score_relevance(text: str, locations: Iterable[str]) -> Relevance:
    lowered = text.lower()
    location_match = any(loc.lower() in lowered for loc in locations if loc)
    keyword_match = any(keyword in lowered for keyword in OPERATIONAL_KEYWORDS)
    if location_match and keyword_match:
        return Relevance.HIGH
    if location_match or keyword_match:
        return Relevance.MEDIUM
    return Relevance.LOW


def detect_impact_type(text: str) -> ImpactType:
    lowered = text.lower()
    for impact_type, keywords in IMPACT_RULES:
        if any(keyword in lowered for keyword in keywords):
            return impact_type
    return ImpactType.OTHER


def extract_location(text: str, locations: Sequence[str] = ()) -> Optional[str]:
    """First tracked location mentioned in ``text``, then the first known one."""
    lowered = text.lower()
    for loc in list(locations) + list(KNOWN_LOCATIONS):
        if loc and loc.lower() in lowered:
            return loc
    return None


# ---------------------------------------------------------------------------
# Article -> template
# ---------------------------------------------------------------------------

BASE_IMPACT = {"sales": -10, "customerSatisfaction": -15}

# impact type -> (title prefix, mission type, hours, cost, extra impact,
#                 event source, description suffix)
NEWS_SHAPES = {
    ImpactType.SUPPLY_CHAIN: (
        "Supply Chain Disruption", "supply_chain", 48, 600, {"inventory": -20},
        EventSource.NEWS, "Your shipments from {location} may be delayed.",
    ),
    ImpactType.SHIPPING: (
        "Shipping Delay Alert", "logistics", 36, 500, {"customerSatisfaction": -25},
        EventSource.NEWS, "Delivery times may be extended.",
    ),
    ImpactType.LABOUR: (
        "Labour Unavailability", "labour", 72, 800, {"inventory": -30, "expenses": 15},
        EventSource.LABOUR, "Manufacturing and shipping operations may be affected.",
    ),
    ImpactType.CURFEW: (
        "Restrictions Imposed", "curfew", 96, 1000, {"sales": -25, "inventory": -40},
        EventSource.CURFEW, "Operations in {location} are restricted.",
    ),
    ImpactType.DISASTER: (
        "Emergency Situation", "disaster", 120, 1200,
        {"sales": -30, "inventory": -50, "customerSatisfaction": -30},
        EventSource.NEWS, "Shipments are being held due to safety concerns.",
    ),
    ImpactType.FESTIVAL: (
        "Festival Disruption", "festival", 72, 400,
        {"sales": -15, "inventory": -25, "customerSatisfaction": -10},
        EventSource.FESTIVAL, "Expect slower fulfilment around the holiday period.",
    ),
    ImpactType.OTHER: (
        "Business Impact", "supply_chain", 48, 500, {},
        EventSource.NEWS, "This may affect your operations.",
    ),
}


def template_from_article(article: NewsArticle, locations: Sequence[str] = ()) -> MissionTemplate:
    impact_type = detect_impact_type(article.text)
    location = extract_location(article.text, locations)
    prefix, mission_type, hours, cost, extra, source, suffix = NEWS_SHAPES[impact_type]

    if impact_type is ImpactType.FESTIVAL:
        impact = dict(extra)
    else:
        impact = {**BASE_IMPACT, **extra}

    description = (
        f"{article.description[:DESCRIPTION_FRAGMENT_LENGTH]}... "
        f"{suffix.format(location=location or 'the region')}"
    )
    return make_template(
        f"{prefix}: {article.title[:TITLE_FRAGMENT_LENGTH]}",
        description,
        mission_type,
        hours,
        cost,
        impact,
        event_source=source,
        location=location,
        source_url=sanitize_source_url(article.url),
    )


# ---------------------------------------------------------------------------
# Source
# ---------------------------------------------------------------------------

class NewsSource:
    """Queries providers with failover and maps relevant articles to templates."""

    name = "news"

    def __init__(self, providers: Optional[Sequence[NewsProvider]] = None, client: Optional[httpx.Client] = None):
        self.providers = list(build_providers() if providers is None else providers)
        self.client = client

    def fetch_articles(self) -> list[NewsArticle]:
        if not self.providers:
            logger.debug("No news provider configured; news source skipped")
            return []

        query = " OR ".join(SEARCH_KEYWORDS)
        client = self.client or httpx.Client()
        try:
            for provider in self.providers:
                try:
                    articles = provider.fetch(client, query)
                except (httpx.HTTPError, NewsProviderError):
                    logger.warning("News provider %s failed", provider.name, exc_info=True)
                    continue
                logger.info("News provider %s returned %d article(s)", provider.name, len(articles))
                return articles
        finally:
            if self.client is None:
                client.close()

        logger.warning("All news providers failed")
        return []

    def collect(self, locations: Sequence[str], now=None, rng=None) -> list[MissionTemplate]:
        templates = []
        for article in self.fetch_articles():
            if score_relevance(article.text, locations) is Relevance.LOW:
                continue
            templates.append(template_from_article(article, locations))
        return templates
