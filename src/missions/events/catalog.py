"""Standard crisis catalogue and source URL clean-up.

These templates are always available: they back the synthetic source when
no external signal produced anything, random single-mission creation, and
the pre-generated set used to seed new owners.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import timedelta
from urllib.parse import urlparse

from .types import EventSource, MissionTemplate, make_template

DEFAULT_SOURCE_URL = "https://www.reuters.com"
INVALID_URL_FALLBACK = "https://www.reuters.com/business/"

# Deadlines (hours) given to the pre-generated missions, in catalogue order.
DEADLINE_VARIATIONS = (1, 3, 6, 12, 24, 48, 72, 96, 120, 168)


def sanitize_source_url(url):
    """Return a usable http(s) URL for ``url``, or ``None`` when it is empty.

    Well-formed http(s) URLs are kept, bare domains get an ``https://``
    prefix, and anything else falls back to a generic business-news URL.
    """
    if url is None:
        return None
    url = str(url).strip()
    if not url:
        return None

    if url.startswith(("http://", "https://")):
        parsed = urlparse(url)
        if parsed.netloc and " " not in url:
            return url
        return INVALID_URL_FALLBACK

    if "." in url and " " not in url:
        return f"https://{url}"

    return DEFAULT_SOURCE_URL


STANDARD_TEMPLATES: tuple[MissionTemplate, ...] = (
    make_template(
        "Delayed Supplier Shipment from China",
        "Your manufacturer in Guangzhou has delayed shipment by 2 weeks due to port congestion. "
        "You have 10 pending orders that need to be fulfilled. Customers are getting impatient "
        "and threatening chargebacks.",
        "supply_chain", 24, 500, {"sales": -15, "customerSatisfaction": -20},
        location="China", source_url="https://www.reuters.com/business/",
    ),
    make_template(
        "Stock Management Crisis - Best Seller Out of Stock",
        "You've run out of your best-selling product. Orders are piling up but you have no "
        "inventory. Quick decisions needed! Consider emergency restocking or refunding customers.",
        "inventory", 12, 300, {"sales": -25, "reputation": -15},
        source_url="https://www.shopify.com/blog",
    ),
    make_template(
        "Logistics Partner Delay - 3 Day Shipping Delay",
        "Your delivery partner has delayed all shipments by 3 days due to weather conditions. "
        "15 customers are waiting. You need to keep them happy with proactive communication.",
        "logistics", 18, 400, {"customerSatisfaction": -25, "refunds": 10},
        source_url="https://www.fedex.com",
    ),
    make_template(
        "Payment Gateway Issue - Stripe Outage",
        "Your payment processor (Stripe) is experiencing an outage. Customers can't complete "
        "purchases. Revenue is being lost every minute. Set up backup payment method immediately.",
        "technical", 6, 200, {"sales": -30},
        source_url="https://status.stripe.com/",
    ),
    make_template(
        "Negative Review Crisis - Viral Bad Review",
        "A viral negative review on Trustpilot is affecting your brand reputation. The review has "
        "500+ likes and is ranking high in search results. You need to respond quickly to prevent "
        "further damage.",
        "reputation", 8, 150, {"sales": -20, "reputation": -30},
        source_url="https://www.trustpilot.com",
    ),
    make_template(
        "Competitor Price War - 30% Price Drop",
        "A major competitor just dropped prices by 30% on your top 3 products. Your sales have "
        "dropped 40% in the last 24 hours. You need to respond strategically without starting a "
        "price war.",
        "competition", 48, 800, {"sales": -35, "profitMargin": -15},
        source_url="https://www.shopify.com/blog/pricing-strategy",
    ),
    make_template(
        "Supplier Quality Issue - Defective Batch Received",
        "You received a batch of 50 defective products from your supplier. Customers are "
        "complaining about quality. You need to handle returns and find an alternative supplier "
        "quickly.",
        "quality", 36, 600, {"reputation": -25, "refunds": 20, "customerSatisfaction": -30},
        source_url="https://www.aliexpress.com",
    ),
    make_template(
        "Customs Clearance Delay - Shipment Held",
        "Your shipment from India is held at customs due to incomplete documentation. 20 orders "
        "are stuck. You need to provide proper documentation within 48 hours or face penalties.",
        "customs", 48, 700, {"sales": -20, "customerSatisfaction": -25, "expenses": 15},
        location="India", source_url="https://www.cbp.gov",
    ),
    make_template(
        "Social Media Crisis - Brand Mention Gone Viral",
        "A negative TikTok video about your product has gone viral with 100K+ views. Your brand "
        "reputation is at risk. You need to respond professionally and address concerns "
        "immediately.",
        "reputation", 12, 250, {"sales": -30, "reputation": -35},
        source_url="https://www.tiktok.com/",
    ),
    make_template(
        "Warehouse Fire - Inventory Loss",
        "A fire at your supplier's warehouse has destroyed your inventory. You need to find "
        "alternative suppliers immediately and inform customers about delays.",
        "disaster", 72, 1200, {"sales": -40, "inventory": -60, "customerSatisfaction": -30},
        source_url="https://www.reuters.com/business/",
    ),
    make_template(
        "Currency Exchange Rate Crash",
        "The local currency has dropped 15% against USD. Your supplier costs have increased "
        "significantly. You need to adjust pricing or find local suppliers to maintain margins.",
        "financial", 24, 500, {"expenses": 20, "profitMargin": -18},
        source_url="https://www.xe.com/currencyconverter/",
    ),
    make_template(
        "Platform Account Suspension Risk",
        "Your Shopify account is at risk of suspension due to policy violations. You need to fix "
        "issues immediately or risk losing your entire business.",
        "compliance", 6, 300, {"sales": -100, "reputation": -50},
        source_url="https://www.shopify.com/legal/terms",
    ),
    make_template(
        "Email Marketing Blacklist",
        "Your email domain has been blacklisted by major email providers. Your marketing campaigns "
        "are not reaching customers. You need to resolve this quickly.",
        "marketing", 12, 200, {"sales": -15, "marketingEffectiveness": -40},
        source_url="https://mxtoolbox.com",
    ),
    make_template(
        "Customer Data Breach Alert",
        "You've discovered a potential data breach. Customer information may be compromised. You "
        "need to notify customers and implement security measures immediately.",
        "security", 4, 1000, {"reputation": -40, "legalRisk": 50},
        source_url="https://www.ftc.gov",
    ),
    make_template(
        "Shipping Cost Surge - Carrier Rate Increase",
        "Your shipping carrier has increased rates by 25% effective immediately. Your profit "
        "margins are shrinking. You need to renegotiate or find alternative carriers.",
        "logistics", 24, 400, {"expenses": 18, "profitMargin": -12},
        source_url="https://www.fedex.com",
    ),
)


def pre_generated_templates() -> list[MissionTemplate]:
    """The first ten standard templates with staggered deadlines (1h to 7 days)."""
    return [
        replace(
            template,
            duration=timedelta(hours=hours),
            event_source=EventSource.SYSTEM,
            source_url=template.source_url or DEFAULT_SOURCE_URL,
        )
        for template, hours in zip(STANDARD_TEMPLATES, DEADLINE_VARIATIONS)
    ]
