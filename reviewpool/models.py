"""
Data models — the structure of our data.
Rows come back from the record store as plain dicts; the shapes below are the
form drafts the dashboard edits before writing, plus the fixed vocabularies.
"""

from dataclasses import dataclass
from typing import Optional


REVIEW_STATUSES = ("pending", "approved", "rejected")
STATUS_FILTERS = ("all",) + REVIEW_STATUSES
SENTIMENT_LABELS = ("positive", "neutral", "negative")

REWARD_TYPES = ("coupon", "points", "badge")
REWARD_STATUSES = ("active", "inactive")

TIME_RANGES = (7, 30, 90, 365)       # days
DEFAULT_TIME_RANGE = 30
TREND_BUCKETS = 7                    # bars on the daily trend chart

MIN_REVIEW_LENGTH = 50

# ---- Integrations: client-side lookup tables ----
INTEGRATION_LABELS = {
    "woocommerce": "WooCommerce",
    "edd": "Easy Digital Downloads",
    "tutorlms": "Tutor LMS",
    "elementor": "Elementor",
    "gutenberg": "Gutenberg Blocks",
}
INTEGRATION_ICONS = {
    "woocommerce": "🛒",
    "edd": "🛒",
    "tutorlms": "📖",
    "elementor": "🎨",
    "gutenberg": "🧱",
}
INTEGRATION_DESCRIPTIONS = {
    "woocommerce": "Sync products and enable review collection for WooCommerce orders",
    "edd": "Integrate with Easy Digital Downloads for digital product reviews",
    "tutorlms": "Collect course reviews from Tutor LMS students",
    "elementor": "Add review widgets to Elementor page builder",
    "gutenberg": "Use review blocks in WordPress Gutenberg editor",
}
GENERIC_INTEGRATION_ICON = "🧱"
GENERIC_INTEGRATION_DESCRIPTION = "Integration with third-party service"

# Only these expose an editable API URL + key
CONFIGURABLE_INTEGRATIONS = ("woocommerce", "edd")

# Static lists shown instead of a config form
INTEGRATION_FEATURES = {
    "elementor": ("Elementor Widgets Available", [
        "Review List Widget", "Review Form Widget",
        "Rating Summary Widget", "Review Carousel Widget",
    ]),
    "gutenberg": ("Gutenberg Blocks Available", [
        "Review List Block", "Review Form Block",
        "Rating Display Block", "Review Summary Block",
    ]),
}

# ---- Settings: seeded once, grouped by category ----
DEFAULT_SETTINGS = {
    "general": {
        "site_name": "ReviewPool",
        "enable_guest_reviews": True,
        "auto_approve_reviews": False,
        "require_verification": False,
    },
    "ai": {
        "ai_provider": "openai",
        "ai_api_key": "",
        "enable_sentiment_analysis": False,
    },
    "email": {
        "enable_email_notifications": False,
        "admin_email": "",
        "from_name": "ReviewPool",
        "from_email": "",
    },
    "security": {
        "enable_captcha": False,
        "enable_spam_detection": True,
        "enable_rate_limiting": True,
    },
}

AI_PROVIDERS = {
    "openai": "OpenAI",
    "gemini": "Google Gemini",
    "anthropic": "Anthropic Claude",
}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass
class ReviewDraft:
    """What the public submission form collects."""
    author_name: str = ""
    author_email: str = ""
    rating: int = 0             # 0 = not picked yet, else 1 to 5
    title: str = ""
    content: str = ""
    product_id: Optional[str] = None

    def to_record(self) -> dict:
        return {
            "product_id": self.product_id or None,
            "author_name": self.author_name,
            "author_email": self.author_email,
            "rating": self.rating,
            "title": _blank_to_none(self.title),
            "content": self.content,
            "status": "pending",
        }


@dataclass
class RewardDraft:
    """
    The shared create/edit form for a reward.
    Every field is held as typed text; `to_record` normalizes blanks.
    """
    name: str = ""
    type: str = "coupon"
    value: str = ""             # e.g. "SAVE10" or "100"
    description: str = ""
    status: str = "active"
    valid_until: str = ""       # YYYY-MM-DD, blank = no expiry
    usage_limit: str = ""       # blank = unlimited

    def to_record(self) -> dict:
        """Raises ValueError when the usage limit is not a positive whole number."""
        limit = _blank_to_none(self.usage_limit)
        usage_limit = int(limit) if limit else None
        if usage_limit is not None and usage_limit < 1:
            raise ValueError(f"usage limit must be positive, got {usage_limit}")
        return {
            "name": self.name,
            "type": self.type,
            "value": self.value,
            "description": _blank_to_none(self.description),
            "status": self.status,
            "valid_until": _blank_to_none(self.valid_until),
            "usage_limit": usage_limit,
        }

    @classmethod
    def from_record(cls, reward: dict) -> "RewardDraft":
        valid_until = reward.get("valid_until") or ""
        limit = reward.get("usage_limit")
        return cls(
            name=reward.get("name", ""),
            type=reward.get("type", "coupon"),
            value=reward.get("value", ""),
            description=reward.get("description") or "",
            status=reward.get("status", "active"),
            valid_until=valid_until.split("T")[0],
            usage_limit=str(limit) if limit is not None else "",
        )
