"""
Page controllers — what each dashboard page knows and can do.

Each controller fetches the rows for its page from the record store, keeps
them as plain lists/dicts, and exposes the mutations the page offers.
Streamlit views (dashboard.py, storefront.py) hold a controller in
session_state and only render what it exposes.

Conventions shared by every controller:
    - `loading` is True until the first load() completes.
    - A failed load is printed to the console and leaves the defaults in place.
    - A failed user action is printed and raised as ActionFailed, whose message
      is safe to show the user.
    - After every successful write the page re-fetches from the store.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from reviewpool import database
from reviewpool.database import StoreError
from reviewpool.processor import (
    analyze_review, compute_analytics, compute_average_rating,
    compute_dashboard_stats, split_windows,
)
from reviewpool.models import (
    ReviewDraft, RewardDraft, MIN_REVIEW_LENGTH, REVIEW_STATUSES, STATUS_FILTERS,
    TIME_RANGES, DEFAULT_TIME_RANGE, CONFIGURABLE_INTEGRATIONS, INTEGRATION_LABELS,
    INTEGRATION_ICONS, INTEGRATION_DESCRIPTIONS, INTEGRATION_FEATURES,
    GENERIC_INTEGRATION_ICON, GENERIC_INTEGRATION_DESCRIPTION,
)


class ActionFailed(Exception):
    """A user-initiated action did not go through. The message is user-facing."""


# ============================================================
# NAVIGATION
# ============================================================
PAGE_CONFIG = {
    "dashboard": {
        "label": "Dashboard", "icon": "📊",
        "title": "Dashboard",
        "subtitle": "Overview of your review management system",
    },
    "reviews": {
        "label": "Reviews", "icon": "💬",
        "title": "Reviews Management",
        "subtitle": "Manage and moderate customer reviews",
    },
    "analytics": {
        "label": "Analytics", "icon": "📈",
        "title": "Analytics",
        "subtitle": "Track review performance and sentiment trends",
    },
    "rewards": {
        "label": "Rewards", "icon": "🎁",
        "title": "Rewards",
        "subtitle": "Create and manage reward campaigns",
    },
    "integrations": {
        "label": "Integrations", "icon": "🧩",
        "title": "Integrations",
        "subtitle": "Connect with third-party platforms",
    },
    "settings": {
        "label": "Settings", "icon": "⚙",
        "title": "Settings",
        "subtitle": "Configure your ReviewPool installation",
    },
}
DEFAULT_PAGE = "dashboard"


def resolve_page(page_id: Optional[str]) -> str:
    return page_id if page_id in PAGE_CONFIG else DEFAULT_PAGE


# ============================================================
# REVIEW SUBMISSION
# ============================================================
class ReviewForm:
    """Public "write a review" form. Every submission starts out pending."""

    def __init__(self, product_id: Optional[str] = None,
                 on_success: Optional[Callable[[], None]] = None):
        self.draft = ReviewDraft(product_id=product_id)
        self.on_success = on_success
        self.submitting = False

    @property
    def content_length(self) -> int:
        return len(self.draft.content)

    @property
    def can_submit(self) -> bool:
        return not self.submitting and self.content_length >= MIN_REVIEW_LENGTH

    def reset(self) -> None:
        self.draft = ReviewDraft(product_id=self.draft.product_id)

    def submit(self) -> dict:
        """
        Insert the review and clear the form.
        On failure the form keeps what the user typed so they can retry.
        """
        if self.draft.rating == 0:
            raise ActionFailed("Please select a rating")
        if not self.can_submit:
            raise ActionFailed(f"Your review must be at least {MIN_REVIEW_LENGTH} characters.")

        self.submitting = True
        try:
            stored = database.insert("reviews", [self.draft.to_record()])[0]
        except StoreError as e:
            print(f"Error submitting review: {e}")
            raise ActionFailed("Failed to submit review. Please try again.") from e
        finally:
            self.submitting = False

        self.reset()
        if self.on_success:
            self.on_success()
        return stored


# ============================================================
# REVIEW DETAIL / MODERATION MODAL
# ============================================================
class ReviewModal:
    """One review, plus approve/reject for whichever status it isn't in yet."""

    def __init__(self, review: dict, on_update: Optional[Callable[[], None]] = None,
                 on_close: Optional[Callable[[], None]] = None):
        self.review = review
        self.on_update = on_update
        self.on_close = on_close

    @property
    def available_actions(self) -> list[str]:
        return [s for s in ("approved", "rejected") if s != self.review["status"]]

    def update_status(self, status: str) -> None:
        if status not in REVIEW_STATUSES:
            raise ActionFailed(f"Unknown status: {status}")
        values = {"status": status, "updated_at": database.now_iso()}
        try:
            database.update("reviews", values, eq={"id": self.review["id"]})
        except StoreError as e:
            print(f"Error updating review: {e}")
            raise ActionFailed("Failed to update review. Please try again.") from e

        self.review = {**self.review, **values}
        if self.on_update:
            self.on_update()
        if self.on_close:
            self.on_close()

    def run_ai_analysis(self, settings: dict) -> dict:
        """
        Fill in sentiment label/score and the AI summary for this review.
        Only allowed when sentiment analysis is switched on in Settings.
        """
        if not settings.get("enable_sentiment_analysis"):
            raise ActionFailed("Sentiment analysis is turned off in Settings.")
        try:
            values = analyze_review(
                self.review,
                provider=settings.get("ai_provider") or None,
                api_key=settings.get("ai_api_key") or None,
            )
        except Exception as e:
            print(f"Error analyzing review: {e}")
            raise ActionFailed("AI analysis failed. Check your AI settings and try again.") from e

        values["updated_at"] = database.now_iso()
        try:
            database.update("reviews", values, eq={"id": self.review["id"]})
        except StoreError as e:
            print(f"Error saving analysis: {e}")
            raise ActionFailed("Failed to save AI analysis. Please try again.") from e

        self.review = {**self.review, **values}
        if self.on_update:
            self.on_update()
        return values


# ============================================================
# REVIEWS PAGE
# ============================================================
class ReviewsController:
    """Moderation table: all reviews, filtered by status and a search term."""

    def __init__(self):
        self.reviews: list[dict] = []
        self.loading = True
        self.status_filter = "all"
        self.search_query = ""

    def load(self) -> None:
        try:
            self.reviews = database.select_reviews_with_product(order_by="created_at", ascending=False)
        except StoreError as e:
            print(f"Error loading reviews: {e}")
        finally:
            self.loading = False

    def set_status_filter(self, status: str) -> None:
        if status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {status}")
        self.status_filter = status

    @property
    def filtered_reviews(self) -> list[dict]:
        rows = self.reviews
        if self.status_filter != "all":
            rows = [r for r in rows if r["status"] == self.status_filter]
        if self.search_query:
            needle = self.search_query.lower()
            rows = [r for r in rows
                    if needle in r["author_name"].lower() or needle in r["content"].lower()]
        return rows

    @property
    def status_counts(self) -> dict:
        """Counted over every loaded review, not just the filtered view."""
        counts = {"all": len(self.reviews)}
        for status in REVIEW_STATUSES:
            counts[status] = sum(1 for r in self.reviews if r["status"] == status)
        return counts

    def update_status(self, review_id: str, status: str) -> None:
        if status not in REVIEW_STATUSES:
            raise ActionFailed(f"Unknown status: {status}")
        try:
            database.update("reviews", {"status": status, "updated_at": database.now_iso()},
                            eq={"id": review_id})
        except StoreError as e:
            print(f"Error updating review: {e}")
            raise ActionFailed("Failed to update review. Please try again.") from e
        self.load()

    def delete(self, review_id: str) -> None:
        """Remove a review. Ask the user to confirm before calling this."""
        try:
            database.delete("reviews", eq={"id": review_id})
        except StoreError as e:
            print(f"Error deleting review: {e}")
            raise ActionFailed("Failed to delete review. Please try again.") from e
        self.load()

    def modal_for(self, review: dict, on_close: Optional[Callable[[], None]] = None) -> ReviewModal:
        return ReviewModal(review, on_update=self.load, on_close=on_close)


# ============================================================
# DASHBOARD PAGE
# ============================================================
class DashboardController:

    RECENT_COUNT = 5

    def __init__(self):
        self.stats = compute_dashboard_stats([])
        self.recent_reviews: list[dict] = []
        self.loading = True

    def load(self) -> None:
        try:
            reviews = database.select("reviews", order_by="created_at", ascending=False)
            self.stats = compute_dashboard_stats(reviews)
            self.recent_reviews = reviews[:self.RECENT_COUNT]
        except StoreError as e:
            print(f"Error loading dashboard data: {e}")
        finally:
            self.loading = False


# ============================================================
# ANALYTICS PAGE
# ============================================================
class AnalyticsController:

    def __init__(self, time_range: int = DEFAULT_TIME_RANGE):
        self.time_range = time_range
        self.analytics = compute_analytics([], 0)
        self.loading = True

    def set_time_range(self, days: int) -> None:
        if days not in TIME_RANGES:
            raise ValueError(f"Unsupported time range: {days}")
        self.time_range = days

    def load(self, now: Optional[datetime] = None) -> None:
        """
        Fetch the selected window [now-N, now] and count the window before it.
        Both windows are `time_range` days long; anything after `now` is left out.
        """
        now = now or datetime.now(timezone.utc)
        previous_start = now - timedelta(days=2 * self.time_range)
        try:
            rows = database.select(
                "reviews",
                gte={"created_at": database.to_iso(previous_start)},
                order_by="created_at", ascending=True,
            )
            reviews, previous = split_windows(rows, self.time_range, now)
            self.analytics = compute_analytics(reviews, len(previous))
        except StoreError as e:
            print(f"Error loading analytics: {e}")
        finally:
            self.loading = False


# ============================================================
# REWARDS PAGE
# ============================================================
class RewardsController:

    def __init__(self):
        self.rewards: list[dict] = []
        self.loading = True

    def load(self) -> None:
        try:
            self.rewards = database.select("rewards", order_by="created_at", ascending=False)
        except StoreError as e:
            print(f"Error loading rewards: {e}")
        finally:
            self.loading = False

    @property
    def active_rewards(self) -> list[dict]:
        return [r for r in self.rewards if r["status"] == "active"]

    @property
    def total_distributed(self) -> int:
        return sum(r["usage_count"] for r in self.rewards)

    @staticmethod
    def usage_label(reward: dict) -> str:
        limit = reward.get("usage_limit")
        return f"{reward['usage_count']} / {'∞' if limit is None else limit}"

    @staticmethod
    def new_draft() -> RewardDraft:
        return RewardDraft()

    @staticmethod
    def draft_for(reward: dict) -> RewardDraft:
        return RewardDraft.from_record(reward)

    def save(self, draft: RewardDraft, editing: Optional[dict] = None) -> None:
        """Create a reward, or update `editing` when one is given."""
        try:
            record = draft.to_record()
        except ValueError as e:
            raise ActionFailed("Usage limit must be a positive whole number.") from e

        try:
            if editing:
                database.update("rewards", record, eq={"id": editing["id"]})
            else:
                database.insert("rewards", [record])
        except StoreError as e:
            print(f"Error saving reward: {e}")
            raise ActionFailed("Failed to save reward. Please try again.") from e
        self.load()

    def delete(self, reward_id: str) -> None:
        """Remove a reward. Ask the user to confirm before calling this."""
        try:
            database.delete("rewards", eq={"id": reward_id})
        except StoreError as e:
            print(f"Error deleting reward: {e}")
            raise ActionFailed("Failed to delete reward. Please try again.") from e
        self.load()


# ============================================================
# INTEGRATIONS PAGE
# ============================================================
class IntegrationsController:

    def __init__(self):
        self.integrations: list[dict] = []
        self.loading = True
        self.saving: Optional[str] = None

    def load(self) -> None:
        try:
            self.integrations = database.select("integrations", order_by="name", ascending=True)
        except StoreError as e:
            print(f"Error loading integrations: {e}")
        finally:
            self.loading = False

    @staticmethod
    def describe(name: str) -> dict:
        """Icon, label and description; unknown platforms get generic ones."""
        return {
            "icon": INTEGRATION_ICONS.get(name, GENERIC_INTEGRATION_ICON),
            "label": INTEGRATION_LABELS.get(name, name),
            "description": INTEGRATION_DESCRIPTIONS.get(name, GENERIC_INTEGRATION_DESCRIPTION),
            "features": INTEGRATION_FEATURES.get(name),
        }

    @staticmethod
    def has_config_form(integration: dict) -> bool:
        return integration["enabled"] and integration["name"] in CONFIGURABLE_INTEGRATIONS

    def get(self, integration_id: str) -> dict:
        for integration in self.integrations:
            if integration["id"] == integration_id:
                return integration
        raise KeyError(integration_id)

    def toggle(self, integration_id: str, enabled: bool) -> None:
        self._write(integration_id, {"enabled": enabled}, "Error updating integration")

    def edit_config(self, integration_id: str, key: str, value: str) -> None:
        """Change one config field locally. Nothing is stored until save_config()."""
        integration = self.get(integration_id)
        integration["config"] = {**(integration.get("config") or {}), key: value}

    def save_config(self, integration_id: str) -> None:
        config = self.get(integration_id).get("config") or {}
        self._write(integration_id, {"config": config}, "Error updating configuration")

    def _write(self, integration_id: str, values: dict, context: str) -> None:
        self.saving = integration_id
        try:
            database.update("integrations", {**values, "updated_at": database.now_iso()},
                            eq={"id": integration_id})
        except StoreError as e:
            print(f"{context}: {e}")
            raise ActionFailed("Failed to update integration. Please try again.") from e
        finally:
            self.saving = None
        self.load()


# ============================================================
# SETTINGS PAGE
# ============================================================
class SettingsController:
    """All settings in one key -> value mapping, edited locally, saved together."""

    def __init__(self):
        self.settings: dict = {}
        self.loading = True
        self.saving = False

    def load(self) -> None:
        try:
            rows = database.select("settings")
            self.settings = {row["key"]: row["value"] for row in rows}
        except StoreError as e:
            print(f"Error loading settings: {e}")
        finally:
            self.loading = False

    def get(self, key: str, default=None):
        value = self.settings.get(key)
        return default if value is None else value

    def set(self, key: str, value) -> None:
        self.settings[key] = value

    def save(self) -> None:
        """
        One update per key, in order. The first failure stops the loop;
        keys already written stay written.
        """
        self.saving = True
        try:
            stamp = database.now_iso()
            for key, value in self.settings.items():
                database.update("settings", {"value": value, "updated_at": stamp}, eq={"key": key})
        except StoreError as e:
            print(f"Error saving settings: {e}")
            raise ActionFailed("Failed to save settings. Please try again.") from e
        finally:
            self.saving = False


# ============================================================
# PUBLIC REVIEW WIDGET
# ============================================================
class ReviewWidget:
    """Approved reviews for the storefront, newest first."""

    def __init__(self, product_id: Optional[str] = None, limit: int = 5):
        self.product_id = product_id
        self.limit = limit
        self.reviews: list[dict] = []
        self.average_rating = 0
        self.loading = True

    def load(self) -> None:
        eq = {"status": "approved"}
        if self.product_id:
            eq["product_id"] = self.product_id
        try:
            self.reviews = database.select("reviews", eq=eq, order_by="created_at",
                                           ascending=False, limit=self.limit)
            self.average_rating = compute_average_rating(self.reviews)
        except StoreError as e:
            print(f"Error loading reviews: {e}")
        finally:
            self.loading = False
