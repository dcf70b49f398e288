"""
Tests for the page controllers: moderation, submission, analytics windows,
rewards, integrations and settings.
"""

import pytest
from datetime import datetime, timezone

from reviewpool import controllers, database
from reviewpool.controllers import (
    ActionFailed, ReviewForm, ReviewModal, ReviewsController, DashboardController,
    AnalyticsController, RewardsController, IntegrationsController, SettingsController,
    ReviewWidget, resolve_page,
)
from reviewpool.database import StoreError
from reviewpool.models import RewardDraft

NOW = datetime(2026, 3, 15, 12, 0, 0, tzinfo=timezone.utc)


def fill_form(form, content_length=60, rating=4):
    form.draft.author_name = "Alice"
    form.draft.author_email = "alice@example.com"
    form.draft.rating = rating
    form.draft.content = "x" * content_length


# ============================================================
# Review submission
# ============================================================

def test_review_form_requires_fifty_characters(store):
    form = ReviewForm()
    fill_form(form, content_length=49)
    assert form.can_submit is False
    with pytest.raises(ActionFailed):
        form.submit()

    form.draft.content = "x" * 50
    assert form.can_submit is True
    form.submit()
    assert len(store.select("reviews")) == 1


def test_review_form_requires_rating(store):
    form = ReviewForm()
    fill_form(form, rating=0)
    with pytest.raises(ActionFailed, match="Please select a rating"):
        form.submit()
    assert store.select("reviews") == []


def test_review_form_stores_pending_review_and_resets(store):
    calls = []
    form = ReviewForm(product_id=None, on_success=lambda: calls.append(True))
    fill_form(form)
    form.draft.title = "   "

    stored = form.submit()

    assert stored["status"] == "pending"
    assert stored["rating"] == 4
    assert stored["title"] is None
    assert stored["product_id"] is None
    assert calls == [True]
    assert form.draft.content == ""
    assert form.draft.rating == 0


def test_review_form_keeps_input_when_store_fails(store, monkeypatch):
    def broken_insert(table, rows):
        raise StoreError("connection lost")

    monkeypatch.setattr(database, "insert", broken_insert)
    form = ReviewForm()
    fill_form(form)

    with pytest.raises(ActionFailed, match="Failed to submit review"):
        form.submit()
    assert form.draft.author_name == "Alice"
    assert len(form.draft.content) == 60
    assert form.submitting is False


# ============================================================
# Moderation
# ============================================================

def test_submit_then_approve_through_modal(store):
    form = ReviewForm()
    fill_form(form, rating=4)
    stored = form.submit()
    assert stored["status"] == "pending"

    events = []
    modal = ReviewModal(stored, on_update=lambda: events.append("update"),
                        on_close=lambda: events.append("close"))
    assert modal.available_actions == ["approved", "rejected"]

    modal.update_status("approved")

    assert events == ["update", "close"]
    assert store.select("reviews", eq={"id": stored["id"]})[0]["status"] == "approved"
    assert "approved" not in modal.available_actions
    assert modal.available_actions == ["rejected"]


def test_filter_by_status_and_search(store, add_review):
    add_review(author_name="Alice Smith", status="approved")
    add_review(author_name="Bob", content="Bought this for ALICE, she loves it. " * 2, status="approved")
    add_review(author_name="Alice Jones", status="pending")
    add_review(author_name="Carol", status="approved")

    ctl = ReviewsController()
    assert ctl.loading is True
    ctl.load()
    assert ctl.loading is False

    ctl.set_status_filter("approved")
    ctl.search_query = "alice"
    names = sorted(r["author_name"] for r in ctl.filtered_reviews)

    assert names == ["Alice Smith", "Bob"]
    assert ctl.status_counts == {"all": 4, "pending": 1, "approved": 3, "rejected": 0}


def test_update_and_delete_refetch(store, add_review):
    review = add_review()
    ctl = ReviewsController()
    ctl.load()

    ctl.update_status(review["id"], "rejected")
    assert ctl.reviews[0]["status"] == "rejected"

    ctl.delete(review["id"])
    assert ctl.reviews == []


def test_failed_load_leaves_empty_defaults(store, monkeypatch):
    def broken(*args, **kwargs):
        raise StoreError("down")

    monkeypatch.setattr(database, "select_reviews_with_product", broken)
    ctl = ReviewsController()
    ctl.load()

    assert ctl.loading is False
    assert ctl.reviews == []
    assert ctl.status_counts["all"] == 0


def test_modal_ai_analysis_requires_setting(store, add_review):
    modal = ReviewModal(add_review())
    with pytest.raises(ActionFailed):
        modal.run_ai_analysis({"enable_sentiment_analysis": False})


def test_modal_ai_analysis_writes_back(store, add_review, monkeypatch):
    review = add_review()
    monkeypatch.setattr(controllers, "analyze_review", lambda r, provider, api_key: {
        "sentiment_label": "negative", "sentiment_score": -0.6, "ai_summary": "Unhappy.",
    })
    modal = ReviewModal(review)
    modal.run_ai_analysis({"enable_sentiment_analysis": True, "ai_provider": "openai"})

    stored = store.select("reviews", eq={"id": review["id"]})[0]
    assert stored["sentiment_label"] == "negative"
    assert stored["ai_summary"] == "Unhappy."
    assert modal.review["sentiment_score"] == -0.6


# ============================================================
# Dashboard & analytics
# ============================================================

def test_dashboard_recent_reviews_newest_first(store, add_review):
    for i in range(7):
        add_review(days_ago=i, author_name=f"r{i}", sentiment_label="positive")

    ctl = DashboardController()
    ctl.load()

    assert [r["author_name"] for r in ctl.recent_reviews] == ["r0", "r1", "r2", "r3", "r4"]
    assert ctl.stats["total_reviews"] == 7
    assert ctl.stats["sentiment"]["positive"] == 7


def test_analytics_window_and_growth(store, add_review):
    for days in (1, 2, 3, 4):           # current 7-day window
        add_review(days_ago=days, rating=4)
    for days in (8, 10):                # previous window
        add_review(days_ago=days, rating=2)
    add_review(days_ago=30)             # outside both

    ctl = AnalyticsController()
    ctl.set_time_range(7)
    ctl.load(now=NOW)

    data = ctl.analytics
    assert data["total_reviews"] == 4
    assert data["average_rating"] == pytest.approx(4.0)
    assert data["review_growth"] == pytest.approx(100.0)
    assert len(data["daily_stats"]) == 4


def test_analytics_leaves_out_reviews_dated_after_now(store, add_review):
    add_review(days_ago=1, rating=5)
    add_review(days_ago=-2, rating=1)   # after now
    add_review(days_ago=9, rating=3)

    ctl = AnalyticsController(time_range=7)
    ctl.load(now=NOW)

    data = ctl.analytics
    assert data["total_reviews"] == 1
    assert data["average_rating"] == 5
    assert data["review_growth"] == 0
    assert [d["date"] for d in data["daily_stats"]] == ["2026-03-14"]


def test_analytics_rejects_unsupported_range():
    with pytest.raises(ValueError):
        AnalyticsController().set_time_range(14)


# ============================================================
# Rewards
# ============================================================

def test_reward_without_limit_is_unlimited(store):
    ctl = RewardsController()
    ctl.save(RewardDraft(name="Thank-you coupon", type="coupon", value="SAVE10",
                         description="", valid_until="", usage_limit=""))

    reward = ctl.rewards[0]
    assert reward["usage_limit"] is None
    assert reward["description"] is None
    assert reward["valid_until"] is None
    assert ctl.usage_label(reward) == "0 / ∞"

    store.update("rewards", {"usage_count": 10_000}, eq={"id": reward["id"]})
    ctl.load()
    assert ctl.rewards[0]["usage_count"] == 10_000
    assert ctl.usage_label(ctl.rewards[0]) == "10000 / ∞"
    assert ctl.total_distributed == 10_000


def test_reward_edit_updates_in_place(store):
    ctl = RewardsController()
    ctl.save(RewardDraft(name="Points", type="points", value="100", usage_limit="50"))
    reward = ctl.rewards[0]

    draft = ctl.draft_for(reward)
    assert draft.usage_limit == "50"
    draft.status = "inactive"
    ctl.save(draft, editing=reward)

    assert len(ctl.rewards) == 1
    assert ctl.rewards[0]["status"] == "inactive"
    assert ctl.active_rewards == []


def test_reward_usage_limit_must_be_number(store):
    with pytest.raises(ActionFailed):
        RewardsController().save(RewardDraft(name="Bad", value="x", usage_limit="lots"))


@pytest.mark.parametrize("limit", ["0", "-3"])
def test_reward_usage_limit_must_be_positive(store, limit):
    ctl = RewardsController()
    with pytest.raises(ActionFailed, match="positive whole number"):
        ctl.save(RewardDraft(name="Bad", value="x", usage_limit=limit))
    assert store.select("rewards") == []


def test_reward_delete(store):
    ctl = RewardsController()
    ctl.save(RewardDraft(name="Badge", type="badge", value="Top reviewer"))
    ctl.delete(ctl.rewards[0]["id"])
    assert ctl.rewards == []


# ============================================================
# Integrations
# ============================================================

def test_integration_toggle_and_config(store):
    ctl = IntegrationsController()
    ctl.load()
    woo = next(i for i in ctl.integrations if i["name"] == "woocommerce")
    assert ctl.has_config_form(woo) is False

    ctl.toggle(woo["id"], True)
    woo = ctl.get(woo["id"])
    assert woo["enabled"] is True
    assert ctl.has_config_form(woo) is True

    ctl.edit_config(woo["id"], "api_url", "https://shop.example.com/wp-json")
    ctl.edit_config(woo["id"], "api_key", "secret")
    stored = store.select("integrations", eq={"id": woo["id"]})[0]
    assert stored["config"] == {}

    ctl.save_config(woo["id"])
    stored = store.select("integrations", eq={"id": woo["id"]})[0]
    assert stored["config"] == {"api_url": "https://shop.example.com/wp-json", "api_key": "secret"}
    assert ctl.saving is None


def test_integration_lookup_falls_back_for_unknown_names():
    info = IntegrationsController.describe("shopify")
    assert info["label"] == "shopify"
    assert info["description"] == "Integration with third-party service"
    assert info["features"] is None

    assert IntegrationsController.describe("edd")["label"] == "Easy Digital Downloads"
    assert IntegrationsController.describe("elementor")["features"][0] == "Elementor Widgets Available"


# ============================================================
# Settings
# ============================================================

def test_settings_load_edit_save(store):
    ctl = SettingsController()
    ctl.load()
    assert ctl.get("site_name") == "ReviewPool"
    assert ctl.get("auto_approve_reviews") is False

    ctl.set("site_name", "Acme Reviews")
    ctl.set("auto_approve_reviews", True)
    ctl.save()

    fresh = SettingsController()
    fresh.load()
    assert fresh.get("site_name") == "Acme Reviews"
    assert fresh.get("auto_approve_reviews") is True


def test_settings_save_stops_at_first_failure(store, monkeypatch):
    ctl = SettingsController()
    ctl.load()
    for key in ctl.settings:
        ctl.set(key, "changed")

    real_update = database.update
    written = []

    def flaky_update(table, values, eq):
        if len(written) == 2:
            raise StoreError("timeout")
        written.append(eq["key"])
        return real_update(table, values, eq)

    monkeypatch.setattr(database, "update", flaky_update)

    with pytest.raises(ActionFailed, match="Failed to save settings"):
        ctl.save()
    assert ctl.saving is False

    stored = {row["key"]: row["value"] for row in store.select("settings")}
    assert [k for k, v in stored.items() if v == "changed"] == written


# ============================================================
# Public widget & navigation
# ============================================================

def test_widget_shows_only_approved_reviews(store, add_review):
    product = store.insert("products", [{"name": "Lamp", "slug": "lamp"}])[0]
    add_review(status="approved", rating=4, product_id=product["id"])
    add_review(status="approved", rating=2)
    add_review(status="pending", rating=5, product_id=product["id"])

    widget = ReviewWidget()
    widget.load()
    assert len(widget.reviews) == 2
    assert widget.average_rating == pytest.approx(3.0)

    widget = ReviewWidget(product_id=product["id"])
    widget.load()
    assert len(widget.reviews) == 1
    assert widget.average_rating == 4


def test_unknown_page_falls_back_to_dashboard():
    assert resolve_page("reviews") == "reviews"
    assert resolve_page("billing") == "dashboard"
    assert resolve_page(None) == "dashboard"
