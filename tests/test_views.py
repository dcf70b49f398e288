"""
Streamlit page tests: the scripts run headless through AppTest against the
per-test database from conftest.
"""

import os

import pytest
from streamlit.testing.v1 import AppTest

from reviewpool import database
from reviewpool.config import DASHBOARD_USERNAME, DASHBOARD_PASSWORD
from reviewpool.database import StoreError

APP_DIR = os.path.join(os.path.dirname(__file__), "..", "reviewpool")
DASHBOARD = os.path.join(APP_DIR, "dashboard.py")
STOREFRONT = os.path.join(APP_DIR, "storefront.py")


def open_page(page_id: str) -> AppTest:
    at = AppTest.from_file(DASHBOARD, default_timeout=30)
    at.session_state["authenticated"] = True
    at.session_state["current_page"] = page_id
    at.run()
    assert not at.exception
    return at


def markdown_text(at: AppTest) -> str:
    return "\n".join(m.value for m in at.markdown)


@pytest.fixture
def failing_integration_writes(store, monkeypatch):
    """Every update to the integrations collection fails; returns the attempts."""
    attempts = []
    real_update = database.update

    def update(table, values, eq):
        if table == "integrations":
            attempts.append(values)
            raise StoreError("database is locked")
        return real_update(table, values, eq)

    monkeypatch.setattr(database, "update", update)
    return attempts


# ============================================================
# Login
# ============================================================

def test_sign_in_stays_in_its_own_session(store):
    first = AppTest.from_file(DASHBOARD, default_timeout=30).run()
    first.text_input(key="login_username").input(DASHBOARD_USERNAME)
    first.text_input(key="login_password").input(DASHBOARD_PASSWORD)
    first.button[0].click().run()

    assert first.session_state["authenticated"] is True
    assert "## Dashboard" in markdown_text(first)

    second = AppTest.from_file(DASHBOARD, default_timeout=30).run()
    assert second.session_state["authenticated"] is False
    assert "## Dashboard" not in markdown_text(second)
    assert second.text_input(key="login_username") is not None


def test_wrong_password_is_rejected(store):
    at = AppTest.from_file(DASHBOARD, default_timeout=30).run()
    at.text_input(key="login_username").input(DASHBOARD_USERNAME)
    at.text_input(key="login_password").input(DASHBOARD_PASSWORD + "x")
    at.button[0].click().run()

    assert at.session_state["authenticated"] is False
    assert at.error[0].value == "Invalid credentials."


# ============================================================
# Reviews & rewards: two-step delete
# ============================================================

def test_review_delete_needs_confirmation(store, add_review):
    review = add_review(author_name="Dana")
    at = open_page("reviews")

    at.button(key=f"del_{review['id']}").click().run()
    assert "Dana" in at.warning[0].value
    assert len(store.select("reviews")) == 1

    at.button(key=f"del_yes_{review['id']}").click().run()
    assert not at.exception
    assert store.select("reviews") == []
    assert not at.warning


def test_review_delete_can_be_cancelled(store, add_review):
    review = add_review(author_name="Dana")
    at = open_page("reviews")

    at.button(key=f"del_{review['id']}").click().run()
    at.button(key=f"del_no_{review['id']}").click().run()

    assert not at.warning
    assert len(store.select("reviews")) == 1


def test_approve_from_table(store, add_review):
    review = add_review()
    at = open_page("reviews")

    at.button(key=f"app_{review['id']}").click().run()

    assert store.select("reviews", eq={"id": review["id"]})[0]["status"] == "approved"
    assert at.button(key="flt_approved").label == "Approved (1)"


def test_reward_delete_needs_confirmation(store):
    reward = store.insert("rewards", [{"name": "Spring coupon", "type": "coupon", "value": "SPRING5"}])[0]
    at = open_page("rewards")

    at.button(key=f"delrw_{reward['id']}").click().run()
    assert "Spring coupon" in at.warning[0].value
    assert len(store.select("rewards")) == 1

    at.button(key=f"delrw_yes_{reward['id']}").click().run()
    assert store.select("rewards") == []


# ============================================================
# Settings
# ============================================================

def test_edit_then_save_in_one_step(store):
    at = open_page("settings")

    at.text_input(key="set_site_name").input("Acme Reviews")
    at.button(key="settings_save").click().run()

    assert not at.exception
    assert store.select("settings", eq={"key": "site_name"})[0]["value"] == "Acme Reviews"
    assert at.success[0].value == "Settings saved successfully!"


def test_failed_settings_save_shows_error(store, monkeypatch):
    def update(table, values, eq):
        raise StoreError("disk full")

    at = open_page("settings")
    monkeypatch.setattr(database, "update", update)
    at.button(key="settings_save").click().run()

    assert not at.exception
    assert at.error[0].value == "Failed to save settings. Please try again."


# ============================================================
# Integrations
# ============================================================

def test_toggle_enables_integration(store):
    woo = store.select("integrations", eq={"name": "woocommerce"})[0]
    at = open_page("integrations")

    at.toggle(key=f"tgl_{woo['id']}").set_value(True).run()

    assert not at.exception
    assert store.select("integrations", eq={"id": woo["id"]})[0]["enabled"] is True
    assert at.text_input(key=f"url_{woo['id']}") is not None


def test_failed_toggle_writes_once_and_flips_back(store, failing_integration_writes):
    woo = store.select("integrations", eq={"name": "woocommerce"})[0]
    at = open_page("integrations")

    at.toggle(key=f"tgl_{woo['id']}").set_value(True).run()

    assert not at.exception
    assert len(failing_integration_writes) == 1
    assert at.error[0].value == "Failed to update integration. Please try again."
    assert at.toggle(key=f"tgl_{woo['id']}").value is False
    assert store.select("integrations", eq={"id": woo["id"]})[0]["enabled"] is False

    # the next run does not retry on its own
    at.run()
    assert len(failing_integration_writes) == 1
    assert not at.error


# ============================================================
# Storefront
# ============================================================

def test_storefront_lists_only_approved_reviews(store, add_review):
    add_review(author_name="Visible Vera", status="approved")
    add_review(author_name="Hidden Hank", status="pending")

    at = AppTest.from_file(STOREFRONT, default_timeout=30).run()

    assert not at.exception
    text = markdown_text(at)
    assert "Visible Vera" in text
    assert "Hidden Hank" not in text
