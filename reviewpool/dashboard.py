"""
ReviewPool — admin dashboard for review moderation, analytics, rewards,
integrations and settings.
Run with: streamlit run reviewpool/dashboard.py
"""

import streamlit as st
import plotly.graph_objects as go
import pandas as pd

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from reviewpool.config import DASHBOARD_USERNAME, DASHBOARD_PASSWORD
from reviewpool.database import initialize_database
from reviewpool.models import (
    REWARD_TYPES, REWARD_STATUSES, TIME_RANGES, AI_PROVIDERS, STATUS_FILTERS,
)
from reviewpool.controllers import (
    ActionFailed, PAGE_CONFIG, resolve_page,
    DashboardController, ReviewsController, AnalyticsController, RewardsController,
    IntegrationsController, SettingsController, ReviewForm,
)
from reviewpool.components import (
    stars, pill, fmt_date, render_review_form, render_review_card,
)

# ============================================================
# PAGE CONFIG
# ============================================================
st.set_page_config(
    page_title="ReviewPool",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ============================================================
# STYLING: applied ONCE at the top of every render
# ============================================================
CUSTOM_CSS = """
<style>
@import url('https://fonts.googleapis.com/css2?family=Inter:wght@300;400;500;600;700&display=swap');
html, body, [class*="css"] { font-family: 'Inter', -apple-system, BlinkMacSystemFont, sans-serif; }

footer {visibility: hidden;}
#MainMenu {visibility: hidden;}

:root {
    --bg-primary: #f1f5f9;
    --bg-elevated: #ffffff;
    --sidebar: #0f172a;
    --border: #e2e8f0;
    --text-primary: #0f172a;
    --text-secondary: #475569;
    --text-muted: #94a3b8;
    --accent: #2563eb;
    --accent-hover: #1d4ed8;
}

/* Metric cards */
[data-testid="stMetric"] {
    background: var(--bg-elevated);
    border: 1px solid var(--border); border-radius: 12px;
    padding: 18px 22px; box-shadow: 0 1px 3px rgba(15,23,42,0.06);
}
[data-testid="stMetric"] label {
    color: var(--text-secondary) !important; font-weight: 500; font-size: 0.78rem;
}
[data-testid="stMetric"] [data-testid="stMetricValue"] {
    color: var(--text-primary) !important; font-weight: 700; font-size: 1.6rem;
}

/* Buttons */
.stButton > button { border-radius: 8px; font-weight: 500; transition: all 0.15s ease; }
.stButton > button[kind="primary"],
.stButton > button[data-testid="baseButton-primary"] {
    background: var(--accent) !important; color: #fff !important; border: none;
}
.stButton > button[kind="primary"]:hover,
.stButton > button[data-testid="baseButton-primary"]:hover {
    background: var(--accent-hover) !important;
}

/* Sidebar */
[data-testid="stSidebar"] { background: var(--sidebar); }
[data-testid="stSidebar"] * { color: #cbd5e1; }

/* Tabs */
.stTabs [data-baseweb="tab"] { padding: 8px 16px; font-weight: 500; }
.stTabs [aria-selected="true"] { border-bottom: 2px solid var(--accent) !important; }

/* Status pills */
.pill { display:inline-block; padding:2px 10px; border-radius:999px; font-size:0.75rem; font-weight:500; }
.pill-approved, .pill-positive, .pill-active { background:#dcfce7; color:#166534; }
.pill-pending { background:#ffedd5; color:#9a3412; }
.pill-rejected, .pill-negative { background:#fee2e2; color:#991b1b; }
.pill-neutral, .pill-inactive { background:#f1f5f9; color:#1e293b; }
</style>
"""

st.markdown(CUSTOM_CSS, unsafe_allow_html=True)

STATUS_COLORS = {"positive": "#22c55e", "neutral": "#94a3b8", "negative": "#ef4444"}
STAR_COLORS = ["#22c55e", "#84cc16", "#eab308", "#f97316", "#ef4444"]   # 5★ → 1★


def apply_chart_style(fig):
    fig.update_layout(
        font=dict(family="Inter, sans-serif", color="#475569"),
        paper_bgcolor="rgba(0,0,0,0)", plot_bgcolor="rgba(0,0,0,0)",
        title_font=dict(size=14, color="#0f172a"),
        xaxis=dict(gridcolor="#f1f5f9", linecolor="#e2e8f0"),
        yaxis=dict(gridcolor="#f1f5f9", linecolor="#e2e8f0"),
        legend=dict(font=dict(color="#475569", size=10)),
        margin=dict(l=40, r=20, t=45, b=35),
    )
    return fig


# ============================================================
# SESSION STATE HELPERS
# ============================================================

@st.cache_resource
def _ensure_database():
    initialize_database()
    return True


def _controller(key: str, factory):
    """
    One controller per page, created and loaded when the page is mounted.
    Switching pages drops them, so coming back re-fetches.
    """
    state_key = f"ctl_{key}"
    if state_key not in st.session_state:
        ctl = factory()
        with st.spinner("Loading..."):
            ctl.load()
        st.session_state[state_key] = ctl
    return st.session_state[state_key]


def _clear_page_state():
    for k in list(st.session_state.keys()):
        if k.startswith("ctl_") or k.startswith("confirm_"):
            del st.session_state[k]


def _flash(kind: str, message: str):
    """Show a message on the next rerun (after st.rerun wipes this one)."""
    st.session_state["_flash"] = (kind, message)


def _show_flash():
    flash = st.session_state.pop("_flash", None)
    if flash:
        kind, message = flash
        getattr(st, kind)(message)


# ============================================================
# LOGIN
# ============================================================
def render_login():
    st.markdown("""
    <div style="display:flex; flex-direction:column; align-items:center; padding-top:6vh; text-align:center;">
        <div style="font-size:2rem; color:#2563eb;">⚡</div>
        <h1 style="font-size:2rem; font-weight:700; margin:0;">ReviewPool</h1>
        <p style="color:#475569; font-size:0.9rem; margin:0.2rem 0 1rem;">Review Management</p>
    </div>
    """, unsafe_allow_html=True)

    col1, col2, col3 = st.columns([1.3, 1, 1.3])
    with col2:
        with st.form("login_form"):
            username = st.text_input("Username", placeholder="Username", label_visibility="collapsed",
                                     key="login_username")
            password = st.text_input("Password", type="password", placeholder="Password",
                                     label_visibility="collapsed", key="login_password")
            submitted = st.form_submit_button("Sign in", use_container_width=True, type="primary")
            if submitted:
                if username == DASHBOARD_USERNAME and password == DASHBOARD_PASSWORD:
                    st.session_state.authenticated = True
                    st.rerun()
                else:
                    st.error("Invalid credentials.")


# ============================================================
# SIDEBAR
# ============================================================
def render_sidebar() -> str:
    st.sidebar.markdown("""
    <div style="padding:0.5rem 0 0.3rem;">
        <span style="color:#3b82f6; font-size:1.4rem;">⚡</span>
        <span style="font-size:1.2rem; font-weight:700; color:#fff; margin-left:6px;">ReviewPool</span>
        <div style="font-size:0.72rem; color:#94a3b8; margin-left:2px;">Review Management</div>
    </div>""", unsafe_allow_html=True)
    st.sidebar.markdown("---")

    current = resolve_page(st.session_state.get("current_page"))
    for page_id, page in PAGE_CONFIG.items():
        if st.sidebar.button(f"{page['icon']}  {page['label']}", key=f"nav_{page_id}",
                             use_container_width=True,
                             type="primary" if page_id == current else "secondary"):
            if page_id != current:
                st.session_state["current_page"] = page_id
                _clear_page_state()
                st.rerun()

    st.sidebar.markdown("---")
    st.sidebar.caption("Need help? Check our documentation.")
    if st.sidebar.button("Sign out", use_container_width=True, key="btn_logout"):
        for key in list(st.session_state.keys()):
            del st.session_state[key]
        st.rerun()

    return current


def render_header(page_id: str):
    page = PAGE_CONFIG[page_id]
    st.markdown(f"## {page['title']}")
    st.caption(page["subtitle"])


# ============================================================
# DASHBOARD
# ============================================================
def render_dashboard_page():
    ctl = _controller("dashboard", DashboardController)
    stats = ctl.stats

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Total Reviews", f"{stats['total_reviews']:,}")
    m2.metric("Average Rating", f"{stats['average_rating']:.1f} ★")
    m3.metric("Approved", f"{stats['approved_reviews']:,}")
    m4.metric("Pending Review", f"{stats['pending_reviews']:,}",
              delta=f"{stats['pending_reviews']} waiting", delta_color="off")

    st.markdown("---")
    c1, c2 = st.columns([2, 1])

    with c1:
        st.markdown("### Recent Reviews")
        if not ctl.recent_reviews:
            st.caption("No reviews yet.")
        for review in ctl.recent_reviews:
            render_review_card(review, show_status=True)

    with c2:
        st.markdown("### Sentiment Analysis")
        pct = stats["sentiment_percent"]
        for label in ("positive", "neutral", "negative"):
            st.markdown(f"{label.capitalize()}: **{pct[label]}%**")
            st.progress(pct[label] / 100)
        st.caption(f"Overall sentiment: **{stats['overall_sentiment']}**")


# ============================================================
# REVIEWS
# ============================================================
@st.dialog("Review Details", width="large")
def review_detail_dialog(review: dict):
    ctl = st.session_state["ctl_reviews"]
    modal = ctl.modal_for(review)
    review = modal.review

    c1, c2 = st.columns([3, 1])
    with c1:
        st.markdown(f"#### {review['author_name']}")
        st.caption(f"{review['author_email']} · {fmt_date(review['created_at'], with_time=True)}")
    with c2:
        st.markdown(f"### {stars(review['rating'])}")

    if review.get("title"):
        st.markdown(f"**Title**  \n{review['title']}")
    st.markdown(f"**Review Content**  \n{review['content']}")
    if review.get("product_name"):
        st.caption(f"Product: {review['product_name']}")

    if review.get("ai_summary"):
        st.info(f"**AI Summary**  \n{review['ai_summary']}")

    s1, s2 = st.columns(2)
    s1.markdown(f"**Status**  \n{pill(review['status'])}", unsafe_allow_html=True)
    if review.get("sentiment_label"):
        s2.markdown(f"**Sentiment**  \n{pill(review['sentiment_label'])}", unsafe_allow_html=True)

    st.markdown("---")
    actions = modal.available_actions
    cols = st.columns(len(actions) + 2)
    try:
        if "approved" in actions and cols[0].button("✔ Approve", type="primary", key="dlg_approve"):
            modal.update_status("approved")
            st.rerun()
        if "rejected" in actions and cols[len(actions) - 1].button("✖ Reject", key="dlg_reject"):
            modal.update_status("rejected")
            st.rerun()
        settings = _controller("settings", SettingsController).settings
        if settings.get("enable_sentiment_analysis") and cols[-2].button("🧠 AI analysis", key="dlg_ai"):
            with st.spinner("Analyzing..."):
                modal.run_ai_analysis(settings)
            st.rerun()
    except ActionFailed as e:
        st.error(str(e))
    if cols[-1].button("Close", key="dlg_close"):
        st.rerun()


@st.dialog("Write a Review", width="large")
def review_form_dialog():
    ctl = st.session_state["ctl_reviews"]
    if "review_form" not in st.session_state:
        st.session_state["review_form"] = ReviewForm(on_success=ctl.load)
    form = st.session_state["review_form"]
    if render_review_form(form, key_prefix="admin"):
        st.session_state.pop("review_form", None)
        _flash("success", "Thank you for your review! It will be published after moderation.")
        st.rerun()


def render_reviews_page():
    ctl = _controller("reviews", ReviewsController)
    _show_flash()

    c1, c2 = st.columns([4, 1])
    ctl.search_query = c1.text_input("Search reviews...", value=ctl.search_query,
                                     placeholder="Search reviews...", label_visibility="collapsed")
    if c2.button("＋ Add Review", use_container_width=True, type="primary"):
        review_form_dialog()

    counts = ctl.status_counts
    filter_cols = st.columns(len(STATUS_FILTERS) + 2)
    for col, status in zip(filter_cols, STATUS_FILTERS):
        if col.button(f"{status.capitalize()} ({counts[status]})", key=f"flt_{status}",
                      use_container_width=True,
                      type="primary" if ctl.status_filter == status else "secondary"):
            ctl.set_status_filter(status)
            st.rerun()

    rows = ctl.filtered_reviews
    if not rows:
        st.info("No reviews found")
        return

    header = st.columns([2, 4, 1.2, 1.2, 1.2, 1.2, 2])
    for col, title in zip(header, ["Author", "Review", "Rating", "Sentiment", "Status", "Date", "Actions"]):
        col.markdown(f"**{title}**")

    for review in rows:
        cols = st.columns([2, 4, 1.2, 1.2, 1.2, 1.2, 2])
        cols[0].markdown(f"**{review['author_name']}**  \n{review['author_email']}")
        snippet = review["content"][:120] + ("…" if len(review["content"]) > 120 else "")
        title = f"**{review['title']}**  \n" if review.get("title") else ""
        product = f"  \n_{review['product_name']}_" if review.get("product_name") else ""
        cols[1].markdown(f"{title}{snippet}{product}")
        cols[2].markdown(stars(review["rating"]))
        if review.get("sentiment_label"):
            cols[3].markdown(pill(review["sentiment_label"]), unsafe_allow_html=True)
        cols[4].markdown(pill(review["status"]), unsafe_allow_html=True)
        cols[5].markdown(fmt_date(review["created_at"]))

        a1, a2, a3, a4 = cols[6].columns(4)
        try:
            if a1.button("👁", key=f"view_{review['id']}", help="View"):
                review_detail_dialog(review)
            if review["status"] != "approved" and a2.button("✔", key=f"app_{review['id']}", help="Approve"):
                ctl.update_status(review["id"], "approved")
                st.rerun()
            if review["status"] != "rejected" and a3.button("✖", key=f"rej_{review['id']}", help="Reject"):
                ctl.update_status(review["id"], "rejected")
                st.rerun()
        except ActionFailed as e:
            st.error(str(e))
        if a4.button("🗑", key=f"del_{review['id']}", help="Delete"):
            st.session_state["confirm_delete_review"] = review["id"]

        if st.session_state.get("confirm_delete_review") == review["id"]:
            st.warning(f"Are you sure you want to delete the review by **{review['author_name']}**?")
            cc1, cc2, cc3 = st.columns([1, 1, 4])
            with cc1:
                if st.button("Yes, delete", type="primary", key=f"del_yes_{review['id']}"):
                    st.session_state.pop("confirm_delete_review", None)
                    try:
                        ctl.delete(review["id"])
                    except ActionFailed as e:
                        _flash("error", str(e))
                    st.rerun()
            with cc2:
                if st.button("Cancel", key=f"del_no_{review['id']}"):
                    st.session_state.pop("confirm_delete_review", None)
                    st.rerun()


# ============================================================
# ANALYTICS
# ============================================================
def chart_rating_distribution(distribution):
    fig = go.Figure(go.Bar(
        x=[d["count"] for d in distribution], y=[f"{d['rating']}★" for d in distribution],
        orientation="h", marker_color=STAR_COLORS,
        text=[d["count"] for d in distribution], textposition="outside",
    ))
    fig.update_layout(title="Rating Distribution", height=340,
                      yaxis=dict(autorange="reversed"), xaxis_title="Reviews")
    apply_chart_style(fig)
    st.plotly_chart(fig, use_container_width=True)


def chart_sentiment(split):
    labels = ["positive", "neutral", "negative"]
    fig = go.Figure(go.Pie(
        labels=[l.capitalize() for l in labels], values=[split[l] for l in labels],
        hole=0.55, marker=dict(colors=[STATUS_COLORS[l] for l in labels]), sort=False,
    ))
    fig.update_layout(title="Sentiment Breakdown", height=340)
    apply_chart_style(fig)
    st.plotly_chart(fig, use_container_width=True)


def chart_daily_trend(daily_stats):
    if not daily_stats:
        st.caption("No reviews in this period.")
        return
    df = pd.DataFrame(daily_stats)
    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["date"], y=df["count"], name="Reviews", marker_color="#3b82f6",
                         text=df["count"], textposition="outside"))
    fig.add_trace(go.Scatter(x=df["date"], y=df["avg_rating"], name="Avg rating", yaxis="y2",
                             mode="lines+markers", line=dict(color="#eab308", width=3, shape="spline")))
    fig.update_layout(
        title="Review Trend (last 7 active days)", height=360,
        yaxis=dict(title="Reviews"),
        yaxis2=dict(title="Rating", overlaying="y", side="right", range=[0, 5.5]),
        legend=dict(orientation="h", yanchor="bottom", y=1.02, xanchor="center", x=0.5),
    )
    apply_chart_style(fig)
    st.plotly_chart(fig, use_container_width=True)


def render_analytics_page():
    ctl = _controller("analytics", AnalyticsController)

    labels = {7: "Last 7 days", 30: "Last 30 days", 90: "Last 90 days", 365: "Last year"}
    picked = st.selectbox("Time range", TIME_RANGES, index=TIME_RANGES.index(ctl.time_range),
                          format_func=labels.get, key="analytics_range")
    if picked != ctl.time_range:
        ctl.set_time_range(picked)
        with st.spinner("Loading..."):
            ctl.load()

    data = ctl.analytics
    split = data["sentiment"]
    growth = data["review_growth"]

    m1, m2, m3, m4 = st.columns(4)
    m1.metric("Total Reviews", f"{data['total_reviews']:,}", delta=f"{growth:+.1f}%")
    m2.metric("Average Rating", f"{data['average_rating']:.1f} ★")
    m3.metric("Positive", f"{split['positive']:,}", help=f"{data['sentiment_percent']['positive']}% of reviews")
    m4.metric("Negative", f"{split['negative']:,}", help=f"{data['sentiment_percent']['negative']}% of reviews")
    if split["unscored"]:
        st.caption(f"{split['unscored']:,} reviews have no sentiment label and are counted as neutral.")

    st.markdown("---")
    c1, c2 = st.columns(2)
    with c1:
        chart_rating_distribution(data["rating_distribution"])
    with c2:
        chart_sentiment(split)

    chart_daily_trend(data["daily_stats"])


# ============================================================
# REWARDS
# ============================================================
@st.dialog("Reward")
def reward_form_dialog(editing: dict | None):
    ctl = st.session_state["ctl_rewards"]
    draft = ctl.draft_for(editing) if editing else ctl.new_draft()
    st.markdown(f"#### {'Edit Reward' if editing else 'Create New Reward'}")

    with st.form("reward_form"):
        draft.name = st.text_input("Reward Name *", value=draft.name)
        c1, c2 = st.columns(2)
        draft.type = c1.selectbox("Type", REWARD_TYPES, index=REWARD_TYPES.index(draft.type),
                                  format_func=str.capitalize)
        draft.value = c2.text_input("Value *", value=draft.value, placeholder="e.g., SAVE10 or 100")
        draft.description = st.text_area("Description", value=draft.description, height=80)
        c3, c4 = st.columns(2)
        draft.status = c3.selectbox("Status", REWARD_STATUSES, index=REWARD_STATUSES.index(draft.status),
                                    format_func=str.capitalize)
        draft.valid_until = c4.text_input("Valid Until (YYYY-MM-DD)", value=draft.valid_until)
        draft.usage_limit = st.text_input("Usage Limit", value=draft.usage_limit,
                                          placeholder="Leave empty for unlimited")
        submitted = st.form_submit_button("Update Reward" if editing else "Create Reward", type="primary")

    if submitted:
        if not draft.name.strip() or not draft.value.strip():
            st.error("Name and value are required.")
            return
        try:
            ctl.save(draft, editing=editing)
        except ActionFailed as e:
            st.error(str(e))
            return
        st.rerun()


def render_rewards_page():
    ctl = _controller("rewards", RewardsController)
    _show_flash()

    if st.button("＋ Create Reward", type="primary"):
        reward_form_dialog(None)

    m1, m2, m3 = st.columns(3)
    m1.metric("Active Rewards", len(ctl.active_rewards))
    m2.metric("Total Distributed", f"{ctl.total_distributed:,}")
    m3.metric("Total Campaigns", len(ctl.rewards))

    st.markdown("---")
    if not ctl.rewards:
        st.info("No rewards yet. Create your first reward campaign!")
        return

    widths = [3, 1, 1.5, 1, 1, 1.5, 1.2]
    header = st.columns(widths)
    for col, title in zip(header, ["Name", "Type", "Value", "Status", "Usage", "Valid Until", "Actions"]):
        col.markdown(f"**{title}**")

    for reward in ctl.rewards:
        cols = st.columns(widths)
        desc = f"  \n{reward['description']}" if reward.get("description") else ""
        cols[0].markdown(f"**{reward['name']}**{desc}")
        cols[1].markdown(reward["type"])
        cols[2].markdown(f"`{reward['value']}`")
        cols[3].markdown(pill(reward["status"]), unsafe_allow_html=True)
        cols[4].markdown(ctl.usage_label(reward))
        cols[5].markdown(fmt_date(reward["valid_until"]) if reward.get("valid_until") else "No expiry")

        a1, a2 = cols[6].columns(2)
        if a1.button("✏", key=f"edit_{reward['id']}", help="Edit"):
            reward_form_dialog(reward)
        if a2.button("🗑", key=f"delrw_{reward['id']}", help="Delete"):
            st.session_state["confirm_delete_reward"] = reward["id"]

        if st.session_state.get("confirm_delete_reward") == reward["id"]:
            st.warning(f"Are you sure you want to delete **{reward['name']}**?")
            cc1, cc2, cc3 = st.columns([1, 1, 4])
            with cc1:
                if st.button("Yes, delete", type="primary", key=f"delrw_yes_{reward['id']}"):
                    st.session_state.pop("confirm_delete_reward", None)
                    try:
                        ctl.delete(reward["id"])
                    except ActionFailed as e:
                        _flash("error", str(e))
                    st.rerun()
            with cc2:
                if st.button("Cancel", key=f"delrw_no_{reward['id']}"):
                    st.session_state.pop("confirm_delete_reward", None)
                    st.rerun()


# ============================================================
# INTEGRATIONS
# ============================================================
def _on_integration_toggle(ctl: IntegrationsController, iid: str, toggle_key: str):
    """Write the switch once; a failed write flips it back to the stored value."""
    enabled = st.session_state[toggle_key]
    try:
        ctl.toggle(iid, enabled)
    except ActionFailed as e:
        st.session_state[toggle_key] = not enabled
        _flash("error", str(e))


def render_integrations_page():
    ctl = _controller("integrations", IntegrationsController)
    _show_flash()

    cols = st.columns(2)
    for i, integration in enumerate(ctl.integrations):
        info = ctl.describe(integration["name"])
        iid = integration["id"]
        with cols[i % 2].container(border=True):
            h1, h2 = st.columns([4, 1])
            h1.markdown(f"### {info['icon']} {info['label']}")
            h1.caption(info["description"])
            toggle_key = f"tgl_{iid}"
            if toggle_key not in st.session_state:
                st.session_state[toggle_key] = integration["enabled"]
            h2.toggle("Enabled", key=toggle_key, on_change=_on_integration_toggle,
                      args=(ctl, iid, toggle_key), disabled=ctl.saving == iid,
                      label_visibility="collapsed")

            if ctl.has_config_form(integration):
                config = integration.get("config") or {}
                api_url = st.text_input("API URL", value=config.get("api_url", ""),
                                        placeholder="https://yourstore.com/wp-json", key=f"url_{iid}")
                api_key = st.text_input("API Key", value=config.get("api_key", ""), type="password",
                                        placeholder="Enter your API key", key=f"key_{iid}")
                if api_url != config.get("api_url", ""):
                    ctl.edit_config(iid, "api_url", api_url)
                if api_key != config.get("api_key", ""):
                    ctl.edit_config(iid, "api_key", api_key)
                if st.button("💾 Save Configuration", key=f"save_{iid}", disabled=ctl.saving == iid):
                    try:
                        ctl.save_config(iid)
                        _flash("success", f"{info['label']} configuration saved.")
                    except ActionFailed as e:
                        _flash("error", str(e))
                    st.rerun()
            elif integration["enabled"] and info["features"]:
                heading, items = info["features"]
                st.markdown(f"**{heading}**")
                st.markdown("\n".join(f"- {item}" for item in items))

            if integration.get("last_sync"):
                st.caption(f"Last synced: {fmt_date(integration['last_sync'], with_time=True)}")

    st.markdown("---")
    st.markdown("### Integration Documentation")
    d1, d2 = st.columns(2)
    d1.markdown("**WooCommerce Setup**  \nEnable automatic review requests after order completion "
                "and sync product data.")
    d2.markdown("**Page Builder Integration**  \nAdd review widgets to your pages using Elementor "
                "or Gutenberg blocks.")


# ============================================================
# SETTINGS
# ============================================================
def render_settings_page():
    ctl = _controller("settings", SettingsController)
    _show_flash()

    tab_general, tab_ai, tab_email, tab_security = st.tabs([
        "⚙ General", "🧠 AI Settings", "✉ Email", "🛡 Security"
    ])

    with tab_general:
        ctl.set("site_name", st.text_input("Site Name", value=ctl.get("site_name", ""), key="set_site_name"))
        ctl.set("enable_guest_reviews", st.toggle(
            "Enable Guest Reviews", value=ctl.get("enable_guest_reviews", False),
            help="Allow users to submit reviews without registration"))
        ctl.set("auto_approve_reviews", st.toggle(
            "Auto-Approve Reviews", value=ctl.get("auto_approve_reviews", False),
            help="Automatically approve new reviews without moderation"))
        ctl.set("require_verification", st.toggle(
            "Require Verification", value=ctl.get("require_verification", False),
            help="Only allow reviews from verified purchasers"))

    with tab_ai:
        providers = list(AI_PROVIDERS)
        current = ctl.get("ai_provider", "openai")
        ctl.set("ai_provider", st.selectbox(
            "AI Provider", providers, index=providers.index(current) if current in providers else 0,
            format_func=AI_PROVIDERS.get))
        ctl.set("ai_api_key", st.text_input(
            "API Key", value=ctl.get("ai_api_key", ""), type="password",
            placeholder="Enter your AI API key"))
        st.caption("Your API key is stored securely and never shared")
        ctl.set("enable_sentiment_analysis", st.toggle(
            "Enable Sentiment Analysis", value=ctl.get("enable_sentiment_analysis", False),
            help="Use AI to analyze review sentiment automatically"))
        st.info("**AI Features**  \n- Automatic sentiment analysis for all reviews\n"
                "- AI-generated review summaries")

    with tab_email:
        ctl.set("enable_email_notifications", st.toggle(
            "Enable Email Notifications", value=ctl.get("enable_email_notifications", False),
            help="Send email notifications for review events"))
        ctl.set("admin_email", st.text_input(
            "Admin Email", value=ctl.get("admin_email", ""), placeholder="admin@example.com"))
        ctl.set("from_name", st.text_input(
            "From Name", value=ctl.get("from_name", ""), placeholder="ReviewPool"))
        ctl.set("from_email", st.text_input(
            "From Email", value=ctl.get("from_email", ""), placeholder="noreply@example.com"))

    with tab_security:
        ctl.set("enable_captcha", st.toggle(
            "Enable CAPTCHA", value=ctl.get("enable_captcha", False),
            help="Require CAPTCHA verification for review submissions"))
        ctl.set("enable_spam_detection", st.toggle(
            "Spam Detection", value=ctl.get("enable_spam_detection", True),
            help="Automatically detect and filter spam reviews"))
        ctl.set("enable_rate_limiting", st.toggle(
            "Rate Limiting", value=ctl.get("enable_rate_limiting", True),
            help="Limit review submissions per IP address"))
        st.warning("**Security Best Practices**  \n- Enable CAPTCHA to prevent automated spam\n"
                   "- Use rate limiting to prevent abuse\n- Moderate reviews before publishing\n"
                   "- Regularly backup your review database")

    # Tabs above have already copied this run's widget values into the controller
    st.markdown("---")
    if st.button("💾 Save Changes", type="primary", disabled=ctl.saving, key="settings_save"):
        try:
            ctl.save()
            _flash("success", "Settings saved successfully!")
        except ActionFailed as e:
            _flash("error", str(e))
        st.rerun()


# ============================================================
# MAIN
# ============================================================
PAGE_RENDERERS = {
    "dashboard": render_dashboard_page,
    "reviews": render_reviews_page,
    "analytics": render_analytics_page,
    "rewards": render_rewards_page,
    "integrations": render_integrations_page,
    "settings": render_settings_page,
}


def main():
    _ensure_database()

    # Auth lives in this browser session only
    if "authenticated" not in st.session_state:
        st.session_state.authenticated = False

    if not st.session_state.authenticated:
        render_login()
        return

    page_id = render_sidebar()
    render_header(page_id)
    PAGE_RENDERERS[page_id]()


if __name__ == "__main__":
    main()
