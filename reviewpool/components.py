"""
Streamlit pieces shared by the admin dashboard and the public storefront.
Nothing here runs at import time, so both entry points can use it.
"""

import streamlit as st

from reviewpool.controllers import ActionFailed, ReviewForm
from reviewpool.models import MIN_REVIEW_LENGTH
from reviewpool.processor import parse_timestamp


def stars(rating: int) -> str:
    return "★" * rating + "☆" * (5 - rating)


def pill(text: str) -> str:
    return f'<span class="pill pill-{text}">{text}</span>'


def fmt_date(value, with_time: bool = False) -> str:
    if not value:
        return ""
    dt = parse_timestamp(value)
    return dt.strftime("%Y-%m-%d %H:%M UTC") if with_time else dt.strftime("%Y-%m-%d")


FORM_FIELDS = ("name", "email", "rating", "title", "content")


def clear_review_form(key_prefix: str) -> None:
    """Drop the widget values so the next render starts blank."""
    for field in FORM_FIELDS:
        st.session_state.pop(f"{key_prefix}_{field}", None)


def render_review_form(form: ReviewForm, key_prefix: str) -> bool:
    """
    The "write a review" form. Returns True once a review has been stored.
    A failed submit shows the error and keeps everything the user typed.
    """
    draft = form.draft
    c1, c2 = st.columns(2)
    draft.author_name = c1.text_input("Your Name *", key=f"{key_prefix}_name")
    draft.author_email = c2.text_input("Your Email *", key=f"{key_prefix}_email")
    draft.rating = int(st.radio("Your Rating *", [0, 1, 2, 3, 4, 5], horizontal=True,
                                format_func=lambda r: "—" if r == 0 else stars(r),
                                key=f"{key_prefix}_rating"))
    draft.title = st.text_input("Review Title", placeholder="Sum up your experience",
                                key=f"{key_prefix}_title")
    draft.content = st.text_area("Your Review *", height=150,
                                 placeholder="Tell us about your experience...",
                                 key=f"{key_prefix}_content")
    st.caption(f"Minimum {MIN_REVIEW_LENGTH} characters ({form.content_length}/{MIN_REVIEW_LENGTH})")

    if st.button("Submit Review", type="primary", use_container_width=True,
                 disabled=not form.can_submit, key=f"{key_prefix}_submit"):
        if not draft.author_name.strip() or not draft.author_email.strip():
            st.error("Please enter your name and email.")
            return False
        try:
            form.submit()
        except ActionFailed as e:
            st.error(str(e))
            return False
        clear_review_form(key_prefix)
        return True
    return False


def render_review_card(review: dict, show_status: bool = False) -> None:
    with st.container(border=True):
        st.markdown(f"**{review['author_name']}** · {stars(review['rating'])}")
        if review.get("title"):
            st.markdown(f"**{review['title']}**")
        st.markdown(review["content"])
        footer = fmt_date(review["created_at"])
        if show_status:
            footer += f" &nbsp; {pill(review['status'])}"
        st.markdown(footer, unsafe_allow_html=True)
