"""
ReviewPool storefront — the public side: approved reviews plus the
"write a review" form. New reviews wait in the dashboard's moderation queue.
Run with: streamlit run reviewpool/storefront.py
Optional query params: ?product=<product id>&limit=<n>
"""

import streamlit as st

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from reviewpool.database import initialize_database, select, StoreError
from reviewpool.controllers import ReviewForm, ReviewWidget
from reviewpool.components import stars, render_review_card, render_review_form

st.set_page_config(page_title="Customer Reviews", page_icon="★", layout="centered")


@st.cache_resource
def _ensure_database():
    initialize_database()
    return True


def _product_name(product_id: str) -> str:
    try:
        rows = select("products", eq={"id": product_id}, limit=1)
    except StoreError as e:
        print(f"Error loading product: {e}")
        return ""
    return rows[0]["name"] if rows else ""


def render_widget(product_id, limit: int):
    widget = ReviewWidget(product_id=product_id, limit=limit)
    with st.spinner("Loading reviews..."):
        widget.load()

    c1, c2 = st.columns([3, 1])
    c1.markdown("### Customer Reviews")
    c2.markdown(f"### {stars(round(widget.average_rating))}")
    c2.caption(f"{widget.average_rating:.1f} out of 5")

    if not widget.reviews:
        st.caption("No reviews yet. Be the first to review!")
    for review in widget.reviews:
        render_review_card(review)


def render_form(product_id):
    if "public_form" not in st.session_state:
        st.session_state["public_form"] = ReviewForm(product_id=product_id)

    st.markdown("### Write a Review")
    if render_review_form(st.session_state["public_form"], key_prefix="pub"):
        st.session_state["pub_thanks"] = True
        st.rerun()

    if st.session_state.pop("pub_thanks", False):
        st.success("Thank you for your review! It will be published after moderation.")


def main():
    _ensure_database()
    product_id = st.query_params.get("product") or None
    try:
        limit = int(st.query_params.get("limit", 5))
    except ValueError:
        limit = 5

    if product_id:
        name = _product_name(product_id)
        if name:
            st.markdown(f"## {name}")

    render_widget(product_id, limit)
    st.markdown("---")
    render_form(product_id)


if __name__ == "__main__":
    main()
