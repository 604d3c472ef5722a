import streamlit as st

from photocards.logging_utils import configure_logging

st.set_page_config(page_title="Photocard Collection", layout="wide")
configure_logging()

st.title("Photocard Collection")
st.caption("K-pop photocards from wishlist to binder. Open Pages → Collection")

st.markdown(
    """
**How it works**
- Collection → pick a stage: Wishlist, On the way, Owned or CEG
- Filter by group, then by member
- Empty slots are placeholders: drop a photo on them to upload
- Edit a card to change its description, stage or member, or to mark it as a favorite
"""
)
