# pages/1_Collection.py
import streamlit as st

from photocards import state as S
from photocards.backend import get_backend
from photocards.collection import CollectionController, cards_to_frame
from photocards.logging_utils import configure_logging
from photocards.models import STATUSES, status_label

# =========================================================
# CONFIG
# =========================================================

st.set_page_config(page_title="Collection", layout="wide")

GRID_COLUMNS = 6
IMAGE_TYPES = ["png", "jpg", "jpeg", "webp", "gif"]

NOTICE_RENDERERS = {
    "success": st.success,
    "error": st.error,
    "info": st.info,
}

try:
    configure_logging(st.secrets.get("log_level", "INFO"))
    backend = get_backend()
except Exception as e:
    configure_logging()
    st.error(f"Failed to initialize Supabase client: {e}")
    st.stop()


# =========================================================
# STATE
# =========================================================

if S.STATE_KEY not in st.session_state:
    st.session_state[S.STATE_KEY] = S.CollectionState()

state: S.CollectionState = st.session_state[S.STATE_KEY]
controller = CollectionController(backend, state)


# =========================================================
# CALLBACKS
# =========================================================

def _on_tab_change():
    S.set_tab(state, st.session_state["tab_filter"])


def _on_group_change():
    S.select_group(state, st.session_state["group_filter"])
    st.session_state["member_filter"] = ""


def _on_member_change():
    S.select_member(state, st.session_state["member_filter"])


def _on_upload(card_id):
    f = st.session_state.get(f"upload_{card_id}")
    if f is None:
        return
    # uploading stays set for the whole call, so other slots are refused meanwhile
    with st.spinner(f"Uploading {f.name}..."):
        controller.upload_photo(card_id, f.name, f.getvalue(), f.type)


def _on_target_group_change(card_id):
    S.set_target_group(state, st.session_state[f"target_group_{card_id}"])
    st.session_state[f"target_member_{card_id}"] = ""


def _on_target_member_change(card_id):
    S.set_target_member(state, st.session_state[f"target_member_{card_id}"])


def _on_target_status_change(card_id):
    S.set_target_status(state, st.session_state[f"target_status_{card_id}"])


def _on_draft_change(card_id):
    S.set_draft_description(state, st.session_state[f"draft_{card_id}"])


# =========================================================
# UI
# =========================================================

st.title("Photocard Collection")

top_left, top_right = st.columns([3, 1])
with top_right:
    if st.button("🔄 Refresh", use_container_width=True):
        controller.sync(force=True)
        st.success("Reloaded from Supabase.")

for notice in S.pop_notices(state):
    NOTICE_RENDERERS.get(notice.level, st.info)(notice.message)

# ---------------------------
# Stage tabs + filters
# ---------------------------
# widget keys are dropped when the user leaves the page; restore them from state
st.session_state.setdefault("tab_filter", state.tab)
st.session_state.setdefault("group_filter", state.group)
st.session_state.setdefault("member_filter", state.member)

st.radio(
    "Stage",
    options=list(STATUSES),
    format_func=status_label,
    horizontal=True,
    key="tab_filter",
    on_change=_on_tab_change,
    label_visibility="collapsed",
)

controller.sync()

group_names = [""] + list(state.groups.keys())
f1, f2, _ = st.columns([1.2, 1.2, 2.6])
with f1:
    st.selectbox(
        "Group",
        options=group_names,
        format_func=lambda g: g or "All groups",
        key="group_filter",
        on_change=_on_group_change,
    )
with f2:
    member_names = [""] + S.member_options(state)
    st.selectbox(
        "Member",
        options=member_names,
        format_func=lambda m: m or "All members",
        key="member_filter",
        on_change=_on_member_change,
        disabled=not state.group,
    )

# ---------------------------
# Edit panel
# ---------------------------
if state.editing:
    ed = state.editing
    card = ed.card

    with st.container(border=True):
        c_img, c_form = st.columns([1, 2])

        with c_img:
            st.image(card.img, width="stretch")

        with c_form:
            h1, h2 = st.columns([4, 1])
            with h1:
                st.subheader(card.member or "Unknown member")
                st.caption(f"{card.group or 'No group'} · {status_label(card.status)}")
            with h2:
                st.button(
                    "♥" if card.is_favorite else "♡",
                    key=f"edit_fav_{card.id}",
                    on_click=controller.toggle_favorite,
                    args=(card.id,),
                    help="Toggle favorite",
                )
                st.button("✖ Close", key=f"close_{card.id}", on_click=S.close_editor, args=(state,))

            draft_key = f"draft_{card.id}"
            if draft_key not in st.session_state:
                st.session_state[draft_key] = ed.draft_description
            st.text_input(
                "Description / album",
                key=draft_key,
                placeholder="e.g. Formula of Love - Scientist ver.",
                on_change=_on_draft_change,
                args=(card.id,),
            )

            b1, b2 = st.columns([1, 1])
            with b1:
                st.button(
                    "💾 Save description",
                    type="primary",
                    use_container_width=True,
                    key=f"save_{card.id}",
                    on_click=controller.save_description,
                )
            with b2:
                st.button(
                    "🗑 Delete photo",
                    use_container_width=True,
                    key=f"delete_{card.id}",
                    on_click=S.request_delete_photo,
                    args=(state,),
                )

            st.markdown("---")
            m1, m2 = st.columns([3, 1])
            with m1:
                st.selectbox(
                    "Move to stage",
                    options=[""] + list(STATUSES),
                    format_func=lambda s: status_label(s) if s else "Choose a stage…",
                    key=f"target_status_{card.id}",
                    on_change=_on_target_status_change,
                    args=(card.id,),
                )
            with m2:
                st.write("")
                st.button(
                    "Move",
                    use_container_width=True,
                    key=f"move_status_{card.id}",
                    on_click=S.request_move_status,
                    args=(state,),
                )

            g1, g2, g3 = st.columns([1.5, 1.5, 1])
            with g1:
                st.selectbox(
                    "New group",
                    options=group_names,
                    format_func=lambda g: g or "Choose a group…",
                    key=f"target_group_{card.id}",
                    on_change=_on_target_group_change,
                    args=(card.id,),
                )
            with g2:
                st.selectbox(
                    "New member",
                    options=[""] + S.target_member_options(state),
                    format_func=lambda m: m or "Choose a member…",
                    key=f"target_member_{card.id}",
                    on_change=_on_target_member_change,
                    args=(card.id,),
                    disabled=not ed.target_group,
                )
            with g3:
                st.write("")
                st.button(
                    "Change member",
                    use_container_width=True,
                    key=f"move_member_{card.id}",
                    on_click=S.request_move_member,
                    args=(state,),
                )

        if state.pending:
            st.warning(state.pending.message)
            p1, p2, _ = st.columns([1, 1, 4])
            with p1:
                st.button("Confirm", type="primary", use_container_width=True, on_click=controller.confirm_pending)
            with p2:
                st.button("Cancel", use_container_width=True, on_click=S.cancel_pending, args=(state,))

# ---------------------------
# Grid
# ---------------------------
visible = controller.visible()

c1, c2 = st.columns([3, 1])
with c1:
    favorites = sum(1 for c in visible if c.is_favorite)
    st.caption(f"{len(visible):,} card(s) in {status_label(state.tab)} · {favorites:,} favorite(s)")
with c2:
    csv = cards_to_frame(visible).to_csv(index=False).encode("utf-8")
    st.download_button(
        "Download CSV",
        data=csv,
        file_name=f"photocards_{state.tab}.csv",
        mime="text/csv",
        use_container_width=True,
    )

if not visible:
    st.info("No cards here yet.")

for start in range(0, len(visible), GRID_COLUMNS):
    cols = st.columns(GRID_COLUMNS)
    for col, card in zip(cols, visible[start:start + GRID_COLUMNS]):
        with col:
            with st.container(border=True):
                if card.img:
                    st.image(card.img, width="stretch")
                    if card.description:
                        st.caption(card.description)
                    a1, a2 = st.columns([2, 1])
                    with a1:
                        st.button(
                            "Edit",
                            key=f"open_{card.id}",
                            use_container_width=True,
                            on_click=S.open_editor,
                            args=(state, card),
                        )
                    with a2:
                        st.button(
                            "♥" if card.is_favorite else "♡",
                            key=f"fav_{card.id}",
                            on_click=controller.toggle_favorite,
                            args=(card.id,),
                        )
                else:
                    st.markdown(f"📷 **{card.member or 'Unknown'}**")
                    st.file_uploader(
                        "Add photo",
                        type=IMAGE_TYPES,
                        key=f"upload_{card.id}",
                        on_change=_on_upload,
                        args=(card.id,),
                        disabled=state.uploading,
                        label_visibility="collapsed",
                    )
