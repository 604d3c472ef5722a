"""
Session state for the collection page.

`CollectionState` lives in st.session_state and is only changed through the
functions in this module, so the page script never pokes at its fields
directly. Nothing here talks to Supabase; see photocards.collection for that.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from photocards.models import STATUSES, Card, status_label

STATE_KEY = "photocard_collection_state"


@dataclass
class Notice:
    level: str  # "success" / "error" / "info"
    message: str


@dataclass
class PendingAction:
    """An edit waiting for the user to confirm it."""

    kind: str  # "delete_photo" / "move_status" / "move_member"
    message: str
    target_status: Optional[str] = None
    target_group: str = ""
    target_member: str = ""


@dataclass
class EditorState:
    """The open card plus the unsaved scratch values of the edit panel."""

    card: Card
    draft_description: str = ""
    target_status: Optional[str] = None
    target_group: str = ""
    target_member: str = ""


@dataclass
class CollectionState:
    tab: str = "wishlist"
    group: str = ""
    member: str = ""

    groups: Dict[str, List[str]] = field(default_factory=dict)
    groups_loaded: bool = False

    cards: List[Card] = field(default_factory=list)
    loaded_key: Optional[Tuple[str, str, str]] = None

    uploading: bool = False
    editing: Optional[EditorState] = None
    pending: Optional[PendingAction] = None
    notices: List[Notice] = field(default_factory=list)


# =========================================================
# TABS & FILTERS
# =========================================================

def set_tab(state: CollectionState, tab: str) -> None:
    if tab not in STATUSES:
        raise ValueError(f"Unknown tab: {tab}")
    if tab != state.tab:
        # the open card belongs to the stage being left
        close_editor(state)
    state.tab = tab


def select_group(state: CollectionState, group: str) -> None:
    state.group = group or ""
    state.member = ""


def select_member(state: CollectionState, member: str) -> None:
    # member selector is disabled until a group is chosen
    state.member = (member or "") if state.group else ""


def member_options(state: CollectionState) -> List[str]:
    if not state.group:
        return []
    return list(state.groups.get(state.group, []))


def load_key(state: CollectionState) -> Tuple[str, str, str]:
    return (state.tab, state.group, state.member)


def needs_reload(state: CollectionState) -> bool:
    return state.loaded_key != load_key(state)


def set_groups(state: CollectionState, groups: Dict[str, List[str]]) -> None:
    state.groups = groups
    state.groups_loaded = True


def set_cards(state: CollectionState, cards: List[Card], key: Tuple[str, str, str]) -> None:
    state.cards = list(cards)
    state.loaded_key = key


def invalidate(state: CollectionState) -> None:
    state.loaded_key = None
    state.groups_loaded = False


# =========================================================
# CARD LIST
# =========================================================

def find_card(state: CollectionState, card_id) -> Optional[Card]:
    for c in state.cards:
        if c.id == card_id:
            return c
    return None


def replace_card(state: CollectionState, card: Card) -> None:
    state.cards = [card if c.id == card.id else c for c in state.cards]
    if state.editing and state.editing.card.id == card.id:
        state.editing.card = card


def remove_card(state: CollectionState, card_id) -> None:
    state.cards = [c for c in state.cards if c.id != card_id]


# =========================================================
# EDIT PANEL
# =========================================================

def open_editor(state: CollectionState, card: Card) -> bool:
    """Placeholders get an upload slot instead of the editor."""
    if card.is_placeholder:
        return False
    state.editing = EditorState(card=card, draft_description=card.description or "")
    state.pending = None
    return True


def close_editor(state: CollectionState) -> None:
    state.editing = None
    state.pending = None


def set_draft_description(state: CollectionState, text: str) -> None:
    if state.editing:
        state.editing.draft_description = text or ""


def set_target_status(state: CollectionState, status: Optional[str]) -> None:
    if state.editing:
        state.editing.target_status = status or None
        cancel_pending(state)


def set_target_group(state: CollectionState, group: str) -> None:
    if state.editing:
        state.editing.target_group = group or ""
        state.editing.target_member = ""
        cancel_pending(state)


def set_target_member(state: CollectionState, member: str) -> None:
    if state.editing:
        state.editing.target_member = (member or "") if state.editing.target_group else ""
        cancel_pending(state)


def target_member_options(state: CollectionState) -> List[str]:
    if not state.editing or not state.editing.target_group:
        return []
    return list(state.groups.get(state.editing.target_group, []))


# =========================================================
# CONFIRMATIONS
# =========================================================

def request_delete_photo(state: CollectionState) -> bool:
    if not state.editing or not state.editing.card.img:
        return False
    state.pending = PendingAction("delete_photo", "Remove this photo? The card stays as a placeholder.")
    return True


def request_move_status(state: CollectionState) -> bool:
    ed = state.editing
    if not ed or not ed.target_status or ed.target_status == ed.card.status:
        return False
    state.pending = PendingAction(
        "move_status",
        f"Move this card to '{status_label(ed.target_status)}'?",
        target_status=ed.target_status,
    )
    return True


def request_move_member(state: CollectionState) -> bool:
    ed = state.editing
    if not ed or not ed.target_group or not ed.target_member:
        return False
    state.pending = PendingAction(
        "move_member",
        f"Move this card to {ed.target_member} ({ed.target_group})?",
        target_group=ed.target_group,
        target_member=ed.target_member,
    )
    return True


def cancel_pending(state: CollectionState) -> None:
    state.pending = None


# =========================================================
# NOTICES
# =========================================================

def post_notice(state: CollectionState, level: str, message: str) -> None:
    state.notices.append(Notice(level, message))


def pop_notices(state: CollectionState) -> List[Notice]:
    out = state.notices
    state.notices = []
    return out
