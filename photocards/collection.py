import logging
import time
from dataclasses import replace
from typing import Dict, List, Optional

import pandas as pd

from photocards import state as S
from photocards.errors import BackendError, StorageError
from photocards.models import STATUSES, Card, groups_from_rows, status_label

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "id",
    "status",
    "group",
    "member",
    "description",
    "is_favorite",
    "img",
    "created_at",
]


# =========================================================
# LOADING
# =========================================================

def load_groups(backend) -> Dict[str, List[str]]:
    try:
        rows = backend.list_groups()
    except BackendError:
        logger.exception("Could not load groups")
        return {}
    return groups_from_rows(rows)


def load_cards(backend, status: str, group: str = "", member: str = "") -> List[Card]:
    """
    Cards for one stage. With both a group and a member selected the query is
    narrowed to that member's id (images first, oldest first); otherwise it is
    the newest cards of the stage. Failures come back as an empty list.
    """
    try:
        if group and member:
            member_id = backend.find_member_id(group, member)
            if member_id is None:
                logger.info("No member %r in group %r", member, group)
                return []
            rows = backend.list_cards(status, member_id=member_id)
        else:
            rows = backend.list_cards(status)
    except BackendError:
        logger.exception("Could not load %s cards", status)
        return []

    cards = []
    for row in rows:
        try:
            cards.append(Card.from_row(row))
        except ValueError as e:
            logger.warning("Skipping row: %s", e)
    return cards


# =========================================================
# FILTERING
# =========================================================

def matches_filters(card: Card, status: str, group: str = "", member: str = "") -> bool:
    match_tab = card.status == status
    match_group = card.group == group if group else True
    match_member = card.member == member if member else True
    return match_tab and match_group and match_member


def visible_cards(state: S.CollectionState) -> List[Card]:
    return [c for c in state.cards if matches_filters(c, state.tab, state.group, state.member)]


def cards_to_frame(cards: List[Card]) -> pd.DataFrame:
    df = pd.DataFrame([{col: getattr(c, col) for col in EXPORT_COLUMNS} for c in cards])
    if df.empty:
        return pd.DataFrame(columns=EXPORT_COLUMNS)
    return df[EXPORT_COLUMNS].copy()


def make_storage_key(filename: str, now: Optional[float] = None) -> str:
    # millisecond prefix; two uploads of the same name in the same ms collide
    ts = int((time.time() if now is None else now) * 1000)
    return f"{ts}_{filename}"


# =========================================================
# CONTROLLER
# =========================================================

class CollectionController:
    """
    Runs backend calls for the collection page and applies the result to
    CollectionState. Local state only changes after the backend accepted the
    write; failures are logged and turned into an error notice.
    """

    def __init__(self, backend, state: S.CollectionState, clock=time.time):
        self.backend = backend
        self.state = state
        self.clock = clock

    # ---------- loading ----------

    def sync(self, force: bool = False) -> None:
        if force:
            S.invalidate(self.state)
        if not self.state.groups_loaded:
            S.set_groups(self.state, load_groups(self.backend))
        if S.needs_reload(self.state):
            key = S.load_key(self.state)
            S.set_cards(self.state, load_cards(self.backend, *key), key)

    def visible(self) -> List[Card]:
        return visible_cards(self.state)

    # ---------- photos ----------

    def upload_photo(self, card_id, filename: str, data: bytes, content_type: Optional[str] = None) -> bool:
        if self.state.uploading:
            S.post_notice(self.state, "info", "An upload is already in progress.")
            return False

        self.state.uploading = True
        try:
            key = make_storage_key(filename, self.clock())
            public_url = self.backend.upload_image(key, data, content_type)
            self.backend.update_card(card_id, {"image_url": public_url})
        except BackendError:
            logger.exception("Upload failed for card %s", card_id)
            S.post_notice(self.state, "error", "Could not save the photo. Check the storage bucket and table policies.")
            return False
        finally:
            self.state.uploading = False

        card = S.find_card(self.state, card_id)
        if card:
            S.replace_card(self.state, replace(card, img=public_url))
        S.post_notice(self.state, "success", "Photo saved.")
        return True

    def delete_photo(self) -> bool:
        ed = self.state.editing
        if not ed or not ed.card.img:
            return False
        card = ed.card

        key = self.backend.storage_key_from_url(card.img)
        if key:
            try:
                self.backend.remove_image(key)
            except StorageError as e:
                logger.warning("Could not remove %s from storage: %s", key, e)

        try:
            self.backend.update_card(card.id, {"image_url": None})
        except BackendError:
            logger.exception("Could not clear image of card %s", card.id)
            S.post_notice(self.state, "error", "Could not remove the photo.")
            return False

        S.replace_card(self.state, replace(card, img=None))
        S.close_editor(self.state)
        S.post_notice(self.state, "success", "Photo removed.")
        return True

    # ---------- edits ----------

    def save_description(self) -> bool:
        ed = self.state.editing
        if not ed:
            return False
        text = ed.draft_description
        try:
            self.backend.update_card(ed.card.id, {"description": text})
        except BackendError:
            logger.exception("Could not save description of card %s", ed.card.id)
            S.post_notice(self.state, "error", "Could not save the description.")
            return False

        S.replace_card(self.state, replace(ed.card, description=text))
        S.post_notice(self.state, "success", "Description saved.")
        return True

    def move_status(self, target: Optional[str] = None) -> bool:
        ed = self.state.editing
        if not ed:
            return False
        target = target or ed.target_status
        if not target or target == ed.card.status:
            return False
        if target not in STATUSES:
            raise ValueError(f"Unknown status: {target}")

        card = ed.card
        try:
            self.backend.update_card(card.id, {"status": target})
        except BackendError:
            logger.exception("Could not move card %s to %s", card.id, target)
            S.post_notice(self.state, "error", "Could not move the card.")
            return False

        # it no longer belongs to the active tab
        S.remove_card(self.state, card.id)
        S.close_editor(self.state)
        S.post_notice(self.state, "success", f"Moved to {status_label(target)}.")
        return True

    def move_member(self, group: Optional[str] = None, member: Optional[str] = None) -> bool:
        ed = self.state.editing
        if not ed:
            return False
        if group is None and member is None:
            group, member = ed.target_group, ed.target_member
        if not group or not member:
            return False

        card = ed.card
        try:
            member_id = self.backend.find_member_id(group, member)
            if member_id is None:
                S.post_notice(self.state, "error", f"{member} was not found in {group}.")
                return False
            self.backend.update_card(card.id, {"member_id": member_id})
        except BackendError:
            logger.exception("Could not move card %s to %s / %s", card.id, group, member)
            S.post_notice(self.state, "error", "Could not change the member.")
            return False

        S.replace_card(self.state, card.with_member(member_id, member, group))
        S.close_editor(self.state)
        S.post_notice(self.state, "success", f"Card now belongs to {member} ({group}).")
        return True

    def toggle_favorite(self, card_id) -> bool:
        card = S.find_card(self.state, card_id)
        if card is None and self.state.editing and self.state.editing.card.id == card_id:
            card = self.state.editing.card
        if card is None:
            return False

        flipped = not card.is_favorite
        try:
            self.backend.update_card(card.id, {"is_favorite": flipped})
        except BackendError:
            logger.exception("Could not toggle favorite on card %s", card.id)
            S.post_notice(self.state, "error", "Could not update the favorite.")
            return False

        S.replace_card(self.state, replace(card, is_favorite=flipped))
        return True

    # ---------- confirmations ----------

    def confirm_pending(self) -> bool:
        pending = self.state.pending
        if pending is None:
            return False
        S.cancel_pending(self.state)

        if pending.kind == "delete_photo":
            return self.delete_photo()
        # write the destination the user confirmed, not whatever the selectors hold now
        if pending.kind == "move_status":
            return self.move_status(pending.target_status)
        if pending.kind == "move_member":
            return self.move_member(pending.target_group, pending.target_member)
        raise ValueError(f"Unknown pending action: {pending.kind}")
