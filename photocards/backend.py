import logging
from typing import Optional

import streamlit as st
from supabase import Client, create_client

from photocards.errors import BackendError, StorageError

logger = logging.getLogger(__name__)

# =========================================================
# CONFIG
# =========================================================

GROUPS_TABLE = "groups"
MEMBERS_TABLE = "members"
COLLECTION_TABLE = "collection"

DEFAULT_BUCKET = "cards"

CARD_LIMIT = 1000
MEMBER_CARD_LIMIT = 5000

CARD_SELECT = "*, members (name, groups (name))"


# =========================================================
# SUPABASE CLIENT
# =========================================================

@st.cache_resource
def get_supabase_client() -> Client:
    """
    Reads the project URL and anon key from st.secrets:
      [supabase]
      url = "https://<project>.supabase.co"
      key = "<anon key>"
    """
    if "supabase" not in st.secrets:
        raise KeyError('Missing secrets: add a [supabase] table with "url" and "key".')
    conf = st.secrets["supabase"]
    return create_client(conf["url"], conf["key"])


def get_bucket_name() -> str:
    if "supabase" in st.secrets:
        return st.secrets["supabase"].get("bucket", DEFAULT_BUCKET)
    return DEFAULT_BUCKET


# =========================================================
# BACKEND
# =========================================================

class CollectionBackend:
    """Table and storage calls used by the collection page."""

    def __init__(self, client: Client, bucket: str = DEFAULT_BUCKET):
        self.client = client
        self.bucket = bucket

    # ---------- queries ----------

    def list_groups(self) -> list:
        try:
            result = self.client.table(GROUPS_TABLE)\
                .select("*, members(*)")\
                .order("name")\
                .execute()
        except Exception as e:
            raise BackendError(f"Failed to load groups: {e}") from e
        return result.data or []

    def find_member_id(self, group: str, member: str) -> Optional[int]:
        """Id of `member` within `group`, or None when there is no such member."""
        try:
            result = self.client.table(MEMBERS_TABLE)\
                .select("id, groups!inner(name)")\
                .eq("name", member)\
                .eq("groups.name", group)\
                .limit(1)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise BackendError(f"Failed to look up member {member!r} in {group!r}: {e}") from e

        # newer postgrest clients return None instead of an empty response
        if result is None or not result.data:
            return None
        return result.data["id"]

    def list_cards(self, status: str, member_id: Optional[int] = None) -> list:
        logger.debug("Loading %s cards (member_id=%s)", status, member_id)
        query = self.client.table(COLLECTION_TABLE)\
            .select(CARD_SELECT)\
            .eq("status", status)

        if member_id is not None:
            query = query.eq("member_id", member_id)\
                .order("image_url", nullsfirst=False)\
                .order("created_at")\
                .limit(MEMBER_CARD_LIMIT)
        else:
            query = query.order("created_at", desc=True)\
                .limit(CARD_LIMIT)

        try:
            result = query.execute()
        except Exception as e:
            raise BackendError(f"Failed to load {status} cards: {e}") from e
        return result.data or []

    # ---------- updates ----------

    def update_card(self, card_id, fields: dict) -> dict:
        try:
            result = self.client.table(COLLECTION_TABLE)\
                .update(fields)\
                .eq("id", card_id)\
                .execute()
        except Exception as e:
            raise BackendError(f"Failed to update card {card_id}: {e}") from e

        # row-level security silently filters the update to zero rows
        if not result.data:
            raise BackendError(f"Card {card_id} was not updated (missing row or RLS policy)")
        return result.data[0]

    # ---------- storage ----------

    def upload_image(self, key: str, data: bytes, content_type: Optional[str] = None) -> str:
        bucket = self.client.storage.from_(self.bucket)
        try:
            bucket.upload(key, data, file_options={"content-type": content_type or "image/jpeg"})
            public_url = bucket.get_public_url(key)
            logger.info("Uploaded %s to bucket %s", key, self.bucket)
        except Exception as e:
            raise StorageError(f"Failed to upload {key}: {e}") from e
        return public_url.rstrip("?")

    def remove_image(self, key: str) -> None:
        try:
            self.client.storage.from_(self.bucket).remove([key])
        except Exception as e:
            raise StorageError(f"Failed to remove {key}: {e}") from e

    def storage_key_from_url(self, url: Optional[str]) -> Optional[str]:
        """Object key is whatever follows /<bucket>/ in the public URL."""
        if not url:
            return None
        marker = f"/{self.bucket}/"
        if marker not in url:
            return None
        key = url.split(marker, 1)[1].split("?", 1)[0]
        return key or None


def get_backend() -> CollectionBackend:
    return CollectionBackend(get_supabase_client(), bucket=get_bucket_name())
