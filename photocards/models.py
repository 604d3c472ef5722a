from dataclasses import dataclass, replace
from typing import Optional

# =========================================================
# STAGES
# =========================================================

STATUSES = ("wishlist", "on_the_way", "owned", "ceg")

STATUS_LABELS = {
    "wishlist": "Wishlist",
    "on_the_way": "On the way",
    "owned": "Owned",
    "ceg": "CEG",
}


def status_label(status: str) -> str:
    return STATUS_LABELS.get(status, status.replace("_", " ").title())


# =========================================================
# ROWS
# =========================================================

@dataclass(frozen=True)
class Group:
    id: int
    name: str


@dataclass(frozen=True)
class Member:
    id: int
    name: str
    group_id: int


@dataclass(frozen=True)
class Card:
    """
    One row of the `collection` table, with member/group names resolved
    through member_id -> members -> groups at load time.
    """

    id: int
    status: str
    img: Optional[str] = None
    description: Optional[str] = None
    member_id: Optional[int] = None
    member: Optional[str] = None
    group: Optional[str] = None
    is_favorite: bool = False
    created_at: Optional[str] = None

    @property
    def is_placeholder(self) -> bool:
        return not self.img

    @classmethod
    def from_row(cls, row: dict) -> "Card":
        member_row = row.get("members") or {}
        group_row = member_row.get("groups") or {}
        status = row.get("status")
        if status not in STATUSES:
            raise ValueError(f"Unknown status {status!r} for card {row.get('id')}")
        return cls(
            id=row["id"],
            status=status,
            img=row.get("image_url") or None,
            description=row.get("description"),
            member_id=row.get("member_id"),
            member=member_row.get("name"),
            group=group_row.get("name"),
            is_favorite=bool(row.get("is_favorite")),
            created_at=row.get("created_at"),
        )

    def with_member(self, member_id: int, member: str, group: str) -> "Card":
        return replace(self, member_id=member_id, member=member, group=group)


def groups_from_rows(rows) -> dict:
    """group name -> member names, as used by the filter dropdowns."""
    out = {}
    for g in rows or []:
        out[g["name"]] = [m["name"] for m in (g.get("members") or [])]
    return out
