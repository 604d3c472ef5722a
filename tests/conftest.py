"""
Pytest configuration: puts the repository root on sys.path and provides
in-memory stand-ins for Supabase so no test talks to the network.
"""

import os
import sys
from types import SimpleNamespace

import pytest

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from photocards.backend import CollectionBackend  # noqa: E402
from photocards.errors import BackendError, StorageError  # noqa: E402

PUBLIC_PREFIX = "https://demo.supabase.co/storage/v1/object/public/cards/"


# =========================================================
# Fake CollectionBackend
# =========================================================

class FakeBackend:
    """Same surface as CollectionBackend, backed by dicts."""

    def __init__(self, groups, cards):
        # groups: {"G1": ["A", "B"], ...}; member ids are assigned in order
        self.bucket = "cards"
        self.members = {}
        self.group_rows = []
        next_id = 1
        for gi, (gname, names) in enumerate(groups.items(), start=1):
            members = []
            for name in names:
                self.members[next_id] = (name, gname)
                members.append({"id": next_id, "name": name, "group_id": gi})
                next_id += 1
            self.group_rows.append({"id": gi, "name": gname, "members": members})

        self.rows = {row["id"]: dict(row) for row in cards}
        self.updates = []
        self.uploads = []
        self.removed = []
        self.fail_update = False
        self.fail_upload = False
        self.fail_remove = False
        self.fail_queries = False

    def member_id(self, group, member):
        for mid, (name, gname) in self.members.items():
            if name == member and gname == group:
                return mid
        return None

    def _joined(self, row):
        out = dict(row)
        mid = row.get("member_id")
        if mid in self.members:
            name, gname = self.members[mid]
            out["members"] = {"name": name, "groups": {"name": gname}}
        else:
            out["members"] = None
        return out

    def list_groups(self):
        if self.fail_queries:
            raise BackendError("groups down")
        return self.group_rows

    def find_member_id(self, group, member):
        if self.fail_queries:
            raise BackendError("members down")
        return self.member_id(group, member)

    def list_cards(self, status, member_id=None):
        if self.fail_queries:
            raise BackendError("collection down")
        rows = [r for r in self.rows.values() if r["status"] == status]
        if member_id is not None:
            rows = [r for r in rows if r.get("member_id") == member_id]
            rows.sort(key=lambda r: (r.get("image_url") is None, r.get("created_at") or ""))
        else:
            rows.sort(key=lambda r: r.get("created_at") or "", reverse=True)
        return [self._joined(r) for r in rows]

    def update_card(self, card_id, fields):
        if self.fail_update:
            raise BackendError("update rejected")
        self.updates.append((card_id, dict(fields)))
        self.rows[card_id].update(fields)
        return self._joined(self.rows[card_id])

    def upload_image(self, key, data, content_type=None):
        if self.fail_upload:
            raise StorageError("bucket full")
        self.uploads.append((key, data, content_type))
        return PUBLIC_PREFIX + key

    def remove_image(self, key):
        if self.fail_remove:
            raise StorageError("object locked")
        self.removed.append(key)

    def storage_key_from_url(self, url):
        return CollectionBackend(None, bucket=self.bucket).storage_key_from_url(url)


def card_row(id, status, member_id=None, image_url=None, created_at="2024-01-01T00:00:00", **extra):
    row = {
        "id": id,
        "status": status,
        "member_id": member_id,
        "image_url": image_url,
        "description": None,
        "is_favorite": False,
        "created_at": created_at,
    }
    row.update(extra)
    return row


@pytest.fixture
def fake_backend():
    groups = {"G1": ["A", "B"], "G2": ["C"]}
    cards = [
        card_row(1, "wishlist", member_id=1),
        card_row(2, "wishlist", member_id=2, image_url=PUBLIC_PREFIX + "100_b.jpg", created_at="2024-01-02T00:00:00"),
        card_row(3, "wishlist", member_id=3, image_url=PUBLIC_PREFIX + "200_c.jpg", created_at="2024-01-03T00:00:00"),
        card_row(4, "owned", member_id=1, image_url=PUBLIC_PREFIX + "300_a.jpg", description="Scientist ver."),
        card_row(5, "ceg", member_id=2),
    ]
    return FakeBackend(groups, cards)


# =========================================================
# Fake supabase.Client
# =========================================================

class FakeQuery:
    """Records the builder chain and returns a canned response on execute()."""

    def __init__(self, table, response=None, error=None):
        self.table = table
        self.calls = []
        self.response = response
        self.error = error

    def __getattr__(self, name):
        def method(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return method

    def execute(self):
        if self.error:
            raise self.error
        return self.response


class FakeBucket:
    def __init__(self, name):
        self.name = name
        self.uploaded = []
        self.removed = []
        self.error = None

    def upload(self, path, file, file_options=None):
        if self.error:
            raise self.error
        self.uploaded.append((path, file, file_options))

    def get_public_url(self, path):
        return f"https://demo.supabase.co/storage/v1/object/public/{self.name}/{path}?"

    def remove(self, paths):
        if self.error:
            raise self.error
        self.removed.extend(paths)


class FakeClient:
    def __init__(self):
        self.queries = []
        self.responses = {}
        self.errors = {}
        self.buckets = {}
        self.storage = SimpleNamespace(from_=self._bucket)

    def respond(self, table, data):
        self.responses[table] = SimpleNamespace(data=data)

    def table(self, name):
        q = FakeQuery(name, self.responses.get(name), self.errors.get(name))
        self.queries.append(q)
        return q

    def _bucket(self, name):
        return self.buckets.setdefault(name, FakeBucket(name))


@pytest.fixture
def fake_client():
    return FakeClient()
