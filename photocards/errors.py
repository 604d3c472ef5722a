class BackendError(Exception):
    """A query or update against the database failed."""


class StorageError(BackendError):
    """An upload to or removal from the storage bucket failed."""
