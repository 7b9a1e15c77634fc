from .object_storage import MAX_LIST_KEYS, ObjectStorage

__all__ = ["MAX_LIST_KEYS", "ObjectStorage"]
