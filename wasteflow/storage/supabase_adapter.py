from typing import Any

from supabase import Client

from wasteflow.storage.base import BaseObjectStore, split_object_ref
from wasteflow.storage.exceptions import ObjectNotFoundError, StorageError


class SupabaseObjectStore(BaseObjectStore):
    """Objects in a Supabase Storage bucket."""

    def __init__(self, client: Client, bucket: str) -> None:
        super().__init__(bucket)
        self._client = client

    def _bucket(self) -> Any:
        return self._client.storage.from_(self.bucket)

    def download(self, ref: str) -> bytes:
        path = split_object_ref(ref, self.bucket)
        try:
            return self._bucket().download(path)
        except Exception as exc:
            if _is_not_found(exc):
                raise ObjectNotFoundError(f"Object not found: {ref}") from exc
            raise StorageError(f"Download failed for {ref}: {exc}") from exc

    def upload(self, ref: str, data: bytes) -> None:
        path = split_object_ref(ref, self.bucket)
        try:
            self._bucket().upload(
                path,
                data,
                {"content-type": "application/octet-stream", "upsert": "true"},
            )
        except Exception as exc:
            raise StorageError(f"Upload failed for {ref}: {exc}") from exc

    def exists(self, ref: str) -> bool:
        path = split_object_ref(ref, self.bucket)
        folder, _, name = path.rpartition("/")
        try:
            entries = self._bucket().list(folder, {"search": name})
        except Exception as exc:
            raise StorageError(f"Listing failed for {ref}: {exc}") from exc
        return any(entry.get("name") == name for entry in entries or [])


def _is_not_found(exc: Exception) -> bool:
    status = str(getattr(exc, "status", "") or getattr(exc, "status_code", "") or "")
    return status == "404" or "not found" in str(exc).lower()
