from pathlib import Path

from wasteflow.storage.base import BaseObjectStore, split_object_ref
from wasteflow.storage.exceptions import ObjectNotFoundError


class LocalObjectStore(BaseObjectStore):
    """Objects as files under ``{files_root}/{bucket}/...``."""

    def __init__(self, files_root: Path, bucket: str) -> None:
        super().__init__(bucket)
        self._files_root = files_root

    def download(self, ref: str) -> bytes:
        path = self._resolve_path(ref)
        if not path.is_file():
            raise ObjectNotFoundError(f"File not found: {path}")
        return path.read_bytes()

    def upload(self, ref: str, data: bytes) -> None:
        path = self._resolve_path(ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    def exists(self, ref: str) -> bool:
        return self._resolve_path(ref).is_file()

    def _resolve_path(self, ref: str) -> Path:
        return self._files_root / self.bucket / split_object_ref(ref, self.bucket)
