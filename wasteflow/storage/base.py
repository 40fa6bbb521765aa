import hashlib
import re
from abc import ABC, abstractmethod

from wasteflow.storage.exceptions import InvalidObjectRefError

_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]+")


def build_object_ref(bucket: str, batch_id: str, filename: str, data: bytes | None = None) -> str:
    """``<bucket>/<batch_id>/<hash8>-<filename>``.

    The hash covers the content when known, else the batch and file name.
    """
    seed = data if data is not None else f"{batch_id}/{filename}".encode()
    digest = hashlib.sha256(seed).hexdigest()[:8]
    safe_name = _UNSAFE_FILENAME_RE.sub("_", filename).strip("_") or "source"
    return f"{bucket}/{batch_id}/{digest}-{safe_name}"


def split_object_ref(ref: str, bucket: str) -> str:
    """Path inside the bucket for a ``<bucket>/...`` reference.

    Raises:
        InvalidObjectRefError: if the reference is outside the bucket.
    """
    prefix = f"{bucket}/"
    if not ref or not ref.startswith(prefix) or len(ref) == len(prefix):
        raise InvalidObjectRefError(f"Object reference '{ref}' is not in bucket '{bucket}'")
    path = ref[len(prefix):]
    if ".." in path.split("/"):
        raise InvalidObjectRefError(f"Object reference '{ref}' escapes the bucket")
    return path


class BaseObjectStore(ABC):
    """Contract for the object store holding uploaded source files."""

    def __init__(self, bucket: str) -> None:
        self.bucket = bucket

    @abstractmethod
    def download(self, ref: str) -> bytes:
        """Read the object behind a reference.

        Raises:
            ObjectNotFoundError: if nothing is stored under the reference.
            StorageError: for any other backend failure.
        """

    @abstractmethod
    def upload(self, ref: str, data: bytes) -> None:
        """Store bytes under a reference, replacing any previous object."""

    @abstractmethod
    def exists(self, ref: str) -> bool:
        """True when an object is stored under the reference."""
