from supabase import create_client

from wasteflow.config.settings import Settings
from wasteflow.storage.base import BaseObjectStore
from wasteflow.storage.exceptions import UnsupportedStorageBackendError
from wasteflow.storage.local_adapter import LocalObjectStore
from wasteflow.storage.supabase_adapter import SupabaseObjectStore


class ObjectStoreFactory:
    """Creates the object store named by settings."""

    BACKENDS: tuple[str, ...] = ("local", "supabase")

    @classmethod
    def create(cls, settings: Settings) -> BaseObjectStore:
        backend = settings.storage_backend.lower()
        if backend == "local":
            return LocalObjectStore(settings.files_root, settings.storage_bucket)
        if backend == "supabase":
            if not settings.supabase_url or not settings.supabase_service_role_key:
                raise UnsupportedStorageBackendError(
                    "SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set for the supabase backend"
                )
            client = create_client(settings.supabase_url, settings.supabase_service_role_key)
            return SupabaseObjectStore(client, settings.storage_bucket)
        raise UnsupportedStorageBackendError(
            f"Unknown storage backend '{backend}'. Choose from: {list(cls.BACKENDS)}"
        )
