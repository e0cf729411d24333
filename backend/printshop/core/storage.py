"""
Object storage for receipt / evidence images.

Files live under settings.storage_dir/<bucket>/<path> and are served by the
app under settings.public_storage_url.
"""
from pathlib import Path
from typing import Optional

from printshop.core.config import settings


class StorageError(Exception):
    pass


class LocalStorage:
    def __init__(self, root: Optional[str] = None, public_base_url: Optional[str] = None):
        self.root = Path(root or settings.storage_dir)
        self.public_base_url = (public_base_url or settings.public_storage_url).rstrip("/")

    def _resolve(self, bucket: str, path: str) -> Path:
        base = (self.root / bucket).resolve()
        target = (base / path).resolve()
        if base not in target.parents:
            raise StorageError(f"Ruta inválida: {path}")
        return target

    def upload_file(self, bucket: str, path: str, data: bytes) -> str:
        target = self._resolve(bucket, path)
        target.parent.mkdir(parents=True, exist_ok=True)
        try:
            target.write_bytes(data)
        except OSError as e:
            raise StorageError(str(e)) from e
        return path

    def get_public_url(self, bucket: str, path: str) -> str:
        return f"{self.public_base_url}/{bucket}/{path}"
