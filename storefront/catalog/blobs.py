"""
Blob storage for product photos.

The catalogue only needs two things from an object store: push a local
file and get back a durable URL, and drop a previously stored object.
``LocalBlobStore`` keeps photos in a directory on disk and serves them
under ``media_base_url``; files keep their original name, so uploading
the same filename twice replaces the earlier object.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional, Union

from typing_extensions import Protocol

from ..errors import UploadError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class BlobStore(Protocol):
    def upload(self, local_path: PathLike) -> str:
        ...

    def delete(self, ref: str) -> None:
        ...


class LocalBlobStore:
    def __init__(self, media_dir: PathLike, base_url: str = "/media"):
        self.media_dir = Path(media_dir)
        self.base_url = base_url.rstrip("/")

    def upload(self, local_path: PathLike) -> str:
        source = Path(local_path)
        target = self.media_dir / source.name
        try:
            self.media_dir.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as exc:
            logger.error("Upload of %s failed: %s", source, exc)
            raise UploadError(f"Could not upload {source.name}") from exc
        url = f"{self.base_url}/{target.name}"
        logger.info("Uploaded %s to %s", source, url)
        return url

    def _resolve(self, ref: str) -> Optional[Path]:
        """Map a URL handed out by ``upload`` back to its file, or None."""
        prefix = self.base_url + "/"
        if not ref.startswith(prefix):
            return None
        name = ref[len(prefix):]
        # Never escape the media directory, whatever the reference says.
        return self.media_dir / Path(name).name

    def delete(self, ref: str) -> None:
        """Best-effort removal; failures are logged and never raised."""
        if not ref:
            return
        path = self._resolve(ref)
        if path is None:
            logger.warning("Not deleting %s: not stored under %s", ref, self.base_url)
            return
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("Photo %s already gone", ref)
        except OSError as exc:
            logger.error("Could not delete photo %s: %s", ref, exc)
        else:
            logger.info("Deleted photo %s", ref)
