"""
Payment proof storage on the local filesystem.

Files are only written after the submission passed validation, and removed
again if the payment row cannot be inserted. Stored names are generated;
the client's filename is only kept in the log.
"""
import asyncio
import logging
import uuid
from pathlib import Path
from typing import Tuple

from floresya.core.upload_validation import ProofUpload

logger = logging.getLogger(__name__)


class ProofImageStore:
    def __init__(self, upload_dir: str, url_prefix: str):
        self.upload_dir = Path(upload_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def _write(self, path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)

    async def save(self, upload: ProofUpload) -> Tuple[Path, str]:
        """Write the image and return (filesystem path, public URL)."""
        name = f"payment-{uuid.uuid4().hex}{upload.extension}"
        path = self.upload_dir / name
        await asyncio.to_thread(self._write, path, upload.content)
        logger.info(f"Stored payment proof {name} ({upload.size} bytes, client name {upload.filename!r})")
        return path, f"{self.url_prefix}/{name}"

    async def delete(self, path: Path) -> None:
        await asyncio.to_thread(path.unlink, missing_ok=True)
