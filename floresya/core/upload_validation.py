"""
Payment proof upload validation

Proof images are checked before anything is persisted:
- Content-Type must be one of PROOF_IMAGE_TYPES
- File must not be empty
- File size limited to PAYMENT_PROOF_MAX_MB

The stored file extension comes from PROOF_IMAGE_TYPES, never from the
client's filename, so a proof is always served back as an image.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import UploadFile

from floresya.core.exceptions import ProofImageInvalid

# Accepted proof image types and the extension they are stored under
PROOF_IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


def normalize_content_type(content_type: Optional[str]) -> Optional[str]:
    """'IMAGE/PNG; charset=binary' -> 'image/png'"""
    if not content_type:
        return None
    return content_type.split(";", 1)[0].strip().lower()


def proof_extension(content_type: Optional[str]) -> str:
    extension = PROOF_IMAGE_TYPES.get(normalize_content_type(content_type))
    if extension is None:
        raise ProofImageInvalid(
            "Only image files are allowed",
            details={
                "content_type": content_type,
                "allowed": sorted(PROOF_IMAGE_TYPES),
            },
        )
    return extension


@dataclass
class ProofUpload:
    """An uploaded proof image, read into memory."""
    filename: Optional[str]
    content_type: Optional[str]
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        return proof_extension(self.content_type)


def validate_proof_image(upload: ProofUpload, max_bytes: int) -> None:
    """Raise ProofImageInvalid when the upload is not an acceptable image."""
    proof_extension(upload.content_type)

    if upload.size == 0:
        raise ProofImageInvalid("Empty file uploaded")

    if upload.size > max_bytes:
        raise ProofImageInvalid(
            f"File size exceeds maximum of {max_bytes / (1024 * 1024):g}MB",
            details={"size": upload.size, "max_bytes": max_bytes},
        )


async def read_proof_upload(file: Optional[UploadFile], max_bytes: int) -> Optional[ProofUpload]:
    """
    Read an UploadFile into a ProofUpload.

    Reads at most max_bytes + 1 so an oversized file is detected without
    buffering all of it.
    """
    if file is None or not file.filename:
        return None
    content = await file.read(max_bytes + 1)
    return ProofUpload(filename=file.filename, content_type=file.content_type, content=content)
