"""
Tests for payment proof validation and storage.
"""
import pytest

from floresya.core.exceptions import ProofImageInvalid
from floresya.core.upload_validation import ProofUpload, proof_extension, validate_proof_image
from floresya.services.storage import ProofImageStore

MAX = 5 * 1024 * 1024


class TestValidateProofImage:
    def test_accepts_jpeg(self):
        validate_proof_image(ProofUpload("pago.jpg", "image/jpeg", b"\xff\xd8\xff" + b"0" * 10), MAX)

    def test_content_type_is_normalized(self):
        validate_proof_image(ProofUpload("pago.png", "IMAGE/PNG; charset=binary", b"png"), MAX)

    @pytest.mark.parametrize(
        "content_type",
        ["application/pdf", "text/plain", "text/html", "image/svg+xml", "image/", None, ""],
    )
    def test_rejects_other_types(self, content_type):
        with pytest.raises(ProofImageInvalid) as exc_info:
            validate_proof_image(ProofUpload("pago", content_type, b"data"), MAX)
        assert exc_info.value.message == "Only image files are allowed"

    def test_rejects_empty_file(self):
        with pytest.raises(ProofImageInvalid, match="Empty file"):
            validate_proof_image(ProofUpload("pago.jpg", "image/jpeg", b""), MAX)

    def test_limit_is_inclusive(self):
        validate_proof_image(ProofUpload("pago.jpg", "image/jpeg", b"x" * 100), 100)

    def test_rejects_oversized_file(self):
        with pytest.raises(ProofImageInvalid) as exc_info:
            validate_proof_image(ProofUpload("pago.jpg", "image/jpeg", b"x" * (MAX + 1)), MAX)
        assert exc_info.value.details == {"size": MAX + 1, "max_bytes": MAX}
        assert "5MB" in exc_info.value.message

    @pytest.mark.parametrize("content_type,extension", [
        ("image/jpeg", ".jpg"),
        ("image/png", ".png"),
        ("image/gif", ".gif"),
        ("image/webp", ".webp"),
    ])
    def test_extension_follows_content_type(self, content_type, extension):
        assert proof_extension(content_type) == extension


class TestProofImageStore:
    @pytest.mark.asyncio
    async def test_save_and_delete(self, tmp_path):
        store = ProofImageStore(str(tmp_path / "proofs"), "/uploads/payments/")

        path, url = await store.save(ProofUpload("Comprobante.JPEG", "image/jpeg", b"abc"))

        assert path.read_bytes() == b"abc"
        assert path.suffix == ".jpg"
        assert url == f"/uploads/payments/{path.name}"

        await store.delete(path)
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_client_filename_suffix_is_ignored(self, tmp_path):
        """An HTML-named upload declared as PNG is stored and served as .png."""
        store = ProofImageStore(str(tmp_path), "/uploads/payments")
        upload = ProofUpload("receipt.html", "image/png", b"<script>alert(1)</script>")
        validate_proof_image(upload, MAX)

        path, url = await store.save(upload)

        assert path.suffix == ".png"
        assert url.endswith(".png")
        assert ".html" not in path.name

    @pytest.mark.asyncio
    async def test_extension_without_filename(self, tmp_path):
        store = ProofImageStore(str(tmp_path), "/uploads/payments")

        path, _ = await store.save(ProofUpload(None, "image/webp", b"abc"))

        assert path.suffix == ".webp"

    @pytest.mark.asyncio
    async def test_delete_missing_file_is_noop(self, tmp_path):
        store = ProofImageStore(str(tmp_path), "/uploads/payments")
        await store.delete(tmp_path / "gone.png")
