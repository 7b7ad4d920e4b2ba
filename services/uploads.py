import logging
import os
import tempfile
import time
from typing import Optional

from core.config import settings
from core.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

PAYMENT_PROOF_FOLDER = "payment_proofs"
PUBLIC_PREFIX = "/uploads"

# Stored files are served by extension, so only these pairs are accepted
ALLOWED_PROOF_TYPES = {
    "image/png": (".png",),
    "image/jpeg": (".jpg", ".jpeg"),
    "image/gif": (".gif",),
    "image/webp": (".webp",),
    "application/pdf": (".pdf",),
}


def payment_proof_dir() -> str:
    return os.path.join(settings.UPLOAD_DIR, PAYMENT_PROOF_FOLDER)


def proof_extension(filename: Optional[str], content_type: Optional[str]) -> str:
    """Extension to store under, checked against the declared content type."""
    allowed = ALLOWED_PROOF_TYPES.get((content_type or "").split(";")[0].strip().lower())
    if not allowed:
        raise ValidationError("Payment proof must be a PNG, JPEG, GIF, WebP image or PDF")
    ext = os.path.splitext(filename or "")[1].lower()
    if not ext:
        return allowed[0]
    if ext not in allowed:
        raise ValidationError(f"File extension {ext} does not match content type {content_type}")
    return ext


def build_payment_proof_name(order_id: int, ext: str, timestamp_ms: int) -> str:
    """``<order id>-<upload time in ms><extension>``"""
    return f"{order_id}-{timestamp_ms}{ext}"


def validate_payment_proof(filename: Optional[str], content_type: Optional[str], data: bytes) -> str:
    ext = proof_extension(filename, content_type)
    if not data:
        raise ValidationError("No payment proof file uploaded")
    if len(data) > settings.MAX_UPLOAD_BYTES:
        limit_mb = settings.MAX_UPLOAD_BYTES // (1024 * 1024)
        raise ValidationError(f"File size must be less than {limit_mb}MB")
    return ext


def store_payment_proof(order_id: int, filename: Optional[str], content_type: Optional[str], data: bytes) -> str:
    """
    Validate and write a payment proof to the uploads directory.

    Args:
        order_id: Order the proof belongs to
        filename: Client supplied filename, only its extension is kept
        content_type: MIME type reported for the upload
        data: Raw file contents

    Returns:
        Public path of the stored file, e.g. ``/uploads/payment_proofs/7-1700000000000.png``
    """
    ext = validate_payment_proof(filename, content_type, data)

    directory = payment_proof_dir()
    name = build_payment_proof_name(order_id, ext, int(time.time() * 1000))
    target = os.path.join(directory, name)

    tmp_path = None
    try:
        os.makedirs(directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=".upload-")
        with os.fdopen(fd, "wb") as fh:
            fh.write(data)
        os.replace(tmp_path, target)
    except OSError as exc:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)
        logger.error("Failed to store payment proof for order %s: %s", order_id, exc)
        raise StorageError("Failed to store payment proof") from exc

    logger.info("Stored payment proof for order %s at %s (%d bytes)", order_id, target, len(data))
    return f"{PUBLIC_PREFIX}/{PAYMENT_PROOF_FOLDER}/{name}"


def resolve_upload_path(file_ref: str) -> str:
    """Map a public ``/uploads/...`` reference back to its path on disk."""
    relative = file_ref[len(PUBLIC_PREFIX):].lstrip("/") if file_ref.startswith(PUBLIC_PREFIX) else file_ref
    return os.path.join(settings.UPLOAD_DIR, *relative.split("/"))


def discard_payment_proof(file_ref: str) -> None:
    path = resolve_upload_path(file_ref)
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove orphaned upload %s: %s", path, exc)
