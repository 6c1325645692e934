"""Size guard for opaque form payloads. Content is never inspected here."""

from typing import Optional

from slipboard.core.exceptions import InvalidInputError


def check_form_blob(data: Optional[bytes], max_bytes: int, *, label: str = "PDF") -> bytes:
    if not data:
        raise InvalidInputError(f"Invalid or empty {label}")
    if len(data) > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise InvalidInputError(f"{label} is too large (max {limit_mb:.0f}MB)")
    return data


def download_filename(prefix: str, title: str) -> str:
    slug = "".join(ch if ch.isalnum() else "-" for ch in title.lower()).strip("-")
    return f"{prefix}-{slug or 'form'}.pdf"
