"""Small helpers shared by the canonicalizer, signer and client."""

import base64
import hashlib
from datetime import datetime, timezone
from email.utils import format_datetime
from typing import Optional, Union
from urllib.parse import quote


def calculate_content_md5(content: Union[str, bytes]) -> str:
    """Calculate Content-MD5 header value (base64 encoded).

    Args:
        content: Request body as string or bytes

    Returns:
        Base64-encoded MD5 hash
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    md5_hash = hashlib.md5(content).digest()
    return base64.b64encode(md5_hash).decode("utf-8")


def url_encode_key(key: Union[str, bytes], safe: str = "/") -> str:
    """URL-encode an S3 object key.

    The same encoding is used for the request URL and for the canonical
    resource, so the server sees exactly the path that was signed.

    Args:
        key: Object key as string or bytes
        safe: Characters to not encode (default: "/")

    Returns:
        URL-encoded key
    """
    if isinstance(key, str):
        key = key.encode("utf-8")
    return quote(key, safe=safe)


def normalize_key(key: str) -> str:
    """Strip the leading slash callers sometimes put on object keys."""
    return key[1:] if key.startswith("/") else key


def http_date(now: Optional[datetime] = None) -> str:
    """Format an instant as an RFC-1123 date, e.g. Tue, 01 Jan 2013 00:00:00 GMT."""
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return format_datetime(now.astimezone(timezone.utc), usegmt=True)
