"""HMAC-SHA1 request signing (the classic ``AWS <key>:<signature>`` scheme)."""

from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Mapping, Optional, Union
from urllib.parse import quote
import logging

from botocore.auth import HmacV1Auth
from botocore.credentials import Credentials

from s3_classic.canonical import (
    RequestDescriptor,
    join_header_value,
    resource_path,
    string_to_sign,
)
from s3_classic.config import ConnectionConfig
from s3_classic.utils import http_date

logger = logging.getLogger(__name__)


@dataclass
class SignedRequest:
    """A request ready for the transport, carrying Date and Authorization."""

    method: str
    url: str
    headers: dict[str, str]
    body: Union[bytes, BinaryIO, None] = None
    length: Optional[int] = None


def sign(canonical: str, secret_key: str, access_key_id: str = "") -> str:
    """Sign a canonical string with HMAC-SHA1 via botocore's HmacV1 signer.

    The secret is used as raw UTF-8 bytes; the access key does not enter the
    signature.

    Returns:
        Base64 signature without trailing newline
    """
    signer = HmacV1Auth(Credentials(access_key_id, secret_key))
    return signer.sign_string(canonical)


def authorization_header(access_key_id: str, signature: str) -> str:
    return f"AWS {access_key_id}:{signature}"


def sign_request(
    descriptor: RequestDescriptor,
    config: ConnectionConfig,
    now: Optional[datetime] = None,
) -> SignedRequest:
    """Sign a request descriptor for dispatch.

    The Date header and the date inside the signature come from one
    timestamp, taken here exactly once.

    Args:
        descriptor: Request to sign
        config: Connection credentials and endpoint
        now: Instant to sign at (default: current UTC time)

    Returns:
        SignedRequest with Date and Authorization headers
    """
    date = http_date(now)
    canonical = string_to_sign(descriptor, config, date)
    signature = sign(canonical, config.secret_access_key, config.access_key_id)

    headers = {
        name: join_header_value(value)
        for name, value in descriptor.headers.items()
        if name.lower() not in ("date", "authorization")
    }
    if descriptor.content_type:
        headers = {k: v for k, v in headers.items() if k.lower() != "content-type"}
        headers["Content-Type"] = descriptor.content_type
    if descriptor.length is not None:
        headers = {k: v for k, v in headers.items() if k.lower() != "content-length"}
        headers["Content-Length"] = str(descriptor.length)
    headers["Date"] = date
    headers["Authorization"] = authorization_header(config.access_key_id, signature)

    url = f"{config.base_url}{resource_path(config.bucket, descriptor)}"
    if descriptor.query:
        url = f"{url}?{_query_string(descriptor.query)}"

    logger.debug("Signed %s %s", descriptor.method.value, url)
    return SignedRequest(
        method=descriptor.method.value,
        url=url,
        headers=headers,
        body=descriptor.body,
        length=descriptor.length,
    )


def _query_string(query: Mapping[str, Optional[str]]) -> str:
    parts = []
    for name, value in query.items():
        if value is None:
            parts.append(quote(name, safe=""))
        else:
            parts.append(f"{quote(name, safe='')}={quote(value, safe='')}")
    return "&".join(parts)
