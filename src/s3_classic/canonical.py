"""Canonical string construction for the classic S3 HMAC scheme.

The string to sign is::

    <METHOD>\\n
    <Content-MD5>\\n
    <Content-Type>\\n
    <Date>\\n
    <canonical x-amz-* and response-* headers, one per line>
    /<bucket>/<escaped key>[?<signed sub-resources>]

It is recomputed for every request and must match what the server derives
from the request it receives, byte for byte.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import BinaryIO, Mapping, Optional, Sequence, Union

from s3_classic.config import ConnectionConfig
from s3_classic.utils import normalize_key, url_encode_key

# Query parameters naming a sub-resource; these are part of the signed resource.
SUB_RESOURCES = frozenset({
    "acl",
    "location",
    "logging",
    "notification",
    "partNumber",
    "policy",
    "requestPayment",
    "torrent",
    "uploadId",
    "uploads",
    "versionId",
    "versioning",
    "versions",
    "website",
})

# Response header overrides that are signed alongside x-amz-* headers.
HEADER_OVERRIDES = frozenset({
    "response-content-type",
    "response-content-language",
    "response-expires",
    "response-cache-control",
    "response-content-disposition",
    "response-content-encoding",
})

AMZ_HEADER_PREFIX = "x-amz-"

HeaderValue = Union[str, Sequence[str]]


class Method(str, Enum):
    """HTTP verbs the client signs and dispatches."""

    GET = "GET"
    PUT = "PUT"
    DELETE = "DELETE"


@dataclass
class RequestDescriptor:
    """Everything needed to sign and dispatch a single request.

    An empty ``object_key`` addresses the bucket itself.
    """

    method: Method
    object_key: str = ""
    query: dict[str, Optional[str]] = field(default_factory=dict)
    headers: dict[str, HeaderValue] = field(default_factory=dict)
    body: Union[bytes, BinaryIO, None] = None
    length: Optional[int] = None
    content_type: Optional[str] = None

    def __post_init__(self):
        self.method = Method(self.method)
        self.object_key = normalize_key(self.object_key)
        check_header_names(self.headers)

    @property
    def path(self) -> str:
        """Escaped key as it appears in both the URL and the canonical resource."""
        return url_encode_key(self.object_key)

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup, list values comma-joined."""
        name = name.lower()
        for key, value in self.headers.items():
            if key.lower() == name:
                return join_header_value(value)
        return None


def join_header_value(value: HeaderValue) -> str:
    if isinstance(value, str):
        return value.strip()
    return ",".join(v.strip() for v in value)


def check_header_names(headers: Mapping[str, HeaderValue]) -> None:
    """Reject names that differ only by case.

    HTTP sends one value per header name, so such variants cannot all be
    signed and sent. Pass a list value for a multi-valued header instead.

    Raises:
        ValueError: two names in ``headers`` lower-case to the same string
    """
    seen: dict[str, str] = {}
    for name in headers:
        lower = name.lower()
        if lower in seen:
            raise ValueError(f"Header {name!r} duplicates {seen[lower]!r}; use a list value")
        seen[lower] = name


def resource_path(bucket: str, descriptor: RequestDescriptor) -> str:
    """Path component shared by the dispatch URL and the canonical resource."""
    return f"/{bucket}/{descriptor.path}"


def canonical_headers(headers: Mapping[str, HeaderValue]) -> str:
    """Signed header block, or an empty string when nothing qualifies.

    Header names are lower-cased and sorted; each line ends in a newline.

    Raises:
        ValueError: two names differ only by case
    """
    check_header_names(headers)
    selected = {}
    for name, value in headers.items():
        lower = name.lower()
        if lower.startswith(AMZ_HEADER_PREFIX) or lower in HEADER_OVERRIDES:
            selected[lower] = join_header_value(value)

    return "".join(f"{name}:{selected[name]}\n" for name in sorted(selected))


def signed_query(query: Mapping[str, Optional[str]]) -> str:
    """Sub-resource parameters in signing order; other parameters are dropped."""
    params = []
    for name in sorted(query):
        if name not in SUB_RESOURCES:
            continue
        value = query[name]
        params.append(name if value is None or value == "" else f"{name}={value}")
    return "&".join(params)


def canonical_resource(bucket: str, descriptor: RequestDescriptor) -> str:
    resource = resource_path(bucket, descriptor)
    subresources = signed_query(descriptor.query)
    if subresources:
        resource = f"{resource}?{subresources}"
    return resource


def string_to_sign(descriptor: RequestDescriptor, config: ConnectionConfig, date: str) -> str:
    """Build the canonical string for ``descriptor`` at ``date``.

    Args:
        descriptor: Request to be signed
        config: Connection the request is dispatched on
        date: RFC-1123 date also sent as the Date header

    Returns:
        The exact string whose HMAC forms the signature
    """
    content_type = descriptor.content_type or descriptor.header("Content-Type") or ""
    content_md5 = descriptor.header("Content-MD5") or ""

    return (
        f"{descriptor.method.value}\n"
        f"{content_md5}\n"
        f"{content_type}\n"
        f"{date}\n"
        f"{canonical_headers(descriptor.headers)}"
        f"{canonical_resource(config.bucket, descriptor)}"
    )
