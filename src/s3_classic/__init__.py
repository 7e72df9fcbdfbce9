"""Minimal S3 client using the classic HMAC-SHA1 request signature."""

import logging

from s3_classic.config import ConnectionConfig, parse_connection_url
from s3_classic.canonical import (
    HEADER_OVERRIDES,
    SUB_RESOURCES,
    Method,
    RequestDescriptor,
    canonical_headers,
    canonical_resource,
    string_to_sign,
)
from s3_classic.signing import SignedRequest, sign, sign_request
from s3_classic.transport import RequestsTransport, Transport
from s3_classic.responses import (
    NotFound,
    ProtocolFailure,
    ServiceFailure,
    Success,
    classify,
    parse_error_document,
    raise_for_outcome,
)
from s3_classic.errors import (
    ERROR_KINDS,
    ConfigError,
    ErrorKind,
    ErrorKindRegistry,
    ProtocolError,
    S3Error,
    ServiceError,
    TransportError,
    error_kind,
)
from s3_classic.client import S3Client
from s3_classic.utils import calculate_content_md5, http_date, url_encode_key

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    # Client
    "S3Client",
    # Config
    "ConnectionConfig",
    "parse_connection_url",
    # Canonicalization
    "HEADER_OVERRIDES",
    "SUB_RESOURCES",
    "Method",
    "RequestDescriptor",
    "canonical_headers",
    "canonical_resource",
    "string_to_sign",
    # Signing
    "SignedRequest",
    "sign",
    "sign_request",
    # Transport
    "RequestsTransport",
    "Transport",
    # Responses
    "NotFound",
    "ProtocolFailure",
    "ServiceFailure",
    "Success",
    "classify",
    "parse_error_document",
    "raise_for_outcome",
    # Errors
    "ERROR_KINDS",
    "ConfigError",
    "ErrorKind",
    "ErrorKindRegistry",
    "ProtocolError",
    "S3Error",
    "ServiceError",
    "TransportError",
    "error_kind",
    # Utils
    "calculate_content_md5",
    "http_date",
    "url_encode_key",
]
