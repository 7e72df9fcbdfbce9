"""Bucket client built on the canonicalizer, signer and response classifier."""

from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union
import logging
import mimetypes
import os
import xml.etree.ElementTree as ET

import requests

from s3_classic.canonical import Method, RequestDescriptor
from s3_classic.config import ConnectionConfig, parse_connection_url
from s3_classic.errors import ProtocolError, ServiceError, error_kind
from s3_classic.responses import classify, local_name, raise_for_outcome
from s3_classic.signing import sign_request
from s3_classic.transport import RequestsTransport, Transport
from s3_classic.utils import calculate_content_md5

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

Body = Union[bytes, str, BinaryIO]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _body_length(body: Body) -> int:
    """Number of bytes that will be sent for ``body``.

    Raises:
        ValueError: ``body`` is a stream whose size cannot be measured
    """
    if isinstance(body, bytes):
        return len(body)
    try:
        size = os.fstat(body.fileno()).st_size
        return size - body.tell()
    except (AttributeError, OSError, ValueError):
        pass
    try:
        position = body.tell()
        end = body.seek(0, os.SEEK_END)
        body.seek(position)
    except (AttributeError, OSError) as e:
        raise ValueError("Cannot measure a non-seekable body; pass length=") from e
    return end - position


def parse_listing(body: bytes) -> tuple[list[str], bool, Optional[str]]:
    """Keys, IsTruncated and NextMarker from a ListBucketResult page."""
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ProtocolError(f"Bucket listing is not XML: {e}", status=200, body=body[:1024]) from e

    keys = []
    truncated = False
    next_marker = None
    for element in root.iter():
        name = local_name(element.tag)
        if name == "Key":
            keys.append(element.text or "")
        elif name == "IsTruncated":
            truncated = (element.text or "").strip().lower() == "true"
        elif name == "NextMarker":
            next_marker = element.text
    return keys, truncated, next_marker


class S3Client:
    """Client for a single bucket.

    Usage:
        client = S3Client("s3://AKID:secret@s3.amazonaws.com/my-bucket")
        client.put(b"abc123", "foo.txt")
        client.get("foo.txt")  # b"abc123"
        client.get("missing.txt")  # None
        client.list("abc/")  # ["abc/bang.txt", "abc/bing.txt"]
    """

    def __init__(
        self,
        url: Optional[str] = None,
        config: Optional[ConnectionConfig] = None,
        transport: Optional[Transport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.config = config or parse_connection_url(url)
        self.transport = transport or RequestsTransport()
        self.clock = clock or _utcnow

    @classmethod
    def from_config(
        cls,
        config: ConnectionConfig,
        transport: Optional[Transport] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "S3Client":
        """Client for an already resolved connection, e.g. from ConnectionConfig.from_profile."""
        return cls(config=config, transport=transport, clock=clock)

    @property
    def bucket(self) -> str:
        return self.config.bucket

    @classmethod
    def connect(cls, url: Optional[str] = None, **kwargs) -> "S3Client":
        """Create a client and make sure its bucket exists.

        Raises:
            ServiceError: NoSuchBucket if the bucket does not exist
        """
        client = cls(url, **kwargs)
        if client.location() is None:
            raise ServiceError(
                error_kind("NoSuchBucket"),
                404,
                f"The specified bucket does not exist: {client.bucket}",
            )
        return client

    @classmethod
    def create(cls, url: Optional[str] = None, **kwargs) -> "S3Client":
        """Create the bucket, then return a client for it.

        Raises:
            ServiceError: e.g. BucketAlreadyExists if the name is taken
        """
        client = cls(url, **kwargs)
        client.request(RequestDescriptor(Method.PUT, length=0)).close()
        logger.info("Created bucket %s", client.bucket)
        return client

    def request(
        self,
        descriptor: RequestDescriptor,
        allow_missing: bool = False,
    ) -> Optional[requests.Response]:
        """Sign, dispatch and classify one request.

        Args:
            descriptor: Request to send
            allow_missing: Return None on 404 instead of raising

        Returns:
            Unread response on success; None on an allowed 404

        Raises:
            ServiceError: service rejected the request
            ProtocolError: response body was not the expected shape
            TransportError: network failure
        """
        signed = sign_request(descriptor, self.config, self.clock())
        response = self.transport.send(
            signed.method,
            signed.url,
            signed.headers,
            signed.body,
            signed.length,
        )
        outcome = classify(response)
        logger.debug(
            "%s %s -> %s %s",
            signed.method,
            signed.url,
            response.status_code,
            type(outcome).__name__,
        )
        return raise_for_outcome(outcome, allow_missing=allow_missing)

    def _get(self, key: str = "", query: Optional[dict] = None) -> Optional[bytes]:
        response = self.request(
            RequestDescriptor(Method.GET, key, query=query or {}),
            allow_missing=True,
        )
        if response is None:
            return None
        try:
            return response.content
        finally:
            response.close()

    def get(self, key: str) -> Optional[bytes]:
        """Object contents, or None if the object does not exist."""
        return self._get(key)

    def open(self, key: str) -> Optional[requests.Response]:
        """Streaming response for an object, or None if it does not exist.

        The caller owns the response and must close it.
        """
        return self.request(RequestDescriptor(Method.GET, key), allow_missing=True)

    def download(
        self,
        key: str,
        destination: Union[str, Path, None] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Optional[Path]:
        """Copy an object to a local file.

        Args:
            key: Object key
            destination: Local path (default: key's basename in the cwd)
            chunk_size: Bytes per read

        Returns:
            Path written, or None if the object does not exist
        """
        response = self.open(key)
        if response is None:
            return None

        path = Path(destination) if destination else Path.cwd() / Path(key).name
        try:
            with open(path, "wb") as f:
                for chunk in response.iter_content(chunk_size=chunk_size):
                    f.write(chunk)
        finally:
            response.close()
        return path

    def put(
        self,
        body: Body,
        key: str,
        content_type: Optional[str] = None,
        headers: Optional[dict] = None,
        content_md5: bool = False,
        length: Optional[int] = None,
    ) -> requests.Response:
        """Store an object.

        Args:
            body: Bytes, text or a binary file object
            key: Object key
            content_type: Content-Type to store with the object
            headers: Extra headers, e.g. x-amz-acl or x-amz-meta-*
            content_md5: Send a Content-MD5 header (bytes and text bodies only)
            length: Bytes to send; required for pipes and sockets

        Returns:
            The service's response (already closed)
        """
        if isinstance(body, str):
            body = body.encode("utf-8")
        headers = dict(headers or {})
        if content_md5 and isinstance(body, bytes):
            headers["Content-MD5"] = calculate_content_md5(body)

        response = self.request(
            RequestDescriptor(
                Method.PUT,
                key,
                headers=headers,
                body=body,
                length=_body_length(body) if length is None else length,
                content_type=content_type,
            )
        )
        response.close()
        return response

    def upload(
        self,
        filename: Union[str, Path],
        destination: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> requests.Response:
        """Upload a local file; the key defaults to the file's basename."""
        filename = Path(filename)
        if content_type is None:
            content_type, _ = mimetypes.guess_type(filename.name)
        with open(filename, "rb") as f:
            return self.put(f, destination or filename.name, content_type=content_type)

    def delete(self, key: str) -> None:
        """Delete an object.

        Raises:
            ServiceError: including when the object is reported missing
        """
        self.request(RequestDescriptor(Method.DELETE, key)).close()

    def list(self, prefix: str = "") -> Optional[list[str]]:
        """Keys in the bucket starting with ``prefix``.

        Follows truncated listings page by page. Returns None if the bucket
        does not exist.
        """
        keys: list[str] = []
        marker = None
        while True:
            query = {"prefix": prefix}
            if marker:
                query["marker"] = marker
            body = self._get(query=query)
            if body is None:
                return None

            page, truncated, next_marker = parse_listing(body)
            keys.extend(page)
            if not truncated or not page:
                return keys
            marker = next_marker or page[-1]

    def location(self) -> Optional[str]:
        """Bucket location constraint ("" for the default region), or None if absent."""
        body = self._get(query={"location": None})
        if body is None:
            return None
        try:
            root = ET.fromstring(body)
        except ET.ParseError as e:
            raise ProtocolError(f"Location response is not XML: {e}", status=200, body=body[:1024]) from e
        return (root.text or "").strip()

    def close(self):
        close = getattr(self.transport, "close", None)
        if close is not None:
            close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
