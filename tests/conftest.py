"""Test-level fixtures and utilities."""

import io
from datetime import datetime, timezone
from typing import Optional

import pytest
import requests

from s3_classic.client import S3Client
from s3_classic.config import ConnectionConfig


def make_response(
    status: int,
    body: bytes = b"",
    headers: Optional[dict] = None,
) -> requests.Response:
    """Build an unread requests.Response, as the transport returns it."""
    response = requests.Response()
    response.status_code = status
    response.headers.update(headers or {})
    response.raw = io.BytesIO(body)
    return response


def error_body(code: str, message: str = "x") -> bytes:
    """S3 error document."""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<Error><Code>{code}</Code><Message>{message}</Message>"
        "<RequestId>4442587FB7D0A2F9</RequestId></Error>"
    ).encode("utf-8")


class FakeTransport:
    """Transport returning queued responses and recording what was sent."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.sent = []
        self.closed = False

    def queue(self, *responses):
        self.responses.extend(responses)

    def send(self, method, url, headers, body=None, length=None):
        self.sent.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers),
                "body": body,
                "length": length,
            }
        )
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def close(self):
        self.closed = True


@pytest.fixture
def config():
    """Connection config for the scenario bucket."""
    return ConnectionConfig(
        access_key_id="AKIDEXAMPLE",
        secret_access_key="secret/key+value",
        host="s3.amazonaws.com",
        bucket="mybucket",
    )


@pytest.fixture
def fixed_now():
    """Tue, 01 Jan 2013 00:00:00 GMT."""
    return datetime(2013, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(config, transport, fixed_now):
    """Client wired to the fake transport with a frozen clock."""
    return S3Client(config=config, transport=transport, clock=lambda: fixed_now)


@pytest.fixture
def make_s3_response():
    """Factory fixture for unread responses."""
    return make_response


@pytest.fixture
def s3_error_body():
    """Factory fixture for S3 error documents."""
    return error_body
