"""HTTP transport for signed requests."""

from typing import BinaryIO, Optional, Protocol, Union
import logging
import os

import requests

from s3_classic.errors import TransportError

logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Anything that can dispatch a signed request.

    The returned response must expose ``status_code``, ``headers``,
    ``content``, ``iter_content()`` and ``close()`` before its body has been
    read, as ``requests.Response`` does with ``stream=True``.
    """

    def send(
        self,
        method: str,
        url: str,
        headers: dict,
        body: Union[bytes, BinaryIO, None] = None,
        length: Optional[int] = None,
    ) -> requests.Response:
        ...


def _env_timeout() -> Optional[float]:
    value = os.getenv("S3_TIMEOUT")
    return float(value) if value else None


class RequestsTransport:
    """Transport backed by a pooled ``requests.Session``."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        verify_ssl: Optional[bool] = None,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout if timeout is not None else _env_timeout()
        # Set S3_VERIFY_SSL=false to disable (self-signed test endpoints)
        if verify_ssl is None:
            verify_ssl = os.getenv("S3_VERIFY_SSL", "true").lower() == "true"
        self.verify_ssl = verify_ssl

    def send(
        self,
        method: str,
        url: str,
        headers: dict,
        body: Union[bytes, BinaryIO, None] = None,
        length: Optional[int] = None,
    ) -> requests.Response:
        """Dispatch a request and return the unread, streaming response.

        Raises:
            TransportError: on any connection-level failure
        """
        logger.debug("Dispatching %s %s", method, url)
        try:
            return self.session.request(
                method,
                url,
                headers=headers,
                data=body,
                stream=True,
                allow_redirects=False,
                timeout=self.timeout,
                verify=self.verify_ssl,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

    def close(self):
        self.session.close()
