"""Classification of S3 responses into outcomes.

Every response lands in exactly one of four outcomes:

- ``Success``: any 2xx status
- ``NotFound``: 404, reported as absence rather than as an error
- ``ServiceFailure``: any other status with a well-formed error document
- ``ProtocolFailure``: any other status whose body is not an error document
"""

from dataclasses import dataclass
from typing import Optional, Union
import logging
import xml.etree.ElementTree as ET

import requests

from s3_classic.errors import ERROR_KINDS, ProtocolError, ServiceError

logger = logging.getLogger(__name__)

# Code used when a 404 must be raised but its body carries no error document.
NOT_FOUND_CODE = "NotFound"

# Bytes of an unparsable body kept on ProtocolError for diagnosis.
MAX_BODY_EXCERPT = 1024


@dataclass
class Success:
    response: requests.Response


@dataclass
class NotFound:
    response: requests.Response


@dataclass
class ServiceFailure:
    error: ServiceError


@dataclass
class ProtocolFailure:
    error: ProtocolError


Outcome = Union[Success, NotFound, ServiceFailure, ProtocolFailure]


def local_name(tag: str) -> str:
    """Strip an XML namespace, e.g. "{http://...}Code" -> "Code"."""
    return tag.rsplit("}", 1)[-1]


def _child_text(element: ET.Element, name: str) -> Optional[str]:
    for child in element:
        if local_name(child.tag) == name:
            return child.text or ""
    return None


def parse_error_document(body: bytes, status: int) -> ServiceError:
    """Parse an S3 ``<Error>`` document into a ServiceError.

    Args:
        body: Response body
        status: HTTP status of the response

    Returns:
        ServiceError tagged with the registered kind for its Code

    Raises:
        ProtocolError: if the body is not an error document with Code and Message
    """
    try:
        root = ET.fromstring(body)
    except ET.ParseError as e:
        raise ProtocolError(
            f"HTTP {status} response body is not XML: {e}",
            status=status,
            body=body[:MAX_BODY_EXCERPT],
        ) from e

    if local_name(root.tag) == "Error":
        error = root
    else:
        error = next((el for el in root.iter() if local_name(el.tag) == "Error"), None)
    if error is None:
        raise ProtocolError(
            f"HTTP {status} response has no <Error> element",
            status=status,
            body=body[:MAX_BODY_EXCERPT],
        )

    code = _child_text(error, "Code")
    message = _child_text(error, "Message")
    if not code or message is None:
        raise ProtocolError(
            f"HTTP {status} error document lacks Code or Message",
            status=status,
            body=body[:MAX_BODY_EXCERPT],
        )

    return ServiceError(ERROR_KINDS.get_or_create(code), status, message)


def classify(response: requests.Response) -> Outcome:
    """Classify a response. Only failure bodies are read here."""
    status = response.status_code
    if 200 <= status < 300:
        return Success(response)
    if status == 404:
        return NotFound(response)

    try:
        error = parse_error_document(response.content, status)
    except ProtocolError as e:
        logger.debug("HTTP %s with unparsable body", status)
        return ProtocolFailure(e)
    finally:
        response.close()

    logger.debug("HTTP %s %s: %s", status, error.code, error.message)
    return ServiceFailure(error)


def not_found_error(response: requests.Response) -> ServiceError:
    """ServiceError for a 404 on an operation where absence is an error."""
    try:
        body = response.content
    finally:
        response.close()
    if body:
        try:
            return parse_error_document(body, response.status_code)
        except ProtocolError:
            logger.debug("HTTP 404 body is not an error document")
    return ServiceError(ERROR_KINDS.get_or_create(NOT_FOUND_CODE), response.status_code, "Not Found")


def raise_for_outcome(outcome: Outcome, allow_missing: bool = False) -> Optional[requests.Response]:
    """Unwrap an outcome into its response, ``None`` or an exception.

    Args:
        outcome: Result of :func:`classify`
        allow_missing: Return ``None`` for NotFound instead of raising

    Returns:
        The successful response, or None for an allowed NotFound
    """
    if isinstance(outcome, Success):
        return outcome.response
    if isinstance(outcome, NotFound):
        if allow_missing:
            outcome.response.close()
            return None
        raise not_found_error(outcome.response)
    raise outcome.error
