"""
Enlarge API Client
Talks to the remote enlargement service over HTTP.

The service is opaque: it receives one image plus the reflection direction
and answers with the enlarged PNG.
"""
from __future__ import annotations

import logging
from typing import Optional, Tuple

import requests

from enlarger.errors import EnlargeError
from enlarger.models.image_model import ImageAsset
from enlarger.models.reflection import Direction
from enlarger.models.session_model import ErrorKind

logger = logging.getLogger(__name__)

CONNECTION_MESSAGE = "Failed to connect to server, please try again"
SERVER_MESSAGE = "Server error, please try again"
TIMEOUT_MESSAGE = "Request timeout, please try again"
TOO_LARGE_MESSAGE = "Image too large, please replace with a smaller image"
DECODE_MESSAGE = "Failed to decode the enlarged image"


def classify_response(status: int, reason: Optional[str] = None) -> Tuple[ErrorKind, str]:
    """
    Map a non-200 HTTP status onto an error kind and a user-facing message.
    """
    if status == 500:
        return ErrorKind.SERVER, SERVER_MESSAGE
    if status in (504, 524):
        return ErrorKind.TIMEOUT, TIMEOUT_MESSAGE
    if status == 413:
        return ErrorKind.PAYLOAD_TOO_LARGE, TOO_LARGE_MESSAGE
    return ErrorKind.UNKNOWN_HTTP, f"Failed to process image: {reason or status}"


class EnlargeClient:
    """
    Client for the enlargement service.

    Endpoint:
        POST {base_url}/enlarge
        multipart: file, reflection_actor, enlarge_factor
    """

    def __init__(self, base_url: str, timeout: float = 120.0, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            base_url: Base URL of the enlargement service.
            timeout: Request timeout in seconds.
            session: Pre-configured session (tests inject a fake one).
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        logger.info(f"Enlarge client initialized with base URL: {self.base_url}")

    def enlarge(self, asset: ImageAsset, direction: Direction, factor: Optional[int] = None) -> bytes:
        """
        Submit an image for enlargement.

        Args:
            asset: Image to enlarge (sent as-is in the `file` field).
            direction: Reflection direction, sent as `reflection_actor`.
            factor: Selected enlarge factor, sent as `enlarge_factor`.

        Returns:
            bytes: Body of the 200 response (PNG).

        Raises:
            EnlargeError: On transport failure or any non-200 status.
        """
        files = {'file': (asset.name, asset.data, asset.mime_type)}
        data = {'reflection_actor': direction.value}
        if factor is not None:
            data['enlarge_factor'] = str(factor)

        try:
            response = self.session.post(
                f"{self.base_url}/enlarge",
                files=files,
                data=data,
                timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.error(f"Failed to reach enlarge service: {e}")
            raise EnlargeError(ErrorKind.CONNECTION, CONNECTION_MESSAGE) from e

        if response.status_code != 200:
            kind, message = classify_response(response.status_code, response.reason)
            logger.warning(f"Enlarge service answered {response.status_code} ({kind.value})")
            raise EnlargeError(kind, message, status=response.status_code)

        logger.info(f"Enlarge service returned {len(response.content)} bytes")
        return response.content
