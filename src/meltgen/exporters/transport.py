"""
HTTP transport for serialized OTLP payloads.

One POST per signal kind to <endpoint>/<path>, authenticated with a bearer
token. Only HTTP 200 counts as success; there are no retries.
"""

import logging

import requests

from ..config import MeltError
from ..defaults import PROTOBUF_CONTENT_TYPE, USER_AGENT

logger = logging.getLogger(__name__)

PATH_METRICS = "metrics"
PATH_LOGS = "logs"
PATH_SPANS = "trace"

_BODY_EXCERPT_LEN = 200


class TransportError(MeltError):
    """Raised when the ingestion API rejects a payload or cannot be reached."""

    def __init__(self, message: str, url: str, status_code: int | None = None, body: str = ""):
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class HttpTransport:
    """POST protobuf payloads to the ingestion API."""

    def __init__(
        self,
        endpoint: str,
        token: str,
        timeout: float | None = None,
        session: requests.Session | None = None,
        user_agent: str = USER_AGENT,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    def url_for(self, path: str) -> str:
        return f"{self.endpoint}/{path}"

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": PROTOBUF_CONTENT_TYPE,
            "Accept": PROTOBUF_CONTENT_TYPE,
            "User-Agent": self.user_agent,
        }

    def send(self, path: str, payload: bytes) -> requests.Response:
        """Send one payload; raise TransportError unless the response is 200."""
        url = self.url_for(path)
        logger.debug("Connecting to ingestion endpoint %s (%d bytes)", url, len(payload))
        try:
            response = self.session.post(
                url, data=payload, headers=self.headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise TransportError(f"Request to {url} failed: {e}", url=url) from e

        if response.status_code != 200:
            body = (response.text or "")[:_BODY_EXCERPT_LEN]
            raise TransportError(
                f"Received non-ok response code from {url}: {response.status_code}",
                url=url,
                status_code=response.status_code,
                body=body,
            )
        logger.debug(
            "Response received code[%d], headers[%s]", response.status_code, response.headers
        )
        return response

    def close(self) -> None:
        self.session.close()
