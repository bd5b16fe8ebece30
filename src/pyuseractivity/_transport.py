"""HTTP transport for JSON polls."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import aiohttp

from pyuseractivity._constants import REQUEST_TIMEOUT, USER_AGENT
from pyuseractivity.exceptions import UserActivityTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the sync client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def post_json(self, url: str, body: Any) -> Any: ...


class HttpTransport:
    """POST JSON bodies over an aiohttp session and decode JSON replies."""

    def __init__(
        self,
        http_session: aiohttp.ClientSession,
        *,
        timeout: float = REQUEST_TIMEOUT,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._user_agent = user_agent

    async def post_json(self, url: str, body: Any) -> Any:
        headers: dict[str, str] = {
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": self._user_agent,
        }
        data = json.dumps(body, separators=(",", ":"))

        _logger.debug("POST %s", url)

        try:
            async with self._http.post(url, data=data, headers=headers, timeout=self._timeout) as resp:
                text = await resp.text()
                if not 200 <= resp.status < 300:
                    raise UserActivityTransportError(
                        f"HTTP {resp.status} from {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except UserActivityTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise UserActivityTransportError(
                f"Request to {url} failed: {exc!r}",
                url=url,
            ) from exc

        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise UserActivityTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=resp.status,
                url=url,
            ) from exc
