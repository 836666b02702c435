import asyncio
import base64
from typing import Any, Dict, List, Optional

import httpx

from mcp_gateway.core.config import GONG_API_URL
from mcp_gateway.core.logging import logger

DEFAULT_TIMEOUT = httpx.Timeout(20.0, connect=10.0)
MAX_RETRIES = 2


class GongAPIError(Exception):
    def __init__(self, status_code: int, detail: Any) -> None:
        super().__init__(f"Gong API error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail


def build_auth_headers(access_key: str, access_secret: str) -> Dict[str, str]:
    token = base64.b64encode(f"{access_key}:{access_secret}".encode()).decode()
    return {
        "Authorization": f"Basic {token}",
        "Accept": "application/json",
        "Content-Type": "application/json",
    }


def retry_delay(response: httpx.Response, attempt: int) -> Optional[float]:
    """Seconds to wait before retrying, or None when the response is final.

    Gong answers rate limiting with 429 and a Retry-After in whole seconds.
    """
    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After", "")
        return max(1.0, float(retry_after)) if retry_after.isdigit() else 1.0
    if response.status_code >= 500:
        return 0.5 * (attempt + 1)
    return None


def error_detail(response: httpx.Response) -> Any:
    # Gong error bodies look like {"requestId": ..., "errors": [...]}.
    try:
        return response.json()
    except ValueError:
        return response.text.strip() or response.reason_phrase


class GongClient:
    """Calls and transcripts from the Gong v2 REST API."""

    def __init__(
        self,
        access_key: str,
        access_secret: str,
        base_url: str = GONG_API_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._headers = build_auth_headers(access_key, access_secret)
        self._transport = transport

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers,
            timeout=DEFAULT_TIMEOUT,
            transport=self._transport,
        ) as client:
            for attempt in range(MAX_RETRIES + 1):
                try:
                    response = await client.request(
                        method, path, params=params, json=json_body
                    )
                except httpx.HTTPError as exc:
                    raise GongAPIError(500, str(exc)) from exc
                delay = retry_delay(response, attempt)
                if delay is None or attempt == MAX_RETRIES:
                    break
                logger.warning(
                    f"Gong {method} {path} returned {response.status_code}, "
                    f"retrying in {delay}s"
                )
                await asyncio.sleep(delay)

        if response.status_code >= 400:
            raise GongAPIError(response.status_code, error_detail(response))
        if not response.content:
            return None
        return response.json()

    async def list_calls(
        self, from_date_time: Optional[str] = None, to_date_time: Optional[str] = None
    ) -> Any:
        params: Dict[str, Any] = {}
        if from_date_time:
            params["fromDateTime"] = from_date_time
        if to_date_time:
            params["toDateTime"] = to_date_time
        return await self._request("GET", "/calls", params=params)

    async def retrieve_transcripts(self, call_ids: List[Any]) -> Any:
        return await self._request(
            "POST", "/calls/transcript", json_body={"filter": {"callIds": call_ids}}
        )
