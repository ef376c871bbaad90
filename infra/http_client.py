# infra/http_client.py
from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Mapping, Optional
from urllib.parse import urlencode

import aiohttp

from utils.logger import logger

JSON_SEPARATORS = (",", ":")
NETWORK_ERROR_STATUS = 599


class HttpError(Exception):
    def __init__(self, status: int, message: str, payload: Optional[Any] = None):
        super().__init__(f"HTTP {status}: {message}")
        self.status = status
        self.message = message
        self.payload = payload


def _json_dumps_compact(obj: Any) -> str:
    return json.dumps(obj, separators=JSON_SEPARATORS, ensure_ascii=False)

def _build_query(params: Optional[Mapping[str, Any]]) -> str:
    if not params:
        return ""
    return "?" + urlencode(params, doseq=True, safe=":/")

def _mask(s: Optional[str]) -> str:
    if not s:
        return ""
    if len(s) <= 8:
        return "*" * len(s)
    return s[:4] + "*" * (len(s) - 8) + s[-4:]

def _try_json(text: str) -> Any:
    try:
        return json.loads(text) if text else None
    except json.JSONDecodeError:
        return text


class HttpClient:
    """
    Thin JSON client for the processor REST API.

    Every call is a single attempt bounded by `timeout_s`; anything but
    HTTP 200 with a JSON object body raises HttpError.
    """

    def __init__(self,
                 base_url: str,
                 token: Optional[str] = None,
                 *,
                 timeout_s: float = 15.0,
                 session: Optional[aiohttp.ClientSession] = None,
                 log=None,
                 ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout_s = float(timeout_s)
        self.session = session
        self._owned_session = session is None
        self.log = log or logger

        self.log.debug(
            f"HttpClient init base_url={self.base_url} timeout_s={self.timeout_s} token={_mask(self.token)}"
        )

    # ---- async context manager ----------------------------------------------------
    async def __aenter__(self) -> "HttpClient":
        self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            timeout = aiohttp.ClientTimeout(total=self.timeout_s)
            self.session = aiohttp.ClientSession(timeout=timeout, raise_for_status=False, trust_env=True)
            self._owned_session = True
        return self.session

    async def close(self) -> None:
        if self._owned_session and self.session is not None and not self.session.closed:
            await self.session.close()

    def _headers(self, extra: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if self.token:
            headers["X-Token"] = self.token
        if extra:
            headers.update(extra)
        return headers

    async def request(
            self,
            method: str,
            path: str,
            *,
            params: Optional[Mapping[str, Any]] = None,
            json_body: Optional[Mapping[str, Any]] = None,
            headers: Optional[Mapping[str, str]] = None,
            timeout_s: Optional[float] = None,
        ) -> Dict[str, Any]:
        """
        - method: "GET" | "POST"
        - path: starts with "/api/"
        - params: querystring
        - json_body: JSON request body
        - timeout_s: overrides the client timeout for this call
        """
        assert path.startswith("/api/"), "path must start with /api/"
        method = method.upper()
        url = self.base_url + path + _build_query(params)
        body_str = _json_dumps_compact(json_body) if json_body is not None else None
        timeout_ctx = aiohttp.ClientTimeout(total=timeout_s or self.timeout_s)

        session = self._ensure_session()
        try:
            async with session.request(
                method,
                url,
                data=body_str,
                headers=self._headers(headers),
                timeout=timeout_ctx,
            ) as resp:
                text = await resp.text()
                status = resp.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            self.log.warning(f"Network error: {e!r} when requesting {method} {url}")
            raise HttpError(NETWORK_ERROR_STATUS, f"Network error: {e!r}") from e

        if status != 200:
            raise HttpError(status, text[:256], _try_json(text))

        try:
            payload = json.loads(text) if text else None
        except json.JSONDecodeError:
            raise HttpError(status, f"invalid json: {text[:256]}", text)
        if not isinstance(payload, dict):
            raise HttpError(status, "unexpected json body", payload)
        return payload

    # ---- wrappers -------------------------------------------------------------------
    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_body: Mapping[str, Any]) -> Dict[str, Any]:
        return await self.request("POST", path, json_body=json_body)
