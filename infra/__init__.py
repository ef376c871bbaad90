# infra/__init__.py
from __future__ import annotations

from typing import Protocol, Mapping, Any, Optional, Dict

from infra.http_client import HttpClient, HttpError


# upper layers depend on this port, not on the concrete HttpClient
class HttpPort(Protocol):
    async def get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]: ...
    async def post(self, path: str, json_body: Mapping[str, Any]) -> Dict[str, Any]: ...
    async def close(self) -> None: ...


__all__ = ["HttpPort", "HttpClient", "HttpError"]
