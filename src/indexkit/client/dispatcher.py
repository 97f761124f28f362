"""Request dispatching for the search service REST API.

The indexing core talks to the service only through the :class:`Dispatcher`
protocol. :class:`HttpDispatcher` is the httpx-backed implementation; tests
and alternative transports can provide their own.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol, Union
from urllib.parse import quote

import httpx

from indexkit.client.options import RequestOptions
from indexkit.config import SearchConfig
from indexkit.exceptions import ConfigError, InvalidArgumentError, RemoteOperationError

Body = Union[Mapping[str, Any], List[Any], None]


def api_path(template: str, *args: Any) -> str:
    """Format an API path, URL-quoting every substituted segment."""
    return template % tuple(quote(str(a), safe="") for a in args)


class Dispatcher(Protocol):
    """Minimal surface the indexing core needs from a transport."""

    async def read(
        self, method: str, path: str, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        """Idempotent fetch (search, get by id, task status)."""
        ...

    async def write(
        self,
        method: str,
        path: str,
        body: Body = None,
        options: Optional[RequestOptions] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        """Mutating call. `defaults` apply only to keys the caller did not set."""
        ...


class HttpDispatcher:
    """Dispatcher backed by httpx.

    Auth: application id + API key headers. One AsyncClient is opened per
    request; connection reuse and host failover are not handled here.
    Replies are always dicts: a top-level JSON array comes back as
    ``{"items": [...]}`` and an empty body as ``{}``.
    """

    def __init__(
        self,
        *,
        base_url: str,
        app_id: str,
        api_key: str,
        timeout: float = 30.0,
        verify_ssl: bool = True,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.app_id = app_id
        self.api_key = api_key
        self.timeout = timeout
        self.verify_ssl = verify_ssl

    @classmethod
    def from_config(cls, cfg: SearchConfig) -> HttpDispatcher:
        if not cfg.base_url or not cfg.app_id or not cfg.api_key:
            raise ConfigError(
                "Search service is not configured. Set INDEXKIT_SEARCH__BASE_URL, "
                "INDEXKIT_SEARCH__APP_ID, INDEXKIT_SEARCH__API_KEY."
            )
        return cls(
            base_url=cfg.base_url,
            app_id=cfg.app_id,
            api_key=cfg.api_key,
            timeout=cfg.timeout,
            verify_ssl=cfg.verify_ssl,
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            verify=self.verify_ssl,
            headers={
                "Accept": "application/json",
                "Content-Type": "application/json",
                "X-Search-Application-Id": self.app_id,
                "X-Search-API-Key": self.api_key,
            },
        )

    async def read(
        self, method: str, path: str, options: Optional[RequestOptions] = None
    ) -> Dict[str, Any]:
        opts = options or RequestOptions()
        body: Body = None
        if method.upper() != "GET" and opts.body:
            body = dict(opts.body)
        return await self._send(method, path, body=body, options=opts)

    async def write(
        self,
        method: str,
        path: str,
        body: Body = None,
        options: Optional[RequestOptions] = None,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> Dict[str, Any]:
        opts = options.copy() if options is not None else RequestOptions()
        for key, value in (defaults or {}).items():
            if not opts.has(key):
                opts.add_query_parameter(key, value)

        payload: Body = body
        if isinstance(body, Mapping) or body is None:
            merged = dict(body or {})
            merged.update(opts.body)
            payload = merged
        elif opts.body:
            raise InvalidArgumentError(
                f"Body parameters cannot be merged into a list body ({method.upper()} {path})"
            )
        return await self._send(method, path, body=payload, options=opts)

    async def _send(
        self, method: str, path: str, *, body: Body, options: RequestOptions
    ) -> Dict[str, Any]:
        kwargs: Dict[str, Any] = {
            "params": options.query or None,
            "headers": options.headers or None,
        }
        if body is not None:
            kwargs["json"] = body
        if options.timeout is not None:
            kwargs["timeout"] = options.timeout
        try:
            async with self._client() as client:
                resp = await client.request(method.upper(), path, **kwargs)
                resp.raise_for_status()
                data = resp.json() if resp.content else {}
        except httpx.HTTPStatusError as exc:
            raise RemoteOperationError(
                _error_message(exc.response), status_code=exc.response.status_code
            ) from exc
        except httpx.HTTPError as exc:
            raise RemoteOperationError(f"{method.upper()} {path} failed: {exc}") from exc
        # Index endpoints reply with objects; a bare JSON array is exposed under "items".
        return data if isinstance(data, dict) else {"items": data}


def _error_message(resp: httpx.Response) -> str:
    # Service errors are usually {"message": "...", "status": 4xx}
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("message"), str):
        return data["message"]
    return f"HTTP {resp.status_code} for {resp.request.method} {resp.request.url.path}"
