from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable
from urllib.parse import urljoin

import requests
from requests.adapters import HTTPAdapter

from .config import ClientConfig
from .error_mapper import map_error
from .exceptions import TransportError

TRACE_HEADER = "X-Trace-ID"
_IDEMPOTENT_METHODS = frozenset({"GET", "HEAD"})

ResponseHook = Callable[[requests.Response], None]
RequestHook = Callable[[str, str, dict[str, Any]], None]
Payload = dict[str, Any] | list[Any] | None


@dataclass
class LastOperation:
    module: str
    operation: str
    duration_ms: int
    result: str
    status_code: int | None


def _decode(response: requests.Response) -> Payload:
    if not response.content:
        return None
    try:
        return response.json()
    except requests.exceptions.JSONDecodeError:
        # Logout and unlink answer with plain text bodies.
        return None


@dataclass
class HttpClient:
    """Thin JSON transport shared by every endpoint client.

    ``before_request`` may rewrite headers in the request context before
    dispatch; ``after_response`` sees every final response, successful or
    not, before it is decoded or mapped to an exception.
    """

    config: ClientConfig
    session: requests.Session | None = None
    before_request: RequestHook | None = None
    after_response: ResponseHook | None = None
    last_operation: LastOperation | None = None

    def __post_init__(self) -> None:
        if self.session is None:
            self.session = self._pooled_session()

    def _pooled_session(self) -> requests.Session:
        session = requests.Session()
        adapter = HTTPAdapter(pool_connections=self.config.max_connections, pool_maxsize=self.config.max_connections)
        for scheme in ("http://", "https://"):
            session.mount(scheme, adapter)
        return session

    def url_for(self, path: str) -> str:
        return urljoin(self.config.api_base_url.rstrip("/") + "/", path.lstrip("/"))

    def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        json_body: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        retry_mutation: bool = False,
        module: str = "unknown",
        operation: str = "unknown",
    ) -> Payload:
        verb = method.upper()
        url = self.url_for(path)
        context: dict[str, Any] = {
            "headers": {"Accept": "application/json", **(headers or {})},
            "json_body": json_body,
            "params": params,
        }
        if self.before_request:
            self.before_request(verb, url, context)

        attempts = self.config.retries + 1 if verb in _IDEMPOTENT_METHODS or retry_mutation else 1
        started = time.monotonic()
        try:
            response = self._send(verb, url, context, attempts)
        except TransportError:
            self._record(module, operation, started, "network_error", None)
            raise

        if self.after_response:
            self.after_response(response)
        if response.ok:
            self._record(module, operation, started, "success", response.status_code)
            return _decode(response)

        self._record(module, operation, started, "error", response.status_code)
        try:
            payload = response.json()
        except requests.exceptions.JSONDecodeError:
            payload = {"message": response.text}
        raise map_error(
            response.status_code,
            payload if isinstance(payload, dict) else {},
            response.headers.get(TRACE_HEADER),
        )

    def _send(self, verb: str, url: str, context: dict[str, Any], attempts: int) -> requests.Response:
        if self.session is None:
            raise RuntimeError("HTTP session not initialized")
        for attempt in range(attempts):
            last = attempt == attempts - 1
            try:
                response = self.session.request(
                    method=verb,
                    url=url,
                    headers=context["headers"],
                    json=context["json_body"],
                    params=context["params"],
                    timeout=(self.config.connect_timeout_seconds, self.config.read_timeout_seconds),
                    verify=self.config.verify_ssl,
                )
            except requests.RequestException as exc:
                if last:
                    raise TransportError(
                        code="TRANSPORT_ERROR",
                        message=str(exc),
                        details={"type": type(exc).__name__},
                        trace_id=None,
                        status_code=0,
                        raw_payload=None,
                    ) from exc
            else:
                if response.status_code < 500 or last:
                    return response
            time.sleep(self.config.retry_backoff_seconds * (2**attempt))
        raise RuntimeError("retry loop exited without a response")

    def _record(self, module: str, operation: str, started: float, result: str, status_code: int | None) -> None:
        self.last_operation = LastOperation(
            module=module,
            operation=operation,
            duration_ms=int((time.monotonic() - started) * 1000),
            result=result,
            status_code=status_code,
        )
