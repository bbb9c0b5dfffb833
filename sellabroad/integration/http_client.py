"""
Minimal HTTP client (stdlib).

- Retry with exponential backoff on 5xx and transport errors; 4xx never retried.
- Timeouts per request.
- Dry-run mode answers locally without touching the network.
"""
from __future__ import annotations

import json
import time
import urllib.error
import urllib.request
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from sellabroad.infra.logging_std import get_logger

logger = get_logger(__name__)


class HttpClientError(RuntimeError):
    pass


class HttpTimeoutError(HttpClientError):
    pass


class HttpResponseError(HttpClientError):
    def __init__(self, status: int, body: bytes, message: str = "HTTP error"):
        super().__init__(f"{message} (status={status})")
        self.status = status
        self.body = body

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


@dataclass(frozen=True)
class HttpRequest:
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None
    timeout_s: float = 20.0


@dataclass(frozen=True)
class HttpResponse:
    status: int
    headers: Dict[str, str]
    body: bytes

    def json(self) -> Any:
        return json.loads(self.body.decode("utf-8"))


def _encode_json(data: Any) -> bytes:
    return json.dumps(data, ensure_ascii=False).encode("utf-8")


class SimpleHttpClient:
    """
    retry_max: retries on top of the first attempt (retry_max=2 => up to 3 attempts)
    backoff_s: base delay, doubled per retry (1x, 2x, 4x)
    """

    def __init__(
        self,
        *,
        retry_max: int = 2,
        backoff_s: float = 0.4,
        dry_run: bool = False,
        user_agent: str = "sellabroad-http/1.0",
    ):
        if retry_max < 0:
            raise ValueError("retry_max must be >= 0")
        if backoff_s < 0:
            raise ValueError("backoff_s must be >= 0")
        self.retry_max = retry_max
        self.backoff_s = backoff_s
        self.dry_run = dry_run
        self.user_agent = user_agent

    def request(self, req: HttpRequest) -> HttpResponse:
        if self.dry_run:
            logger.info("dry-run request skipped | method=%s url=%s", req.method.upper(), req.url)
            return HttpResponse(status=200, headers={"x-dry-run": "1"}, body=b'{"dry_run": true}')

        headers = dict(req.headers or {})
        headers.setdefault("User-Agent", self.user_agent)

        attempt = 0
        last_err: Optional[Exception] = None

        while attempt <= self.retry_max:
            try:
                ureq = urllib.request.Request(
                    url=req.url,
                    data=req.body,
                    method=req.method.upper(),
                    headers=headers,
                )
                with urllib.request.urlopen(ureq, timeout=req.timeout_s) as resp:
                    status = int(getattr(resp, "status", 200))
                    resp_headers = dict(getattr(resp, "headers", {}) or {})
                    body = resp.read() if hasattr(resp, "read") else b""
                    if status >= 400:
                        raise HttpResponseError(status=status, body=body, message="Upstream rejected")
                    return HttpResponse(status=status, headers=resp_headers, body=body)
            except urllib.error.HTTPError as e:
                status = int(getattr(e, "code", 500))
                body = e.read() if e.fp is not None else b""
                if 400 <= status < 500:
                    raise HttpResponseError(status=status, body=body, message="Client error") from e
                last_err = HttpResponseError(status=status, body=body, message="Server error")
            except urllib.error.URLError as e:
                last_err = e
            except TimeoutError as e:
                last_err = e
            except (ValueError, TypeError) as e:
                # malformed url or body
                last_err = e

            attempt += 1
            logger.warning("request failed | url=%s attempt=%d error=%r", req.url, attempt, last_err)
            if attempt <= self.retry_max:
                time.sleep(self.backoff_s * (2 ** (attempt - 1)))

        if isinstance(last_err, TimeoutError):
            raise HttpTimeoutError("timeout") from last_err
        if isinstance(last_err, HttpResponseError):
            raise last_err
        raise HttpClientError("request failed") from last_err

    def post_json(
        self,
        url: str,
        payload: Any,
        headers: Optional[Dict[str, str]] = None,
        timeout_s: float = 20.0,
    ) -> HttpResponse:
        h = dict(headers or {})
        h.setdefault("Content-Type", "application/json")
        return self.request(HttpRequest(method="POST", url=url, headers=h, body=_encode_json(payload), timeout_s=timeout_s))
