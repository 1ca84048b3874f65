from __future__ import annotations

"""
http_session.py — HTTP-слой клиента админки: requests.Session + cookies + base URL.

Что делает:
- держит один requests.Session (cookie jar = аутентификация админки);
- строит URL относительно base URL списка;
- декодирует HTML через resp_read;
- сетевые ошибки и статусы >= 400 превращает в TransportError (без retry);
- по флагу diag_http пишет короткую строку диагностики в stderr.

Чего НЕ делает: retry/backoff, rate limit, кэш. Каждый вызов — один запрос.
"""

import sys
import time
from dataclasses import dataclass
from typing import Any, Optional
from urllib.parse import urljoin, urlparse

import requests

from .resp_read import read_text_safely


DEFAULT_HTML_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
}


class TransportError(RuntimeError):
    """Запрос не дошёл или сервер ответил ошибкой HTTP."""

    def __init__(self, message: str, *, url: str, method: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.method = method
        self.status_code = status_code


@dataclass
class HtmlPage:
    url: str
    status_code: int
    text: str


def _path_of(url: str) -> str:
    try:
        return urlparse(url).path or "/"
    except ValueError:
        return url


class AdminSession:
    """Единая точка HTTP-запросов к админке одного списка."""

    def __init__(
        self,
        base_url: str,
        *,
        verify_ssl: bool = True,
        timeout: Optional[float] = None,
        default_headers: Optional[dict[str, str]] = None,
        diag_http: bool = False,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = str(base_url or "").rstrip("/")
        self.verify_ssl = bool(verify_ssl)
        self.timeout = timeout
        self.default_headers = dict(DEFAULT_HTML_HEADERS)
        self.default_headers.update(default_headers or {})
        self.diag_http = bool(diag_http)
        self.last_diag: Optional[dict[str, Any]] = None
        self.session = session or requests.Session()

    def url_for(self, path: str) -> str:
        """
        "" -> base URL; "members/add" -> base/members/add;
        абсолютные URL (ссылки на страницы букв) — как есть.
        """
        p = str(path or "")
        if p.startswith("http://") or p.startswith("https://"):
            return p
        p = p.lstrip("/")
        return f"{self.base_url}/{p}" if p else self.base_url

    def resolve_link(self, page_url: str, href: str) -> str:
        # ссылки букв обычно абсолютные, но бывают относительные к странице ростера
        if href.startswith("http://") or href.startswith("https://"):
            return href
        return urljoin(page_url, href)

    def _emit_diag(self, d: dict[str, Any]) -> None:
        self.last_diag = d
        if not self.diag_http:
            return
        parts = [
            f"[HTTP] {d.get('method')} {d.get('path')} sc={d.get('status')} err={d.get('err')}",
            f"elapsed={d.get('elapsed_ms')}ms",
        ]
        if d.get("op"):
            parts.append(f"op={d['op']}")
        sys.stderr.write(" ".join(parts) + "\n")

    def request(
        self,
        method: str,
        path: str,
        *,
        data: Optional[dict[str, Any]] = None,
        op: Optional[str] = None,
    ) -> HtmlPage:
        url = self.url_for(path)
        m = str(method).upper()
        kwargs: dict[str, Any] = {
            "method": m,
            "url": url,
            "headers": dict(self.default_headers),
            "data": data,
            "verify": self.verify_ssl,
            "allow_redirects": True,
        }
        if self.timeout is not None:
            kwargs["timeout"] = float(self.timeout)

        t0 = time.monotonic()
        try:
            resp = self.session.request(**kwargs)
        except requests.RequestException as e:
            elapsed_ms = int((time.monotonic() - t0) * 1000)
            err = "timeout" if isinstance(e, requests.Timeout) else f"network_error:{type(e).__name__}"
            self._emit_diag({
                "method": m, "path": _path_of(url), "op": op, "status": None,
                "err": err, "elapsed_ms": elapsed_ms,
            })
            raise TransportError(f"{m} {url} failed: {err}", url=url, method=m) from e

        elapsed_ms = int((time.monotonic() - t0) * 1000)
        sc = int(resp.status_code)
        err = f"http_{sc}" if sc >= 400 else None
        self._emit_diag({
            "method": m, "path": _path_of(url), "op": op, "status": sc,
            "err": err, "elapsed_ms": elapsed_ms,
        })
        if err is not None:
            raise TransportError(f"{m} {url} failed: {err}", url=url, method=m, status_code=sc)

        payload = read_text_safely(resp)
        return HtmlPage(url=str(resp.url or url), status_code=sc, text=payload.text)

    def get(self, path: str, *, op: Optional[str] = None) -> HtmlPage:
        return self.request("GET", path, op=op)

    def post(self, path: str, data: dict[str, Any]) -> HtmlPage:
        return self.request("POST", path, data=data)
