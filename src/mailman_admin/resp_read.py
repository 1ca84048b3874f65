from __future__ import annotations

"""
resp_read.py — аккуратно достать HTML-текст из Response.

Страницы Mailman 2 отдаются в кодировке языка списка (iso-8859-1 для немецкого,
utf-8 для новых установок), и charset часто указан только в
<meta http-equiv="Content-Type">. Если декодировать "как повезёт", умлауты в
подписи кнопки и адресах превращаются в кракозябры.

Порядок гипотез:
1) charset из заголовка Content-Type
2) charset из <meta> в начале документа
3) resp.encoding (что выставил requests), затем apparent_encoding
4) fallback_encodings
"""

from dataclasses import dataclass
import re
from typing import Optional

import requests


_META_CHARSET_RE = re.compile(rb"""<meta[^>]+charset\s*=\s*["']?([A-Za-z0-9_\-:.]+)""", re.IGNORECASE)


@dataclass
class TextPayload:
    text: str
    encoding_used: str
    source: str
    content_type: str
    size_bytes: int


def _extract_charset(content_type: str) -> Optional[str]:
    m = re.search(r"charset=([^\s;]+)", content_type or "", flags=re.IGNORECASE)
    return m.group(1).strip("\"'") if m else None


def _meta_charset(raw: bytes) -> Optional[str]:
    m = _META_CHARSET_RE.search(raw[:4096])
    if not m:
        return None
    try:
        return m.group(1).decode("ascii")
    except UnicodeDecodeError:
        return None


def read_text_safely(
    resp: requests.Response,
    *,
    fallback_encodings: tuple[str, ...] = ("utf-8", "latin-1"),
    errors: str = "replace",
) -> TextPayload:
    content_type = resp.headers.get("Content-Type", "")
    raw = resp.content or b""
    size = len(raw)

    candidates: list[tuple[Optional[str], str]] = [
        (_extract_charset(content_type), "header_charset"),
        (_meta_charset(raw), "meta_charset"),
        (resp.encoding, "requests_encoding"),
    ]
    if raw:
        candidates.append((getattr(resp, "apparent_encoding", None), "apparent_encoding"))
    candidates.extend((enc, "fallback_list") for enc in fallback_encodings)

    for enc, source in candidates:
        if not enc:
            continue
        try:
            return TextPayload(
                text=raw.decode(enc, errors=errors),
                encoding_used=enc,
                source=source,
                content_type=content_type,
                size_bytes=size,
            )
        except LookupError:
            continue

    return TextPayload(
        text=raw.decode("utf-8", errors="replace"),
        encoding_used="utf-8",
        source="fallback_utf8",
        content_type=content_type,
        size_bytes=size,
    )
