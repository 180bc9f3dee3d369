"""
Network-calling native functions supplied by the host.

These are not part of the core: a host opts in with
`runner.register_host(HttpNatives())`. Calls block until the request
finishes or the timeout expires.
"""
from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, Optional

import httpx
import yaml

from tamarin.tamarin_builtins import native_method, arity_error
from tamarin.tamarin_convert import to_value
from tamarin.tamarin_object import Object, String, Error


def _encoding_from_content_type(content_type: Optional[str]) -> Optional[str]:
    if not content_type:
        return None
    m = re.search(r'charset\s*=\s*([^\s;]+)', content_type, re.IGNORECASE)
    if m:
        return m.group(1).strip('"').strip("'")
    return None


def detect_format(content_type: Optional[str] = None, data_hint: Optional[str] = None) -> Optional[str]:
    """
    Returns 'json' or 'yaml' when the payload is structured, else None.
    Uses Content-Type first; falls back to simple data sniffing if provided.
    """
    ct = (content_type or "").lower()
    if 'json' in ct:
        return 'json'
    if 'yaml' in ct:
        return 'yaml'
    if data_hint is not None and not ct:
        s = data_hint.lstrip()
        if s.startswith('{') or s.startswith('['):
            return 'json'
    return None


def decode_body(data: bytes | str, content_type: Optional[str] = None) -> Object:
    """Decode a response body into a Tamarin value; unstructured text stays a String."""
    if isinstance(data, (bytes, bytearray)):
        enc = _encoding_from_content_type(content_type) or 'utf-8'
        text = bytes(data).decode(enc, errors='replace')
    else:
        text = data
    fmt = detect_format(content_type, text)
    if fmt == 'json':
        try:
            return to_value(json.loads(text))
        except ValueError:
            return String(text)
    if fmt == 'yaml':
        try:
            return to_value(yaml.safe_load(text))
        except yaml.YAMLError:
            return String(text)
    return String(text)


class HttpNatives:
    """Host natives performing HTTP requests with retries."""

    def __init__(self,
                 timeout: float = 5.0,
                 retries: int = 2,
                 backoff: float = 0.2,
                 headers: Optional[Dict[str, str]] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.timeout = float(timeout)
        self.retries = int(retries)
        self.backoff = float(backoff)
        self.headers = dict(headers or {})
        self._transport = transport

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self.timeout, follow_redirects=True,
                            headers=self.headers, transport=self._transport)

    def request(self, method: str, url: str) -> Object:
        """Perform one request, retrying transport failures with exponential backoff."""
        with self._client() as client:
            for attempt in range(self.retries + 1):
                try:
                    resp = client.request(method.upper(), url)
                except httpx.TransportError as e:
                    if attempt < self.retries:
                        time.sleep(self.backoff * (2 ** attempt))
                        continue
                    return Error(f"http request failed: {e}")
                if 200 <= resp.status_code < 300:
                    return decode_body(resp.content, resp.headers.get("Content-Type"))
                return Error(f"http error: {resp.status_code} {url}")
        return Error(f"http request failed: {url}")

    @native_method
    def http_get(self, *args: Any) -> Object:
        if len(args) != 1:
            return arity_error(len(args), 1)
        url = args[0]
        if not isinstance(url, String):
            return Error(f"argument to `http_get` must be STRING, got {url.type_name}")
        return self.request('GET', url.value)
