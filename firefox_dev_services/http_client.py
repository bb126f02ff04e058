"""HTTP access for version probing and archive downloads."""
from __future__ import annotations

import http.client
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Callable, Protocol

from logly import logger

from firefox_dev_config.constants import TOOL_NAME, TOOL_VERSION
from firefox_dev_services.errors import DownloadError, ResolutionError

_CHUNK_SIZE = 256 * 1024


class Fetcher(Protocol):
    def probe_locations(self, url: str) -> list[str]:
        ...

    def download(
        self,
        url: str,
        destination: Path,
        *,
        progress_callback: Callable[[int], None] | None = None,
    ) -> None:
        ...


class _LocationRecorder(urllib.request.HTTPRedirectHandler):
    """Redirect handler that keeps every ``Location`` it follows, absolute."""

    def __init__(self) -> None:
        super().__init__()
        self.locations: list[str] = []

    def redirect_request(self, req, fp, code, msg, headers, newurl):  # type: ignore[override]
        for value in headers.get_all("Location") or []:
            cleaned = value.strip()
            if cleaned:
                self.locations.append(urllib.parse.urljoin(req.full_url, cleaned))
        return super().redirect_request(req, fp, code, msg, headers, newurl)


class HttpFetcher:
    """urllib-backed fetcher following redirects the way ``wget`` does."""

    def __init__(self, *, timeout: float | None = None, user_agent: str | None = None) -> None:
        self._timeout = timeout
        self._headers = {"User-Agent": user_agent or f"{TOOL_NAME}/{TOOL_VERSION}"}

    def probe_locations(self, url: str) -> list[str]:
        recorder = _LocationRecorder()
        opener = urllib.request.build_opener(recorder)
        request = urllib.request.Request(url, headers=self._headers, method="HEAD")
        logger.debug(f"probing {url}")
        try:
            with self._open(opener, request):
                pass
        except urllib.error.HTTPError as exc:
            if recorder.locations:
                logger.debug(f"probe ended with HTTP {exc.code} after {len(recorder.locations)} redirect(s)")
            raise ResolutionError(f"Version probe failed for {url}: HTTP {exc.code} {exc.reason}") from exc
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            raise ResolutionError(f"Version probe failed for {url}: {_reason(exc)}") from exc
        return list(recorder.locations)

    def download(
        self,
        url: str,
        destination: Path,
        *,
        progress_callback: Callable[[int], None] | None = None,
    ) -> None:
        request = urllib.request.Request(url, headers=self._headers)
        destination.parent.mkdir(parents=True, exist_ok=True)
        opener = urllib.request.build_opener()
        downloaded = 0
        expected: int | None = None
        try:
            with self._open(opener, request) as response, destination.open("wb") as handle:
                length = response.headers.get("Content-Length")
                if length and length.isdigit():
                    expected = int(length)
                while True:
                    chunk = response.read(_CHUNK_SIZE)
                    if not chunk:
                        break
                    handle.write(chunk)
                    downloaded += len(chunk)
                    if progress_callback:
                        progress_callback(downloaded)
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            raise DownloadError(f"Failed to download from {url}: {_reason(exc)}") from exc
        if expected is not None and downloaded != expected:
            raise DownloadError(f"Download from {url} is incomplete ({downloaded} of {expected} bytes)")
        logger.debug(f"downloaded {downloaded} bytes to {destination}")

    def _open(self, opener: urllib.request.OpenerDirector, request: urllib.request.Request):
        if self._timeout is None:
            return opener.open(request)
        return opener.open(request, timeout=self._timeout)


def _reason(exc: BaseException) -> str:
    if isinstance(exc, urllib.error.HTTPError):
        return f"HTTP {exc.code} {exc.reason}"
    if isinstance(exc, urllib.error.URLError):
        return str(exc.reason)
    return str(exc)
