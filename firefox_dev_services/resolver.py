"""Latest-version resolution from the vendor's redirecting download endpoint."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

from logly import logger

from firefox_dev_services.errors import ResolutionError, VersionParseError
from firefox_dev_services.http_client import Fetcher
from firefox_dev_services.state_store import NOT_INSTALLED_VERSION


@dataclass(frozen=True)
class RemoteVersionInfo:
    version: str
    filename: str
    resolved_url: str

    @property
    def compression(self) -> str:
        return self.filename.rsplit(".", 1)[-1]


class RemoteVersionResolver:
    """Finds the newest archive without downloading it.

    The endpoint answers with a chain of redirects ending at a URL such as
    ``.../firefox-118.0b3.tar.bz2``; the version is read from that filename.
    """

    def __init__(self, endpoint_template: str, fetcher: Fetcher, *, archive_prefix: str = "firefox") -> None:
        self._endpoint_template = endpoint_template
        self._fetcher = fetcher
        self._pattern = archive_pattern(archive_prefix)

    def endpoint_for(self, locale: str) -> str:
        return self._endpoint_template.format(lang=locale)

    def resolve(self, locale: str) -> RemoteVersionInfo:
        url = self.endpoint_for(locale)
        locations = self._fetcher.probe_locations(url)
        resolved_url = final_location(locations)
        if not resolved_url:
            raise ResolutionError(f"No redirect Location received from {url}")
        filename = filename_from_url(resolved_url)
        if not filename:
            raise ResolutionError("Could not determine the latest version filename from the server")
        version = parse_archive_version(filename, self._pattern)
        logger.info(f"resolved latest version {version} ({locale}) -> {resolved_url}")
        return RemoteVersionInfo(version=version, filename=filename, resolved_url=resolved_url)


def archive_pattern(prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^{re.escape(prefix)}-(?P<version>.+)\.tar\.(?P<compression>[A-Za-z0-9]+)$")


def final_location(locations: Iterable[str]) -> str | None:
    last: str | None = None
    for value in locations:
        cleaned = value.replace("\r", "").strip()
        if cleaned:
            last = cleaned
    return last


def filename_from_url(url: str) -> str:
    without_query = url.split("?", 1)[0].split("#", 1)[0]
    return without_query.rstrip().rsplit("/", 1)[-1]


def parse_archive_version(filename: str, pattern: re.Pattern[str]) -> str:
    match = pattern.match(filename)
    # "0" is the on-disk marker for "not installed" and cannot be recorded
    if not match or match.group("version").strip() in ("", NOT_INSTALLED_VERSION):
        raise VersionParseError(filename)
    return match.group("version")
