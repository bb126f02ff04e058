from __future__ import annotations

import io
import tarfile
import urllib.parse
from pathlib import Path
from typing import Callable

import pytest

from firefox_dev_config.constants import DEFAULT_CONFIG, InstallerConfig
from firefox_dev_services.errors import DownloadError

FIREFOX_FILES = {
    "firefox": "#!/bin/sh\necho firefox\n",
    "browser/chrome/icons/default/default128.png": "png",
    "application.ini": "[App]\nVersion=118.0b3\n",
}


def build_archive(
    path: Path,
    files: dict[str, str] | None = None,
    *,
    top: str = "firefox",
    compression: str = "bz2",
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, f"w:{compression}") as archive:
        top_info = tarfile.TarInfo(top)
        top_info.type = tarfile.DIRTYPE
        top_info.mode = 0o755
        archive.addfile(top_info)
        for name, content in (files or FIREFOX_FILES).items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(f"{top}/{name}")
            info.size = len(data)
            info.mode = 0o755
            archive.addfile(info, io.BytesIO(data))
    return path


class FakeFetcher:
    """Stands in for the mozilla redirector and CDN."""

    def __init__(self, archive: bytes, *, version: str = "118.0b3", compression: str = "bz2") -> None:
        self.archive = archive
        self.version = version
        self.compression = compression
        self.probed: list[str] = []
        self.probed_locales: list[str] = []
        self.downloads: list[tuple[str, Path]] = []
        self.download_error: Exception | None = None

    def probe_locations(self, url: str) -> list[str]:
        self.probed.append(url)
        lang = urllib.parse.parse_qs(urllib.parse.urlparse(url).query).get("lang", [""])[0]
        self.probed_locales.append(lang)
        filename = f"firefox-{self.version}.tar.{self.compression}"
        return [
            f"https://download.mozilla.org/redirect?lang={lang}",
            f"https://download-installer.cdn.mozilla.net/pub/devedition/releases/{self.version}/linux-x86_64/{lang}/{filename}?sig=abc",
        ]

    def download(
        self,
        url: str,
        destination: Path,
        *,
        progress_callback: Callable[[int], None] | None = None,
    ) -> None:
        self.downloads.append((url, destination))
        if self.download_error is not None:
            destination.write_bytes(self.archive[:10])
            raise self.download_error
        destination.write_bytes(self.archive)
        if progress_callback:
            progress_callback(len(self.archive))


@pytest.fixture()
def config(tmp_path: Path) -> InstallerConfig:
    return DEFAULT_CONFIG.rooted_at(tmp_path / "host")


@pytest.fixture()
def archive_bytes(tmp_path: Path) -> bytes:
    return build_archive(tmp_path / "build" / "firefox-118.0b3.tar.bz2").read_bytes()


@pytest.fixture()
def fetcher(archive_bytes: bytes) -> FakeFetcher:
    return FakeFetcher(archive_bytes)


@pytest.fixture()
def failing_download() -> DownloadError:
    return DownloadError("Failed to download from https://example.invalid: connection reset")
