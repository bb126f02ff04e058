"""Installed version/locale record kept next to the extracted application."""
from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path

from logly import logger

from firefox_dev_services.errors import FilesystemError


NOT_INSTALLED_VERSION = "0"
_SEPARATOR = "|"


@dataclass(frozen=True)
class InstalledRecord:
    version: str
    locale: str

    @property
    def is_installed(self) -> bool:
        return self.version != NOT_INSTALLED_VERSION

    def to_text(self) -> str:
        return f"{self.version}{_SEPARATOR}{self.locale}\n"

    @classmethod
    def from_text(cls, text: str, *, default_locale: str) -> "InstalledRecord":
        line = text.strip().splitlines()[0].strip() if text.strip() else ""
        version, _, locale = line.partition(_SEPARATOR)
        version = version.strip()
        locale = locale.strip()
        if not version:
            return cls.not_installed(default_locale)
        return cls(version=version, locale=locale or default_locale)

    @classmethod
    def not_installed(cls, default_locale: str) -> "InstalledRecord":
        return cls(version=NOT_INSTALLED_VERSION, locale=default_locale)


class InstalledStateStore:
    def __init__(self, path: Path, *, default_locale: str) -> None:
        self._path = Path(path)
        self._default_locale = default_locale

    @property
    def path(self) -> Path:
        return self._path

    def read(self) -> InstalledRecord:
        if not self._path.is_file():
            return InstalledRecord.not_installed(self._default_locale)
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning(f"unreadable version record {self._path}: {exc}")
            return InstalledRecord.not_installed(self._default_locale)
        return InstalledRecord.from_text(text, default_locale=self._default_locale)

    def write(self, record: InstalledRecord) -> None:
        if not record.is_installed:
            raise ValueError("Refusing to persist the not-installed sentinel record")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(prefix=f"{self._path.name}.", dir=self._path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(record.to_text())
                os.chmod(temp_name, 0o644)
                os.replace(temp_name, self._path)
            except BaseException:
                Path(temp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise FilesystemError(f"Failed to write version record ({exc.strerror or exc})", self._path) from exc
        logger.info(f"recorded installed version {record.version} ({record.locale})")
