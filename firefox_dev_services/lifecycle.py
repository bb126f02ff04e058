"""Install, update, uninstall and status orchestration for the managed browser."""
from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from logly import logger

from firefox_dev_config.constants import TOOL_NAME, InstallerConfig
from firefox_dev_services.artifacts import ArtifactManager
from firefox_dev_services.errors import FilesystemError, NotInstalledError
from firefox_dev_services.http_client import Fetcher, HttpFetcher
from firefox_dev_services.progress import ProgressSpinner
from firefox_dev_services.resolver import RemoteVersionInfo, RemoteVersionResolver
from firefox_dev_services.state_store import InstalledRecord, InstalledStateStore


LEVEL_OK = "OK"
LEVEL_WARNING = "WARNING"
LEVEL_ERROR = "ERROR"


@dataclass(frozen=True)
class UpdateResult:
    previous: InstalledRecord
    latest: RemoteVersionInfo
    locale: str
    changed: bool


@dataclass(frozen=True)
class ArtifactCheck:
    name: str
    level: str
    message: str

    @property
    def ok(self) -> bool:
        return self.level == LEVEL_OK


@dataclass(frozen=True)
class StatusReport:
    record: InstalledRecord
    checks: tuple[ArtifactCheck, ...]

    @property
    def all_ok(self) -> bool:
        return all(check.ok for check in self.checks)


class LifecycleOrchestrator:
    def __init__(
        self,
        config: InstallerConfig,
        *,
        fetcher: Fetcher | None = None,
        resolver: RemoteVersionResolver | None = None,
        state_store: InstalledStateStore | None = None,
        artifacts: ArtifactManager | None = None,
        reporter: Callable[[str], None] | None = None,
        spinner_factory: Callable[[str], ProgressSpinner] | None = None,
    ) -> None:
        self._config = config
        self._fetcher = fetcher or HttpFetcher(timeout=config.http_timeout)
        self._resolver = resolver or RemoteVersionResolver(
            config.endpoint_template,
            self._fetcher,
            archive_prefix=config.archive_prefix,
        )
        self._store = state_store or InstalledStateStore(config.version_file, default_locale=config.default_locale)
        self._artifacts = artifacts or ArtifactManager()
        self._reporter = reporter or print
        self._spinner_factory = spinner_factory or ProgressSpinner

    def resolve_locale(self, explicit: str | None, record: InstalledRecord) -> str:
        if explicit:
            return explicit
        if record.is_installed and record.locale and record.locale != self._config.default_locale:
            return record.locale
        return self._config.default_locale

    def install(self, lang: str | None = None) -> InstalledRecord:
        previous = self._store.read()
        locale = self.resolve_locale(lang, previous)
        info = self._fetch_latest(locale)
        record = self._apply(info, locale)

        self._report(f"Creating symbolic link: {self._config.symlink_path}")
        self._artifacts.create_symlink(
            self._config.target_dir,
            self._config.symlink_path,
            executable_name=self._config.executable_name,
        )
        self._report(f"Creating desktop entry: {self._config.desktop_entry_path}")
        self._artifacts.write_desktop_entry(
            self._config.desktop_entry_path,
            self._config.symlink_path,
            self._config.icon_path,
        )

        self._report("\nInstallation successful.")
        logger.success(f"installed {record.version} ({record.locale})")
        return record

    def update(self, lang: str | None = None) -> UpdateResult:
        previous = self._require_installed()
        locale = self.resolve_locale(lang, previous)
        self._report(f"Currently installed version: {previous.version}")
        info = self._fetch_latest(locale)

        if not _needs_update(previous, info, locale):
            self._report(f"You already have the latest version ({previous.version}).")
            return UpdateResult(previous, info, locale, changed=False)

        self._announce(previous, info, locale)
        self._apply(info, locale)
        self._report(f"\nUpdate to version {info.version} successful.")
        logger.success(f"updated {previous.version} -> {info.version} ({locale})")
        return UpdateResult(previous, info, locale, changed=True)

    def check_update(self, lang: str | None = None) -> UpdateResult:
        previous = self._require_installed()
        locale = self.resolve_locale(lang, previous)
        self._report(f"Currently installed version: {previous.version}")
        info = self._fetch_latest(locale)

        if not _needs_update(previous, info, locale):
            self._report(f"You already have the latest version ({previous.version}).")
            return UpdateResult(previous, info, locale, changed=False)
        self._announce(previous, info, locale)
        return UpdateResult(previous, info, locale, changed=True)

    def update_force(self, lang: str | None = None) -> UpdateResult:
        self._report("Forcing update, skipping version check.")
        previous = self._store.read()
        locale = self.resolve_locale(lang, previous)
        info = self._fetch_latest(locale)
        self._apply(info, locale)
        self._report(f"\nForced update to version {info.version} successful.")
        logger.success(f"force-updated to {info.version} ({locale})")
        return UpdateResult(previous, info, locale, changed=True)

    def uninstall(self) -> None:
        self._report(f"Deleting target directory: {self._config.target_dir}")
        self._artifacts.remove_target_tree(self._config.target_dir)
        self._report(f"Deleting symbolic link: {self._config.symlink_path}")
        self._artifacts.remove_symlink(self._config.symlink_path)
        self._report(f"Deleting desktop entry: {self._config.desktop_entry_path}")
        self._artifacts.remove_desktop_entry(self._config.desktop_entry_path)
        self._report("\nUninstall successful.")
        logger.success("uninstalled")

    def status(self) -> StatusReport:
        record = self._store.read()
        if record.is_installed:
            self._report(f"Installed version: {record.version}")
            self._report(f"Locale: {record.locale}")
            checks = (self._check_directory(), self._check_symlink(), self._check_desktop_entry())
        else:
            self._report("Firefox Developer Edition is not installed.")
            checks = tuple(self._check_leftovers())

        for check in checks:
            self._report(f"[{check.level}] {check.message}")
            if not check.ok:
                logger.warning(f"status {check.name}: {check.message}")
        report = StatusReport(record, checks)
        self._report("Status: all checks passed." if report.all_ok else "Status: issues found.")
        return report

    def _report(self, message: str) -> None:
        self._reporter(message)
        logger.info(message.strip())

    def _require_installed(self) -> InstalledRecord:
        record = self._store.read()
        if not record.is_installed:
            raise NotInstalledError(
                "Could not determine installed version. The app may not have been installed by this tool. "
                "Use 'install' to re-install, or 'update --force' to overwrite"
            )
        return record

    def _fetch_latest(self, locale: str) -> RemoteVersionInfo:
        self._report("Fetching latest version information...")
        return self._resolver.resolve(locale)

    def _announce(self, previous: InstalledRecord, info: RemoteVersionInfo, locale: str) -> None:
        if info.version != previous.version:
            self._report(f"New version available: {info.version}")
        else:
            self._report(f"Switching locale from {previous.locale} to {locale} ({info.version})")

    def _apply(self, info: RemoteVersionInfo, locale: str) -> InstalledRecord:
        with self._staged_archive(info.filename) as archive_path:
            self._report(f"Downloading {info.filename}...")
            with self._spinner_factory(f"Downloading {info.filename}") as spinner:
                self._fetcher.download(info.resolved_url, archive_path, progress_callback=spinner.update)
            self._report(f"Extracting archive: {archive_path}")
            self._artifacts.extract(archive_path, self._config.target_dir, compression=info.compression)
        # only reached once extraction has fully succeeded
        record = InstalledRecord(version=info.version, locale=locale)
        self._store.write(record)
        return record

    @contextmanager
    def _staged_archive(self, filename: str) -> Iterator[Path]:
        staging_dir = self._config.staging_dir
        try:
            staging_dir.mkdir(parents=True, exist_ok=True)
            fd, name = tempfile.mkstemp(prefix=f"{TOOL_NAME}-", suffix=f"-{filename}", dir=staging_dir)
        except OSError as exc:
            raise FilesystemError(f"Failed to create download staging file ({exc.strerror or exc})", staging_dir) from exc
        os.close(fd)
        archive_path = Path(name)
        try:
            yield archive_path
        finally:
            archive_path.unlink(missing_ok=True)
            logger.debug(f"removed staged archive {archive_path}")

    def _check_directory(self) -> ArtifactCheck:
        target = self._config.target_dir
        if not target.is_dir():
            return ArtifactCheck("directory", LEVEL_ERROR, f"Target directory missing: {target}")
        if not self._config.executable_path.exists():
            return ArtifactCheck(
                "directory",
                LEVEL_WARNING,
                f"Target directory has no executable: {self._config.executable_path}",
            )
        return ArtifactCheck("directory", LEVEL_OK, f"Target directory: {target}")

    def _check_symlink(self) -> ArtifactCheck:
        link = self._config.symlink_path
        expected = self._config.executable_path
        if not link.is_symlink():
            if link.exists():
                return ArtifactCheck("symlink", LEVEL_ERROR, f"Not a symbolic link: {link}")
            return ArtifactCheck("symlink", LEVEL_ERROR, f"Symbolic link missing: {link}")
        try:
            actual = Path(os.readlink(link))
        except OSError as exc:
            return ArtifactCheck("symlink", LEVEL_ERROR, f"Unreadable symbolic link {link}: {exc}")
        if actual != expected:
            return ArtifactCheck("symlink", LEVEL_ERROR, f"Symbolic link {link} points to {actual}, expected {expected}")
        return ArtifactCheck("symlink", LEVEL_OK, f"Symbolic link: {link} -> {expected}")

    def _check_desktop_entry(self) -> ArtifactCheck:
        path = self._config.desktop_entry_path
        if not path.is_file():
            return ArtifactCheck("desktop", LEVEL_WARNING, f"Desktop entry missing: {path}")
        return ArtifactCheck("desktop", LEVEL_OK, f"Desktop entry: {path}")

    def _check_leftovers(self) -> Iterator[ArtifactCheck]:
        leftovers = (
            ("directory", self._config.target_dir, "Target directory"),
            ("symlink", self._config.symlink_path, "Symbolic link"),
            ("desktop", self._config.desktop_entry_path, "Desktop entry"),
        )
        for name, path, label in leftovers:
            if path.is_symlink() or path.exists():
                yield ArtifactCheck(name, LEVEL_WARNING, f"{label} left over without an install record: {path}")


def _needs_update(previous: InstalledRecord, info: RemoteVersionInfo, locale: str) -> bool:
    return info.version != previous.version or locale != previous.locale
