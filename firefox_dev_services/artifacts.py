"""Filesystem artifacts owned by the installer: tree, launcher link, menu entry."""
from __future__ import annotations

import importlib.util
import shutil
import tarfile
from pathlib import Path, PurePosixPath

from logly import logger

from firefox_dev_config.constants import DESKTOP_ENTRY_TEMPLATE
from firefox_dev_services.errors import (
    DependencyMissingError,
    ExtractionError,
    FilesystemError,
    SymlinkError,
)


# tarfile compression suffix -> module it needs at runtime
_COMPRESSION_MODULES = {
    "bz2": "bz2",
    "xz": "lzma",
    "gz": "zlib",
}
_REQUIRED_MODULES = ("ssl", *sorted(set(_COMPRESSION_MODULES.values())))


def check_dependencies(modules: tuple[str, ...] = _REQUIRED_MODULES) -> None:
    missing = [name for name in modules if importlib.util.find_spec(name) is None]
    if missing:
        raise DependencyMissingError(missing)


class ArtifactManager:
    def extract(self, archive_path: Path, target_dir: Path, *, compression: str | None = None) -> None:
        """Unpack ``archive_path`` into ``target_dir`` dropping the top-level directory.

        Existing files are overwritten in place; a failure part-way leaves
        whatever was already written.
        """
        mode = _read_mode(compression)
        try:
            target_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExtractionError(f"Cannot create target directory {target_dir}: {exc.strerror or exc}") from exc
        try:
            with tarfile.open(archive_path, mode) as archive:
                archive.extractall(target_dir, filter=_strip_leading_component)
        except (tarfile.TarError, EOFError, OSError) as exc:
            raise ExtractionError(f"Failed to extract archive {archive_path}: {exc}") from exc
        logger.info(f"extracted {archive_path} into {target_dir}")

    def remove_target_tree(self, target_dir: Path) -> None:
        if target_dir.is_symlink() or target_dir.is_file():
            _unlink(target_dir, "Failed to delete directory")
            return
        if not target_dir.exists():
            return
        try:
            shutil.rmtree(target_dir)
        except OSError as exc:
            raise FilesystemError(f"Failed to delete directory ({exc.strerror or exc})", target_dir) from exc
        logger.info(f"removed {target_dir}")

    def create_symlink(self, target_dir: Path, link_path: Path, *, executable_name: str = "firefox") -> Path:
        destination = target_dir / executable_name
        if link_path.is_dir() and not link_path.is_symlink():
            raise SymlinkError("Refusing to replace a directory with the launcher link", link_path)
        self.remove_symlink(link_path)
        try:
            link_path.parent.mkdir(parents=True, exist_ok=True)
            link_path.symlink_to(destination)
        except OSError as exc:
            raise SymlinkError(f"Failed to create symbolic link ({exc.strerror or exc})", link_path) from exc
        logger.info(f"linked {link_path} -> {destination}")
        return destination

    def remove_symlink(self, link_path: Path) -> None:
        if link_path.is_symlink() or link_path.exists():
            _unlink(link_path, "Failed to delete symbolic link")

    def write_desktop_entry(self, path: Path, exec_target: Path, icon_path: Path) -> None:
        content = DESKTOP_ENTRY_TEMPLATE.format(exec_target=exec_target, icon_path=icon_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise FilesystemError(f"Failed to create desktop entry ({exc.strerror or exc})", path) from exc
        logger.info(f"wrote desktop entry {path}")

    def remove_desktop_entry(self, path: Path) -> None:
        if path.is_symlink() or path.exists():
            _unlink(path, "Failed to delete desktop entry")


def _read_mode(compression: str | None) -> str:
    if not compression:
        return "r:*"
    if compression not in _COMPRESSION_MODULES:
        raise ExtractionError(f"Unsupported archive compression '.tar.{compression}'")
    check_dependencies((_COMPRESSION_MODULES[compression],))
    return f"r:{compression}"


def _strip_leading_component(member: tarfile.TarInfo, dest_path: str) -> tarfile.TarInfo | None:
    parts = PurePosixPath(member.name).parts
    if parts and parts[0] == "/":
        parts = parts[1:]
    if len(parts) <= 1:
        return None
    changes: dict[str, str] = {"name": "/".join(parts[1:])}
    if member.islnk():
        link_parts = PurePosixPath(member.linkname).parts
        if len(link_parts) <= 1:
            return None
        changes["linkname"] = "/".join(link_parts[1:])
    return tarfile.data_filter(member.replace(**changes, deep=False), dest_path)


def _unlink(path: Path, message: str) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        raise FilesystemError(f"{message} ({exc.strerror or exc})", path) from exc
    logger.info(f"removed {path}")
