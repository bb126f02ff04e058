from __future__ import annotations

import os
from pathlib import Path

import pytest

from conftest import build_archive
from firefox_dev_services.artifacts import ArtifactManager, check_dependencies
from firefox_dev_services.errors import (
    DependencyMissingError,
    ExtractionError,
    FilesystemError,
    SymlinkError,
)


@pytest.fixture()
def manager() -> ArtifactManager:
    return ArtifactManager()


def test_extract_strips_top_level_directory(manager: ArtifactManager, tmp_path: Path) -> None:
    archive = build_archive(tmp_path / "firefox-118.0b3.tar.bz2")
    target = tmp_path / "opt" / "firefox-dev"
    manager.extract(archive, target, compression="bz2")
    assert (target / "firefox").is_file()
    assert (target / "browser" / "chrome" / "icons" / "default" / "default128.png").is_file()
    assert not (target / "firefox" / "firefox").exists()
    assert os.access(target / "firefox", os.X_OK)


def test_extract_detects_compression_when_unspecified(manager: ArtifactManager, tmp_path: Path) -> None:
    archive = build_archive(tmp_path / "firefox-135.0b4.tar.xz", compression="xz")
    manager.extract(archive, tmp_path / "target")
    assert (tmp_path / "target" / "application.ini").is_file()


def test_extract_overwrites_existing_files(manager: ArtifactManager, tmp_path: Path) -> None:
    target = tmp_path / "target"
    target.mkdir()
    (target / "application.ini").write_text("old", encoding="utf-8")
    (target / "leftover.so").write_text("kept", encoding="utf-8")
    manager.extract(build_archive(tmp_path / "a.tar.bz2"), target)
    assert "118.0b3" in (target / "application.ini").read_text(encoding="utf-8")
    assert (target / "leftover.so").exists()


def test_extract_corrupt_archive(manager: ArtifactManager, tmp_path: Path) -> None:
    archive = tmp_path / "firefox-118.0b3.tar.bz2"
    archive.write_bytes(b"not a tarball")
    with pytest.raises(ExtractionError):
        manager.extract(archive, tmp_path / "target", compression="bz2")


def test_extract_unsupported_compression(manager: ArtifactManager, tmp_path: Path) -> None:
    archive = build_archive(tmp_path / "a.tar.bz2")
    with pytest.raises(ExtractionError, match="zst"):
        manager.extract(archive, tmp_path / "target", compression="zst")


def test_symlink_replaces_stale_link(manager: ArtifactManager, tmp_path: Path) -> None:
    target = tmp_path / "opt" / "firefox-dev"
    link = tmp_path / "bin" / "firefox-dev"
    link.parent.mkdir()
    link.symlink_to(tmp_path / "somewhere-else")
    manager.create_symlink(target, link)
    assert link.is_symlink()
    assert Path(os.readlink(link)) == target / "firefox"
    assert [p.name for p in link.parent.iterdir()] == ["firefox-dev"]


def test_symlink_replaces_plain_file(manager: ArtifactManager, tmp_path: Path) -> None:
    link = tmp_path / "bin" / "firefox-dev"
    link.parent.mkdir()
    link.write_text("#!/bin/sh\n", encoding="utf-8")
    manager.create_symlink(tmp_path / "target", link)
    assert link.is_symlink()
    assert Path(os.readlink(link)) == tmp_path / "target" / "firefox"


def test_symlink_refuses_directory(manager: ArtifactManager, tmp_path: Path) -> None:
    link = tmp_path / "bin" / "firefox-dev"
    link.mkdir(parents=True)
    with pytest.raises(SymlinkError) as excinfo:
        manager.create_symlink(tmp_path / "target", link)
    assert excinfo.value.path == link


def test_symlink_failure_is_surfaced(manager: ArtifactManager, tmp_path: Path) -> None:
    blocker = tmp_path / "bin"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(SymlinkError):
        manager.create_symlink(tmp_path / "target", blocker / "firefox-dev")


def test_removals_are_idempotent(manager: ArtifactManager, tmp_path: Path) -> None:
    manager.remove_target_tree(tmp_path / "missing")
    manager.remove_symlink(tmp_path / "missing-link")
    manager.remove_desktop_entry(tmp_path / "missing.desktop")


def test_remove_symlink_handles_dangling_link(manager: ArtifactManager, tmp_path: Path) -> None:
    link = tmp_path / "firefox-dev"
    link.symlink_to(tmp_path / "gone")
    manager.remove_symlink(link)
    assert not link.is_symlink()


def test_remove_target_tree(manager: ArtifactManager, tmp_path: Path) -> None:
    target = tmp_path / "target"
    (target / "browser").mkdir(parents=True)
    (target / ".version").write_text("1|en-US\n", encoding="utf-8")
    manager.remove_target_tree(target)
    assert not target.exists()


def test_desktop_entry_is_rewritten_not_appended(manager: ArtifactManager, tmp_path: Path) -> None:
    path = tmp_path / "applications" / "Firefox-dev.desktop"
    icon = tmp_path / "target" / "browser" / "chrome" / "icons" / "default" / "default128.png"
    manager.write_desktop_entry(path, Path("/usr/local/bin/firefox-dev"), icon)
    first = path.read_text(encoding="utf-8")
    manager.write_desktop_entry(path, Path("/usr/local/bin/firefox-dev"), icon)
    assert path.read_text(encoding="utf-8") == first
    assert first.startswith("[Desktop Entry]\n")
    assert "Exec=/usr/local/bin/firefox-dev\n" in first
    assert f"Icon={icon}\n" in first
    assert first.count("[Desktop Entry]") == 1


def test_desktop_entry_failure_reports_path(manager: ArtifactManager, tmp_path: Path) -> None:
    blocker = tmp_path / "applications"
    blocker.write_text("", encoding="utf-8")
    with pytest.raises(FilesystemError) as excinfo:
        manager.write_desktop_entry(blocker / "Firefox-dev.desktop", Path("/x"), Path("/y"))
    assert excinfo.value.path == blocker / "Firefox-dev.desktop"


def test_check_dependencies_lists_every_missing_module() -> None:
    with pytest.raises(DependencyMissingError) as excinfo:
        check_dependencies(("json", "no_such_module_a", "no_such_module_b"))
    assert excinfo.value.missing == ["no_such_module_a", "no_such_module_b"]


def test_check_dependencies_passes_for_available_modules() -> None:
    check_dependencies(("json", "tarfile"))
