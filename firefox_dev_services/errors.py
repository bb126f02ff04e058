"""Error taxonomy shared by the installer services."""
from __future__ import annotations

from pathlib import Path


class InstallerError(RuntimeError):
    pass


class DependencyMissingError(InstallerError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(f"Missing required capabilities: {', '.join(missing)}")
        self.missing = list(missing)


class PrivilegeError(InstallerError):
    pass


class ResolutionError(InstallerError):
    pass


class VersionParseError(ResolutionError):
    def __init__(self, filename: str) -> None:
        super().__init__(f"Could not parse a version from archive filename '{filename}'")
        self.filename = filename


class DownloadError(InstallerError):
    pass


class ExtractionError(InstallerError):
    pass


class NotInstalledError(InstallerError):
    pass


class FilesystemError(InstallerError):
    def __init__(self, message: str, path: Path | str) -> None:
        super().__init__(f"{message}: {path}")
        self.path = Path(path)


class SymlinkError(FilesystemError):
    pass
