"""Immutable settings for the managed Firefox Developer Edition install."""
from __future__ import annotations

import tempfile
from dataclasses import dataclass, replace
from pathlib import Path


TOOL_NAME = "setup-firefox-dev"
TOOL_VERSION = "0.4.0"

DESKTOP_ENTRY_TEMPLATE = """[Desktop Entry]
Version=1.0
Name=Firefox Developer Edition
Comment=Browse the World Wide Web
Exec={exec_target}
GenericName=Web Browser
Keywords=Internet;WWW;Browser;Web;Explorer
Terminal=false
X-MultipleArgs=false
Type=Application
Icon={icon_path}
Categories=GNOME;GTK;Network;WebBrowser;
MimeType=text/html;text/xml;application/xhtml+xml;application/xml;application/rss+xml;application/rdf+xml;image/gif;image/jpeg;image/png;x-scheme-handler/http;x-scheme-handler/https;x-scheme-handler/ftp;x-scheme-handler/chrome;video/webm;application/x-xpinstall;
Encoding=UTF-8
StartupNotify=true
"""


@dataclass(frozen=True)
class InstallerConfig:
    endpoint_template: str
    target_dir: Path
    symlink_path: Path
    desktop_entry_path: Path
    default_locale: str = "en-US"
    archive_prefix: str = "firefox"
    executable_name: str = "firefox"
    icon_relpath: str = "browser/chrome/icons/default/default128.png"
    version_filename: str = ".version"
    staging_dir: Path = Path(tempfile.gettempdir())
    http_timeout: float | None = None

    @property
    def version_file(self) -> Path:
        return self.target_dir / self.version_filename

    @property
    def executable_path(self) -> Path:
        return self.target_dir / self.executable_name

    @property
    def icon_path(self) -> Path:
        return self.target_dir / self.icon_relpath

    def rooted_at(self, root: Path | str) -> "InstallerConfig":
        """Return a copy with every host location moved under ``root``.

        Used to exercise the real filesystem logic against a scratch directory.
        """
        base = Path(root)

        def _under(path: Path) -> Path:
            return base / path.relative_to(path.anchor)

        return replace(
            self,
            target_dir=_under(self.target_dir),
            symlink_path=_under(self.symlink_path),
            desktop_entry_path=_under(self.desktop_entry_path),
            staging_dir=base / "tmp",
        )


DEFAULT_CONFIG = InstallerConfig(
    endpoint_template=(
        "https://download.mozilla.org/?product=firefox-devedition-latest-ssl&os=linux64&lang={lang}"
    ),
    target_dir=Path("/opt/firefox-dev"),
    symlink_path=Path("/usr/local/bin/firefox-dev"),
    desktop_entry_path=Path("/usr/share/applications/Firefox-dev.desktop"),
)
