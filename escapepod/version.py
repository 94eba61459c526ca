"""Build version information."""

from __future__ import annotations

from dataclasses import dataclass

VERSION = "This was not set"
BUILD = "This was not set"
UI_VERSION = "This was not set"
UI_BUILD = "This was not set"


@dataclass(frozen=True)
class VersionResponse:
    """Version details reported by the API."""

    version: str
    build: str
    ui_version: str
    ui_build: str

    def to_dict(self) -> dict[str, str]:
        return {
            "apiVersion": self.version,
            "apiBuild": self.build,
            "uiVersion": self.ui_version,
            "uiBuild": self.ui_build,
        }


def default_version_response() -> VersionResponse:
    """Return the version details of this build."""
    return VersionResponse(
        version=VERSION, build=BUILD, ui_version=UI_VERSION, ui_build=UI_BUILD
    )