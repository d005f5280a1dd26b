"""Release identifiers shared by the API metadata and the polling client."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Final

import tomllib

DISTRIBUTION_NAME: Final[str] = "social-scheduler-notifications"
_PYPROJECT: Final[Path] = Path(__file__).resolve().parents[2] / "pyproject.toml"


def _read_pyproject_version(path: Path = _PYPROJECT) -> str | None:
    """Version declared in a source checkout, when the distribution is not installed."""
    try:
        with path.open("rb") as fp:
            project = tomllib.load(fp).get("project")
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    declared = project.get("version") if isinstance(project, dict) else None
    return declared if isinstance(declared, str) else None


def _resolve_version() -> str:
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return _read_pyproject_version() or "0.0.0"


APP_VERSION: Final[str] = _resolve_version()
# Sent by the polling client so access logs tell watcher traffic from browsers.
USER_AGENT: Final[str] = f"{DISTRIBUTION_NAME}/{APP_VERSION}"

__all__ = ["APP_VERSION", "DISTRIBUTION_NAME", "USER_AGENT"]
