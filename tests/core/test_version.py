from __future__ import annotations

import importlib
from pathlib import Path

import pytest

from notification_center.core import version as version_module


def test_source_checkout_version_matches_project() -> None:
    assert version_module._read_pyproject_version() == "0.1.0"


@pytest.mark.parametrize(
    "content",
    [
        "[project]\nname = 'x'\n",
        "[tool.pytest]\n",
        "[project\n",
    ],
)
def test_pyproject_without_usable_version(tmp_path: Path, content: str) -> None:
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)

    assert version_module._read_pyproject_version(pyproject) is None


def test_missing_pyproject(tmp_path: Path) -> None:
    assert version_module._read_pyproject_version(tmp_path / "absent.toml") is None


@pytest.mark.parametrize(("declared", "expected"), [("2.4.0", "2.4.0"), (None, "0.0.0")])
def test_uninstalled_distribution_falls_back(
    monkeypatch: pytest.MonkeyPatch,
    declared: str | None,
    expected: str,
) -> None:
    module = importlib.reload(version_module)

    def _not_installed(_: str) -> str:
        raise module.PackageNotFoundError

    monkeypatch.setattr(module, "version", _not_installed)
    monkeypatch.setattr(module, "_read_pyproject_version", lambda: declared)

    assert module._resolve_version() == expected


def test_user_agent_names_distribution_and_version() -> None:
    name, _, release = version_module.USER_AGENT.partition("/")

    assert name == "social-scheduler-notifications"
    assert release == version_module.APP_VERSION
