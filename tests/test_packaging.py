from __future__ import annotations

from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parents[1] / "pyproject.toml"


def _lower_bound(requirements: list[str], name: str) -> tuple[int, ...]:
    for req in requirements:
        pkg, sep, version = req.partition(">=")
        if pkg.strip() == name and sep:
            return tuple(int(p) for p in version.strip().split("."))
    raise AssertionError(f"{name} has no lower bound")


def test_dashboard_streamlit_supports_stretch_width() -> None:
    # width="stretch" on charts and dataframes
    project = tomllib.loads(PYPROJECT.read_text(encoding="utf-8"))["project"]
    assert _lower_bound(project["optional-dependencies"]["dashboard"], "streamlit") >= (1, 50)
