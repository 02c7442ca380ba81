"""Shared fixtures for SecCopilot tests."""

import logging
from collections.abc import Callable
from pathlib import Path

import pytest

from seccopilot.analyzers import ScanContext
from seccopilot.logging_config import ROOT_LOGGER
from seccopilot.models import Confidence, Finding, Severity
from seccopilot.providers import LocalFileProvider


@pytest.fixture(autouse=True)
def reset_package_logger():
    """Undo configure_logging() so caplog keeps working across tests."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[dict[str, str]], Path]:
    """Write a project tree from a {relative path: content} mapping."""

    def _make(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def make_context() -> Callable[..., ScanContext]:
    def _make(root: Path, **overrides) -> ScanContext:
        return ScanContext(root=str(root), provider=LocalFileProvider(str(root)), **overrides)

    return _make


@pytest.fixture
def make_finding() -> Callable[..., Finding]:
    counter = {"n": 0}

    def _make(
        severity: Severity = Severity.HIGH,
        category: str = "Injection",
        **overrides,
    ) -> Finding:
        counter["n"] += 1
        fields = {
            "id": f"TEST-{counter['n']:03d}",
            "severity": severity,
            "category": category,
            "title": f"Test finding {counter['n']}",
            "description": "A finding created for tests",
            "file": "src/app.js",
            "line": counter["n"],
            "recommendation": f"Fix issue {counter['n']}",
            "confidence": Confidence.HIGH,
        }
        fields.update(overrides)
        return Finding(**fields)

    return _make
