"""Shared test fixtures and configuration for backend tests.

Each test gets its own app over a temporary upload directory, so the
selection state and stored files never leak between tests.
"""
from pathlib import Path
from typing import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from imagecast.config import AppSettings, StorageSettings
from imagecast.main import create_app


@pytest.fixture
def upload_dir(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture
def static_dir(tmp_path: Path) -> Path:
    path = tmp_path / "static"
    path.mkdir()
    (path / "index.html").write_text(
        "<!DOCTYPE html><title>imagecast</title>", encoding="utf-8"
    )
    return path


@pytest.fixture
def settings(upload_dir: Path, static_dir: Path) -> AppSettings:
    return AppSettings(
        storage=StorageSettings(upload_dir=str(upload_dir), static_dir=str(static_dir))
    )


@pytest.fixture
def app(settings: AppSettings) -> FastAPI:
    return create_app(settings)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient with the lifespan running (upload directory created)."""
    with TestClient(app) as test_client:
        yield test_client
