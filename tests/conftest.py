import json
import subprocess
from pathlib import Path
from typing import Dict, List, Optional

import pytest
import requests
from fastapi.testclient import TestClient

from modbuild.api.main import app
from modbuild.core.observability.metrics import reset_metrics


class StubResponse:
    def __init__(self, status_code: int = 200, text: str = ""):
        self.status_code = status_code
        self.text = text

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"HTTP {self.status_code}")


class StubSession:
    """Serves canned responses keyed by URL; unknown URLs answer 404."""

    def __init__(self, responses: Optional[Dict[str, object]] = None):
        self.responses = dict(responses or {})
        self.calls: List[str] = []

    def get(self, url, timeout=None):
        self.calls.append(url)
        r = self.responses.get(url)
        if isinstance(r, Exception):
            raise r
        if r is None:
            return StubResponse(404, "Not Found")
        return r


def pom_with_hash(commit_hash: Optional[str], *, namespaced: bool = True) -> str:
    xmlns = ' xmlns="http://maven.apache.org/POM/4.0.0"' if namespaced else ""
    props = f"<properties><hash>{commit_hash}</hash></properties>" if commit_hash else ""
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        f"<project{xmlns}>"
        "<modelVersion>4.0.0</modelVersion>"
        "<groupId>org.quiltmc.qsl.core</groupId>"
        "<artifactId>events</artifactId>"
        "<version>1.0.0</version>"
        f"{props}"
        "</project>"
    )


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("MODBUILD_CONFIG", "MODBUILD_MAVEN_URL", "MODBUILD_HTTP_TIMEOUT", "MODBUILD_PROJECT_ROOT"):
        monkeypatch.delenv(var, raising=False)
    reset_metrics()


@pytest.fixture()
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture()
def stub_session():
    return StubSession


@pytest.fixture()
def tmp_repo(tmp_path: Path):
    """
    Provides a temporary git repo with one commit.
    """
    repo = tmp_path / "repo"
    repo.mkdir(parents=True, exist_ok=True)
    git = ["git", "-c", "user.email=dev@example.org", "-c", "user.name=dev"]
    subprocess.run(["git", "init"], cwd=str(repo), check=True, capture_output=True)
    (repo / "README.md").write_text("x", encoding="utf-8")
    subprocess.run(["git", "add", "."], cwd=str(repo), check=True)
    subprocess.run([*git, "commit", "-m", "init"], cwd=str(repo), check=True, capture_output=True)
    return repo


def _write_module(root: Path, library: str, module: str, body: str, testmod: Optional[dict] = None) -> Path:
    d = root / "library" / library / module
    d.mkdir(parents=True, exist_ok=True)
    (d / "module.yaml").write_text(body, encoding="utf-8")
    if testmod is not None:
        res = d / "src" / "testmod" / "resources"
        res.mkdir(parents=True, exist_ok=True)
        (res / "quilt.mod.json").write_text(json.dumps(testmod, indent=2), encoding="utf-8")
    return d


@pytest.fixture()
def sample_project(tmp_path: Path) -> Path:
    root = tmp_path / "project"
    root.mkdir()
    (root / "modbuild.yaml").write_text(
        "version: 1.0.0\n"
        "maven_url: https://maven.example.org/repository/release\n"
        "minecraft_version: 1.18.2\n",
        encoding="utf-8",
    )
    _write_module(
        root,
        "core",
        "events",
        "library: core\ndescription: Event API\n",
        testmod={"schema_version": 1, "quilt_loader": {"id": "quilt_events_testmod", "load_type": "always"}},
    )
    _write_module(
        root,
        "core",
        "networking",
        "library: core\n"
        "entrypoints:\n"
        "  init:\n"
        "    - org.example.networking.Init\n"
        "dependencies:\n"
        "  - library: core\n"
        "    module: events\n",
    )
    return root
