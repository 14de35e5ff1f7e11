from conftest import StubResponse, StubSession, pom_with_hash
from modbuild.api.endpoints.modules import get_decider
from modbuild.api.main import app
from modbuild.core.config import ProjectSettings
from modbuild.core.publish.decision import PublishDecider

URL = "https://maven.quiltmc.org/repository/release/org/quiltmc/qsl/core/events/1.0.0/events-1.0.0.pom"


def _override(session):
    app.dependency_overrides[get_decider] = lambda: PublishDecider(
        ProjectSettings(version="1.0.0"),
        commit_hash_provider=lambda: "abc123",
        session=session,
    )


def test_health(client):
    r = client.get("/health/live")
    assert r.status_code == 200
    assert r.headers.get("X-Request-Id")


def test_resolve_module(client):
    r = client.post(
        "/api/v1/modules/resolve",
        json={"extension": {"module_name": "events", "library": "core"}, "root_version": "1.0.0"},
    )
    assert r.status_code == 200, r.text
    d = r.json()["descriptor"]
    assert d["maven_group"] == "org.quiltmc.qsl.core"
    assert d["version"] == "1.0.0"


def test_resolve_module_missing_library(client):
    r = client.post(
        "/api/v1/modules/resolve",
        json={"extension": {"module_name": "events"}, "root_version": "1.0.0"},
    )
    assert r.status_code == 400
    assert "library" in r.json()["detail"]


def test_manifest_endpoint(client):
    body = {"extension": {"module_name": "events", "library": "core"}, "root_version": "1.0.0"}
    r1 = client.post("/api/v1/modules/manifest", json=body)
    r2 = client.post("/api/v1/modules/manifest", json=body)
    assert r1.status_code == 200, r1.text
    assert r1.json()["manifest"]["quilt_loader"]["id"] == "quilt_events"
    assert r1.json()["sha256"] == r2.json()["sha256"]


def test_publish_decision_skip(client):
    _override(StubSession({URL: StubResponse(200, pom_with_hash("abc123"))}))
    r = client.post(
        "/api/v1/modules/publish-decision",
        json={"module_name": "events", "library": "core", "version": "1.0.0"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["publish"] is False
    assert r.json()["state"] == "SKIP"


def test_publish_decision_not_found(client):
    _override(StubSession())
    r = client.post(
        "/api/v1/modules/publish-decision",
        json={"module_name": "events", "library": "core", "version": "1.0.0"},
    )
    assert r.status_code == 200, r.text
    assert r.json()["publish"] is True


def test_publish_decision_fetch_error(client):
    _override(StubSession({URL: StubResponse(503, "down")}))
    r = client.post(
        "/api/v1/modules/publish-decision",
        json={"module_name": "events", "library": "core", "version": "1.0.0"},
    )
    assert r.status_code == 502


def test_testmod_validate(client):
    ok = client.post("/api/v1/testmod/validate", json={"descriptor": '{"quilt_loader": {"load_type": "always"}}'})
    assert ok.status_code == 200
    bad = client.post("/api/v1/testmod/validate", json={"descriptor": '{"quilt_loader": {}}'})
    assert bad.status_code == 422


def test_metrics_endpoint(client):
    _override(StubSession())
    client.post(
        "/api/v1/modules/publish-decision",
        json={"module_name": "events", "library": "core", "version": "1.0.0"},
    )
    r = client.get("/metrics")
    assert r.status_code == 200
    assert "modbuild_publish_decisions_total" in r.text


def test_malformed_settings_is_bad_request(client, tmp_path, monkeypatch):
    (tmp_path / "modbuild.yaml").write_text("java_version: seventeen\n", encoding="utf-8")
    monkeypatch.setenv("MODBUILD_PROJECT_ROOT", str(tmp_path))
    r = client.post(
        "/api/v1/modules/resolve",
        json={"extension": {"module_name": "events", "library": "core"}, "root_version": "1.0.0"},
        headers={"X-Request-Id": "rid-1"},
    )
    assert r.status_code == 400
    assert "Invalid settings" in r.json()["detail"]
    assert r.json()["request_id"] == "rid-1"
    assert r.headers["X-Request-Id"] == "rid-1"


def test_unquoted_settings_version_is_bad_request(client, tmp_path, monkeypatch):
    (tmp_path / "modbuild.yaml").write_text("version: 1.10\n", encoding="utf-8")
    monkeypatch.setenv("MODBUILD_PROJECT_ROOT", str(tmp_path))
    r = client.post(
        "/api/v1/modules/publish-decision",
        json={"module_name": "events", "library": "core", "version": "1.10"},
    )
    assert r.status_code == 400
    assert "quote the version" in r.json()["detail"]
