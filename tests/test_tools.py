import json
from pathlib import Path

from tools import gen_module_manifest, run_task


def test_gen_module_manifest_then_check(sample_project: Path, capsys):
    root = str(sample_project)
    assert gen_module_manifest.main(["--root", root, "--check"]) == 3
    assert gen_module_manifest.main(["--root", root]) == 0
    assert gen_module_manifest.main(["--root", root, "--check"]) == 0
    assert "up to date" in capsys.readouterr().out


def test_gen_module_manifest_reports_config_error(sample_project: Path, capsys):
    (sample_project / "library/core/events/module.yaml").write_text("description: x\n", encoding="utf-8")
    assert gen_module_manifest.main(["--root", str(sample_project)]) == 2
    assert capsys.readouterr().err.startswith("ERROR:")


def test_run_task_cli(sample_project: Path):
    assert run_task.main(["core:events:runTestmodClient", "--root", str(sample_project)]) == 0
    out = sample_project / "library/core/events/build/runs/testmodClient.json"
    assert json.loads(out.read_text(encoding="utf-8"))["environment"] == "client"


def test_publish_check_cli(sample_project: Path, monkeypatch, capsys):
    from conftest import StubSession
    from modbuild.core.publish.decision import PublishDecider
    from tools import publish_check

    def _decider(settings, project_root=None):
        return PublishDecider(settings, commit_hash_provider=lambda: "abc123", session=StubSession())

    monkeypatch.setattr(publish_check, "PublishDecider", _decider)
    assert publish_check.main(["--root", str(sample_project)]) == 0
    out = capsys.readouterr().out
    assert "core:events 1.0.0: publish (PUBLISH)" in out
    assert (sample_project / "library/core/events/build/publications/maven/pom-default.xml").exists()


def test_check_license_headers_cli(tmp_path: Path, capsys):
    from tools import check_license_headers

    (tmp_path / "modbuild.yaml").write_text("license_headers: [HEADER]\n", encoding="utf-8")
    (tmp_path / "HEADER").write_text("Copyright ${year} Example\n", encoding="utf-8")
    (tmp_path / "A.java").write_text("/*\n * Copyright 2023 Example\n */\nclass A {}\n", encoding="utf-8")
    assert check_license_headers.main(["--root", str(tmp_path)]) == 0

    (tmp_path / "B.java").write_text("class B {}\n", encoding="utf-8")
    assert check_license_headers.main(["--root", str(tmp_path)]) == 1
    assert "B.java" in capsys.readouterr().err
