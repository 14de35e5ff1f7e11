from pathlib import Path

import pytest

from modbuild.core.errors import ConfigurationError
from modbuild.core.licensing import check_license_headers, leading_comment

RULE = "Copyright ${year} The Example Project\n\nLicensed under the Apache License, Version 2.0.\n"

GOOD = """/*
 * Copyright 2022 The Example Project
 *
 * Licensed under the Apache License, Version 2.0.
 */

package org.example;
"""


def _project(tmp_path: Path) -> Path:
    (tmp_path / "codeformat").mkdir()
    (tmp_path / "codeformat" / "HEADER").write_text(RULE, encoding="utf-8")
    src = tmp_path / "src" / "main" / "java" / "org" / "example"
    src.mkdir(parents=True)
    return src


def test_leading_comment_strips_stars():
    assert leading_comment(GOOD).splitlines()[0] == "Copyright 2022 The Example Project"
    assert leading_comment("package x;") is None


def test_matching_header_passes(tmp_path: Path):
    src = _project(tmp_path)
    (src / "A.java").write_text(GOOD, encoding="utf-8")
    assert check_license_headers(tmp_path, ["codeformat/HEADER"]) == []


def test_missing_and_wrong_headers_reported(tmp_path: Path):
    src = _project(tmp_path)
    (src / "A.java").write_text("package org.example;\n", encoding="utf-8")
    (src / "B.java").write_text("/* Copyright someone else */\nclass B {}\n", encoding="utf-8")
    (src / "C.java").write_text(GOOD, encoding="utf-8")
    out = check_license_headers(tmp_path, ["codeformat/HEADER"])
    assert [(v.path.rsplit("/", 1)[-1], v.reason) for v in out] == [
        ("A.java", "missing license header"),
        ("B.java", "license header does not match any rule"),
    ]


def test_build_dirs_and_other_files_ignored(tmp_path: Path):
    _project(tmp_path)
    gen = tmp_path / "build" / "generated"
    gen.mkdir(parents=True)
    (gen / "Gen.java").write_text("class Gen {}\n", encoding="utf-8")
    (tmp_path / "README.md").write_text("hi", encoding="utf-8")
    assert check_license_headers(tmp_path, ["codeformat/HEADER"]) == []


def test_missing_rule_file_fails(tmp_path: Path):
    with pytest.raises(ConfigurationError):
        check_license_headers(tmp_path, ["codeformat/NOPE"])
