"""
License header checks for Java sources.

Each rule file holds the plain header text. A source file passes when its
leading block comment matches any rule; ``${year}`` in a rule matches any
four-digit year.
"""
from __future__ import annotations

import fnmatch
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Pattern

from modbuild.core.errors import ConfigurationError

_log = logging.getLogger("modbuild.license")

_EXCLUDED_DIRS = {"build", ".gradle", ".git", "out", "run"}


@dataclass(frozen=True)
class LicenseViolation:
    path: str
    reason: str


def _normalize_lines(lines: Iterable[str]) -> List[str]:
    out = [ln.rstrip() for ln in lines]
    while out and not out[0]:
        out.pop(0)
    while out and not out[-1]:
        out.pop()
    return out


def _compile_rule(text: str) -> Pattern[str]:
    body = "\n".join(_normalize_lines(text.splitlines()))
    pattern = re.escape(body).replace(re.escape("${year}"), r"\d{4}")
    return re.compile(rf"\A{pattern}\Z")


def load_rules(project_root: Path, rule_files: Iterable[str]) -> List[Pattern[str]]:
    rules = []
    for rel in rule_files:
        p = project_root / rel
        if not p.exists():
            raise ConfigurationError(f"License header rule {p} does not exist")
        rules.append(_compile_rule(p.read_text(encoding="utf-8")))
    return rules


def leading_comment(source: str) -> Optional[str]:
    text = source.lstrip("\ufeff").lstrip()
    if not text.startswith("/*"):
        return None
    end = text.find("*/")
    if end < 0:
        return None
    lines = []
    for ln in text[2:end].splitlines():
        s = ln.strip()
        if s.startswith("*"):
            s = s[1:]
            if s.startswith(" "):
                s = s[1:]
        lines.append(s)
    return "\n".join(_normalize_lines(lines))


def _included(rel: str, patterns: List[str]) -> bool:
    for pat in patterns:
        if fnmatch.fnmatch(rel, pat):
            return True
        if pat.startswith("**/") and fnmatch.fnmatch(rel, pat[3:]):
            return True
    return False


def iter_sources(project_root: Path, include: List[str]) -> Iterable[Path]:
    for f in sorted(project_root.rglob("*")):
        if not f.is_file():
            continue
        rel = f.relative_to(project_root)
        if set(rel.parts) & _EXCLUDED_DIRS:
            continue
        if _included(rel.as_posix(), include):
            yield f


def check_license_headers(
    project_root: Path,
    rule_files: Iterable[str],
    include: Optional[List[str]] = None,
) -> List[LicenseViolation]:
    rules = load_rules(project_root, rule_files)
    include = include or ["**/*.java"]

    violations: List[LicenseViolation] = []
    for f in iter_sources(project_root, include):
        rel = f.relative_to(project_root).as_posix()
        header = leading_comment(f.read_text(encoding="utf-8", errors="replace"))
        if header is None:
            violations.append(LicenseViolation(path=rel, reason="missing license header"))
            continue
        if not any(r.match(header) for r in rules):
            violations.append(LicenseViolation(path=rel, reason="license header does not match any rule"))

    if violations:
        _log.warning("%d file(s) with license header problems", len(violations))
    return violations
