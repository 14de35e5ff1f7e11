"""
Project-wide build settings.

Settings are read from ``modbuild.yaml`` at the project root (YAML or JSON).
A missing file yields the defaults below; a malformed one fails the build.

Environment variables:
    MODBUILD_CONFIG: explicit path to the settings file.
    MODBUILD_MAVEN_URL: overrides ``maven_url``.
    MODBUILD_HTTP_TIMEOUT: overrides ``http_timeout_seconds``.
"""
from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from modbuild.core.errors import ConfigurationError

_log = logging.getLogger("modbuild.config")

SETTINGS_FILENAME = "modbuild.yaml"

DEFAULT_JAVADOC_LINKS: List[str] = [
    "https://guava.dev/releases/21.0/api/docs/",
    "https://asm.ow2.io/javadoc/",
    "https://docs.oracle.com/en/java/javase/16/docs/api/",
    "https://jenkins.liteloader.com/job/Mixin/javadoc/",
    "https://logging.apache.org/log4j/2.x/log4j-api/apidocs/",
]


class ContactInfo(BaseModel):
    homepage: Optional[str] = None
    issues: Optional[str] = None
    sources: Optional[str] = None


class ProjectSettings(BaseModel):
    # Root project version; every module must match it.
    version: str = "0.0.0"

    maven_url: str = "https://maven.quiltmc.org/repository/release"
    maven_group_prefix: str = "org.quiltmc.qsl"
    mod_id_prefix: str = "quilt_"

    java_version: int = 17
    minecraft_version: str = "1.18.2"
    loader_version: str = ">=0.16.0-"
    mappings_build: int = 1

    generated_resources_dir: str = "build/generated/generated_resources"
    manifest_filename: str = "quilt.mod.json"
    testmod_descriptor: str = "src/testmod/resources/quilt.mod.json"
    http_timeout_seconds: float = 20.0

    license: str = "Apache-2.0"
    contact: ContactInfo = Field(default_factory=ContactInfo)

    license_headers: List[str] = Field(
        default_factory=lambda: [
            "codeformat/COLONEL_MODIFIED_HEADER",
            "codeformat/FABRIC_MODIFIED_HEADER",
            "codeformat/HEADER",
        ]
    )
    license_include: List[str] = Field(default_factory=lambda: ["**/*.java"])
    javadoc_links: List[str] = Field(default_factory=lambda: list(DEFAULT_JAVADOC_LINKS))

    @property
    def maven_group_path(self) -> str:
        return self.maven_group_prefix.replace(".", "/")


def resolve_settings_path(project_root: Path, path: Optional[Path] = None) -> Path:
    if path is not None:
        return Path(path)
    env_path = os.getenv("MODBUILD_CONFIG", "").strip()
    if env_path:
        return Path(env_path)
    return project_root / SETTINGS_FILENAME


def parse_document(raw_text: str, source: Path) -> Any:
    """JSON first, then YAML (JSON is the stricter of the two)."""
    try:
        return json.loads(raw_text)
    except json.JSONDecodeError:
        pass
    try:
        return yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Failed to parse {source} as JSON or YAML: {exc}") from exc


def check_version_scalar(data: Dict[str, Any], source: Path) -> None:
    """
    YAML reads an unquoted ``1.10`` as the float 1.1, so a version that did
    not come back as a string cannot be trusted.
    """
    version = data.get("version")
    if version is not None and not isinstance(version, str):
        raise ConfigurationError(
            f"`version` in {source} must be a string, got {version!r}; quote the version"
        )


def _apply_env_overrides(data: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(data)
    maven_url = os.getenv("MODBUILD_MAVEN_URL", "").strip()
    if maven_url:
        out["maven_url"] = maven_url
    timeout = os.getenv("MODBUILD_HTTP_TIMEOUT", "").strip()
    if timeout:
        try:
            out["http_timeout_seconds"] = float(timeout)
        except ValueError:
            _log.warning("Ignoring invalid MODBUILD_HTTP_TIMEOUT=%r", timeout)
    return out


def load_settings(project_root: Path, path: Optional[Path] = None) -> ProjectSettings:
    resolved = resolve_settings_path(project_root, path)

    data: Dict[str, Any] = {}
    if resolved.exists():
        try:
            raw_text = resolved.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigurationError(f"Cannot read settings file {resolved}: {exc}") from exc

        parsed = parse_document(raw_text, resolved)
        if parsed is None:
            parsed = {}
        if not isinstance(parsed, dict):
            raise ConfigurationError(
                f"Settings file {resolved} must be a mapping, got {type(parsed).__name__}"
            )
        data = parsed
        _log.info("Loaded project settings from %s", resolved)
    else:
        _log.debug("No settings file at %s, using defaults", resolved)

    data = _apply_env_overrides(data)
    check_version_scalar(data, resolved)

    try:
        return ProjectSettings(**data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid settings in {resolved}: {exc}") from exc
