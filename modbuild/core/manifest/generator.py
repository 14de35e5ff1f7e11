"""
Generates the module manifest (quilt.mod.json) bundled into each artifact.

Output is canonical JSON (sorted keys, two-space indent, trailing newline) so
that identical descriptors always produce byte-identical files.
"""
from __future__ import annotations

import copy
import hashlib
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from modbuild.core.config import ProjectSettings
from modbuild.core.module.models import ModuleDescriptor, thaw
from modbuild.core.observability.metrics import inc_manifest_written

_log = logging.getLogger("modbuild.manifest")

SCHEMA_VERSION = 1
INTERMEDIATE_MAPPINGS = "net.fabricmc:intermediary"


def _deep_merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    out = copy.deepcopy(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = copy.deepcopy(value)
    return out


def _depends(descriptor: ModuleDescriptor, settings: ProjectSettings) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = [
        {"id": "quilt_loader", "versions": settings.loader_version},
        {"id": "minecraft", "versions": f">={settings.minecraft_version}"},
    ]
    for dep in sorted(descriptor.dependencies, key=lambda d: (d.library, d.module)):
        if dep.scope == "testmod":
            continue
        out.append(
            {
                "id": f"{settings.mod_id_prefix}{dep.module}",
                "versions": dep.versions or f">={descriptor.version}",
            }
        )
    return out


def build_manifest(descriptor: ModuleDescriptor, settings: Optional[ProjectSettings] = None) -> Dict[str, Any]:
    settings = settings or ProjectSettings(version=descriptor.version)

    metadata: Dict[str, Any] = {
        "name": descriptor.module_name,
        "license": settings.license,
    }
    if descriptor.description:
        metadata["description"] = descriptor.description
    contact = settings.contact.model_dump(exclude_none=True)
    if contact:
        metadata["contact"] = contact

    loader: Dict[str, Any] = {
        "group": descriptor.maven_group,
        "id": descriptor.id,
        "version": descriptor.version,
        "metadata": metadata,
        "intermediate_mappings": INTERMEDIATE_MAPPINGS,
        "depends": _depends(descriptor, settings),
    }
    if descriptor.entrypoints:
        loader["entrypoints"] = {k: list(v) for k, v in descriptor.entrypoints.items()}

    manifest: Dict[str, Any] = {
        "schema_version": SCHEMA_VERSION,
        "quilt_loader": loader,
        "minecraft": {"environment": descriptor.environment},
    }
    if descriptor.mixins:
        manifest["mixin"] = f"{descriptor.id}.mixins.json"
    if descriptor.access_widener:
        manifest["access_widener"] = f"{descriptor.id}.accesswidener"

    if descriptor.extra_manifest_fields:
        manifest = _deep_merge(manifest, thaw(descriptor.extra_manifest_fields))
    return manifest


def render_manifest(manifest: Dict[str, Any]) -> str:
    return json.dumps(manifest, indent=2, sort_keys=True, ensure_ascii=False) + "\n"


def manifest_sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def manifest_path(output_dir: Path, settings: Optional[ProjectSettings] = None) -> Path:
    filename = settings.manifest_filename if settings else ProjectSettings().manifest_filename
    return Path(output_dir) / filename


def generate_manifest(
    descriptor: ModuleDescriptor,
    output_dir: Path,
    settings: Optional[ProjectSettings] = None,
) -> Path:
    """
    Write the manifest for ``descriptor`` under ``output_dir`` and return its path.

    An up-to-date file is left untouched.
    """
    text = render_manifest(build_manifest(descriptor, settings))
    path = manifest_path(output_dir, settings)

    data = text.encode("utf-8")
    if path.exists() and path.read_bytes() == data:
        _log.debug("Manifest for %s is up to date: %s", descriptor.key, path)
        return path

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    inc_manifest_written()
    _log.info("Wrote manifest for %s: %s", descriptor.key, path)
    return path


def manifest_is_current(
    descriptor: ModuleDescriptor,
    output_dir: Path,
    settings: Optional[ProjectSettings] = None,
) -> bool:
    path = manifest_path(output_dir, settings)
    if not path.exists():
        return False
    return path.read_bytes() == render_manifest(build_manifest(descriptor, settings)).encode("utf-8")
