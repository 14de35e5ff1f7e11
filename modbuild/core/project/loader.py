from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from modbuild.core.config import (
    ProjectSettings,
    check_version_scalar,
    load_settings,
    parse_document,
)
from modbuild.core.errors import ConfigurationError
from modbuild.core.module.models import ModuleDescriptor, ModuleExtension

_log = logging.getLogger("modbuild.project")

LIBRARIES_DIR = "library"
MODULE_FILENAME = "module.yaml"


@dataclass
class ModuleSource:
    extension: ModuleExtension
    module_dir: Path


@dataclass
class ProjectContext:
    """Everything a build pass needs, handed from stage to stage."""

    root: Path
    settings: ProjectSettings
    sources: List[ModuleSource] = field(default_factory=list)
    modules: List[ModuleDescriptor] = field(default_factory=list)
    # descriptor key -> directory, filled in when the modules are resolved
    module_dirs: Dict[str, Path] = field(default_factory=dict)

    def module_dir(self, descriptor: ModuleDescriptor) -> Path:
        try:
            return self.module_dirs[descriptor.key]
        except KeyError:
            raise ConfigurationError(f"No sources found for module {descriptor.key}") from None

    def find(self, library: str, module_name: str) -> ModuleDescriptor:
        for m in self.modules:
            if m.library == library and m.module_name == module_name:
                return m
        raise ConfigurationError(f"Unknown module {library}:{module_name}")


def load_module_extension(path: Path) -> ModuleExtension:
    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read module file {path}: {exc}") from exc

    data = parse_document(raw_text, path)
    if not isinstance(data, dict):
        raise ConfigurationError(f"Module file {path} must be a mapping")

    data.setdefault("module_name", path.parent.name)
    check_version_scalar(data, path)
    try:
        return ModuleExtension(**data)
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid module file {path}: {exc}") from exc


def discover_module_files(root: Path) -> List[Path]:
    return sorted((root / LIBRARIES_DIR).glob(f"*/*/{MODULE_FILENAME}"))


def load_project(root: Path, settings: Optional[ProjectSettings] = None) -> ProjectContext:
    root = root.resolve()
    ctx = ProjectContext(root=root, settings=settings or load_settings(root))
    for f in discover_module_files(root):
        ctx.sources.append(ModuleSource(extension=load_module_extension(f), module_dir=f.parent))
    _log.info("Evaluated project %s: %d module(s)", root, len(ctx.sources))
    return ctx
