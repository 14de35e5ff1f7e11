from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from modbuild.core.config import ProjectSettings
from modbuild.core.errors import ConfigurationError
from modbuild.core.module.models import ModuleDescriptor, ModuleExtension, freeze

_log = logging.getLogger("modbuild.module")


def resolve_module(
    extension: ModuleExtension,
    root_version: str,
    settings: Optional[ProjectSettings] = None,
) -> ModuleDescriptor:
    """
    Validate a module extension once project evaluation has finished.

    The module version is pinned to the root project version; a module that
    leaves it unset inherits it.
    """
    settings = settings or ProjectSettings(version=root_version)

    module_name = (extension.module_name or "").strip()
    if not module_name:
        raise ConfigurationError("Module name must not be empty")

    library = (extension.library or "").strip()
    if not library:
        raise ConfigurationError(
            f"Module {module_name} needs the `library` field set in the module extension"
        )

    version = extension.version if extension.version is not None else root_version
    if str(version) != str(root_version):
        raise ConfigurationError(
            f"Module {module_name} version ({version}) does not match root project version "
            f"({root_version}). Do not change it!"
        )

    descriptor = ModuleDescriptor(
        module_name=module_name,
        library=library,
        version=str(root_version),
        id=extension.id or f"{settings.mod_id_prefix}{module_name}",
        maven_group=f"{settings.maven_group_prefix}.{library}",
        archives_base_name=module_name,
        description=extension.description,
        environment=extension.environment,
        # frozen on validation, each a copy detached from the extension
        entrypoints=freeze(extension.entrypoints),
        mixins=extension.mixins,
        access_widener=extension.access_widener,
        dependencies=tuple(extension.dependencies),
        extra_manifest_fields=freeze(extension.extra_manifest_fields),
    )
    _log.debug("Resolved module %s (group=%s)", descriptor.key, descriptor.maven_group)
    return descriptor


def check_dependencies(modules: Iterable[ModuleDescriptor]) -> None:
    """Every declared module dependency must point at a loaded module."""
    modules = list(modules)
    known = {m.key for m in modules}
    for m in modules:
        for dep in m.dependencies:
            if dep.key == m.key:
                raise ConfigurationError(f"Module {m.key} cannot depend on itself")
            if dep.key not in known:
                raise ConfigurationError(
                    f"Module {m.key} depends on unknown module {dep.key}"
                )


def index_modules(descriptors: Iterable[ModuleDescriptor]) -> List[ModuleDescriptor]:
    """Reject duplicates and dangling dependencies; return modules sorted by key."""
    resolved: Dict[str, ModuleDescriptor] = {}
    for d in descriptors:
        if d.key in resolved:
            raise ConfigurationError(f"Module {d.key} is declared more than once")
        resolved[d.key] = d
    out = [resolved[k] for k in sorted(resolved)]
    check_dependencies(out)
    return out


def resolve_modules(
    extensions: Iterable[ModuleExtension],
    settings: ProjectSettings,
) -> List[ModuleDescriptor]:
    return index_modules(resolve_module(ext, settings.version, settings) for ext in extensions)
