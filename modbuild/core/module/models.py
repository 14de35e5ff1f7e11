from __future__ import annotations

from types import MappingProxyType
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Tuple

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, PlainSerializer


Environment = Literal["*", "client", "dedicated_server"]
DependencyScope = Literal["api", "impl", "testmod"]


def freeze(value: Any) -> Any:
    """Read-only deep copy: mappings become proxies, lists become tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Plain dict/list copy of a frozen value, safe to mutate and serialize."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


FrozenEntrypoints = Annotated[
    Mapping[str, Tuple[str, ...]],
    AfterValidator(freeze),
    PlainSerializer(thaw),
]
FrozenFields = Annotated[
    Mapping[str, Any],
    AfterValidator(freeze),
    PlainSerializer(thaw),
]


class ModuleDependency(BaseModel):
    model_config = ConfigDict(frozen=True)

    library: str
    module: str
    scope: DependencyScope = "api"
    versions: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.library}:{self.module}"


class ModuleExtension(BaseModel):
    """
    Mutable per-module configuration, filled in while the project is evaluated.

    Nothing here is trusted until ``resolve_module`` has validated it.
    """

    module_name: str
    library: Optional[str] = None
    version: Optional[str] = None
    id: Optional[str] = None

    description: Optional[str] = None
    environment: Environment = "*"
    entrypoints: Dict[str, List[str]] = Field(default_factory=dict)
    mixins: bool = False
    access_widener: bool = False

    dependencies: List[ModuleDependency] = Field(default_factory=list)
    extra_manifest_fields: Dict[str, Any] = Field(default_factory=dict)


class ModuleDescriptor(BaseModel):
    """
    Validated, immutable view of a module.

    Nested collections are frozen as well, so the manifest rendered from a
    descriptor cannot drift after validation.
    """

    model_config = ConfigDict(frozen=True, validate_default=True)

    module_name: str
    library: str
    version: str
    id: str
    maven_group: str
    archives_base_name: str

    description: Optional[str] = None
    environment: Environment = "*"
    entrypoints: FrozenEntrypoints = Field(default_factory=dict)
    mixins: bool = False
    access_widener: bool = False

    dependencies: Tuple[ModuleDependency, ...] = ()
    extra_manifest_fields: FrozenFields = Field(default_factory=dict)

    @property
    def key(self) -> str:
        return f"{self.library}:{self.module_name}"
