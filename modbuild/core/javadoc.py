from __future__ import annotations

import logging
from pathlib import Path, PurePath
from typing import Iterable, Iterator, List, Union

from pydantic import BaseModel, Field

from modbuild.core.config import ProjectSettings

_log = logging.getLogger("modbuild.javadoc")

EXCLUDED_PATH_MARKERS = ("mixin", "impl")


class JavadocOptions(BaseModel):
    source: str
    encoding: str = "UTF-8"
    charset: str = "UTF-8"
    member_level: str = "package"
    links: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=lambda: ["author:a", 'reason:m:"Reason:"'])
    # doclint is too strict for the public API docs
    extra: List[str] = Field(default_factory=lambda: ["-Xdoclint:none", "-quiet"])
    fail_on_error: bool = False

    def to_args(self) -> List[str]:
        args = [
            "-source", self.source,
            "-encoding", self.encoding,
            "-charset", self.charset,
            f"-{self.member_level}",
        ]
        for link in self.links:
            args += ["-link", link]
        for tag in self.tags:
            args += ["-tag", tag]
        args += self.extra
        return args


def mappings_javadoc_url(settings: ProjectSettings) -> str:
    build = f"{settings.minecraft_version}+build.{settings.mappings_build}"
    base = settings.maven_url.rstrip("/")
    return f"{base}/org/quiltmc/quilt-mappings/{build}/quilt-mappings-{build}-javadoc.jar/"


def javadoc_options(settings: ProjectSettings) -> JavadocOptions:
    return JavadocOptions(
        source=str(settings.java_version),
        links=[*settings.javadoc_links, mappings_javadoc_url(settings)],
    )


def is_javadoc_excluded(path: Union[str, PurePath]) -> bool:
    """Mixins and implementation packages are not public API."""
    p = str(path)
    return any(marker in p for marker in EXCLUDED_PATH_MARKERS)


def iter_javadoc_sources(src_dir: Path) -> Iterator[Path]:
    """Public ``.java`` sources under ``src_dir``, in a stable order."""
    if not src_dir.is_dir():
        return
    for p in sorted(src_dir.rglob("*.java")):
        if not is_javadoc_excluded(p.relative_to(src_dir).as_posix()):
            yield p


def write_options_file(options: JavadocOptions, sources: Iterable[Path], path: Path) -> Path:
    """Write a javadoc ``@argfile``: options first, then one source per line."""
    lines = [*options.to_args(), *(p.as_posix() for p in sources)]
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(_quote(a) for a in lines) + "\n", encoding="utf-8")
    _log.info("Wrote javadoc options: %s", path)
    return path


def _quote(arg: str) -> str:
    if not any(c in arg for c in " \"'"):
        return arg
    return '"' + arg.replace("\\", "\\\\").replace('"', '\\"') + '"'
