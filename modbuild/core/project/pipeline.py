from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Literal, Optional

from modbuild.core.errors import ConfigurationError
from modbuild.core.git_ops.repo_manager import GitError, is_dirty
from modbuild.core.javadoc import iter_javadoc_sources, javadoc_options, write_options_file
from modbuild.core.manifest.generator import generate_manifest
from modbuild.core.manifest.testmod import validate_testmod_descriptor
from modbuild.core.module.models import ModuleDescriptor
from modbuild.core.module.resolver import index_modules, resolve_module
from modbuild.core.project.loader import ProjectContext
from modbuild.core.publish.decision import PublishDecider, PublishDecision
from modbuild.core.publish.pom import render_pom
from modbuild.core.runs import harness_runs, write_run_configuration

_log = logging.getLogger("modbuild.pipeline")

GENERATE_MANIFEST_TASK = "generateQmj"
PUBLICATIONS_DIR = "build/publications/maven"
RUNS_DIR = "build/runs"
JAVADOC_OPTIONS = "build/tmp/javadoc/javadoc.options"
MAIN_SOURCES = "src/main/java"

EventType = Literal[
    "ProjectEvaluated",
    "ModulesValidated",
    "ManifestGenerated",
    "TestmodValidated",
    "PublishChecked",
    "PublicationWritten",
    "PublicationSkipped",
]


def now_utc_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class PipelineEvent:
    event_type: EventType
    ts: str
    module: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def mk(event_type: EventType, module: Optional[str] = None, payload: Optional[Dict[str, Any]] = None) -> "PipelineEvent":
        return PipelineEvent(event_type=event_type, ts=now_utc_iso(), module=module, payload=payload or {})


@dataclass
class BuildReport:
    modules: List[str] = field(default_factory=list)
    manifests: Dict[str, str] = field(default_factory=dict)
    decisions: Dict[str, PublishDecision] = field(default_factory=dict)
    publications: Dict[str, str] = field(default_factory=dict)
    events: List[PipelineEvent] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "modules": list(self.modules),
            "manifests": dict(self.manifests),
            "decisions": {k: d.to_dict() for k, d in self.decisions.items()},
            "publications": dict(self.publications),
            "events": [vars(e) for e in self.events],
        }


# ---------------------------------------------------------------------
# Stages (run in this order)
# ---------------------------------------------------------------------

def validate_modules(ctx: ProjectContext) -> List[ModuleDescriptor]:
    resolved = [
        (resolve_module(s.extension, ctx.settings.version, ctx.settings), s.module_dir)
        for s in ctx.sources
    ]
    ctx.modules = index_modules(d for d, _ in resolved)
    ctx.module_dirs = {d.key: module_dir for d, module_dir in resolved}
    return ctx.modules


def generated_resources_dir(ctx: ProjectContext, descriptor: ModuleDescriptor) -> Path:
    return ctx.module_dir(descriptor) / ctx.settings.generated_resources_dir


def generate_module_manifest(ctx: ProjectContext, descriptor: ModuleDescriptor) -> Path:
    return generate_manifest(descriptor, generated_resources_dir(ctx, descriptor), ctx.settings)


def verify_testmod(ctx: ProjectContext, descriptor: ModuleDescriptor) -> Optional[Path]:
    path = ctx.module_dir(descriptor) / ctx.settings.testmod_descriptor
    if not path.exists():
        _log.debug("Module %s has no testmod descriptor", descriptor.key)
        return None
    validate_testmod_descriptor(path)
    return path


def write_publication(ctx: ProjectContext, descriptor: ModuleDescriptor, commit_hash: str) -> Path:
    out_dir = ctx.module_dir(descriptor) / PUBLICATIONS_DIR
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / "pom-default.xml"
    path.write_text(render_pom(descriptor, ctx.settings, commit_hash), encoding="utf-8")
    return path


def _warn_if_dirty(ctx: ProjectContext) -> None:
    try:
        if is_dirty(ctx.root):
            _log.warning("Working tree has uncommitted changes; publish checks compare HEAD only")
    except GitError as exc:
        _log.warning("Unable to read git status: %s", exc)


def run_build(ctx: ProjectContext, decider: Optional[PublishDecider] = None) -> BuildReport:
    """
    Validate every module, generate manifests, check test mods and, when a
    decider is given, decide and write publications.
    """
    report = BuildReport()
    report.events.append(PipelineEvent.mk("ProjectEvaluated", payload={"root": str(ctx.root)}))

    modules = validate_modules(ctx)
    report.modules = [m.key for m in modules]
    report.events.append(PipelineEvent.mk("ModulesValidated", payload={"count": len(modules)}))

    for m in modules:
        path = generate_module_manifest(ctx, m)
        report.manifests[m.key] = str(path)
        report.events.append(PipelineEvent.mk("ManifestGenerated", m.key, {"path": str(path)}))

        testmod = verify_testmod(ctx, m)
        if testmod is not None:
            report.events.append(PipelineEvent.mk("TestmodValidated", m.key, {"path": str(testmod)}))

    if decider is None:
        return report

    _warn_if_dirty(ctx)
    for m in modules:
        decision = decider.decide(m.module_name, m.library, m.version)
        report.decisions[m.key] = decision
        report.events.append(PipelineEvent.mk("PublishChecked", m.key, {"state": decision.state.value}))

        if decision.publish:
            pom = write_publication(ctx, m, decision.current_hash)
            report.publications[m.key] = str(pom)
            report.events.append(PipelineEvent.mk("PublicationWritten", m.key, {"path": str(pom)}))
        else:
            report.events.append(PipelineEvent.mk("PublicationSkipped", m.key, {"reason": "hash_unchanged"}))

    return report


# ---------------------------------------------------------------------
# Tasks addressable as LIBRARY:MODULE:TASK
# ---------------------------------------------------------------------

TaskFn = Callable[[ProjectContext, ModuleDescriptor], Path]


def _run_task(run_name: str) -> TaskFn:
    def _task(ctx: ProjectContext, descriptor: ModuleDescriptor) -> Path:
        # the test mod has to be loadable before a harness may start it
        generate_module_manifest(ctx, descriptor)
        verify_testmod(ctx, descriptor)
        run = harness_runs(descriptor)[run_name]
        return write_run_configuration(run, ctx.module_dir(descriptor) / RUNS_DIR)

    return _task


def write_javadoc_options(ctx: ProjectContext, descriptor: ModuleDescriptor) -> Path:
    module_dir = ctx.module_dir(descriptor)
    sources = iter_javadoc_sources(module_dir / MAIN_SOURCES)
    return write_options_file(javadoc_options(ctx.settings), sources, module_dir / JAVADOC_OPTIONS)


TASKS: Dict[str, TaskFn] = {
    GENERATE_MANIFEST_TASK: generate_module_manifest,
    "javadoc": write_javadoc_options,
    "runTestmodClient": _run_task("runTestmodClient"),
    "runTestmodServer": _run_task("runTestmodServer"),
}


def parse_task_path(task_path: str) -> tuple[str, str, str]:
    parts = [p for p in task_path.strip().strip(":").split(":") if p]
    if len(parts) != 3:
        raise ConfigurationError(f"Task path must look like LIBRARY:MODULE:TASK, got {task_path!r}")
    return parts[0], parts[1], parts[2]


def run_task(ctx: ProjectContext, task_path: str) -> Path:
    library, module_name, task_name = parse_task_path(task_path)
    task = TASKS.get(task_name)
    if task is None:
        raise ConfigurationError(
            f"Unknown task {task_name!r}; available: {', '.join(sorted(TASKS))}"
        )
    if not ctx.modules:
        validate_modules(ctx)
    descriptor = ctx.find(library, module_name)
    _log.info("Running %s", task_path)
    return task(ctx, descriptor)
