from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Literal

from pydantic import BaseModel, Field

from modbuild.core.module.models import ModuleDescriptor

_log = logging.getLogger("modbuild.runs")

RunEnvironment = Literal["client", "server"]

TESTMOD_SOURCE_SET = "testmod"


class RunConfiguration(BaseModel):
    name: str
    environment: RunEnvironment
    source_set: str = TESTMOD_SOURCE_SET
    module: str
    run_dir: str = "run"
    vm_args: List[str] = Field(default_factory=list)
    program_args: List[str] = Field(default_factory=list)

    @property
    def task_name(self) -> str:
        return "run" + self.name[:1].upper() + self.name[1:]


def harness_runs(descriptor: ModuleDescriptor) -> Dict[str, RunConfiguration]:
    """Client and server harness runs that load the module's test mod."""
    runs = [
        RunConfiguration(name="testmodClient", environment="client", module=descriptor.key),
        RunConfiguration(
            name="testmodServer",
            environment="server",
            module=descriptor.key,
            program_args=["nogui"],
        ),
    ]
    return {r.task_name: r for r in runs}


def write_run_configuration(run: RunConfiguration, runs_dir: Path) -> Path:
    runs_dir.mkdir(parents=True, exist_ok=True)
    path = runs_dir / f"{run.name}.json"
    path.write_text(json.dumps(run.model_dump(), indent=2, sort_keys=True) + "\n", encoding="utf-8")
    _log.info("Wrote run configuration %s for %s: %s", run.name, run.module, path)
    return path
