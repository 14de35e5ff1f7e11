from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from modbuild.core.config import ProjectSettings, load_settings
from modbuild.core.manifest.generator import build_manifest, manifest_sha256, render_manifest
from modbuild.core.manifest.testmod import validate_testmod_descriptor
from modbuild.core.module.models import ModuleExtension
from modbuild.core.module.resolver import resolve_module
from modbuild.core.publish.decision import PublishDecider

# BuildError subclasses raised below (settings loading included) are mapped to
# 400/422/502 by the app-level handler in modbuild.api.middleware.error_shaping.
router = APIRouter(prefix="/api/v1", tags=["modules"])


def project_root() -> Path:
    return Path(os.getenv("MODBUILD_PROJECT_ROOT", ".")).resolve()


def get_settings() -> ProjectSettings:
    return load_settings(project_root())


def get_decider(settings: ProjectSettings = Depends(get_settings)) -> PublishDecider:
    return PublishDecider(settings, project_root=project_root())


class ResolveModuleRequest(BaseModel):
    extension: ModuleExtension
    root_version: Optional[str] = Field(
        default=None, description="Root project version; defaults to the configured one"
    )


class PublishDecisionRequest(BaseModel):
    module_name: str
    library: str
    version: str


class TestmodValidateRequest(BaseModel):
    descriptor: str = Field(..., description="Raw quilt.mod.json text of the test mod")


@router.post("/modules/resolve")
def resolve(req: ResolveModuleRequest, settings: ProjectSettings = Depends(get_settings)):
    d = resolve_module(req.extension, req.root_version or settings.version, settings)
    return {"kind": "module_descriptor", "descriptor": d.model_dump()}


@router.post("/modules/manifest")
def manifest(req: ResolveModuleRequest, settings: ProjectSettings = Depends(get_settings)):
    d = resolve_module(req.extension, req.root_version or settings.version, settings)
    doc = build_manifest(d, settings)
    return {
        "kind": "module_manifest",
        "filename": settings.manifest_filename,
        "manifest": doc,
        "sha256": manifest_sha256(render_manifest(doc)),
    }


@router.post("/modules/publish-decision")
def publish_decision(req: PublishDecisionRequest, decider: PublishDecider = Depends(get_decider)):
    return decider.decide(req.module_name, req.library, req.version).to_dict()


@router.post("/testmod/validate")
def validate_testmod(req: TestmodValidateRequest):
    validate_testmod_descriptor(req.descriptor)
    return {"ok": True}
