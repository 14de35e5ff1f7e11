"""
Maven POM handling: descriptor URLs, parsing the published record, and
embedding the commit hash used for publish gating.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Dict, List, Optional

from pydantic import BaseModel

from modbuild.core.config import ProjectSettings
from modbuild.core.errors import FetchError
from modbuild.core.module.models import ModuleDescriptor

POM_NS = "http://maven.apache.org/POM/4.0.0"
HASH_PROPERTY = "hash"


class PublishedArtifactRecord(BaseModel):
    group_id: Optional[str] = None
    artifact_id: Optional[str] = None
    version: Optional[str] = None
    last_published_hash: Optional[str] = None


def pom_url(settings: ProjectSettings, module_name: str, library: str, version: str) -> str:
    base = settings.maven_url.rstrip("/")
    return (
        f"{base}/{settings.maven_group_path}/{library}/{module_name}/{version}/"
        f"{module_name}-{version}.pom"
    )


def _ns_of(tag: str) -> str:
    if tag.startswith("{"):
        return tag[1:].split("}", 1)[0]
    return ""


def _q(ns: str, name: str) -> str:
    return f"{{{ns}}}{name}" if ns else name


def _child_text(parent: ET.Element, ns: str, name: str) -> Optional[str]:
    el = parent.find(_q(ns, name))
    if el is None or el.text is None:
        return None
    text = el.text.strip()
    return text or None


def parse_published_record(xml_text: str, *, url: Optional[str] = None) -> PublishedArtifactRecord:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as exc:
        raise FetchError(f"Unable to parse published descriptor: {exc}", url=url) from exc

    ns = _ns_of(root.tag)
    last_hash = None
    props = root.find(_q(ns, "properties"))
    if props is not None:
        last_hash = _child_text(props, ns, HASH_PROPERTY)

    return PublishedArtifactRecord(
        group_id=_child_text(root, ns, "groupId"),
        artifact_id=_child_text(root, ns, "artifactId"),
        version=_child_text(root, ns, "version"),
        last_published_hash=last_hash,
    )


def _to_xml(root: ET.Element) -> str:
    ET.register_namespace("", POM_NS)
    ET.indent(root, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + body + "\n"


def attach_publish_metadata(pom_xml: str, commit_hash: str) -> str:
    """Embed ``<properties><hash>`` so later publish checks can compare against it."""
    root = ET.fromstring(pom_xml)
    ns = _ns_of(root.tag)

    props = root.find(_q(ns, "properties"))
    if props is None:
        props = ET.SubElement(root, _q(ns, "properties"))

    hash_el = props.find(_q(ns, HASH_PROPERTY))
    if hash_el is None:
        hash_el = ET.SubElement(props, _q(ns, HASH_PROPERTY))
    hash_el.text = commit_hash
    return _to_xml(root)


def _dependency_scope(scope: str) -> str:
    # testmod dependencies never leak into the published artifact
    return "compile" if scope == "api" else "runtime"


def render_pom(
    descriptor: ModuleDescriptor,
    settings: ProjectSettings,
    commit_hash: Optional[str] = None,
) -> str:
    root = ET.Element(_q(POM_NS, "project"))
    ET.SubElement(root, _q(POM_NS, "modelVersion")).text = "4.0.0"
    ET.SubElement(root, _q(POM_NS, "groupId")).text = descriptor.maven_group
    ET.SubElement(root, _q(POM_NS, "artifactId")).text = descriptor.archives_base_name
    ET.SubElement(root, _q(POM_NS, "version")).text = descriptor.version
    if descriptor.description:
        ET.SubElement(root, _q(POM_NS, "description")).text = descriptor.description

    published: List[Dict[str, str]] = [
        {
            "groupId": f"{settings.maven_group_prefix}.{dep.library}",
            "artifactId": dep.module,
            "version": descriptor.version,
            "scope": _dependency_scope(dep.scope),
        }
        for dep in sorted(descriptor.dependencies, key=lambda d: (d.library, d.module))
        if dep.scope != "testmod"
    ]
    if published:
        deps_el = ET.SubElement(root, _q(POM_NS, "dependencies"))
        for dep in published:
            dep_el = ET.SubElement(deps_el, _q(POM_NS, "dependency"))
            for key in ("groupId", "artifactId", "version", "scope"):
                ET.SubElement(dep_el, _q(POM_NS, key)).text = dep[key]

    xml = _to_xml(root)
    if commit_hash:
        xml = attach_publish_metadata(xml, commit_hash)
    return xml
