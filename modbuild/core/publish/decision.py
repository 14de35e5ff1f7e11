"""
Publish gating: skip re-publishing a module whose published POM already
carries the current commit hash.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import requests

from modbuild.core.config import ProjectSettings
from modbuild.core.errors import FetchError
from modbuild.core.git_ops.repo_manager import latest_commit_hash
from modbuild.core.observability.metrics import inc_publish_decision
from modbuild.core.publish.pom import PublishedArtifactRecord, parse_published_record, pom_url
from modbuild.core.publish.state_machine import PublishState, ensure_transition

_log = logging.getLogger("modbuild.publish")

CommitHashProvider = Callable[[], str]


@dataclass
class PublishDecision:
    module_name: str
    library: str
    version: str
    url: str
    current_hash: str
    remote_hash: Optional[str] = None
    state: PublishState = PublishState.UNCHECKED
    trail: List[PublishState] = field(default_factory=lambda: [PublishState.UNCHECKED])
    error: Optional[str] = None

    @property
    def publish(self) -> bool:
        return self.state == PublishState.PUBLISH

    def advance(self, dst: PublishState) -> None:
        ensure_transition(self.state, dst)
        self.state = dst
        self.trail.append(dst)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module_name": self.module_name,
            "library": self.library,
            "version": self.version,
            "url": self.url,
            "current_hash": self.current_hash,
            "remote_hash": self.remote_hash,
            "state": self.state.value,
            "trail": [s.value for s in self.trail],
            "publish": self.publish,
            "error": self.error,
        }


class PublishDecider:
    def __init__(
        self,
        settings: ProjectSettings,
        *,
        project_root: Optional[Path] = None,
        commit_hash_provider: Optional[CommitHashProvider] = None,
        session: Optional[requests.Session] = None,
    ):
        self.settings = settings
        self.project_root = project_root or Path(".")
        self._commit_hash_provider = commit_hash_provider or (
            lambda: latest_commit_hash(self.project_root)
        )
        self._session = session

    def current_hash(self) -> str:
        return self._commit_hash_provider()

    def fetch_published(self, url: str) -> Optional[PublishedArtifactRecord]:
        """
        Return the published record, or None when nothing was published yet.

        Anything other than a 404 is fatal: guessing here would either skip a
        needed publish or overwrite an existing release.
        """
        get = self._session.get if self._session is not None else requests.get
        try:
            r = get(url, timeout=self.settings.http_timeout_seconds)
        except requests.RequestException as exc:
            raise FetchError(f"Failed to fetch {url}: {exc}", url=url) from exc

        if r.status_code == 404:
            return None
        try:
            r.raise_for_status()
        except requests.HTTPError as exc:
            raise FetchError(
                f"Unexpected HTTP {r.status_code} fetching {url}",
                url=url,
                status_code=r.status_code,
            ) from exc

        return parse_published_record(r.text, url=url)

    def decide(self, module_name: str, library: str, version: str) -> PublishDecision:
        url = pom_url(self.settings, module_name, library, version)
        current = self.current_hash()
        decision = PublishDecision(
            module_name=module_name,
            library=library,
            version=version,
            url=url,
            current_hash=current,
        )

        try:
            record = self.fetch_published(url)
        except FetchError as exc:
            decision.error = str(exc)
            decision.advance(PublishState.FETCH_ERROR)
            decision.advance(PublishState.FAIL)
            inc_publish_decision(decision.state.value)
            _log.error("Publish check failed for %s:%s: %s", library, module_name, exc)
            raise

        if record is None:
            decision.advance(PublishState.NOT_FOUND)
            decision.advance(PublishState.PUBLISH)
        else:
            decision.remote_hash = record.last_published_hash
            if record.last_published_hash == current:
                decision.advance(PublishState.FOUND_MATCH)
                decision.advance(PublishState.SKIP)
            else:
                decision.advance(PublishState.FOUND_MISMATCH)
                decision.advance(PublishState.PUBLISH)

        inc_publish_decision(decision.state.value)
        _log.info(
            "Publish decision for %s:%s %s: %s (remote=%s current=%s)",
            library,
            module_name,
            version,
            decision.state.value,
            decision.remote_hash,
            current,
        )
        return decision

    def should_publish(self, module_name: str, library: str, version: str) -> bool:
        return self.decide(module_name, library, version).publish


def should_publish(
    module_name: str,
    library: str,
    version: str,
    *,
    settings: Optional[ProjectSettings] = None,
    project_root: Optional[Path] = None,
    commit_hash_provider: Optional[CommitHashProvider] = None,
    session: Optional[requests.Session] = None,
) -> bool:
    decider = PublishDecider(
        settings or ProjectSettings(version=version),
        project_root=project_root,
        commit_hash_provider=commit_hash_provider,
        session=session,
    )
    return decider.should_publish(module_name, library, version)
