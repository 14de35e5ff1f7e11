# modbuild/core/git_ops/repo_manager.py

from __future__ import annotations

import os
import subprocess
from pathlib import Path
from typing import Tuple

from modbuild.core.errors import BuildError


class GitError(BuildError):
    pass


def _run_git(repo_path: Path, args: list[str]) -> Tuple[int, str, str]:
    try:
        p = subprocess.run(
            ["git", "--no-pager", *args],
            cwd=str(repo_path),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            env={**os.environ, "GIT_PAGER": "cat", "PAGER": "cat"},
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found") from exc
    return p.returncode, (p.stdout or "").strip(), (p.stderr or "").strip()


def get_ref(repo_path: Path, ref: str) -> str:
    rc, out, err = _run_git(repo_path, ["rev-parse", ref])
    if rc != 0:
        raise GitError(f"git rev-parse {ref} failed: {err or out}")
    return out


def latest_commit_hash(repo_path: Path) -> str:
    """HEAD commit of the project; queried fresh on every call."""
    return get_ref(repo_path, "HEAD")


def is_dirty(repo_path: Path) -> bool:
    rc, status, err = _run_git(repo_path, ["status", "--porcelain"])
    if rc != 0:
        raise GitError(f"git status failed: {err}")
    return bool(status)
