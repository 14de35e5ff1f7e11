from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# ---- sys.path bootstrap (Windows-friendly) ----
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
# ---------------------------------------------

from modbuild.core.errors import BuildError  # noqa: E402
from modbuild.core.project.loader import load_project  # noqa: E402
from modbuild.core.project.pipeline import TASKS, run_task  # noqa: E402


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Run a module task, e.g. core:events:runTestmodClient")
    ap.add_argument("task", help=f"LIBRARY:MODULE:TASK where TASK is one of {', '.join(sorted(TASKS))}")
    ap.add_argument("--root", default=".", help="Project root (default: current directory)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        out = run_task(load_project(Path(args.root)), args.task)
    except BuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    print(f"Wrote: {out}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
