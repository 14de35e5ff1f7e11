from __future__ import annotations

import argparse
import json
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
from modbuild.core.project.pipeline import run_build  # noqa: E402
from modbuild.core.publish.decision import PublishDecider  # noqa: E402


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(
        description="Validate modules, generate manifests and decide which modules need publishing"
    )
    ap.add_argument("--root", default=".", help="Project root (default: current directory)")
    ap.add_argument("--json", action="store_true", help="Print the full build report as JSON")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.INFO if args.verbose else logging.WARNING)

    try:
        ctx = load_project(Path(args.root))
        report = run_build(ctx, PublishDecider(ctx.settings, project_root=ctx.root))
    except BuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(report.to_dict(), indent=2, sort_keys=True))
        return 0

    for key, decision in sorted(report.decisions.items()):
        verdict = "publish" if decision.publish else "skip"
        print(f"{key} {decision.version}: {verdict} ({decision.state.value})")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
