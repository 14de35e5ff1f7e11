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
from modbuild.core.manifest.generator import manifest_is_current  # noqa: E402
from modbuild.core.project.loader import load_project  # noqa: E402
from modbuild.core.project.pipeline import (  # noqa: E402
    generate_module_manifest,
    generated_resources_dir,
    validate_modules,
)


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Generate quilt.mod.json for every module")
    ap.add_argument("--root", default=".", help="Project root (default: current directory)")
    ap.add_argument("--check", action="store_true", help="Fail if any generated manifest is stale or missing")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        ctx = load_project(Path(args.root))
        modules = validate_modules(ctx)

        if args.check:
            stale = [
                m.key
                for m in modules
                if not manifest_is_current(m, generated_resources_dir(ctx, m), ctx.settings)
            ]
            if stale:
                print("ERROR: stale module manifests: " + ", ".join(stale), file=sys.stderr)
                return 3
            print(f"OK: {len(modules)} module manifest(s) up to date.")
            return 0

        for m in modules:
            print(f"Wrote: {generate_module_manifest(ctx, m)}")
    except BuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
