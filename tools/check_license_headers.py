from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import List, Optional

# ---- sys.path bootstrap (Windows-friendly) ----
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
# ---------------------------------------------

from modbuild.core.config import load_settings  # noqa: E402
from modbuild.core.errors import BuildError  # noqa: E402
from modbuild.core.licensing import check_license_headers  # noqa: E402


def main(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Check license headers of Java sources")
    ap.add_argument("--root", default=".", help="Project root (default: current directory)")
    args = ap.parse_args(argv)

    root = Path(args.root).resolve()
    try:
        settings = load_settings(root)
        violations = check_license_headers(root, settings.license_headers, settings.license_include)
    except BuildError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    if violations:
        print("ERROR: license header check failed", file=sys.stderr)
        for v in violations[:200]:
            print(f"  - {v.path}: {v.reason}", file=sys.stderr)
        return 1

    print("OK: all license headers match.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
