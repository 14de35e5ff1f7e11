from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from modbuild.core.errors import ValidationError

_log = logging.getLogger("modbuild.testmod")

REQUIRED_LOAD_TYPE = "always"


def _load_type(doc: Dict[str, Any]) -> Any:
    loader = doc.get("quilt_loader")
    if isinstance(loader, dict) and "load_type" in loader:
        return loader["load_type"]
    return doc.get("load_type")


def validate_testmod_descriptor(source: Union[str, Path], *, name: str = "quilt.mod.json") -> Dict[str, Any]:
    """
    Test mods must always be loaded, so their descriptor has to declare
    ``load_type: always``. Returns the parsed descriptor.
    """
    if isinstance(source, Path):
        name = str(source)
        try:
            text = source.read_text(encoding="utf-8")
        except OSError as exc:
            raise ValidationError(f"Testmod resource {name} cannot be read: {exc}") from exc
    else:
        text = source

    try:
        doc = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Testmod resource {name} is not valid JSON: {exc}") from exc

    if not isinstance(doc, dict):
        raise ValidationError(f"Testmod resource {name} must be a JSON object")

    if _load_type(doc) != REQUIRED_LOAD_TYPE:
        raise ValidationError(
            f'Testmod resource {name} does not contain a load_type of "{REQUIRED_LOAD_TYPE}"'
        )

    _log.debug("Testmod resource %s declares load_type=%s", name, REQUIRED_LOAD_TYPE)
    return doc
