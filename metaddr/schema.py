"""JSON Schema validation infrastructure.

Schemas ship inside the package (``metaddr/schemas/*.schema.json``) and are
referenced by file stem, e.g. ``"acc-md-links"``. Validators are cached.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, List

from jsonschema import Draft202012Validator

from metaddr.core import PACKAGE_ROOT, load_json

SCHEMAS_DIR = PACKAGE_ROOT / "schemas"

ACC_MD_LINKS_SCHEMA = "acc-md-links"
CONFIG_SCHEMA = "config"


def schema_path(name: str) -> Path:
    """Path to a bundled schema by name."""
    return SCHEMAS_DIR / f"{name}.schema.json"


@lru_cache(maxsize=None)
def schema_validator(name: str) -> Draft202012Validator:
    """Create (once) a validator for a bundled schema.

    Raises:
        FileNotFoundError: if no schema with that name is bundled.
    """
    path = schema_path(name)
    if not path.is_file():
        raise FileNotFoundError(f"schema not found: {path}")
    schema = load_json(path)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def validate_against_schema(obj: Any, name: str) -> List[str]:
    """Validate an object against a bundled schema.

    Returns:
        List of ``"<json path>: <message>"`` strings (empty if valid), sorted
        by path.
    """
    validator = schema_validator(name)
    errors = sorted(validator.iter_errors(obj), key=lambda e: e.json_path)
    return [f"{error.json_path}: {error.message}" for error in errors]
