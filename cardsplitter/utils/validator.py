# validator.py

import json
from pathlib import Path
from typing import Dict, Optional, Tuple

from jsonschema import validate
from jsonschema.exceptions import ValidationError

SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"


class SchemaValidator:
    """Validates persisted documents against the JSON schemas shipped in ``schemas/``."""

    DEFAULT_SCHEMA = "workflow_settings.json"

    def __init__(self, schema_dir: Path = SCHEMA_DIR):
        self.schema_dir = Path(schema_dir)
        self.schema_store = self._load_schemas()

    def _load_schemas(self) -> Dict[str, dict]:
        """Load every .json and key the store by both filename and $id (if present)."""
        store = {}
        for schema_file in sorted(self.schema_dir.glob("*.json")):
            schema = json.loads(schema_file.read_text(encoding="utf-8"))
            store[schema_file.name] = schema
            sid = schema.get("$id")
            if sid:
                store[sid] = schema
        return store

    def validate(self, data: dict, schema_name: Optional[str] = None) -> Tuple[bool, Optional[str]]:
        """
        Validate `data` against a schema (the workflow settings schema by default).
        Returns (True, None) on success, or (False, "Error message") on failure.
        """
        key = schema_name or self.DEFAULT_SCHEMA
        schema = self.schema_store.get(key)
        if not schema:
            raise FileNotFoundError(f"Schema '{key}' not found in {str(self.schema_dir)!r}")
        try:
            validate(instance=data, schema=schema)
            return True, None
        except ValidationError as e:
            # human-friendly path like "extraction->grid->rows"
            path = "->".join(map(str, e.path)) or "(root)"
            return False, f"Validation Error in {path}: {e.message}"
