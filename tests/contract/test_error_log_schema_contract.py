from __future__ import annotations

import json

import jsonschema
import pytest

from patrimony.models.error_record import ErrorRecord

"""Error log JSON Lines schema contract."""

ERROR_LOG_SCHEMA = {
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "sheet", "row", "error_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$"},
        "file": {"type": "string", "minLength": 1},
        "sheet": {"type": "string", "minLength": 1},
        "row": {"type": "integer", "minimum": -1},
        "error_type": {"type": "string", "pattern": "^[A-Z][A-Z0-9_]*$"},
        "message": {"type": "string"},
    },
}


def test_error_record_matches_schema():
    record = ErrorRecord.create("inv.csv", "<TEXT>", 4, "INVALID_ASSET_TAG", "row dropped: ['x12']")
    jsonschema.validate(json.loads(record.to_json_line()), ERROR_LOG_SCHEMA)


def test_schema_rejects_extra_key():
    data = json.loads(ErrorRecord.create("inv.csv", "<TEXT>", 4, "MISSING_NAME", "m").to_json_line())
    data["extra"] = "not allowed"
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(data, ERROR_LOG_SCHEMA)


def test_schema_rejects_lowercase_error_type():
    data = json.loads(ErrorRecord.create("inv.csv", "<TEXT>", 4, "missing_name", "m").to_json_line())
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(data, ERROR_LOG_SCHEMA)
