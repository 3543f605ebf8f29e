from __future__ import annotations

import json
import re

from patrimony.models.error_record import ErrorRecord


def test_create_sets_utc_timestamp():
    record = ErrorRecord.create("inv.csv", "<TEXT>", 3, "MISSING_NAME", "row dropped: ['1001', '15/03/2024', '']")
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z", record.timestamp)
    assert record.file == "inv.csv"
    assert record.row == 3


def test_to_json_line_fixed_keys():
    record = ErrorRecord("2025-09-26T10:12:33Z", "inv.xlsx", "<FIRST_SHEET>", -1, "SOURCE_ERROR", "Coluna é inválida")
    line = record.to_json_line()
    assert "\n" not in line
    data = json.loads(line)
    assert list(data) == ["timestamp", "file", "sheet", "row", "error_type", "message"]
    assert data["row"] == -1
    # non-ascii kept as-is
    assert "é" in line
