from __future__ import annotations

import re
from pathlib import Path

from patrimony.cli import main as cli_main

"""Exit code and SUMMARY line contract of the command line."""

CSV_OK = "Chapa;Data;Nome\n1001;15/03/2024;Notebook\n1002;16/03/2024;Monitor\n"
CSV_PARTIAL = "Chapa;Data;Nome\n1001;15/03/2024;Notebook\n1002;;Monitor\n"


def test_exit_code_fatal_missing_config(temp_workdir: Path, capsys):
    code = cli_main(["stats"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR config:" in out


def test_import_success(write_config, write_csv, capsys):
    path = write_csv("inv.csv", CSV_OK)
    code = cli_main(["import", str(path), "--location", "Room 5"])
    out = capsys.readouterr().out
    assert code == 0
    assert re.search(
        r"^SUMMARY file=inv\.csv found=2 imported=2 skipped=0 elapsed_sec=[0-9.]+$", out, re.M
    )
    assert out.count("SUMMARY") == 1


def test_import_partial_writes_error_log(write_config, write_csv, temp_workdir, capsys):
    path = write_csv("inv.csv", CSV_PARTIAL)
    code = cli_main(["import", str(path), "--location", "Room 5"])
    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY file=inv.csv found=1 imported=1 skipped=1" in out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    assert '"error_type": "MISSING_DATE"' in logs[0].read_text(encoding="utf-8")


def test_import_fatal_errors(write_config, write_csv, temp_workdir, capsys):
    assert cli_main(["import", str(temp_workdir / "files" / "nope.csv"), "--location", "X"]) == 1
    assert "ERROR import:" in capsys.readouterr().out

    path = write_csv("inv.csv", CSV_OK)
    assert cli_main(["import", str(path), "--location", "X"]) == 0
    # same tags again: rejected, nothing stored twice
    assert cli_main(["import", str(path), "--location", "X"]) == 1
    out = capsys.readouterr().out
    assert "asset tags already in use: 1001, 1002" in out


def test_compare_exit_codes(write_config, write_csv, capsys):
    a = write_csv("a.csv", CSV_OK)
    b = write_csv("b.csv", CSV_OK)
    assert cli_main(["compare", str(a), str(b)]) == 0
    assert "SUMMARY only_in_a=0 only_in_b=0 differing=0 identical=2" in capsys.readouterr().out

    c = write_csv("c.csv", "1001;15/03/2024;Laptop\n1003;16/03/2024;Chair\n")
    assert cli_main(["compare", str(a), str(c)]) == 2
    out = capsys.readouterr().out
    assert 'differs 1001: Name: "Notebook" vs "Laptop"' in out
    assert "only in a.csv: 1002 Monitor" in out
    assert "only in c.csv: 1003 Chair" in out
    assert "SUMMARY only_in_a=1 only_in_b=1 differing=1 identical=0" in out


def test_compare_reject_duplicates_is_fatal(write_config, write_csv, capsys):
    a = write_csv("a.csv", "1001;15/03/2024;A\n1001;15/03/2024;B\n")
    assert cli_main(["compare", str(a), str(a), "--duplicates", "reject"]) == 1
    assert "ERROR compare:" in capsys.readouterr().out


def test_list_and_stats(write_config, write_csv, capsys):
    cli_main(["import", str(write_csv("inv.csv", CSV_OK)), "--location", "Room 5"])
    capsys.readouterr()

    assert cli_main(["list"]) == 0
    out = capsys.readouterr().out
    assert "1001\t2024-03-15\tNotebook\tRoom 5\tactive" in out

    assert cli_main(["stats"]) == 0
    out = capsys.readouterr().out
    assert "SUMMARY items=2 active=2 maintenance=0 retired=0 total_value=0.00" in out


def test_inspect(write_config, write_csv, capsys):
    path = write_csv("inv.csv", CSV_OK)
    assert cli_main(["inspect", str(path)]) == 0
    out = capsys.readouterr().out
    assert "FILE: inv.csv rows=3" in out
    assert "header_detected=True" in out


def test_debug_flag(write_config, write_csv, capsys):
    path = write_csv("inv.csv", "1001;not a date;Notebook\n")
    assert cli_main(["--debug", "import", str(path), "--location", "Lab"]) == 0
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out


def test_inspect_follows_configured_header_setting(write_config, write_csv, capsys):
    text = write_config.read_text(encoding="utf-8").replace(
        "import:\n  batch_size: 2\n", "import:\n  batch_size: 2\n  has_header: false\n"
    )
    write_config.write_text(text, encoding="utf-8")
    path = write_csv("inv.csv", CSV_OK)

    assert cli_main(["inspect", str(path)]) == 0
    assert "header_detected=False (configured)" in capsys.readouterr().out
    assert cli_main(["inspect", str(path), "--has-header"]) == 0
    assert "header_detected=True (configured)" in capsys.readouterr().out
