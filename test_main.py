#!/usr/bin/env python3
"""
Test the markup-tool command line entry point
"""

import json
import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

import pytest

from main import main
from models.database import close_database, initialize_database
from models.design import DesignRepository
from models.design_state import DesignState, ScaleInfo, SupplyLine


@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "cli.db")
    initialize_database(path)
    DesignRepository().save(
        DesignState(
            lines=(SupplyLine('l-1', [(0, 0), (100, 0)], 5.0, 'lv', cable_type='4C 16mm'),),
            scale_info=ScaleInfo(100.0, 5.0, 0.05),
        ),
        "Workshop",
    )
    close_database()
    return path


def test_list(db_path, capsys):
    assert main(["--db", db_path, "list"]) == 0
    out = capsys.readouterr().out
    assert "Workshop" in out
    assert "0.050000 m/px" in out


def test_list_empty(tmp_path, capsys):
    assert main(["--db", str(tmp_path / "empty.db"), "list"]) == 0
    assert "No saved designs" in capsys.readouterr().out


def test_summary_text_and_json(db_path, capsys):
    assert main(["--db", db_path, "summary", "1"]) == 0
    out = capsys.readouterr().out
    assert "LV: 5.00" in out
    assert "4C 16mm: 5.00" in out

    assert main(["--db", db_path, "summary", "1", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data['summary']['ac_cable_m'] == pytest.approx(5.0)
    assert data['warnings'] == []
    assert data['status'] == 'complete'


def test_summary_unknown_design(db_path, capsys):
    assert main(["--db", db_path, "summary", "42"]) == 1
    assert "No saved design with id 42" in capsys.readouterr().err


def test_export_then_import(db_path, tmp_path, capsys):
    out_file = str(tmp_path / "workshop.json")
    assert main(["--db", db_path, "export", "1", out_file]) == 0
    with open(out_file, encoding='utf-8') as f:
        assert json.load(f)['lines'][0]['cableType'] == '4C 16mm'

    assert main(["--db", db_path, "import", out_file, "--name", "Copy"]) == 0
    capsys.readouterr()
    main(["--db", db_path, "list"])
    out = capsys.readouterr().out
    assert "Copy" in out and "Workshop" in out


def test_import_rejects_invalid_json(db_path, tmp_path, capsys):
    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding='utf-8')
    assert main(["--db", db_path, "import", str(bad)]) == 1


def test_version(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["--version"])
    assert exc.value.code == 0
    assert "markup-tool 1.0.0" in capsys.readouterr().out
