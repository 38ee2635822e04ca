"""Tests for the taxonomy import/export command line script."""

import pytest
from sqlalchemy.orm import sessionmaker

import taxonomy as cli
from skillmatrix import database
from skillmatrix.config import settings
from skillmatrix.models.taxonomy import SkillCategory


@pytest.fixture
def cli_db(db, tmp_path, monkeypatch):
    """Point the script at the in-memory test database and a temporary data root."""
    engine = db.get_bind()
    monkeypatch.setattr(database, "engine", engine)
    session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    monkeypatch.setattr(database, "SessionLocal", session_factory)
    monkeypatch.setattr(settings, "data_root", str(tmp_path / "data"))
    return db


def test_usage(capsys):
    assert cli.main([]) == 1
    assert cli.main(["sync", "file.csv"]) == 1
    assert "Usage" in capsys.readouterr().out


def test_export(cli_db, taxonomy, tmp_path, capsys):
    target = tmp_path / "taxonomy.csv"

    assert cli.main(["export", str(target)]) == 0

    lines = target.read_text(encoding="utf-8").splitlines()
    assert lines[0] == '"Category","Skill","Subskill","Description"'
    assert '"Cloud","AWS","",""' in lines
    assert f"Exported taxonomy to {target}" in capsys.readouterr().out


def test_import(cli_db, tmp_path, capsys):
    source = tmp_path / "taxonomy.csv"
    source.write_text(
        "\ufeffCategory,Skill,Subskill,Description\nData,SQL,Joins,Set logic\n,Orphan,,\n",
        encoding="utf-8",
    )

    assert cli.main(["import", str(source)]) == 2

    out = capsys.readouterr().out
    assert "Imported 1 rows (1 failed)" in out
    assert "Created 1 categories, 1 skills, 1 subskills" in out
    cli_db.expire_all()
    assert [c.name for c in cli_db.query(SkillCategory).all()] == ["Data"]


def test_import_missing_file(cli_db, tmp_path, capsys):
    assert cli.main(["import", str(tmp_path / "nope.csv")]) == 1
    assert "File not found" in capsys.readouterr().out


def test_import_bad_header(cli_db, tmp_path, capsys):
    source = tmp_path / "bad.csv"
    source.write_text("Name,Value\nx,y\n", encoding="utf-8")

    assert cli.main(["import", str(source)]) == 1
    assert "missing required columns" in capsys.readouterr().out
