"""
Tests for the command line interface.
"""

import textwrap

import pytest
from typer.testing import CliRunner

from modelsync.cli import app

runner = CliRunner()

MODELS_MODULE = textwrap.dedent(
    '''
    from dataclasses import dataclass

    from modelsync import db_field


    @dataclass
    class Book:
        __tablename__ = "book"

        id: int = db_field("TYPE:INTEGER,RAW:PRIMARY KEY AUTOINCREMENT", default=0)
        title: str = db_field("LENGTH:200", default="")


    MODELS = [Book]
    '''
)


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Importable models module plus database and snapshot locations."""
    (tmp_path / "cli_models.py").write_text(MODELS_MODULE)
    monkeypatch.syspath_prepend(str(tmp_path))
    monkeypatch.delenv("DATABASE_URL", raising=False)
    return {
        "url": f"sqlite:///{tmp_path / 'app.db'}",
        "dir": str(tmp_path / "migrations"),
    }


def invoke(command, project):
    return runner.invoke(
        app,
        [
            command,
            "--module", "cli_models",
            "--url", project["url"],
            "--migrations-dir", project["dir"],
        ],
    )


class TestCli:
    """Tests for migrate, plan and snapshots."""

    def test_plan_lists_pending_table(self, project):
        result = invoke("plan", project)

        assert result.exit_code == 0
        assert "create table" in result.output
        assert "book" in result.output

    def test_migrate_then_nothing_to_do(self, project):
        first = invoke("migrate", project)
        second = invoke("migrate", project)

        assert first.exit_code == 0
        assert "Migration complete" in first.output
        assert second.exit_code == 0
        assert "No migrations to run" in second.output

    def test_snapshots(self, project):
        invoke("migrate", project)

        result = runner.invoke(app, ["snapshots", "--migrations-dir", project["dir"]])

        assert result.exit_code == 0
        assert "Migration_" in result.output

    def test_snapshots_empty(self, tmp_path):
        result = runner.invoke(app, ["snapshots", "--migrations-dir", str(tmp_path)])

        assert result.exit_code == 0
        assert "No snapshots found" in result.output

    def test_module_without_models(self, project, tmp_path):
        (tmp_path / "empty_models.py").write_text("MODELS = []\n")

        result = runner.invoke(
            app, ["plan", "--module", "empty_models", "--url", project["url"]]
        )

        assert result.exit_code != 0
