"""Tests for exam CLI commands."""

import pytest
from typer.testing import CliRunner

from examportal.cli.commands import app
from examportal.config.app_config import CONFIG_ENV, DB_PATH_ENV

runner = CliRunner()


@pytest.fixture
def cli_env(app_config, db, tmp_path):
    """Environment pointing the CLI at the fixture database."""
    return {
        DB_PATH_ENV: str(app_config.database.path),
        CONFIG_ENV: str(tmp_path / "no-config.yaml"),
    }


def _invoke(args, env):
    return runner.invoke(app, args, env=env)


class TestInitDb:
    def test_init_db(self, app_config, tmp_path):
        path = tmp_path / "fresh" / "portal.db"

        result = _invoke(
            ["init-db"],
            {DB_PATH_ENV: str(path), CONFIG_ENV: str(tmp_path / "no-config.yaml")},
        )

        assert result.exit_code == 0
        assert "Database ready" in result.output
        assert path.exists()

    def test_invalid_config(self, app_config, tmp_path):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("attempts:\n  retake_policy: never\n", encoding="utf-8")

        result = _invoke(["init-db"], {CONFIG_ENV: str(config_path)})

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output


class TestAttemptFlow:
    """start -> answer -> submit -> results."""

    def test_full_flow(self, cli_env, student, sample_exam):
        sid, eid = str(student.student_id), str(sample_exam.exam_id)
        q1, q2, q3 = (str(q) for q in sample_exam.question_ids)

        result = _invoke(["start", sid, eid], cli_env)
        assert result.exit_code == 0
        assert "Attempt 1 started" in result.output

        assert _invoke(["answer", "1", q1, "a"], cli_env).exit_code == 0
        assert _invoke(["answer", "1", q2, "C"], cli_env).exit_code == 0
        assert _invoke(["answer", "1", q3, "C"], cli_env).exit_code == 0

        result = _invoke(["submit", "1"], cli_env)
        assert result.exit_code == 0
        assert "submitted" in result.output
        assert "4/7" in result.output
        assert "PASSED" in result.output

        result = _invoke(["results", sid], cli_env)
        assert result.exit_code == 0
        assert "Networking basics" in result.output
        assert "Pass rate: 100.0%" in result.output

    def test_start_twice_resumes(self, cli_env, student, sample_exam):
        args = ["start", str(student.student_id), str(sample_exam.exam_id)]
        _invoke(args, cli_env)

        result = _invoke(args, cli_env)

        assert result.exit_code == 0
        assert "resumed" in result.output

    def test_skip_token(self, cli_env, student, sample_exam):
        _invoke(["start", str(student.student_id), str(sample_exam.exam_id)], cli_env)

        result = _invoke(["answer", "1", str(sample_exam.question_ids[0]), "-"], cli_env)

        assert result.exit_code == 0
        assert "skipped" in result.output

    def test_invalid_option(self, cli_env, student, sample_exam):
        _invoke(["start", str(student.student_id), str(sample_exam.exam_id)], cli_env)

        result = _invoke(["answer", "1", str(sample_exam.question_ids[0]), "Z"], cli_env)

        assert result.exit_code == 1
        assert "Invalid option" in result.output

    def test_submit_twice_fails(self, cli_env, student, sample_exam):
        _invoke(["start", str(student.student_id), str(sample_exam.exam_id)], cli_env)
        _invoke(["submit", "1"], cli_env)

        result = _invoke(["submit", "1"], cli_env)

        assert result.exit_code == 1
        assert "already COMPLETED" in result.output

    def test_show_unknown_attempt(self, cli_env):
        result = _invoke(["show", "42"], cli_env)

        assert result.exit_code == 1
        assert "not found" in result.output


class TestResultsAndExpire:
    def test_results_empty(self, cli_env, student):
        result = _invoke(["results", str(student.student_id)], cli_env)

        assert result.exit_code == 0
        assert "No results yet" in result.output

    def test_expire_overdue(self, cli_env, manager, student, sample_exam):
        # Started by the fake clock in January 2026, long overdue for the real clock
        manager.start(student.student_id, sample_exam.exam_id)

        result = _invoke(["expire"], cli_env)

        assert result.exit_code == 0
        assert "1 attempt(s) expired" in result.output

    def test_expire_nothing(self, cli_env):
        result = _invoke(["expire"], cli_env)

        assert result.exit_code == 0
        assert "No overdue attempts" in result.output
