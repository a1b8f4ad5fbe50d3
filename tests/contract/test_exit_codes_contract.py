from __future__ import annotations

from pathlib import Path

from transparencia_etl.cli import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS_ALL, main as cli_main

"""Exit code contract tests: 0 all success, 1 fatal, 2 partial failure."""


def test_exit_code_values():
    assert (EXIT_SUCCESS_ALL, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)


def test_exit_code_fatal_startup(temp_workdir: Path, capsys):
    # 存在しない設定ファイルを明示 → exit 1
    code = cli_main(["index", "--config", "config/not_exists.yml"])
    assert code == EXIT_FATAL
    assert "ERROR config:" in capsys.readouterr().err


def test_exit_code_all_success_empty_merge(temp_workdir: Path, capsys):
    code = cli_main(["merge", "-d", "data", "-o", "output", "-f", "xls", "-t", "licitaciones"])
    assert code == EXIT_SUCCESS_ALL
    assert "SUMMARY files=0 success=0 failed=0 rows=0" in capsys.readouterr().err


def test_exit_code_partial_failure(temp_workdir: Path, capsys):
    (temp_workdir / "config" / "etl.yml").write_text("worker_mode: thread\n", encoding="utf-8")
    (temp_workdir / "data" / "roto.xls").write_bytes(b"")
    code = cli_main(["merge", "-d", "data", "-o", "output", "-f", "xls", "-t", "licitaciones"])
    assert code == EXIT_PARTIAL_FAILURE
