"""
Smoke tests for CLI commands.

Tests that CLI commands:
1. Exit with code 0 (success)
2. Print the ClassificationResult JSON
3. Handle missing input files gracefully
"""

import json
import os
import pytest
import subprocess
import sys
from pathlib import Path


REPO_ROOT = Path(__file__).parent.parent


def run_cli(*args, stdin=None):
    env = dict(os.environ)
    env["PYTHONIOENCODING"] = "utf-8"
    return subprocess.run(
        [sys.executable, "-m", "src.cli", *args],
        cwd=REPO_ROOT,
        capture_output=True,
        text=True,
        encoding="utf-8",
        input=stdin,
        env=env
    )


def test_cli_analyze_help():
    result = run_cli("analyze", "--help")
    assert result.returncode == 0, f"analyze --help failed: {result.stderr}"


def test_cli_analyze_text_local():
    result = run_cli("analyze", "--text", "Harina de trigo, azúcar, sal", "--local-only")

    assert result.returncode == 0, result.stderr
    output = json.loads(result.stdout)
    assert output["hasGluten"] is True
    assert output["glutenOrigin"] == "trigo/wheat"
    assert output["score"] == 4
    assert "error" not in output


def test_cli_analyze_without_key_uses_heuristic():
    result = run_cli("analyze", "--text", "Leche, sin gluten", "--show-source")

    assert result.returncode == 0, result.stderr
    output = json.loads(result.stdout)
    assert output["source"] == "HEURISTIC"
    assert output["hasLactose"] is True


def test_cli_analyze_stdin():
    result = run_cli("analyze", "--stdin", "--local-only", stdin="Puede contener trazas de trigo")

    assert result.returncode == 0, result.stderr
    output = json.loads(result.stdout)
    assert output["hasGluten"] is True
    assert output["crossContam"] is True


def test_cli_analyze_text_file(tmp_path):
    label = tmp_path / "label.txt"
    label.write_text("Arroz, agua", encoding="utf-8")

    result = run_cli("analyze", "--text-file", str(label), "--local-only", "--pretty")

    assert result.returncode == 0, result.stderr
    assert json.loads(result.stdout)["score"] == 10


def test_cli_analyze_image_without_provider(tmp_path):
    image = tmp_path / "label.jpg"
    image.write_bytes(b"\xff\xd8\xff\xe0fake")

    result = run_cli("analyze", "--image", str(image), "--local-only")

    assert result.returncode == 0, result.stderr
    assert json.loads(result.stdout)["summary"] == "Escaneá un producto o pegá el texto de la etiqueta"


def test_cli_analyze_writes_audit_log(tmp_path):
    logs_dir = tmp_path / "logs"

    result = run_cli("analyze", "--text", "Trigo", "--local-only", "--log-dir", str(logs_dir))

    assert result.returncode == 0, result.stderr
    assert len(list(logs_dir.glob("*.jsonl"))) == 1


def test_cli_missing_text_file(tmp_path):
    result = run_cli("analyze", "--text-file", str(tmp_path / "missing.txt"))

    assert result.returncode == 1
    assert "ERROR" in result.stderr


def test_cli_missing_image(tmp_path):
    result = run_cli("analyze", "--image", str(tmp_path / "missing.jpg"))

    assert result.returncode == 1
    assert "ERROR" in result.stderr


def test_cli_config_status():
    result = run_cli("config-status")

    assert result.returncode == 0, result.stderr
    assert "heuristic only" in result.stdout


def test_cli_no_command():
    assert run_cli().returncode == 1


def test_cli_config_status_with_list_config(tmp_path):
    config_path = tmp_path / "list.yaml"
    config_path.write_text("- a\n- b\n", encoding="utf-8")

    result = run_cli("--config", str(config_path), "config-status")

    assert result.returncode == 0, result.stderr
    assert "heuristic only" in result.stdout
