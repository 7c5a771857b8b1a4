"""Tests for the agent-builder command line.

Covers validate / generate exit codes, file output, and error reporting.
"""

from __future__ import annotations

import json

import pytest

from agent_builder.cli import main

_CONFIG = {
    "agents": [
        {
            "id": "1",
            "name": "researcher",
            "systemPrompt": "Find facts.",
            "tools": [{"id": "t1", "name": "Search Docs", "parameters": []}],
        }
    ],
    "workflowType": "Sequential",
}


def _write(tmp_path, config) -> str:
    path = tmp_path / "workflow.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return str(path)


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc_info:
        main(argv)
    return exc_info.value.code


def _with_tool(name: str) -> dict:
    agent = {**_CONFIG["agents"][0], "tools": [{"id": "t1", "name": name}]}
    return {**_CONFIG, "agents": [agent]}


class TestValidate:
    def test_warnings_exit_zero(self, tmp_path, capsys):
        assert _run(["validate", _write(tmp_path, _CONFIG)]) == 0
        out = capsys.readouterr().out
        assert "warning [agents[0].tools[0].name]" in out
        assert "search_docs" in out
        assert "0 error(s), 1 warning(s)" in out

    def test_errors_exit_one(self, tmp_path, capsys):
        assert _run(["validate", _write(tmp_path, _with_tool("return"))]) == 1
        assert "error [agents[0].tools[0].name]" in capsys.readouterr().out

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        assert _run(["validate", str(path)]) == 1
        assert "error:" in capsys.readouterr().err

    def test_missing_file(self, tmp_path, capsys):
        assert _run(["validate", str(tmp_path / "absent.json")]) == 1
        assert "cannot read" in capsys.readouterr().err

    def test_unpaired_surrogate_rejected(self, tmp_path, capsys):
        agent = {**_CONFIG["agents"][0], "systemPrompt": "hi \ud800"}
        out_dir = tmp_path / "project"
        argv = ["generate", _write(tmp_path, {"agents": [agent]}), "--out", str(out_dir)]
        assert _run(argv) == 1
        assert "UTF-8" in capsys.readouterr().err
        assert not out_dir.exists()


class TestGenerate:
    def test_writes_files(self, tmp_path, capsys):
        out_dir = tmp_path / "project"
        assert _run(["generate", _write(tmp_path, _CONFIG), "--out", str(out_dir)]) == 0
        assert sorted(p.name for p in out_dir.iterdir()) == sorted([
            "main.py", "tools.py", "requirements.txt", "README.md", "Dockerfile", ".gcloudignore",
        ])
        assert "def search_docs(" in (out_dir / "tools.py").read_text(encoding="utf-8")
        assert "payload_hash:" in capsys.readouterr().out

    def test_env_example_flag(self, tmp_path):
        out_dir = tmp_path / "project"
        argv = ["generate", _write(tmp_path, _CONFIG), "--out", str(out_dir), "--env-example"]
        assert _run(argv) == 0
        assert (out_dir / ".env.example").exists()

    def test_refuses_non_empty_directory(self, tmp_path, capsys):
        out_dir = tmp_path / "project"
        out_dir.mkdir()
        (out_dir / "keep.txt").write_text("x", encoding="utf-8")
        assert _run(["generate", _write(tmp_path, _CONFIG), "--out", str(out_dir)]) == 1
        assert "--force" in capsys.readouterr().err
        assert not (out_dir / "main.py").exists()

    def test_blocked_by_errors(self, tmp_path):
        out_dir = tmp_path / "project"
        assert _run(["generate", _write(tmp_path, _with_tool("class")), "--out", str(out_dir)]) == 1
        assert not out_dir.exists()

    def test_force_does_not_bypass_errors(self, tmp_path):
        out_dir = tmp_path / "project"
        argv = ["generate", _write(tmp_path, _with_tool("class")), "--out", str(out_dir), "--force"]
        assert _run(argv) == 1
        assert not out_dir.exists()

    def test_ignore_errors_generates(self, tmp_path):
        out_dir = tmp_path / "project"
        argv = ["generate", _write(tmp_path, _with_tool("class")), "--out", str(out_dir), "--ignore-errors"]
        assert _run(argv) == 1
        assert "def class_(" in (out_dir / "tools.py").read_text(encoding="utf-8")

    def test_force_overwrites_non_empty_directory(self, tmp_path):
        out_dir = tmp_path / "project"
        out_dir.mkdir()
        (out_dir / "keep.txt").write_text("x", encoding="utf-8")
        assert _run(["generate", _write(tmp_path, _CONFIG), "--out", str(out_dir), "--force"]) == 0
        assert (out_dir / "main.py").exists()

    def test_cycle(self, tmp_path, capsys):
        config = {
            "agents": [
                {"id": "a", "name": "alpha", "parentId": "b"},
                {"id": "b", "name": "beta", "parentId": "a"},
            ],
            "workflowType": "Hierarchical",
        }
        out_dir = tmp_path / "project"
        assert _run(["generate", _write(tmp_path, config), "--out", str(out_dir)]) == 1
        assert "Cyclic parent references" in capsys.readouterr().out
        assert not out_dir.exists()


def test_no_command_prints_help(capsys):
    assert _run([]) == 1
    assert "usage:" in capsys.readouterr().out
