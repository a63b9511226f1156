"""
Tests for the `stencil` command line.
"""

import json
from pathlib import Path

import pytest

from stencil.cli import main

from tests.infrastructure import run_cli, write


class TestRender:

    def test_render_with_vars(self, capsys, template_dir: Path):
        result = run_cli(capsys, "render", "page.html", "--root", str(template_dir), "--var", "title=Home")
        assert result.returncode == 0
        assert result.stdout == '<title>Home - Site</title>\n<input name="q" type="text"><footer>HOME</footer>'

    def test_render_with_yaml_data(self, capsys, template_dir: Path, tmp_path: Path):
        data = write(tmp_path / "data.yaml", "title: Docs\n")
        result = run_cli(capsys, "render", "footer.html", "--root", str(template_dir), "--data", str(data))
        assert result.stdout == "<footer>DOCS</footer>"

    def test_render_with_json_data_and_override(self, capsys, template_dir: Path, tmp_path: Path):
        data = write(tmp_path / "data.json", '{"title": "json"}')
        result = run_cli(
            capsys, "render", "footer.html", "--root", str(template_dir),
            "--data", str(data), "--var", "title=cli",
        )
        assert result.stdout == "<footer>CLI</footer>"

    def test_render_with_config(self, capsys, tmp_path: Path):
        write(tmp_path / "t.txt", "<< greeting >>!")
        config = write(tmp_path / "stencil.yaml", "print_delimiters: ['<<', '>>']\nglobals:\n  greeting: hi\n")
        result = run_cli(capsys, "render", "t.txt", "--root", str(tmp_path), "--config", str(config))
        assert result.returncode == 0
        assert result.stdout == "hi!"

    def test_invalid_var(self, capsys, template_dir: Path):
        result = run_cli(capsys, "render", "footer.html", "--root", str(template_dir), "--var", "novalue")
        assert result.returncode == 2
        assert "Invalid variable 'novalue'" in result.stderr

    def test_missing_template(self, capsys, template_dir: Path):
        result = run_cli(capsys, "render", "nope.html", "--root", str(template_dir))
        assert result.returncode == 2
        assert "Template 'nope.html' not found" in result.stderr

    def test_missing_config(self, capsys, template_dir: Path, tmp_path: Path):
        result = run_cli(
            capsys, "render", "footer.html", "--root", str(template_dir), "--config", str(tmp_path / "absent.yaml"),
        )
        assert result.returncode == 2
        assert "Config file not found" in result.stderr

    def test_data_must_be_mapping(self, capsys, template_dir: Path, tmp_path: Path):
        data = write(tmp_path / "data.yaml", "- a\n")
        result = run_cli(capsys, "render", "footer.html", "--root", str(template_dir), "--data", str(data))
        assert result.returncode == 2
        assert "Data file must contain a mapping" in result.stderr


class TestCheckAndDeps:

    def test_check_ok(self, capsys, template_dir: Path):
        result = run_cli(capsys, "check", "page.html", "--root", str(template_dir))
        assert result.returncode == 0
        assert result.stdout == "ok\n"

    def test_check_reports_parse_error(self, capsys, template_dir: Path):
        result = run_cli(capsys, "check", "broken.html", "--root", str(template_dir))
        assert result.returncode == 2
        assert "Unexpected end of template" in result.stderr
        assert "template 'broken.html'" in result.stderr

    def test_deps(self, capsys, template_dir: Path):
        result = run_cli(capsys, "deps", "page.html", "--root", str(template_dir))
        assert result.returncode == 0
        assert json.loads(result.stdout) == ["base.html", "forms.html", "footer.html"]


class TestArguments:

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["--version"])
        assert exc.value.code == 0
        assert capsys.readouterr().out.startswith("stencil ")

    def test_subcommand_required(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main([])
        assert exc.value.code == 2
