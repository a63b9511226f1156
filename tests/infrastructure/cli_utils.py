"""
Utilities for running the CLI in-process.
"""

from __future__ import annotations

from dataclasses import dataclass

from stencil.cli import main


@dataclass
class CliResult:
    returncode: int
    stdout: str
    stderr: str


def run_cli(capsys, *args: str) -> CliResult:
    """Runs `stencil <args>` through main() and captures its output."""
    capsys.readouterr()
    code = main(list(args))
    captured = capsys.readouterr()
    return CliResult(returncode=code, stdout=captured.out, stderr=captured.err)
