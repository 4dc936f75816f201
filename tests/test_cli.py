"""
Tests for the command line interface.
"""

import csv
import os
import subprocess
import sys

import pytest

from pycrn.cli import main

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.fixture
def model_file(tmp_path, majority_text):
    path = tmp_path / "majority.crn"
    path.write_text(majority_text)
    return str(path)


class TestCommands:
    """Test each sub-command in-process."""

    def test_ssa(self, model_file, tmp_path, capsys):
        out_csv = tmp_path / "trace.csv"
        code = main(["ssa", model_file, "--t-end", "5", "--seed", "1", "--csv", str(out_csv)])
        out = capsys.readouterr().out

        assert code == 0
        assert "Final time" in out
        assert "Simulation Statistics" in out
        with open(out_csv, newline="") as f:
            rows = list(csv.reader(f))
        assert rows[0] == ["time", "A", "B"]
        assert rows[1] == ["0.0", "30.0", "20.0"]

    def test_ssa_without_numba(self, model_file, capsys):
        assert main(["ssa", model_file, "--t-end", "1", "--seed", "2", "--no-numba"]) == 0
        assert "Species" in capsys.readouterr().out

    def test_ode(self, tmp_path, capsys):
        model = tmp_path / "decay.crn"
        model.write_text("A = 1; A -> B;")
        out_csv = tmp_path / "ode.csv"

        assert main(["ode", str(model), "--t-end", "1", "--dt", "0.25", "--csv", str(out_csv)]) == 0
        assert "Integration completed" in capsys.readouterr().out
        with open(out_csv, newline="") as f:
            rows = list(csv.reader(f))
        assert len(rows) == 5
        assert rows[0] == ["time", "A", "B"]

    def test_format(self, model_file, capsys):
        assert main(["format", model_file]) == 0
        assert capsys.readouterr().out == "A = 30;\nB = 20;\n2A + B -> 3A : 1.0;\nA + 2B -> 3B : 1.0;\n"

    def test_format_deterministic(self, model_file, capsys):
        assert main(["format", "--deterministic", model_file]) == 0
        assert capsys.readouterr().out.startswith("A = 30.0;\nB = 20.0;\n")

    def test_odes(self, tmp_path, capsys):
        model = tmp_path / "decay.crn"
        model.write_text("A = 1; A -> B : 0.5;")

        assert main(["odes", str(model)]) == 0
        lines = capsys.readouterr().out.splitlines()
        assert lines[0].startswith("dA/dt = ")
        assert lines[1].startswith("dB/dt = ")
        assert "0.5*A" in lines[1]

    def test_info(self, model_file, capsys):
        assert main(["info", model_file]) == 0
        out = capsys.readouterr().out
        assert "2 species, 2 reactions" in out
        assert "In" in out and "Out" in out

    def test_run_config(self, tmp_path, capsys):
        config = tmp_path / "run.yml"
        config.write_text(
            "model_text: 'A = 20; A -> B : 0.5;'\n"
            "method: deterministic\n"
            "t_end: 2\n"
            "dt: 0.5\n"
            "csv: out.csv\n"
        )
        assert main(["run", str(config)]) == 0
        assert "Integration completed" in capsys.readouterr().out
        assert (tmp_path / "out.csv").exists()

    def test_run_stochastic_config(self, tmp_path, model_file, capsys):
        config = tmp_path / "run.yml"
        config.write_text(f"model: {model_file}\nt_end: 2\nseed: 4\n")
        assert main(["run", str(config)]) == 0
        assert "Simulation Statistics" in capsys.readouterr().out


class TestErrors:
    """Test that errors are reported on stderr with exit status 1."""

    def test_parse_error(self, tmp_path, capsys):
        model = tmp_path / "bad.crn"
        model.write_text("A = 1;\nA -> B")

        assert main(["ssa", str(model), "--t-end", "1"]) == 1
        err = capsys.readouterr().err
        assert err.startswith("error: ")
        assert "line 2" in err

    def test_duplicate_definition(self, tmp_path, capsys):
        model = tmp_path / "dup.crn"
        model.write_text("A = 1; A = 2;")

        assert main(["format", str(model)]) == 1
        assert "defined more than once" in capsys.readouterr().err

    def test_count_out_of_range(self, tmp_path, capsys):
        model = tmp_path / "huge.crn"
        model.write_text("A = 100000000000000000000; A -> ;")

        assert main(["ssa", str(model), "--t-end", "1"]) == 1
        assert "out of range" in capsys.readouterr().err

    def test_missing_model(self, tmp_path, capsys):
        assert main(["info", str(tmp_path / "missing.crn")]) == 1
        assert "error:" in capsys.readouterr().err

    def test_bad_config(self, tmp_path, capsys):
        config = tmp_path / "run.yml"
        config.write_text("model_text: 'A = 1;'\nmethod: hybrid\n")
        assert main(["run", str(config)]) == 1
        assert "method" in capsys.readouterr().err


def test_cli_module_entry_point(tmp_path, majority_text):
    """Run the CLI as a separate process, reading the model from stdin."""
    out_csv = tmp_path / "out.csv"
    cmd = [sys.executable, "-m", "pycrn.cli", "ssa", "-", "--t-end", "2", "--seed", "3", "--csv", str(out_csv)]
    subprocess.run(cmd, input=majority_text, text=True, check=True, cwd=REPO_ROOT)

    assert out_csv.exists()
    with open(out_csv, newline="") as f:
        rows = list(csv.reader(f))
    assert len(rows) > 2
    assert rows[0][0] == "time"
