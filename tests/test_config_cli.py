"""
Tests for runner configuration and the command line interface.
"""

import json

import pytest

from blocrun import DEFAULT_MAX_DEPTH, DEFAULT_MAX_ITERATIONS, RunnerConfig, load_config
from blocrun.__main__ import main, parse_param


class TestConfig:
    """Test RunnerConfig and load_config."""

    def test_defaults(self):
        """The default loop guard is 100."""
        config = RunnerConfig()
        assert config.max_iterations == DEFAULT_MAX_ITERATIONS == 100
        assert config.max_depth == DEFAULT_MAX_DEPTH == 150
        assert config.builtins is None

    @pytest.mark.parametrize("value", [0, -1, 2.5, True, "10"])
    def test_invalid_max_iterations(self, value):
        """Only positive ints are accepted."""
        with pytest.raises(ValueError):
            RunnerConfig(max_iterations=value)

    def test_load_config(self):
        """Mappings are converted, unknown keys ignored."""
        assert load_config({"max_iterations": 7}).max_iterations == 7
        assert load_config({"max_iterations": "12"}).max_iterations == 12
        assert load_config({"colour": "blue"}) == RunnerConfig()

    @pytest.mark.parametrize("value", ["abc", 0, None])
    def test_load_config_invalid(self, value):
        """Invalid values raise ValueError."""
        with pytest.raises(ValueError):
            load_config({"max_iterations": value})

    @pytest.mark.parametrize("value", [0, -3, 1.5, False, "deep"])
    def test_invalid_max_depth(self, value):
        """The depth guard must be a positive int too."""
        with pytest.raises(ValueError, match="max_depth"):
            RunnerConfig(max_depth=value)

    def test_load_max_depth(self):
        """Both settings load from one mapping."""
        config = load_config({"max_depth": "40", "max_iterations": 9})
        assert config == RunnerConfig(max_iterations=9, max_depth=40)
        with pytest.raises(ValueError, match="max_depth"):
            load_config({"max_depth": "forty"})


class TestParseParam:
    """Test --var parsing."""

    def test_typed_values(self):
        """Values are parsed as bool, int, float or string."""
        assert parse_param("n=2") == ("n", 2)
        assert parse_param("f=2.5") == ("f", 2.5)
        assert parse_param("b=true") == ("b", True)
        assert parse_param("s=hello") == ("s", "hello")
        assert parse_param('q="a b"') == ("q", "a b")

    def test_missing_equals(self):
        """A parameter without '=' is rejected."""
        with pytest.raises(ValueError):
            parse_param("name")


class TestCli:
    """Test python -m blocrun."""

    def test_eval(self, capsys):
        """eval prints the evaluated text."""
        assert main(["eval", "2 + 2 * 10"]) == 0
        assert capsys.readouterr().out == "22\n"

    def test_eval_with_variables(self, capsys):
        """Variables are bound in the root block."""
        assert main(["eval", "{w} * {h}", "--var", "w=3", "--var", "h=2.5"]) == 0
        assert capsys.readouterr().out == "7.5\n"

    def test_eval_text(self, capsys):
        """Non-math text is printed as is."""
        assert main(["eval", "hello {name}", "--var", "name=world"]) == 0
        assert capsys.readouterr().out == "hello world\n"

    def test_eval_error(self, capsys):
        """Errors go to stderr with exit status 1."""
        assert main(["eval", "{missing}"]) == 1
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "error[E402]" in captured.err
        assert "'missing'" in captured.err

    def test_eval_bad_var(self, capsys):
        """Malformed --var values are reported."""
        assert main(["eval", "1", "--var", "oops"]) == 1
        assert "Invalid parameter format" in capsys.readouterr().err

    def test_eval_bad_max_iterations(self, capsys):
        """A non-positive loop guard is reported."""
        assert main(["eval", "1", "--max-iterations", "0"]) == 1
        assert "max_iterations" in capsys.readouterr().err

    def test_eval_trace(self, capsys):
        """--trace lists every action before the output."""
        assert main(["eval", "4", "--trace"]) == 0
        out = capsys.readouterr().out.splitlines()
        assert "Goto(id=0)" in out[0]
        assert any("PushStdout(text='4')" in line for line in out)
        assert out[-1] == "4"

    def test_eval_json(self, capsys):
        """--json prints output, errors and trace."""
        assert main(["eval", "2 + 2", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["stdout"] == ["4"]
        assert data["errors"] == []
        assert data["trace"][0] == {"type": "goto", "nodeId": 0, "stateIndex": 0, "data": 0}

    @pytest.mark.parametrize("expr,expected", [
        ("2 + 2", "int"),
        ("7 / 2", "float"),
        ("hello", "unparsable"),
    ])
    def test_classify(self, capsys, expr, expected):
        """classify reports the parsability of an expression."""
        assert main(["classify", expr]) == 0
        assert capsys.readouterr().out == expected + "\n"
