"""Tests for config text parsing and format dispatch."""

from __future__ import annotations

from pathlib import Path

import pytest

from rtconfig.errors import ConfigParseError, ConfigReadError
from rtconfig.parsers import (
    is_markup,
    load_config_file,
    parse_config,
    parse_expression,
    parse_markup,
)


class TestFormatDispatch:
    """Test extension-based choice of parser."""

    @pytest.mark.parametrize("name", ["a.yaml", "a.yml", "a.json", "a.YAML", "a.Json"])
    def test_markup_extensions(self, name: str) -> None:
        assert is_markup(Path(name))

    @pytest.mark.parametrize("name", ["a.js", "a.config", "a.py", "config"])
    def test_expression_extensions(self, name: str) -> None:
        assert not is_markup(Path(name))

    def test_json_file_parsed_as_yaml(self) -> None:
        """JSON text is accepted by the YAML parser."""
        assert parse_config('{"host":"127.0.0.1"}', Path("c.json")) == {"host": "127.0.0.1"}

    def test_yaml_only_syntax_in_json_file(self) -> None:
        """A .json file may contain YAML since YAML is a superset."""
        assert parse_config("host: 192.168.0.101\n", Path("c.json")) == {
            "host": "192.168.0.101"
        }

    def test_expression_file(self) -> None:
        data = parse_config('{host: "127.0.0.1", port: 3309}', Path("c.config"))
        assert data == {"host": "127.0.0.1", "port": 3309}

    def test_uppercase_extension(self) -> None:
        assert parse_config("port: 80\n", Path("C.YML")) == {"port": 80}


class TestParseMarkup:
    """Test YAML parsing."""

    def test_nested_values(self) -> None:
        text = """
host: 192.168.0.101
db:
  name: main
  replicas: [a, b]
enabled: true
"""
        data = parse_markup(text)
        assert data["host"] == "192.168.0.101"
        assert data["db"] == {"name": "main", "replicas": ["a", "b"]}
        assert data["enabled"] is True

    def test_invalid_yaml(self) -> None:
        with pytest.raises(ConfigParseError) as exc_info:
            parse_markup("invalid: yaml: :")
        assert "mapping values are not allowed" in str(exc_info.value)

    def test_non_mapping_root(self) -> None:
        with pytest.raises(ConfigParseError, match="must be a mapping, got list"):
            parse_markup("- a\n- b\n")

    def test_empty_file(self) -> None:
        with pytest.raises(ConfigParseError, match="empty"):
            parse_markup("")

    def test_keys_coerced_to_str(self) -> None:
        assert parse_markup("1: one\ntrue: yes\n") == {"1": "one", "True": True}

    def test_error_carries_path(self) -> None:
        path = Path("broken.yaml")
        with pytest.raises(ConfigParseError) as exc_info:
            parse_markup("a: [", path)
        assert exc_info.value.path == path


class TestParseExpression:
    """Test the sandboxed expression evaluator."""

    def test_bare_identifier_keys(self) -> None:
        assert parse_expression('{host: "127.0.0.1"}') == {"host": "127.0.0.1"}

    def test_python_literal_dict(self) -> None:
        assert parse_expression("{'port': 8080, 'debug': False}") == {
            "port": 8080,
            "debug": False,
        }

    def test_named_constants(self) -> None:
        data = parse_expression("{a: true, b: false, c: null, d: None}")
        assert data == {"a": True, "b": False, "c": None, "d": None}

    def test_lists_numbers_and_signs(self) -> None:
        data = parse_expression("{ports: [80, 443], offset: -1.5, scale: +2, pair: (1, 2)}")
        assert data == {"ports": [80, 443], "offset": -1.5, "scale": 2, "pair": [1, 2]}

    def test_multiline_with_surrounding_whitespace(self) -> None:
        text = """

        {
            host: "localhost",
            nested: {level: 2},
        }
        """
        assert parse_expression(text) == {"host": "localhost", "nested": {"level": 2}}

    def test_module_exports(self) -> None:
        assert parse_expression('module.exports = { host: "127.0.0.1" }') == {
            "host": "127.0.0.1"
        }

    def test_module_exports_with_semicolon_and_comments(self) -> None:
        text = """
# database settings
module.exports = {host: "db.local"};
module.exports.port = 5432
"""
        assert parse_expression(text) == {"host": "db.local", "port": 5432}

    def test_exports_keys(self) -> None:
        text = """
exports.host = "127.0.0.1"
exports["port"] = 3306
exports.db = {}
exports.db.name = "main"
"""
        assert parse_expression(text) == {
            "host": "127.0.0.1",
            "port": 3306,
            "db": {"name": "main"},
        }

    def test_exports_word_in_key_is_not_module_form(self) -> None:
        assert parse_expression('{exports: "x"}') == {"exports": "x"}

    def test_syntax_error(self) -> None:
        with pytest.raises(ConfigParseError, match="line"):
            parse_expression("#error")

    def test_function_call_rejected(self) -> None:
        with pytest.raises(ConfigParseError, match="unsupported expression Call"):
            parse_expression("{a: __import__('os').getcwd()}")

    def test_undefined_name_rejected(self) -> None:
        with pytest.raises(ConfigParseError, match="name 'HOST' is not defined"):
            parse_expression("{host: HOST}")

    @pytest.mark.parametrize("text", ["{[1]: 2}", "{{a: 1}: 2}", "{(1, 2): 3}"])
    def test_unhashable_key_rejected(self, text: str) -> None:
        with pytest.raises(ConfigParseError, match="unsupported dict key"):
            parse_expression(text)

    def test_dict_unpacking_rejected(self) -> None:
        with pytest.raises(ConfigParseError, match="unpacking"):
            parse_expression("{**{}}")

    def test_non_export_statement_rejected(self) -> None:
        text = "import os\nmodule.exports = {}"
        with pytest.raises(ConfigParseError, match="unsupported statement Import"):
            parse_expression(text)

    def test_non_export_assignment_rejected(self) -> None:
        with pytest.raises(ConfigParseError, match="can only assign to exports"):
            parse_expression("exports = {}\nother.value = 1")

    def test_key_on_non_mapping_export(self) -> None:
        with pytest.raises(ConfigParseError, match="non-mapping"):
            parse_expression("module.exports = [1]\nmodule.exports.a = 2")

    def test_non_mapping_expression(self) -> None:
        with pytest.raises(ConfigParseError, match="got list"):
            parse_expression("[1, 2]")


class TestLoadConfigFile:
    """Test one-shot loading from disk."""

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "app.yaml"
        path.write_text("host: 192.168.0.101\n")
        assert load_config_file(path) == {"host": "192.168.0.101"}

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigReadError) as exc_info:
            load_config_file(tmp_path / "missing.json")
        assert exc_info.value.path == tmp_path / "missing.json"
