"""Config text parsing.

Handles:
- Format dispatch by file extension
- YAML parsing (also accepts JSON) for structured configs
- A sandboxed literal evaluator for expression-style configs

Expression configs are never passed to ``eval``/``exec``. The text is parsed
with :mod:`ast` and only a closed set of literal nodes is evaluated:

    {host: "127.0.0.1", port: 3309, debug: true}

or, in module form, assignments to the exported value:

    module.exports = {host: "127.0.0.1"}
    module.exports.port = 3309
"""

from __future__ import annotations

import ast
import operator
import re
from pathlib import Path
from typing import Any

import yaml

from rtconfig.errors import ConfigParseError, ConfigReadError

MARKUP_SUFFIXES = frozenset({".yaml", ".yml", ".json"})

# A line that assigns to the exported value switches to module form
_EXPORTS_RE = re.compile(r"^\s*(?:module\s*\.\s*)?exports\b\s*[.\[=]", re.MULTILINE)

_NAMED_CONSTANTS: dict[str, Any] = {
    "true": True,
    "false": False,
    "null": None,
    "undefined": None,
}

_UNARY_OPS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}


def is_markup(path: Path) -> bool:
    """Check whether a file is parsed as YAML/JSON rather than as an expression."""
    return path.suffix.lower() in MARKUP_SUFFIXES


def parse_markup(text: str, path: Path | None = None) -> dict[str, Any]:
    """Parse YAML (or JSON) text into a mapping.

    Args:
        text: The file contents.
        path: Source path, used in error messages.

    Returns:
        The parsed mapping with string keys.

    Raises:
        ConfigParseError: If the text is not valid YAML or its root is not a mapping.
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(str(e), path) from e
    return _ensure_mapping(data, path)


def parse_expression(text: str, path: Path | None = None) -> dict[str, Any]:
    """Parse an expression-style config into a mapping.

    If any line assigns to ``exports`` or ``module.exports`` the text is
    treated as a module body; otherwise the whole text must be a single
    mapping expression.

    Raises:
        ConfigParseError: On syntax errors, disallowed constructs, or a
            non-mapping result.
    """
    if _EXPORTS_RE.search(text):
        data = _eval_module(text, path)
    else:
        tree = _parse(text.strip(), "eval", path)
        data = _literal(tree.body, path)
    return _ensure_mapping(data, path)


def parse_config(text: str, path: Path) -> dict[str, Any]:
    """Parse config text, choosing the format from the file extension.

    ``.yaml``, ``.yml`` and ``.json`` are parsed as YAML; every other
    extension is parsed as an expression config.
    """
    if is_markup(path):
        return parse_markup(text, path)
    return parse_expression(text, path)


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Read and parse a config file once, without watching it.

    Raises:
        ConfigReadError: If the file cannot be read.
        ConfigParseError: If the contents cannot be parsed.
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigReadError(str(e), path) from e
    return parse_config(text, path)


def _ensure_mapping(data: Any, path: Path | None) -> dict[str, Any]:
    if data is None:
        raise ConfigParseError("config is empty", path)
    if not isinstance(data, dict):
        raise ConfigParseError(
            f"config root must be a mapping, got {type(data).__name__}", path
        )
    return {str(key): value for key, value in data.items()}


def _parse(text: str, mode: str, path: Path | None) -> ast.AST:
    try:
        return ast.parse(text, filename=str(path or "<config>"), mode=mode)
    except SyntaxError as e:
        raise ConfigParseError(f"{e.msg} (line {e.lineno})", path) from e


def _eval_module(text: str, path: Path | None) -> Any:
    """Run the export assignments of a module-form config."""
    tree = _parse(text, "exec", path)
    module: dict[str, Any] = {"exports": {}}

    for stmt in tree.body:
        if not isinstance(stmt, ast.Assign):
            raise ConfigParseError(
                f"unsupported statement {type(stmt).__name__} (line {stmt.lineno})", path
            )
        value = _literal(stmt.value, path)
        for target in stmt.targets:
            keys = _export_keys(target, path)
            if not keys:
                module["exports"] = value
                continue
            container = module["exports"]
            for key in keys[:-1]:
                container = container.get(key) if isinstance(container, dict) else None
            if not isinstance(container, dict):
                raise ConfigParseError(
                    f"cannot set '{'.'.join(keys)}' on a non-mapping export "
                    f"(line {stmt.lineno})",
                    path,
                )
            container[keys[-1]] = value

    return module["exports"]


def _export_keys(target: ast.expr, path: Path | None) -> list[str]:
    """Resolve an assignment target to a key path below the exported value.

    ``exports`` and ``module.exports`` resolve to ``[]``; ``exports.db.host``
    resolves to ``["db", "host"]``.
    """
    if isinstance(target, ast.Name) and target.id == "exports":
        return []
    if isinstance(target, ast.Attribute):
        if (
            target.attr == "exports"
            and isinstance(target.value, ast.Name)
            and target.value.id == "module"
        ):
            return []
        return [*_export_keys(target.value, path), target.attr]
    if isinstance(target, ast.Subscript):
        key = target.slice
        if isinstance(key, ast.Constant) and isinstance(key.value, str):
            return [*_export_keys(target.value, path), key.value]
    raise ConfigParseError(
        f"can only assign to exports (line {getattr(target, 'lineno', '?')})", path
    )


def _literal(node: ast.expr, path: Path | None) -> Any:
    """Evaluate a literal expression node.

    Supports constants, ``true``/``false``/``null``, dicts (with bare
    identifier keys), lists, tuples and unary +/- on numbers.
    """
    if isinstance(node, ast.Constant):
        if node.value is None or isinstance(node.value, (str, int, float)):
            return node.value
    elif isinstance(node, ast.Name):
        if node.id in _NAMED_CONSTANTS:
            return _NAMED_CONSTANTS[node.id]
        raise ConfigParseError(f"name '{node.id}' is not defined (line {node.lineno})", path)
    elif isinstance(node, ast.Dict):
        result: dict[Any, Any] = {}
        for key_node, value_node in zip(node.keys, node.values):
            if key_node is None:
                raise ConfigParseError(f"dict unpacking is not allowed (line {node.lineno})", path)
            if isinstance(key_node, ast.Name):
                key = key_node.id
            else:
                key = _literal(key_node, path)
            if not (key is None or isinstance(key, (str, int, float))):
                raise ConfigParseError(
                    f"unsupported dict key {type(key).__name__} (line {key_node.lineno})", path
                )
            result[key] = _literal(value_node, path)
        return result
    elif isinstance(node, (ast.List, ast.Tuple)):
        return [_literal(item, path) for item in node.elts]
    elif isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        operand = _literal(node.operand, path)
        if isinstance(operand, (int, float)) and not isinstance(operand, bool):
            return _UNARY_OPS[type(node.op)](operand)

    raise ConfigParseError(
        f"unsupported expression {type(node).__name__} "
        f"(line {getattr(node, 'lineno', '?')})",
        path,
    )
