"""
Graph definition loading.

A graph definition is a YAML file listing vertices and edges, with optional
``scheduler`` and ``logging`` sections. An environment overlay
``<stem>.<env>.yaml`` next to the file is merged over it, then ``{env}`` and
``${VAR}`` placeholders are substituted.
"""

import os
import re
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from wavedag.exceptions import ConfigurationError

VERTEX_KEYS = {"id", "repetitions", "can_fail", "command", "description", "metadata"}

_ENV_VAR = re.compile(r"\${([^}]+)}")


class Config:
    """Graph definition container with dict-like access."""

    def __init__(self, data: dict[str, Any], path: Path | None = None):
        self.data = data
        self.path = path
        # Convenience properties for the main sections
        self.scheduler = data.get("scheduler") or {}
        self.vertices = data.get("vertices") or []
        self.edges = data.get("edges") or []

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        value = self.data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-like access: config['key'] or config['nested.key']."""
        if "." in key:
            if key not in self:
                raise KeyError(f"Config key '{key}' not found")
            return self.get(key)
        if key in self.data:
            value = self.data[key]
            # Return nested dicts as Config objects for chaining
            if isinstance(value, dict):
                return Config(value)
            return value
        raise KeyError(f"Config key '{key}' not found")

    def __contains__(self, key: str) -> bool:
        """Check if key exists in config (dot notation supported)."""
        value = self.data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return False
            value = value[k]
        return True

    def __iter__(self) -> Iterator[str]:
        """Iterate over top-level keys."""
        return iter(self.data)

    def keys(self):
        return self.data.keys()

    def values(self):
        return self.data.values()

    def items(self):
        return self.data.items()

    def validate(self) -> None:
        """
        Validate the vertex and edge sections.

        Raises:
            ConfigurationError: Listing every problem found
        """
        errors = []

        vertices = self.data.get("vertices")
        if vertices is None:
            vertices = []
        if not isinstance(vertices, list):
            errors.append(f"'vertices' must be a list, got {type(vertices).__name__}")
            vertices = []

        for index, vertex in enumerate(vertices):
            where = f"vertices[{index}]"
            if not isinstance(vertex, dict):
                errors.append(f"{where} must be a mapping, got {type(vertex).__name__}")
                continue
            vertex_id = vertex.get("id")
            if not isinstance(vertex_id, str) or not vertex_id.strip():
                errors.append(f"{where}.id must be a non-empty string")
            else:
                where = f"vertex '{vertex_id}'"
            repetitions = vertex.get("repetitions", 1)
            if isinstance(repetitions, bool) or not isinstance(repetitions, int) or repetitions < 1:
                errors.append(f"{where}.repetitions must be a positive integer, got {repetitions!r}")
            if not isinstance(vertex.get("can_fail", True), bool):
                errors.append(f"{where}.can_fail must be a boolean")
            if "metadata" in vertex and not isinstance(vertex["metadata"], dict):
                errors.append(f"{where}.metadata must be a mapping")
            unknown = sorted(set(vertex) - VERTEX_KEYS)
            if unknown:
                errors.append(f"{where} has unknown keys: {', '.join(unknown)}")

        edges = self.data.get("edges")
        if edges is None:
            edges = []
        if not isinstance(edges, list):
            errors.append(f"'edges' must be a list, got {type(edges).__name__}")
            edges = []

        for index, edge in enumerate(edges):
            if edge_endpoints(edge) is None:
                errors.append(f"edges[{index}] must be a [from, to] pair or a {{from, to}} mapping of strings")

        for section in ("scheduler", "logging"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"'{section}' must be a mapping, got {type(value).__name__}")

        if errors:
            raise ConfigurationError(
                "Invalid graph definition:\n  " + "\n  ".join(errors),
                details={"errors": errors, "path": str(self.path) if self.path else None},
            )


def edge_endpoints(edge: Any) -> tuple[str, str] | None:
    """Extract ``(from, to)`` from an edge entry, or None if malformed."""
    if isinstance(edge, dict):
        endpoints = (edge.get("from"), edge.get("to"))
    elif isinstance(edge, (list, tuple)) and len(edge) == 2:
        endpoints = (edge[0], edge[1])
    else:
        return None
    if all(isinstance(e, str) and e for e in endpoints):
        return endpoints[0], endpoints[1]
    return None


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            raise ConfigurationError(
                f"Error parsing {path.name} at line {mark.line + 1}, column {mark.column + 1}:\n"
                f"  {e}\n"
                f"  Suggestion: Check YAML syntax, ensure proper indentation and quotes",
                details={"path": str(path), "line": mark.line + 1, "column": mark.column + 1},
            ) from e
        raise ConfigurationError(f"Error parsing {path.name}: {e}", details={"path": str(path)}) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Graph definition must be a mapping, got {type(data).__name__}: {path}",
            details={"path": str(path)},
        )
    return data


def load_config(path: str | Path, env: str | None = None) -> Config:
    """
    Load a graph definition.

    Args:
        path: Path to the YAML graph definition
        env: Environment name; ``<stem>.<env>.yaml`` is merged over the base file when present

    Returns:
        Config instance with merged and resolved configuration

    Raises:
        FileNotFoundError: The file does not exist or is not a file
        ConfigurationError: The file cannot be parsed
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Graph definition not found: {path}")
    if not path.is_file():
        raise FileNotFoundError(f"Graph definition path is not a file: {path}")

    config_data = _read_yaml(path)

    if env:
        env_path = path.with_name(f"{path.stem}.{env}{path.suffix}")
        if env_path.exists():
            _merge_dict(config_data, _read_yaml(env_path))

    config_data = _resolve_placeholders(config_data, env or "dev")
    return Config(config_data, path=path)


def _merge_dict(base: dict, override: dict) -> None:
    """Recursively merge override into base. Lists are replaced, not extended."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value


def _resolve_placeholders(config_data: dict[str, Any], env: str) -> dict[str, Any]:
    """
    Substitute placeholders in a graph definition.

    ``{env}`` becomes the environment name everywhere. ``${VAR_NAME}`` becomes
    the environment variable's value (left untouched when unset), except in
    vertex ``command`` strings: those are expanded by the shell at run time,
    with the execution unit's environment.
    """
    resolved = {}
    for key, value in config_data.items():
        if key == "vertices" and isinstance(value, list):
            resolved[key] = [_resolve_vertex(vertex, env) for vertex in value]
        else:
            resolved[key] = _substitute(value, env)
    return resolved


def _resolve_vertex(vertex: Any, env: str) -> Any:
    if not isinstance(vertex, dict):
        return _substitute(vertex, env)
    return {key: _substitute(value, env, expand_vars=key != "command") for key, value in vertex.items()}


def _substitute(value: Any, env: str, expand_vars: bool = True) -> Any:
    """Recursively substitute placeholders in a value."""
    if isinstance(value, dict):
        return {k: _substitute(v, env, expand_vars) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute(item, env, expand_vars) for item in value]
    elif isinstance(value, str):
        if expand_vars:
            value = _ENV_VAR.sub(lambda m: os.getenv(m.group(1), m.group(0)), value)
        return value.replace("{env}", env)
    else:
        return value
