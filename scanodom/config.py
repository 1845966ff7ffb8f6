"""JSON configuration loading with typed parameter access."""

from __future__ import annotations

import enum
import json
import logging
import re
from typing import Any, Callable, ClassVar, Optional, Sequence

import numpy as np

from scanodom.formatting import convert_to_string, format_quaternion
from scanodom.transforms import (
    isometries_from_vector,
    isometries_to_vector,
    isometry_from_vector,
    isometry_to_vector,
    quaternion_from_vector,
    quaternion_to_vector,
)

_logger = logging.getLogger("scanodom.config")

_COMMENT_RE = re.compile(r'"(?:\\.|[^"\\])*"|//[^\n]*|/\*.*?\*/', re.S)


class ParamKind(enum.Enum):
    """Type a parameter is read as or written from."""

    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STRING = "string"
    BOOL_LIST = "bool_list"
    INT_LIST = "int_list"
    FLOAT_LIST = "float_list"
    STRING_LIST = "string_list"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    VECTOR4 = "vector4"
    QUATERNION = "quaternion"
    ISOMETRY = "isometry"
    ISOMETRY_LIST = "isometry_list"


class ParamNotFoundError(LookupError):
    """A required parameter is missing from the configuration."""


def _to_bool(raw: Any) -> bool:
    if not isinstance(raw, bool):
        raise TypeError(f"type must be boolean, but is {type(raw).__name__}")
    return raw


def _to_number(cast: Callable[[Any], Any]) -> Callable[[Any], Any]:
    def convert(raw: Any) -> Any:
        if not isinstance(raw, (bool, int, float)):
            raise TypeError(f"type must be number, but is {type(raw).__name__}")
        return cast(raw)

    return convert


def _to_string(raw: Any) -> str:
    if not isinstance(raw, str):
        raise TypeError(f"type must be string, but is {type(raw).__name__}")
    return raw


def _to_list(element: Callable[[Any], Any]) -> Callable[[Any], list]:
    def convert(raw: Any) -> list:
        if not isinstance(raw, list):
            raise TypeError(f"type must be array, but is {type(raw).__name__}")
        return [element(v) for v in raw]

    return convert


_to_int = _to_number(int)
_to_float = _to_number(float)
_to_floats = _to_list(_to_float)


def _fixed_vector(size: int) -> Callable[[Any], Optional[np.ndarray]]:
    def convert(raw: Any) -> Optional[np.ndarray]:
        values = _to_floats(raw)
        return np.array(values) if len(values) == size else None

    return convert


def _optional(build: Callable[[list], Any]) -> Callable[[Any], Any]:
    def convert(raw: Any) -> Any:
        try:
            return build(_to_floats(raw))
        except ValueError:
            return None

    return convert


_READERS: dict[ParamKind, Callable[[Any], Any]] = {
    ParamKind.BOOL: _to_bool,
    ParamKind.INT: _to_int,
    ParamKind.FLOAT: _to_float,
    ParamKind.STRING: _to_string,
    ParamKind.BOOL_LIST: _to_list(_to_bool),
    ParamKind.INT_LIST: _to_list(_to_int),
    ParamKind.FLOAT_LIST: _to_floats,
    ParamKind.STRING_LIST: _to_list(_to_string),
    ParamKind.VECTOR2: _fixed_vector(2),
    ParamKind.VECTOR3: _fixed_vector(3),
    ParamKind.VECTOR4: _fixed_vector(4),
    ParamKind.QUATERNION: _optional(quaternion_from_vector),
    ParamKind.ISOMETRY: _optional(isometry_from_vector),
    ParamKind.ISOMETRY_LIST: _optional(isometries_from_vector),
}

_WRITERS: dict[ParamKind, Callable[[Any], Any]] = {
    ParamKind.BOOL: bool,
    ParamKind.INT: int,
    ParamKind.FLOAT: float,
    ParamKind.STRING: str,
    ParamKind.BOOL_LIST: lambda v: [bool(x) for x in v],
    ParamKind.INT_LIST: lambda v: [int(x) for x in v],
    ParamKind.FLOAT_LIST: lambda v: [float(x) for x in v],
    ParamKind.STRING_LIST: lambda v: [str(x) for x in v],
    ParamKind.VECTOR2: lambda v: [float(x) for x in np.asarray(v).ravel()],
    ParamKind.VECTOR3: lambda v: [float(x) for x in np.asarray(v).ravel()],
    ParamKind.VECTOR4: lambda v: [float(x) for x in np.asarray(v).ravel()],
    ParamKind.QUATERNION: quaternion_to_vector,
    ParamKind.ISOMETRY: isometry_to_vector,
    ParamKind.ISOMETRY_LIST: isometries_to_vector,
}


def _infer_kind(value: Any) -> Optional[ParamKind]:
    if isinstance(value, bool):
        return ParamKind.BOOL
    if isinstance(value, int):
        return ParamKind.INT
    if isinstance(value, float):
        return ParamKind.FLOAT
    if isinstance(value, str):
        return ParamKind.STRING
    return None


def _read(raw: Any, kind: Optional[ParamKind]) -> Any:
    return raw if kind is None else _READERS[kind](raw)


def _write(value: Any, kind: Optional[ParamKind]) -> Any:
    if kind is not None:
        return _WRITERS[kind](value)
    if isinstance(value, np.ndarray):
        return value.tolist()
    return value


def _describe(value: Any, kind: Optional[ParamKind]) -> str:
    if kind is ParamKind.QUATERNION:
        return format_quaternion(value)
    return convert_to_string(value)


def _strip_comments(text: str) -> str:
    return _COMMENT_RE.sub(lambda m: m.group(0) if m.group(0).startswith('"') else "", text)


class Config:
    """Parameters loaded from a JSON file (comments allowed), grouped by module."""

    def __init__(self, config_filename: str = "") -> None:
        self._config: dict = {}
        if not config_filename:
            return
        try:
            with open(config_filename, encoding="utf-8") as f:
                text = f.read()
        except OSError:
            _logger.error("failed to open %s", config_filename)
            return
        self._config = json.loads(_strip_comments(text))

    def param(self, module_name: str, param_name: str, kind: Optional[ParamKind] = None) -> Any:
        """Return the parameter, or None if it is missing or has the wrong size."""
        module = self._config.get(module_name) if isinstance(self._config, dict) else None
        if not isinstance(module, dict) or param_name not in module:
            return None
        return _read(module[param_name], kind)

    def param_or(
        self,
        module_name: str,
        param_name: str,
        default_value: Any,
        kind: Optional[ParamKind] = None,
    ) -> Any:
        """Return the parameter, or the default value if it is missing."""
        kind = kind or _infer_kind(default_value)
        found = self.param(module_name, param_name, kind)
        if found is None:
            _logger.warning("param %s/%s not found", module_name, param_name)
            _logger.warning("use default_value=%s", _describe(default_value, kind))
            return default_value
        _logger.debug("param %s/%s=%s", module_name, param_name, _describe(found, kind))
        return found

    def param_cast(self, module_name: str, param_name: str, kind: Optional[ParamKind] = None) -> Any:
        """Return the parameter; raise ParamNotFoundError if it is missing."""
        found = self.param(module_name, param_name, kind)
        if found is None:
            _logger.critical("param %s/%s not found", module_name, param_name)
            raise ParamNotFoundError(f"param {module_name}/{param_name} not found")
        _logger.debug("param %s/%s=%s", module_name, param_name, _describe(found, kind))
        return found

    def param_nested(
        self,
        nested_module_names: Sequence[str],
        param_name: str,
        kind: Optional[ParamKind] = None,
    ) -> Any:
        """Return a parameter from a nested module, or None if it is missing."""
        if not nested_module_names:
            raise ValueError("at least one module name is required")
        node: Any = self._config
        for name in nested_module_names:
            if not isinstance(node, dict) or name not in node:
                return None
            node = node[name]
        if not isinstance(node, dict) or param_name not in node:
            return None
        return _read(node[param_name], kind)

    def param_nested_or(
        self,
        nested_module_names: Sequence[str],
        param_name: str,
        default_value: Any,
        kind: Optional[ParamKind] = None,
    ) -> Any:
        """Return a nested parameter, or the default value if it is missing."""
        kind = kind or _infer_kind(default_value)
        found = self.param_nested(nested_module_names, param_name, kind)
        if found is None:
            path = "".join(f"{name}/" for name in nested_module_names)
            _logger.warning("param %s not found", path)
            _logger.warning("use default_value=%s", _describe(default_value, kind))
            return default_value
        return found

    def param_cast_nested(
        self,
        nested_module_names: Sequence[str],
        param_name: str,
        kind: Optional[ParamKind] = None,
    ) -> Any:
        """Return a nested parameter; raise ParamNotFoundError if it is missing."""
        found = self.param_nested(nested_module_names, param_name, kind)
        if found is None:
            path = "".join(f"{name}/" for name in nested_module_names)
            _logger.critical("param %s not found", path)
            raise ParamNotFoundError(f"param {path}{param_name} not found")
        return found

    def override_param(
        self,
        module_name: str,
        param_name: str,
        value: Any,
        kind: Optional[ParamKind] = None,
    ) -> bool:
        """Set a parameter in memory; the file on disk is left alone."""
        module = self._config.setdefault(module_name, {})
        if not isinstance(module, dict):
            raise TypeError(f"{module_name} is not a module")
        module[param_name] = _write(value, kind or _infer_kind(value))
        return True

    def save(self, path: str) -> None:
        """Write all parameters to a JSON file."""
        with open(path, "w", encoding="utf-8") as f:
            f.write(json.dumps(self._config, indent=2, sort_keys=True, ensure_ascii=False))
            f.write("\n")


class GlobalConfig(Config):
    """Process-wide configuration that knows the root directory of config files."""

    _inst: ClassVar[Optional["GlobalConfig"]] = None

    @classmethod
    def instance(cls, config_path: str = "") -> "GlobalConfig":
        """Return the shared instance, loading ``<config_path>/config.json`` on first use."""
        if cls._inst is None:
            inst = cls(config_path + "/config.json")
            inst.override_param("global", "config_path", config_path, ParamKind.STRING)
            GlobalConfig._inst = inst
        return GlobalConfig._inst

    @classmethod
    def get_config_path(cls, config_name: str) -> str:
        """Path of the named configuration file."""
        config = cls.instance()
        directory = config.param_or("global", "config_path", ".", ParamKind.STRING)
        filename = config.param_or("global", config_name, config_name + ".json", ParamKind.STRING)
        return directory + "/" + filename

    @classmethod
    def reset(cls) -> None:
        """Forget the shared instance."""
        GlobalConfig._inst = None