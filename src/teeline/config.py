from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, field_validator

"""
Config layer
- load_yaml(path) -> dict            optional defaults file
- RunConfig (Pydantic v2, frozen)    one per invocation, read-only afterwards
- validate_config(raw) -> RunConfig
- build_config(file_defaults, ...)   command line overrides file defaults
"""


class ErrorMode(str, Enum):
    WARN = "warn"
    WARN_NOPIPE = "warn-nopipe"
    EXIT = "exit"
    EXIT_NOPIPE = "exit-nopipe"


class OpenMode(str, Enum):
    TRUNCATE = "truncate"
    APPEND = "append"


# Keys accepted in the YAML defaults file.
_FILE_KEYS = {
    "append",
    "ignore_interrupts",
    "diagnose_non_pipe_only",
    "strip_escapes",
    "output_error",
    "error_mode",
    "targets",
    "max_workers",
}


#This function loads and parses YAML into a raw dictionary using yaml.safe_load.
def load_yaml(path: str) -> Dict[str, Any]:
    """
    Load and parse a YAML defaults file into a raw dict.

    Raises:
        FileNotFoundError: if the file does not exist
        yaml.YAMLError: if YAML is malformed/unsafe
        ValueError: if the top-level document is not a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        # Treat empty file as empty mapping
        data = {}
    if not isinstance(data, dict):
        raise ValueError(f"Top-level YAML must be a mapping/dict (file: {path})")
    unknown = sorted(set(data) - _FILE_KEYS)
    if unknown:
        raise ValueError(f"unknown config keys in {path}: {', '.join(map(str, unknown))}")
    return data


class RunConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    append: bool = False
    ignore_interrupts: bool = False
    # Legacy -p flag. Recorded only; error_mode is the sole authority.
    diagnose_non_pipe_only: bool = False
    error_mode: ErrorMode = ErrorMode.WARN_NOPIPE
    targets: Tuple[str, ...] = ()
    strip_escapes: bool = False
    max_workers: Optional[int] = None

    @field_validator("targets", mode="before")
    @classmethod
    def _targets_as_tuple(cls, v: Any) -> Any:
        if v is None:
            return ()
        if isinstance(v, str):
            # a bare string would otherwise be split into characters
            return (v,)
        return v

    @field_validator("targets")
    @classmethod
    def _targets_non_empty_paths(cls, items: Tuple[str, ...]) -> Tuple[str, ...]:
        for path in items:
            if not path:
                raise ValueError("target paths must be non-empty")
        return items

    @field_validator("max_workers")
    @classmethod
    def _max_workers_positive(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 1:
            raise ValueError("max_workers must be at least 1")
        return v

    @property
    def open_mode(self) -> OpenMode:
        return OpenMode.APPEND if self.append else OpenMode.TRUNCATE


#This function validates and normalizes a raw dictionary into a RunConfig.
def validate_config(raw: Dict[str, Any]) -> RunConfig:
    """Validate and normalize raw dict into RunConfig. ``output_error`` is accepted as an alias of ``error_mode``."""
    data = dict(raw)
    if "output_error" in data:
        mode = data.pop("output_error")
        data.setdefault("error_mode", mode)
    return RunConfig.model_validate(data)


def build_config(
    file_defaults: Optional[Dict[str, Any]] = None,
    *,
    targets: Iterable[str] = (),
    **overrides: Any,
) -> RunConfig:
    """
    Merge file defaults with command-line values.

    Overrides set to None are treated as "not given" so the file value (or the
    model default) stays in effect. Command-line targets come after file targets.
    """
    data: Dict[str, Any] = dict(file_defaults or {})
    for key, value in overrides.items():
        if value is not None:
            data[key] = value
    file_targets = data.get("targets")
    if file_targets is None:
        file_targets = ()
    elif isinstance(file_targets, str):
        file_targets = (file_targets,)
    elif not isinstance(file_targets, (list, tuple)):
        raise ValueError(f"targets must be a list of paths, got {type(file_targets).__name__}")
    data["targets"] = tuple(file_targets) + tuple(targets)
    return validate_config(data)


__all__ = [
    "ErrorMode",
    "OpenMode",
    "RunConfig",
    "load_yaml",
    "validate_config",
    "build_config",
]
