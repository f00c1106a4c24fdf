"""Critic profile loading.

A profile selects which rules run and at what severity::

    minimum_severity: MEDIUM
    themes: [trw]
    rules:
      prohibit_foreach_handle:
        enabled: true
        severity: HIGH
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .severity import Severity
from .utils import read_yaml_file

DEFAULT_CONFIG_FILENAME = ".handlecritic.yaml"


@dataclass
class RuleSettings:
    enabled: bool = True
    severity: Optional[Severity] = None


@dataclass
class CriticConfig:
    """Profile applied when building the rule set."""

    minimum_severity: Severity = Severity.INFO
    themes: Tuple[str, ...] = ()
    rules: Dict[str, RuleSettings] = field(default_factory=dict)

    def settings_for(self, rule_name: str) -> RuleSettings:
        return self.rules.get(rule_name, RuleSettings())


def load_config(path: Path) -> CriticConfig:
    """Read a profile; a missing or empty file yields the defaults."""

    data = read_yaml_file(path)
    if data is None:
        return CriticConfig()
    if not isinstance(data, dict):
        raise ValueError(f"Config at {path} is not a mapping")

    config = CriticConfig()
    if data.get("minimum_severity") is not None:
        config.minimum_severity = Severity.parse(data["minimum_severity"])
    config.themes = _parse_themes(data.get("themes"), path)

    rules = data.get("rules") or {}
    if not isinstance(rules, dict):
        raise ValueError(f"Config at {path}: 'rules' must be a mapping")
    for name, settings in rules.items():
        config.rules[str(name)] = _parse_rule_settings(str(name), settings, path)
    return config


def _parse_themes(value: Any, path: Path) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    if isinstance(value, (list, tuple)):
        return tuple(str(theme) for theme in value)
    raise ValueError(f"Config at {path}: 'themes' must be a string or a list")


def _parse_rule_settings(name: str, value: Any, path: Path) -> RuleSettings:
    if value is None:
        return RuleSettings()
    if isinstance(value, bool):
        return RuleSettings(enabled=value)
    if not isinstance(value, dict):
        raise ValueError(f"Config at {path}: settings for rule {name!r} must be a mapping")
    enabled = value.get("enabled", True)
    if not isinstance(enabled, bool):
        raise ValueError(f"Config at {path}: 'enabled' for rule {name!r} must be true or false")
    severity = value.get("severity")
    return RuleSettings(
        enabled=enabled,
        severity=Severity.parse(severity) if severity is not None else None,
    )
