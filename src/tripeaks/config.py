"""
config.py - game rules configuration.

Rules are an explicit value handed to the engines. ``load_rules`` builds one
from an optional JSON file plus the TRIPEAKS_MAX_UNDO_STEPS environment
variable; nothing in the engine reads configuration on its own.
"""

import json
import logging
import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional

from tripeaks.errors import ConfigError
from tripeaks.rules import can_match

logger = logging.getLogger(__name__)

ENV_MAX_UNDO_STEPS = "TRIPEAKS_MAX_UNDO_STEPS"

_DEFAULT_RULES = {
    "max_undo_steps": 10,
    "enable_undo": True,
    "starting_card_id": 1000,
    "shuffle_on_load": False,
    "allow_cyclic_matching": True,
    "match_difference": 1,
}

# Nested layout used by the level editor's rules file -> flat field name
_NESTED_KEYS = {
    ("UndoSettings", "MaxUndoSteps"): "max_undo_steps",
    ("UndoSettings", "EnableUndo"): "enable_undo",
    ("CardGeneration", "StartingCardId"): "starting_card_id",
    ("CardGeneration", "ShuffleOnLoad"): "shuffle_on_load",
    ("MatchingRules", "AllowCyclicMatching"): "allow_cyclic_matching",
    ("MatchingRules", "MatchDifference"): "match_difference",
}


def get_nested(data: Mapping, keys: List[str], default: Any = None) -> Any:
    """Safely retrieve a nested value from a dict."""
    current: Any = data
    for key in keys:
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            return default
    return current


def _require_int(name: str, value: Any, minimum: int, maximum: Optional[int] = None) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"{name} must be an integer, got {value!r}")
    if value < minimum or (maximum is not None and value > maximum):
        bounds = f">= {minimum}" if maximum is None else f"in {minimum}..{maximum}"
        raise ConfigError(f"{name} must be {bounds}, got {value}")


@dataclass(frozen=True)
class RulesConfig:
    max_undo_steps: int = _DEFAULT_RULES["max_undo_steps"]
    enable_undo: bool = _DEFAULT_RULES["enable_undo"]
    starting_card_id: int = _DEFAULT_RULES["starting_card_id"]
    shuffle_on_load: bool = _DEFAULT_RULES["shuffle_on_load"]
    allow_cyclic_matching: bool = _DEFAULT_RULES["allow_cyclic_matching"]
    match_difference: int = _DEFAULT_RULES["match_difference"]

    def __post_init__(self):
        _require_int("max_undo_steps", self.max_undo_steps, 0)
        _require_int("starting_card_id", self.starting_card_id, 0)
        _require_int("match_difference", self.match_difference, 1, 12)
        for name in ("enable_undo", "shuffle_on_load", "allow_cyclic_matching"):
            if not isinstance(getattr(self, name), bool):
                raise ConfigError(f"{name} must be a boolean, got {getattr(self, name)!r}")

    @property
    def undo_capacity(self) -> int:
        """Effective undo depth; 0 when undo is switched off."""
        return self.max_undo_steps if self.enable_undo else 0

    def matcher(self) -> Callable[[int, int], bool]:
        difference = self.match_difference
        cyclic = self.allow_cyclic_matching
        return lambda a, b: can_match(a, b, difference, cyclic)

    @classmethod
    def from_dict(cls, data: Mapping) -> "RulesConfig":
        """Accept the nested editor layout, flat snake_case keys, or both (flat wins)."""
        values: Dict[str, Any] = {}
        for path, name in _NESTED_KEYS.items():
            v = get_nested(data, list(path))
            if v is not None:
                values[name] = v
        for name in _DEFAULT_RULES:
            if name in data:
                values[name] = data[name]
        unknown = [k for k in data if k not in _DEFAULT_RULES and k not in {p[0] for p in _NESTED_KEYS}]
        if unknown:
            logger.debug("Ignoring unknown rules keys: %s", ", ".join(sorted(map(str, unknown))))
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def summary(self) -> str:
        return (
            f"Undo:{self.max_undo_steps}/{'On' if self.enable_undo else 'Off'} "
            f"CardGen:{self.starting_card_id}/{'Shuffle' if self.shuffle_on_load else 'NoShuffle'} "
            f"Match:{self.match_difference}/{'Cyclic' if self.allow_cyclic_matching else 'NoCyclic'}"
        )


def load_rules(path: Optional[str] = None, environ: Optional[Mapping[str, str]] = None) -> RulesConfig:
    """
    Build the rules for a game. A missing or unreadable file falls back to the
    defaults; values that are present but invalid raise ConfigError.
    """
    data: Dict[str, Any] = {}
    if path:
        try:
            with open(path, "r", encoding="utf-8") as f:
                loaded = json.load(f)
            if isinstance(loaded, dict):
                data = loaded
            else:
                logger.warning("Rules file %s does not hold an object; using defaults", path)
        except (OSError, ValueError) as exc:
            logger.warning("Could not read rules from %s (%s); using defaults", path, exc)

    rules = RulesConfig.from_dict(data)

    env = os.environ if environ is None else environ
    raw = env.get(ENV_MAX_UNDO_STEPS, "").strip()
    if raw:
        try:
            steps = int(raw)
        except ValueError:
            raise ConfigError(f"{ENV_MAX_UNDO_STEPS} must be an integer, got {raw!r}") from None
        rules = replace(rules, max_undo_steps=steps)
    logger.debug("Rules loaded: %s", rules.summary())
    return rules
