import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "approvals": {
        "pattern": r"^:\+1:$",
        "minimum": 2,
        "ignore": [],  # usernames whose comments never count; the PR author is always added
        "from": None,  # None = any author counts
    },
    "context": "prquorum",  # commit status context; one per check type
    "store": "sqlite",
    "store_path": ".prquorum.db",
    "max_workers": 4,  # bound for concurrent membership lookups
}

# Comment bodies longer than this never qualify. Keeps regex input bounded.
MAX_BODY_CHARS = 4096

# A group that contains an unescaped unbounded quantifier and is itself
# quantified, e.g. "(a+)+" or "(.*)*".
_NESTED_QUANTIFIER_RE = re.compile(r"\((?:[^()\\]|\\.)*?(?<!\\)[+*](?:[^()\\]|\\.)*\)[+*{]")


class ConfigError(ValueError):
    """Raised when a check configuration cannot be used."""


@dataclass(frozen=True)
class MembershipRule:
    """Who may approve. Empty collections and False mean that kind of restriction is inactive."""

    users: frozenset = frozenset()
    collaborators: bool = False
    orgs: frozenset = frozenset()

    @property
    def active(self) -> bool:
        return bool(self.users or self.collaborators or self.orgs)


@dataclass(frozen=True)
class CheckConfig:
    """Validated approval check settings with the pattern compiled once."""

    pattern: re.Pattern
    minimum: int
    ignore: frozenset = field(default_factory=frozenset)
    membership: Optional[MembershipRule] = None
    context: str = "prquorum"
    max_workers: int = 4

    @classmethod
    def from_dict(cls, config: dict) -> "CheckConfig":
        raw = config.get("approvals") or {}
        if not isinstance(raw, dict):
            raise ConfigError(f"approvals must be a mapping, got {raw!r}")
        approvals = {**DEFAULT_CONFIG["approvals"], **raw}

        minimum = approvals.get("minimum")
        if isinstance(minimum, bool) or not isinstance(minimum, int) or minimum < 0:
            raise ConfigError(f"approvals.minimum must be a non-negative integer, got {minimum!r}")

        max_workers = config.get("max_workers", DEFAULT_CONFIG["max_workers"])
        if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
            raise ConfigError(f"max_workers must be a positive integer, got {max_workers!r}")

        return cls(
            pattern=compile_pattern(approvals.get("pattern")),
            minimum=minimum,
            ignore=_name_set(approvals.get("ignore"), "approvals.ignore"),
            membership=_membership_rule(approvals.get("from")),
            context=str(config.get("context") or DEFAULT_CONFIG["context"]),
            max_workers=max_workers,
        )


def compile_pattern(pattern) -> re.Pattern:
    """Compile an approval pattern, rejecting ones prone to catastrophic backtracking."""
    if not isinstance(pattern, str) or not pattern:
        raise ConfigError(f"approvals.pattern must be a non-empty string, got {pattern!r}")
    if _NESTED_QUANTIFIER_RE.search(pattern):
        raise ConfigError(f"approvals.pattern {pattern!r} nests unbounded quantifiers")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigError(f"approvals.pattern {pattern!r} is not a valid regular expression: {e}") from e


def _name_set(value, key: str) -> frozenset:
    if value is None:
        return frozenset()
    if isinstance(value, str):
        return frozenset([value])
    if isinstance(value, (list, tuple, set, frozenset)) and all(isinstance(v, str) for v in value):
        return frozenset(value)
    raise ConfigError(f"{key} must be a name or a list of names, got {value!r}")


def _membership_rule(value) -> Optional[MembershipRule]:
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ConfigError(f"approvals.from must be a mapping, got {value!r}")
    collaborators = value.get("collaborators", False)
    if not isinstance(collaborators, bool):
        raise ConfigError(f"approvals.from.collaborators must be true or false, got {collaborators!r}")
    rule = MembershipRule(
        users=_name_set(value.get("users"), "approvals.from.users"),
        collaborators=collaborators,
        orgs=_name_set(value.get("orgs"), "approvals.from.orgs"),
    )
    if not rule.active:
        raise ConfigError("approvals.from is set but names no users, orgs or collaborators")
    return rule


def load_config(config_path: str = ".prquorum.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .prquorum.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "approvals": dict(DEFAULT_CONFIG["approvals"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        if not isinstance(file_config, dict):
            raise ConfigError(f"{config_path} must contain a mapping at the top level")
        approvals = file_config.pop("approvals", None) or {}
        if not isinstance(approvals, dict):
            raise ConfigError(f"approvals in {config_path} must be a mapping")
        config.update(file_config)
        config["approvals"].update(approvals)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # Resolve credentials from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")

    return config
