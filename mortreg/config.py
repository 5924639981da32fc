"""
Registry configuration.

Settings live in a small TOML file (``mortreg.toml``). Every key is
optional; a missing file yields the defaults. Relative paths resolve
against the directory holding the config file.

    [ledger]
    path = ".mortreg/ledger.jsonl"

    [index]
    strategy = "non_atomic"   # or "conditional"

    [audit]
    enabled = true
    path = ".mortreg/audit.log"

    [identity]
    username_attribute = "username"
    role_attribute = "role"
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .registry.index import INDEX_STRATEGIES

CONFIG_FILENAME = "mortreg.toml"


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _require_str(section: dict[str, Any], key: str, default: str, label: str) -> str:
    value = section.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} must be a non-empty string")
    return value.strip()


@dataclass(frozen=True)
class RegistrySettings:
    """Resolved settings for one registry data directory."""

    ledger_path: Path
    audit_path: Path
    index_strategy: str = "non_atomic"
    audit_enabled: bool = True
    username_attribute: str = "username"
    role_attribute: str = "role"

    @classmethod
    def defaults(cls, base_dir: Path) -> RegistrySettings:
        return cls(
            ledger_path=base_dir / ".mortreg" / "ledger.jsonl",
            audit_path=base_dir / ".mortreg" / "audit.log",
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], base_dir: Path) -> RegistrySettings:
        """Build settings from parsed TOML. Raises ValueError on invalid values."""
        ledger = _coerce_dict(data.get("ledger"))
        index = _coerce_dict(data.get("index"))
        audit = _coerce_dict(data.get("audit"))
        identity = _coerce_dict(data.get("identity"))

        ledger_path = Path(_require_str(ledger, "path", ".mortreg/ledger.jsonl", "ledger.path"))
        audit_path = Path(_require_str(audit, "path", ".mortreg/audit.log", "audit.path"))

        strategy = _require_str(index, "strategy", "non_atomic", "index.strategy").lower()
        if strategy not in INDEX_STRATEGIES:
            raise ValueError(f"index.strategy must be one of: {', '.join(INDEX_STRATEGIES)}")

        enabled = audit.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError("audit.enabled must be a boolean")

        return cls(
            ledger_path=ledger_path if ledger_path.is_absolute() else base_dir / ledger_path,
            audit_path=audit_path if audit_path.is_absolute() else base_dir / audit_path,
            index_strategy=strategy,
            audit_enabled=enabled,
            username_attribute=_require_str(identity, "username_attribute", "username", "identity.username_attribute"),
            role_attribute=_require_str(identity, "role_attribute", "role", "identity.role_attribute"),
        )


def load_settings(path: Path) -> RegistrySettings:
    """
    Load settings from a TOML file.

    A missing file is not an error: defaults are resolved against its
    directory.
    """
    import tomllib

    base_dir = path.parent.resolve()
    if not path.exists():
        return RegistrySettings.defaults(base_dir)
    data = tomllib.loads(path.read_text(encoding="utf-8"))
    return RegistrySettings.from_dict(data, base_dir)
