"""Pool configuration."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping


@dataclass(frozen=True)
class PoolConfig:
    # Swap direction policy:
    # - False: the direction is a public call parameter; only the magnitude is confidential.
    # - True: `swap` also accepts an encrypted direction, and every swap (even with a public
    #   direction) runs the select-based path, so both directions execute the same primitives.
    confidential_direction: bool = False

    # Abort policy:
    # - False: one `require_true` per abort category, raising the matching exception subclass.
    # - True: all predicates are and-ed into one `require_true` raising a bare
    #   `TransactionAborted`, so the reason is not disclosed.
    coalesce_aborts: bool = False

    def __post_init__(self) -> None:
        for f in fields(self):
            v = getattr(self, f.name)
            if not isinstance(v, bool):
                raise TypeError(f"{f.name} must be a bool")

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "PoolConfig":
        """Build from a plain mapping (e.g. parsed JSON). Unknown keys are rejected."""
        if not isinstance(raw, Mapping):
            raise TypeError("pool config must be a mapping")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(raw) - known)
        if unknown:
            raise ValueError(f"unknown pool config keys: {', '.join(unknown)}")
        return cls(**{k: raw[k] for k in raw})
