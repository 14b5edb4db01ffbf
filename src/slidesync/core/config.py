from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any

from slidesync.core.animation.squash import DEFAULT_INDICATOR_PREFIX
from slidesync.core.errors import JobError
from slidesync.core.shapes.matcher import DEFAULT_MATCH_BLUR


@dataclass(frozen=True)
class SyncSettings:
    """Tunables shared by the job runner and the CLI."""

    match_blur: float = DEFAULT_MATCH_BLUR
    indicator_prefix: str = DEFAULT_INDICATOR_PREFIX

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "SyncSettings":
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise JobError(f"unknown settings: {', '.join(unknown)}")
        settings = cls(**data)
        if settings.match_blur <= 0:
            raise JobError("settings.match_blur must be positive")
        return settings
