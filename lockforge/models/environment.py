"""Environment descriptor — the target an install plan is computed for."""

from __future__ import annotations

import platform

from packaging.markers import default_environment
from packaging.tags import Tag, parse_tag, sys_tags
from packaging.version import InvalidVersion, Version
from pydantic import BaseModel, ConfigDict, Field, field_validator


class EnvironmentDescriptor(BaseModel):
    """Marker values, Python version and supported wheel tags of a target.

    ``wheel_tags`` is ordered most-preferred first, the same order
    ``packaging.tags.sys_tags()`` yields; package resolution ranks wheels by
    it.  The descriptor is supplied by the caller and never persisted.
    """

    model_config = ConfigDict(frozen=True)

    marker_values: dict[str, str] = Field(default_factory=dict)
    python_version: str
    wheel_tags: tuple[str, ...] = ()

    @field_validator("python_version")
    @classmethod
    def _valid_python_version(cls, value: str) -> str:
        try:
            Version(value)
        except InvalidVersion as exc:
            raise ValueError(str(exc)) from exc
        return value

    @classmethod
    def from_host(cls) -> EnvironmentDescriptor:
        """Describe the running interpreter."""
        return cls(
            marker_values=dict(default_environment()),
            python_version=platform.python_version(),
            wheel_tags=tuple(str(tag) for tag in sys_tags()),
        )

    @property
    def parsed_python_version(self) -> Version:
        return Version(self.python_version)

    @property
    def supported_tags(self) -> frozenset[str]:
        return frozenset(self.wheel_tags)

    def evaluation_context(self) -> dict[str, str]:
        """Marker values with the Python version variables filled in."""
        version = self.parsed_python_version
        context = dict(self.marker_values)
        context.setdefault("python_full_version", self.python_version)
        context.setdefault("python_version", f"{version.major}.{version.minor}")
        return context

    def tag_rank(self, tags: frozenset[Tag]) -> int | None:
        """Best (lowest) preference index among *tags*, ``None`` if unsupported."""
        for index, supported in enumerate(self.wheel_tags):
            if not parse_tag(supported).isdisjoint(tags):
                return index
        return None
