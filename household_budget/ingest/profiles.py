"""Named column-mapping profiles that can be reused across imports.

A profile is a complete :class:`~household_budget.models.ColumnMapping` saved
under a user-chosen name (e.g. "Chase checking"). One profile may be marked as
the default. When a new file arrives, a profile is applied automatically only
if all three of its headers exist verbatim in the file's header row; otherwise
the mapping falls back to header detection.

Profiles round-trip through JSON (validated by pydantic) so the caller can
keep them wherever it keeps the rest of its settings.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from ..errors import IncompleteMappingError
from ..logging_setup import get_logger
from ..models import ColumnMapping
from .csv_reader import applicable_mapping, detect_mapping

_logger = get_logger("household_budget.ingest.profiles")

_SCHEMA_VERSION = 1


class MappingProfilesFile(BaseModel):
    """On-disk schema for saved profiles."""

    model_config = ConfigDict(extra="forbid")

    schema_version: int = _SCHEMA_VERSION
    default: str | None = None
    profiles: dict[str, ColumnMapping] = Field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class ResolvedMapping:
    """The mapping chosen for a file and the profile it came from (if any)."""

    mapping: ColumnMapping
    profile_name: str | None = None


class MappingProfiles:
    """In-memory registry of named column mappings."""

    def __init__(
        self,
        profiles: Mapping[str, ColumnMapping] | None = None,
        *,
        default: str | None = None,
    ) -> None:
        self._profiles: dict[str, ColumnMapping] = dict(profiles or {})
        self._default: str | None = None
        if default is not None:
            self.set_default(default)

    def __len__(self) -> int:
        return len(self._profiles)

    def __contains__(self, name: object) -> bool:
        return name in self._profiles

    @property
    def default(self) -> str | None:
        return self._default

    def names(self) -> list[str]:
        return list(self._profiles)

    def get(self, name: str) -> ColumnMapping | None:
        return self._profiles.get(name)

    def items(self) -> Iterable[tuple[str, ColumnMapping]]:
        return self._profiles.items()

    def save(self, name: str, mapping: ColumnMapping, *, make_default: bool = False) -> None:
        """Store ``mapping`` under ``name`` (overwrites an existing profile).

        Only complete mappings can be saved.
        """

        key = name.strip()
        if not key:
            raise ValueError("profile name cannot be empty")
        missing = mapping.missing_fields()
        if missing:
            raise IncompleteMappingError(missing)
        self._profiles[key] = mapping
        if make_default:
            self._default = key
        _logger.info("saved column mapping profile %r", key)

    def set_default(self, name: str | None) -> None:
        if name is not None and name not in self._profiles:
            raise KeyError(f"unknown mapping profile: {name!r}")
        self._default = name

    def remove(self, name: str) -> None:
        self._profiles.pop(name, None)
        if self._default == name:
            self._default = None

    def resolve(self, headers: Iterable[str], *, preferred: str | None = None) -> ResolvedMapping:
        """Pick the mapping to use for a file with ``headers``.

        Order: the ``preferred`` profile, then the default profile, each only
        if applicable to the headers; otherwise header detection (which may be
        incomplete).
        """

        header_list = list(headers)
        for name in (preferred, self._default):
            if name is None:
                continue
            mapping = self._profiles.get(name)
            if mapping is not None and applicable_mapping(mapping, header_list):
                return ResolvedMapping(mapping=mapping, profile_name=name)
            _logger.debug("profile %r does not fit headers %s", name, header_list)
        return ResolvedMapping(mapping=detect_mapping(header_list), profile_name=None)

    # ---- Serialization --------------------------------------------------------

    def to_model(self) -> MappingProfilesFile:
        return MappingProfilesFile(default=self._default, profiles=dict(self._profiles))

    @classmethod
    def from_model(cls, model: MappingProfilesFile) -> MappingProfiles:
        default = model.default if model.default in model.profiles else None
        return cls(model.profiles, default=default)

    def to_json(self) -> str:
        return self.to_model().model_dump_json(indent=2)

    @classmethod
    def from_json(cls, text: str) -> MappingProfiles:
        return cls.from_model(MappingProfilesFile.model_validate_json(text))

    def dump(self, path: str | PathLike[str]) -> None:
        Path(path).write_text(self.to_json() + "\n", encoding="utf-8")

    @classmethod
    def load(cls, path: str | PathLike[str]) -> MappingProfiles:
        """Load profiles from ``path``; a missing file yields an empty registry."""

        p = Path(path)
        if not p.exists():
            return cls()
        return cls.from_json(p.read_text(encoding="utf-8"))


__all__ = ["MappingProfiles", "MappingProfilesFile", "ResolvedMapping"]
