"""Record types persisted through the record store."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Iterable, Mapping

import structlog

if TYPE_CHECKING:  # pragma: no cover
    from .store.base import RecordStore


class EntityKind(str, Enum):
    """Kinds of records the store knows about."""

    BLACKLIST = "blacklist"
    URL = "url"
    VACANCY = "vacancy"
    SKILL = "skill"
    EDUCATION = "education"
    LOCATION = "location"


@dataclass(kw_only=True)
class Record:
    """Common base: every record has a store-assigned integer id."""

    kind: ClassVar[EntityKind]
    table: ClassVar[str]

    id: int | None = None

    @classmethod
    def columns(cls) -> tuple[str, ...]:
        return tuple(f.name for f in fields(cls) if f.name != "id")

    @classmethod
    def has_field(cls, name: str) -> bool:
        return name == "id" or name in cls.columns()

    def values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.columns()}


@dataclass(kw_only=True)
class BlacklistEntry(Record):
    kind: ClassVar[EntityKind] = EntityKind.BLACKLIST
    table: ClassVar[str] = "blacklist"

    worker_id: int
    word: str


@dataclass(kw_only=True)
class UrlRecord(Record):
    """A URL seen by a worker; its id is the source-URL identifier of vacancies."""

    kind: ClassVar[EntityKind] = EntityKind.URL
    table: ClassVar[str] = "urls"

    worker_id: int
    url: str
    flag: str


@dataclass(kw_only=True)
class Tag(Record):
    name: str


@dataclass(kw_only=True)
class Skill(Tag):
    kind: ClassVar[EntityKind] = EntityKind.SKILL
    table: ClassVar[str] = "skills"


@dataclass(kw_only=True)
class Education(Tag):
    kind: ClassVar[EntityKind] = EntityKind.EDUCATION
    table: ClassVar[str] = "educations"


@dataclass(kw_only=True)
class Location(Tag):
    kind: ClassVar[EntityKind] = EntityKind.LOCATION
    table: ClassVar[str] = "locations"


TAG_KINDS: tuple[EntityKind, ...] = (
    EntityKind.SKILL,
    EntityKind.EDUCATION,
    EntityKind.LOCATION,
)


@dataclass(kw_only=True)
class Vacancy(Record):
    """One version of a job posting.

    ``activate`` and ``deactivate`` are the only places where ``active``
    changes once a record has been persisted. Deactivating drops every
    Skill/Education/Location association so that tags only ever hang off the
    current version of a posting.
    """

    kind: ClassVar[EntityKind] = EntityKind.VACANCY
    table: ClassVar[str] = "vacancies"

    url_id: int
    fingerprint: str
    version: int = 1
    active: bool = True
    title: str | None = None
    employer: str | None = None
    employment_type: str | None = None
    location: str | None = None
    description: str = ""

    def activate(self, store: "RecordStore") -> "Vacancy":
        self.active = True
        store.save(self)
        return self

    def deactivate(self, store: "RecordStore") -> "Vacancy":
        removed = 0
        for kind in TAG_KINDS:
            for related in store.associations(self, kind):
                store.remove_association(self, related)
                removed += 1
        self.active = False
        store.save(self)
        structlog.get_logger("vacancy_crawler.records").debug(
            "vacancy_deactivated",
            vacancy_id=self.id,
            url_id=self.url_id,
            version=self.version,
            associations_removed=removed,
        )
        return self


RECORD_TYPES: dict[EntityKind, type[Record]] = {
    cls.kind: cls for cls in (BlacklistEntry, UrlRecord, Vacancy, Skill, Education, Location)
}


def _clean_names(values: Iterable[Any] | None) -> list[str]:
    names: list[str] = []
    seen: set[str] = set()
    for value in values or ():
        text = str(value).strip() if value is not None else ""
        if not text or text.casefold() in seen:
            continue
        seen.add(text.casefold())
        names.append(text)
    return names


@dataclass
class VacancyFields:
    """Fields extracted from a vacancy page, as handed to the dedup engine."""

    description: str
    title: str | None = None
    employer: str | None = None
    employment_type: str | None = None
    location: str | None = None
    skills: list[str] = field(default_factory=list)
    educations: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not isinstance(self.description, str) or not self.description.strip():
            raise ValueError("Vacancy description is required")
        self.skills = _clean_names(self.skills)
        self.educations = _clean_names(self.educations)
        self.locations = _clean_names(self.locations)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VacancyFields":
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})

    def tags(self) -> dict[EntityKind, list[str]]:
        return {
            EntityKind.SKILL: self.skills,
            EntityKind.EDUCATION: self.educations,
            EntityKind.LOCATION: self.locations,
        }


__all__ = [
    "BlacklistEntry",
    "Education",
    "EntityKind",
    "Location",
    "RECORD_TYPES",
    "Record",
    "Skill",
    "TAG_KINDS",
    "Tag",
    "UrlRecord",
    "Vacancy",
    "VacancyFields",
]
