"""Content-hash deduplication and versioning of vacancy records."""

from __future__ import annotations

import hashlib
from enum import Enum
from typing import Any, Mapping

import structlog

from ..records import EntityKind, Tag, RECORD_TYPES, Vacancy, VacancyFields
from ..store import RecordStore


class SubmitOutcome(str, Enum):
    INSERTED = "inserted"
    UPDATED = "updated"
    SKIPPED = "skipped"


def fingerprint(description: str) -> str:
    """Digest of a vacancy description used for duplicate and version detection."""

    return hashlib.md5(description.encode("utf-8"), usedforsecurity=False).hexdigest()


class DeduplicationEngine:
    """Decide whether a scraped vacancy is new, a new version, or a duplicate.

    Decisions for one source URL look at the latest stored version of that
    URL. When nothing is stored for the URL, any record anywhere with the same
    fingerprint marks the submission as a cross-posted duplicate. A matching
    fingerprint is always a no-op, even when that version has been retired.

    A new version is saved only after its predecessor has been deactivated. If
    that save fails the URL has no active version until the next submission,
    which takes the "changed" path again and stores the new version.

    Store failures propagate as :class:`~vacancy_crawler.errors.DataUnavailable`;
    retrying is the caller's business.
    """

    def __init__(self, store: RecordStore, logger: structlog.BoundLogger | None = None) -> None:
        self.store = store
        self.logger = logger or structlog.get_logger("vacancy_crawler.dedup")

    def submit(
        self, source_url_id: int, fields: VacancyFields | Mapping[str, Any]
    ) -> SubmitOutcome:
        if not isinstance(fields, VacancyFields):
            fields = VacancyFields.from_mapping(fields)
        digest = fingerprint(fields.description)

        latest = self._latest_version(source_url_id)
        if latest is not None:
            if latest.fingerprint == digest:
                self.logger.debug(
                    "vacancy_skipped", url_id=source_url_id, reason="unchanged", active=latest.active
                )
                return SubmitOutcome.SKIPPED
            if latest.active:
                latest.deactivate(self.store)
            vacancy = self._persist(source_url_id, digest, fields, version=latest.version + 1)
            self.logger.info(
                "vacancy_updated",
                url_id=source_url_id,
                vacancy_id=vacancy.id,
                version=vacancy.version,
                superseded_id=latest.id,
            )
            return SubmitOutcome.UPDATED

        if self.store.find_by_equals(EntityKind.VACANCY, "fingerprint", digest):
            self.logger.info("vacancy_skipped", url_id=source_url_id, reason="cross_posted")
            return SubmitOutcome.SKIPPED

        vacancy = self._persist(source_url_id, digest, fields, version=1)
        self.logger.info("vacancy_inserted", url_id=source_url_id, vacancy_id=vacancy.id)
        return SubmitOutcome.INSERTED

    def retire(self, source_url_id: int) -> bool:
        """Deactivate the live version of a posting that disappeared."""

        retired = False
        for vacancy in self.active_versions(source_url_id):
            vacancy.deactivate(self.store)
            retired = True
            self.logger.info(
                "vacancy_retired", url_id=source_url_id, vacancy_id=vacancy.id, version=vacancy.version
            )
        return retired

    def history(self, source_url_id: int) -> list[Vacancy]:
        records = self.store.find_by_equals(EntityKind.VACANCY, "url_id", source_url_id)
        return sorted(
            (record for record in records if isinstance(record, Vacancy)),
            key=lambda vacancy: vacancy.version,
        )

    def active_versions(self, source_url_id: int) -> list[Vacancy]:
        return [vacancy for vacancy in self.history(source_url_id) if vacancy.active]

    # ------------------------------------------------------------------
    def _latest_version(self, source_url_id: int) -> Vacancy | None:
        versions = self.history(source_url_id)
        return versions[-1] if versions else None

    def _persist(
        self, source_url_id: int, digest: str, fields: VacancyFields, *, version: int
    ) -> Vacancy:
        vacancy = Vacancy(
            url_id=source_url_id,
            fingerprint=digest,
            version=version,
            active=True,
            title=fields.title,
            employer=fields.employer,
            employment_type=fields.employment_type,
            location=fields.location,
            description=fields.description,
        )
        self.store.save(vacancy)
        self._attach_tags(vacancy, fields)
        return vacancy

    def _attach_tags(self, vacancy: Vacancy, fields: VacancyFields) -> None:
        for kind, names in fields.tags().items():
            for name in names:
                self.store.add_association(vacancy, self._tag(kind, name))

    def _tag(self, kind: EntityKind, name: str) -> Tag:
        existing = self.store.find_by_equals(kind, "name", name)
        if existing:
            return existing[0]  # type: ignore[return-value]
        tag_cls = RECORD_TYPES[kind]
        return self.store.save(tag_cls(name=name))  # type: ignore[call-arg,return-value]


__all__ = ["DeduplicationEngine", "SubmitOutcome", "fingerprint"]
