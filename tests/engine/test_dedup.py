from __future__ import annotations

import hashlib

import pytest

from vacancy_crawler.engine import DeduplicationEngine, SubmitOutcome, fingerprint
from vacancy_crawler.errors import DataUnavailable
from vacancy_crawler.records import EntityKind, Vacancy, VacancyFields
from vacancy_crawler.store import MemoryRecordStore


def _fields(description: str, **extra) -> VacancyFields:
    extra.setdefault("skills", ["Python", "SQL"])
    extra.setdefault("educations", ["BSc"])
    extra.setdefault("locations", ["Utrecht"])
    return VacancyFields(description=description, title="Engineer", **extra)


def test_fingerprint_is_md5_of_description() -> None:
    assert fingerprint("X") == hashlib.md5(b"X").hexdigest()
    assert len(fingerprint("anything")) == 32


def test_round_trip_inserts_then_skips(record_store) -> None:
    engine = DeduplicationEngine(record_store)

    assert engine.submit(1, _fields("X")) is SubmitOutcome.INSERTED
    assert engine.submit(1, _fields("X")) is SubmitOutcome.SKIPPED

    active = engine.active_versions(1)
    assert len(active) == 1
    assert active[0].version == 1
    assert active[0].fingerprint == fingerprint("X")


def test_new_description_creates_next_version(record_store) -> None:
    engine = DeduplicationEngine(record_store)
    engine.submit(1, _fields("X"))

    assert engine.submit(1, _fields("Y", skills=["Go"])) is SubmitOutcome.UPDATED

    first, second = engine.history(1)
    assert (first.version, first.active) == (1, False)
    assert (second.version, second.active) == (2, True)
    for kind in (EntityKind.SKILL, EntityKind.EDUCATION, EntityKind.LOCATION):
        assert record_store.associations(first, kind) == []
    assert [skill.name for skill in record_store.associations(second, EntityKind.SKILL)] == ["Go"]
    assert len(engine.active_versions(1)) == 1


def test_cross_posted_vacancy_is_discarded(record_store) -> None:
    engine = DeduplicationEngine(record_store)
    assert engine.submit(1, _fields("Z")) is SubmitOutcome.INSERTED

    assert engine.submit(2, _fields("Z")) is SubmitOutcome.SKIPPED

    assert engine.history(2) == []


def test_tags_are_shared_between_vacancies(memory_store) -> None:
    engine = DeduplicationEngine(memory_store)
    engine.submit(1, _fields("A", skills=["Python", "python ", ""]))
    engine.submit(2, _fields("B", skills=["Python"]))

    assert memory_store.count(EntityKind.SKILL) == 1
    vacancy = engine.history(1)[0]
    assert [skill.name for skill in memory_store.associations(vacancy, EntityKind.SKILL)] == ["Python"]


def test_retired_posting_published_again_unchanged_is_skipped(record_store) -> None:
    engine = DeduplicationEngine(record_store)
    engine.submit(1, _fields("X"))

    assert engine.retire(1) is True
    assert engine.retire(1) is False
    retired = engine.history(1)[0]
    assert retired.active is False
    assert record_store.associations(retired, EntityKind.SKILL) == []

    assert engine.submit(1, _fields("X")) is SubmitOutcome.SKIPPED
    (stored,) = engine.history(1)
    assert (stored.version, stored.active) == (1, False)
    assert record_store.associations(stored, EntityKind.SKILL) == []
    assert engine.active_versions(1) == []


def test_cross_post_of_retired_vacancy_is_discarded(record_store) -> None:
    engine = DeduplicationEngine(record_store)
    engine.submit(1, _fields("Z"))
    engine.retire(1)

    assert engine.submit(2, _fields("Z")) is SubmitOutcome.SKIPPED
    assert engine.history(2) == []


def test_failed_save_of_new_version_recovers_on_next_submit() -> None:
    class FlakyStore(MemoryRecordStore):
        failures = 1

        def save(self, record):
            if isinstance(record, Vacancy) and record.id is None and record.version > 1 and self.failures:
                self.failures -= 1
                raise DataUnavailable("disk full")
            return super().save(record)

    store = FlakyStore()
    engine = DeduplicationEngine(store)
    engine.submit(1, _fields("X"))

    with pytest.raises(DataUnavailable):
        engine.submit(1, _fields("Y"))
    assert engine.active_versions(1) == []

    assert engine.submit(1, _fields("Y")) is SubmitOutcome.UPDATED
    assert [(v.version, v.active) for v in engine.history(1)] == [(1, False), (2, True)]


def test_changed_posting_after_retirement_gets_new_version(memory_store) -> None:
    engine = DeduplicationEngine(memory_store)
    engine.submit(1, _fields("X"))
    engine.retire(1)

    assert engine.submit(1, _fields("X2")) is SubmitOutcome.UPDATED
    versions = engine.history(1)
    assert [(v.version, v.active) for v in versions] == [(1, False), (2, True)]


def test_mapping_input_and_blank_description(memory_store) -> None:
    engine = DeduplicationEngine(memory_store)
    outcome = engine.submit(5, {"description": "Mapped", "title": "T", "unknown": "ignored"})
    assert outcome is SubmitOutcome.INSERTED
    assert engine.history(5)[0].title == "T"
    with pytest.raises(ValueError):
        engine.submit(5, {"description": "   "})


def test_store_failure_propagates() -> None:
    class Offline(MemoryRecordStore):
        def find_by_equals(self, kind, field, value):
            raise DataUnavailable("offline")

    with pytest.raises(DataUnavailable):
        DeduplicationEngine(Offline()).submit(1, _fields("X"))
