from __future__ import annotations

from challengeties_api.services.duo.completion import COMPLETION_EXTRACTORS, has_completed_today
from challengeties_api.services.duo.progress import DuoProgressItem

TODAY = "20260314"


def _item(**document) -> DuoProgressItem:
    base = {"challengeId": "c1", "selectedDays": 30, "duo": True, "duoPartnerId": "bob"}
    base.update(document)
    return DuoProgressItem.from_document(base)


def test_explicit_day_key_is_enough() -> None:
    assert has_completed_today(_item(lastMarkedKey="20260314"), TODAY)
    assert has_completed_today(_item(lastMarkedKey="2026-03-14"), TODAY)
    assert not has_completed_today(_item(lastMarkedKey="20260313"), TODAY)


def test_last_marked_timestamp_is_read_in_utc() -> None:
    assert has_completed_today(_item(lastMarkedDate="2026-03-14T08:00:00.000Z"), TODAY)
    # Late evening in New York is already the next UTC day.
    assert has_completed_today(_item(lastMarkedDate="2026-03-13T21:30:00-05:00"), TODAY)
    assert not has_completed_today(_item(lastMarkedDate="2026-03-13T21:30:00+00:00"), TODAY)


def test_histories_are_scanned() -> None:
    assert has_completed_today(_item(completionDateKeys=["20260312", "20260314"]), TODAY)
    assert has_completed_today(
        _item(completionDates=["2026-03-12T08:00:00Z", "2026-03-14T07:15:00.000Z"]),
        TODAY,
    )
    assert not has_completed_today(_item(completionDates=["2026-03-12T08:00:00Z"]), TODAY)


def test_a_stale_explicit_key_does_not_hide_a_later_source() -> None:
    item = _item(lastMarkedKey="20260310", completionDateKeys=["20260314"])
    assert has_completed_today(item, TODAY)


def test_garbage_in_every_slot_is_not_completed() -> None:
    item = _item(
        lastMarkedKey="not-a-date",
        lastMarkedDate=12,
        completionDateKeys=[None, "", "tomorrow"],
        completionDates=["soon", {"at": "2026-03-14"}],
    )
    assert not has_completed_today(item, TODAY)


def test_non_list_histories_are_ignored() -> None:
    item = _item(completionDateKeys="20260314", completionDates={"0": "2026-03-14"})
    assert not has_completed_today(item, TODAY)


def test_missing_item_or_key() -> None:
    assert not has_completed_today(None, TODAY)
    assert not has_completed_today(_item(lastMarkedKey=TODAY), "")


def test_extractors_run_most_reliable_first() -> None:
    names = [extractor.__name__ for extractor in COMPLETION_EXTRACTORS]
    assert names == ["_explicit_key", "_single_timestamp", "_key_history", "_timestamp_history"]
