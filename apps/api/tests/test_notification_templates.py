from __future__ import annotations

import pytest

from challengeties_api.services.duo.rate_limits import NudgeKind
from challengeties_api.services.notifications.templates import (
    DEFAULT_LANGUAGE,
    DUO_NUDGE_COPY,
    SUPPORTED_LANGUAGES,
    interpolate,
    normalize_language,
    render_duo_nudge,
)


def test_every_supported_language_has_both_kinds() -> None:
    assert set(DUO_NUDGE_COPY) == set(SUPPORTED_LANGUAGES)
    for language, pack in DUO_NUDGE_COPY.items():
        assert set(pack) == {NudgeKind.AUTO, NudgeKind.MANUAL}, language
        for copy in pack.values():
            assert "{{name}}" in copy.body, language


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("fr", "fr"),
        ("fr-FR", "fr"),
        ("pt_BR", "pt"),
        (" JA ", "ja"),
        ("tlh", DEFAULT_LANGUAGE),
        ("", DEFAULT_LANGUAGE),
        (None, DEFAULT_LANGUAGE),
        (42, DEFAULT_LANGUAGE),
    ],
)
def test_normalize_language(raw, expected) -> None:
    assert normalize_language(raw) == expected


def test_render_manual_french() -> None:
    rendered = render_duo_nudge("fr-CA", NudgeKind.MANUAL, name="Alice")

    assert rendered.language == "fr"
    assert rendered.title == "Petit rappel 👀"
    assert rendered.body == "Alice te relance. Go !"


def test_render_auto_falls_back_to_english() -> None:
    rendered = render_duo_nudge("xx", NudgeKind.AUTO, name="Sam")

    assert rendered.language == "en"
    assert rendered.title == "Your duo checked in today"
    assert rendered.body == "Sam checked in today. Your turn 🔥"


def test_interpolate_tolerates_spacing_and_missing_values() -> None:
    assert interpolate("Hi {{ name }}!", {"name": "Bob"}) == "Hi Bob!"
    assert interpolate("Hi {{name}}{{suffix}}", {"name": "Bob"}) == "Hi Bob"
    assert interpolate("No placeholders", {"name": "Bob"}) == "No placeholders"
