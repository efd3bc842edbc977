"""Localized push copy for duo nudges."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Mapping

from challengeties_api.services.duo.rate_limits import NudgeKind

DEFAULT_LANGUAGE = "en"

SUPPORTED_LANGUAGES: tuple[str, ...] = (
    "ar",
    "de",
    "en",
    "es",
    "fr",
    "hi",
    "it",
    "ru",
    "zh",
    "ja",
    "ko",
    "pt",
    "nl",
)

_PLACEHOLDER = re.compile(r"\{\{\s*(\w+)\s*\}\}")
_REGION_SEPARATOR = re.compile(r"[-_]")


@dataclass(frozen=True)
class PushCopy:
    title: str
    body: str


@dataclass(frozen=True)
class RenderedPush:
    title: str
    body: str
    language: str


DUO_NUDGE_COPY: dict[str, dict[NudgeKind, PushCopy]] = {
    "fr": {
        NudgeKind.AUTO: PushCopy("Ton duo a validé aujourd’hui", "{{name}} a validé aujourd’hui. À toi 🔥"),
        NudgeKind.MANUAL: PushCopy("Petit rappel 👀", "{{name}} te relance. Go !"),
    },
    "en": {
        NudgeKind.AUTO: PushCopy("Your duo checked in today", "{{name}} checked in today. Your turn 🔥"),
        NudgeKind.MANUAL: PushCopy("Quick reminder 👀", "{{name}} is nudging you. Let’s go!"),
    },
    "es": {
        NudgeKind.AUTO: PushCopy("Tu dúo ya cumplió hoy", "{{name}} ya cumplió hoy. Te toca 🔥"),
        NudgeKind.MANUAL: PushCopy("Recordatorio 👀", "{{name}} te está recordando. ¡Vamos!"),
    },
    "de": {
        NudgeKind.AUTO: PushCopy("Dein Duo hat heute abgehakt", "{{name}} hat heute abgehakt. Du bist dran 🔥"),
        NudgeKind.MANUAL: PushCopy("Kurzer Reminder 👀", "{{name}} erinnert dich. Los geht’s!"),
    },
    "it": {
        NudgeKind.AUTO: PushCopy("Il tuo duo ha segnato oggi", "{{name}} ha segnato oggi. Tocca a te 🔥"),
        NudgeKind.MANUAL: PushCopy("Promemoria 👀", "{{name}} ti sta richiamando. Vai!"),
    },
    "pt": {
        NudgeKind.AUTO: PushCopy("Seu duo marcou hoje", "{{name}} marcou hoje. Sua vez 🔥"),
        NudgeKind.MANUAL: PushCopy("Lembrete 👀", "{{name}} está te chamando. Bora!"),
    },
    "nl": {
        NudgeKind.AUTO: PushCopy(
            "Je duo heeft vandaag afgevinkt",
            "{{name}} heeft vandaag afgevinkt. Jij bent aan de beurt 🔥",
        ),
        NudgeKind.MANUAL: PushCopy("Kleine reminder 👀", "{{name}} geeft je een seintje. Let’s go!"),
    },
    "ru": {
        NudgeKind.AUTO: PushCopy("Твой дуэт отметил сегодня", "{{name}} отметил сегодня. Твоя очередь 🔥"),
        NudgeKind.MANUAL: PushCopy("Небольшой пинок 👀", "{{name}} напоминает. Погнали!"),
    },
    "hi": {
        NudgeKind.AUTO: PushCopy("तुम्हारे डुओ ने आज पूरा किया", "{{name}} ने आज पूरा किया। अब तुम्हारी बारी 🔥"),
        NudgeKind.MANUAL: PushCopy("छोटा रिमाइंडर 👀", "{{name}} तुम्हें पुश कर रहा/रही है। चलो!"),
    },
    "ar": {
        NudgeKind.AUTO: PushCopy("شريكك أنجز اليوم", "{{name}} أنجز اليوم. دورك الآن 🔥"),
        NudgeKind.MANUAL: PushCopy("تذكير سريع 👀", "{{name}} يذكّرك. هيا!"),
    },
    "zh": {
        NudgeKind.AUTO: PushCopy("你的搭档今天已打卡", "{{name}} 今天已打卡。轮到你了 🔥"),
        NudgeKind.MANUAL: PushCopy("小提醒 👀", "{{name}} 在提醒你。冲！"),
    },
    "ja": {
        NudgeKind.AUTO: PushCopy("相棒が今日達成したよ", "{{name}} が今日達成。次はあなた 🔥"),
        NudgeKind.MANUAL: PushCopy("ちょいリマインド 👀", "{{name}} が呼んでる。行こう！"),
    },
    "ko": {
        NudgeKind.AUTO: PushCopy("듀오가 오늘 완료했어", "{{name}}가 오늘 완료했어. 이제 너 차례 🔥"),
        NudgeKind.MANUAL: PushCopy("짧은 알림 👀", "{{name}}가 툭 찔렀어. 가자!"),
    },
}


def normalize_language(raw: Any) -> str:
    """Reduce ``en-US`` / ``fr_FR`` / ``PT`` style values to a supported base code."""

    value = str(raw or "").strip().lower()
    base = _REGION_SEPARATOR.split(value, maxsplit=1)[0]
    return base if base in SUPPORTED_LANGUAGES else DEFAULT_LANGUAGE


def interpolate(template: str, variables: Mapping[str, Any]) -> str:
    def _substitute(match: re.Match[str]) -> str:
        value = variables.get(match.group(1))
        return "" if value is None else str(value)

    return _PLACEHOLDER.sub(_substitute, template)


def render_duo_nudge(language: Any, kind: NudgeKind, *, name: str) -> RenderedPush:
    """Resolve title/body for a nudge, falling back to English copy."""

    lang = normalize_language(language)
    pack = DUO_NUDGE_COPY.get(lang) or {}
    copy = pack.get(kind) or DUO_NUDGE_COPY[DEFAULT_LANGUAGE][kind]
    return RenderedPush(
        title=copy.title,
        body=interpolate(copy.body, {"name": name}),
        language=lang,
    )


__all__ = [
    "DEFAULT_LANGUAGE",
    "DUO_NUDGE_COPY",
    "PushCopy",
    "RenderedPush",
    "SUPPORTED_LANGUAGES",
    "interpolate",
    "normalize_language",
    "render_duo_nudge",
]
