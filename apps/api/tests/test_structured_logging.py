from __future__ import annotations

import io
import json

from loguru import logger

from challengeties_api.core.logging import JsonLogSink


def test_json_sink_renders_bound_context_and_service_metadata() -> None:
    stream = io.StringIO()
    handler_id = logger.add(
        JsonLogSink(service_name="challengeties-api", environment="development", version="0.1.0", stream=stream),
        backtrace=False,
        diagnose=False,
    )
    try:
        logger.bind(reason="manual_cooldown", pair_key="c1_30_alice-bob").info("Duo nudge skipped")
        try:
            raise ValueError("expo down")
        except ValueError:
            logger.exception("Push batch failed")
    finally:
        logger.remove(handler_id)

    skipped, failed = (json.loads(line) for line in stream.getvalue().splitlines())

    assert skipped["message"] == "Duo nudge skipped"
    assert skipped["level"] == "info"
    assert skipped["service"] == "challengeties-api"
    assert skipped["environment"] == "development"
    assert skipped["reason"] == "manual_cooldown"
    assert skipped["pair_key"] == "c1_30_alice-bob"
    assert "trace_id" not in skipped

    assert failed["level"] == "error"
    assert failed["exception"] == "ValueError: expo down"
