"""Tests for the loguru configuration."""

import pytest

from verifivue.config.logging import get_logger, logger


@pytest.fixture
def captured():
    messages = []
    sink_id = logger.add(messages.append, format="{extra[component]}|{message}", level="DEBUG")
    yield messages
    logger.remove(sink_id)


class TestGetLogger:
    def test_component_bound(self, captured):
        get_logger("llm.gemini").info("Analyzing document")
        assert captured[-1].strip() == "llm.gemini|Analyzing document"

    def test_unbound_logger_has_default_component(self, captured):
        logger.info("startup")
        assert captured[-1].strip() == "verifivue|startup"
