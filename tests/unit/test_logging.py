"""
Unit tests for logging utilities.
"""

import logging

import numpy as np
import pytest

import memorystore.utils
from memorystore.engine.sqlite import SQLiteEngine
from memorystore.utils.logging import PACKAGE_LOGGER, get_logger, setup_logger


class TestLogging:

    def test_module_loggers_are_children(self):
        logger = get_logger("memorystore.engine.sqlite")

        assert logger.name.startswith(PACKAGE_LOGGER + ".")
        assert logging.getLogger(PACKAGE_LOGGER).handlers

    def test_setup_replaces_handlers(self, tmp_path):
        log_file = tmp_path / "memorystore.log"

        setup_logger(level="INFO", log_file=str(log_file))
        logger = setup_logger(level="WARNING")

        assert logger.level == logging.WARNING
        assert len(logger.handlers) == 1
        setup_logger()

    def test_public_names(self):
        assert set(memorystore.utils.__all__) >= {"setup_logger", "get_logger"}

    @pytest.mark.asyncio
    async def test_row_operations_log_at_debug(self, caplog):
        engine = SQLiteEngine(3)
        await engine.define_namespace("docs")

        with caplog.at_level(logging.DEBUG, logger=PACKAGE_LOGGER):
            await engine.upsert_row("docs", "k", '{"id": "k"}', np.ones(3, dtype=np.float32), None)

        await engine.close()

        assert any("Upserted 'k'" in message for message in caplog.messages)
