"""Tests for component logger lookup."""

import logging

import pytest

from soullink_sync.utils.logging_config import get_logger, get_module_logger, log_exception


@pytest.mark.unit
class TestComponentLoggers:

    def test_component_logger_name(self):
        assert get_logger('replication').name == "soullink.replication"

    def test_module_paths_map_to_components(self):
        assert get_module_logger("soullink_sync.db.database").name == "soullink.database"
        assert get_module_logger("soullink_sync.domain.sanitizer").name == "soullink.sanitizer"
        assert get_module_logger("soullink_sync.domain.roster").name == "soullink.roster"
        assert get_module_logger("soullink_sync.domain.progression").name == "soullink.progression"
        assert get_module_logger("soullink_sync.store.document_store").name == "soullink.store"
        assert get_module_logger("soullink_sync.store.session").name == "soullink.replication"
        assert get_module_logger("soullink_sync.main").name == "soullink.main"

    def test_log_exception_writes_error_log(self, caplog):
        with caplog.at_level(logging.ERROR, logger="soullink"):
            try:
                raise ValueError("bad payload")
            except ValueError as e:
                log_exception('remote', e, {"path": "trackers/t1/state"})

        messages = [record.getMessage() for record in caplog.records]
        assert any("path=trackers/t1/state" in message for message in messages)
        assert any(record.name == "soullink.error" for record in caplog.records)
