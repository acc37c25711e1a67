"""
Unit tests for the generator logger setup.
"""

import io
import logging
import sys

from oolong.api.gen_logging import configure_gen_logging, get_logger, log_phase


class TestConfigureGenLogging:

    def test_one_handler_across_calls(self):
        configure_gen_logging()
        configure_gen_logging(verbose=True)
        configure_gen_logging(quiet=True)

        root = logging.getLogger("oolong.gen")
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert root.propagate is False

    def test_follows_the_current_stderr(self, monkeypatch):
        configure_gen_logging()
        logger = get_logger("oolong.api.generator")

        first, second = io.StringIO(), io.StringIO()
        monkeypatch.setattr(sys, "stderr", first)
        log_phase(logger, 1, "Linking schema...")
        monkeypatch.setattr(sys, "stderr", second)
        log_phase(logger, 2, "Generating MySQL scripts...")

        assert first.getvalue() == "[PHASE 1] Linking schema...\n"
        assert second.getvalue() == "[PHASE 2] Generating MySQL scripts...\n"

    def test_warnings_are_tagged(self, monkeypatch):
        configure_gen_logging()
        stream = io.StringIO()
        monkeypatch.setattr(sys, "stderr", stream)

        get_logger("oolong.lib.linker").warning("Entity without comment")

        assert stream.getvalue() == "[WARNING] Entity without comment\n"
