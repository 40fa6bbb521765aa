import logging

import pytest

from wasteflow.logging.logger import Log


class TestConfigure:
    def test_installs_single_handler(self) -> None:
        Log.configure("info")
        Log.configure("info")
        assert len(logging.getLogger("wasteflow").handlers) == 1

    def test_sets_level(self) -> None:
        Log.configure("warning")
        assert logging.getLogger("wasteflow").level == logging.WARNING
        Log.configure("INFO")

    def test_quiets_http_client_loggers(self) -> None:
        Log.configure("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestException:
    def test_keeps_traceback(self, caplog: pytest.LogCaptureFixture) -> None:
        logging.getLogger("wasteflow").setLevel(logging.INFO)
        with caplog.at_level(logging.ERROR, logger="wasteflow"):
            try:
                raise ValueError("boom")
            except ValueError:
                Log.exception("Job 1 failed")

        assert caplog.records[-1].exc_info is not None
        assert caplog.records[-1].getMessage() == "Job 1 failed"
