import io

import pytest
import logging


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("versionsync")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream  # Yield the stream to the test function

    # Cleanup after the test
    logger.removeHandler(handler)
    log_stream.close()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers the CLI attached to streams that no longer exist."""
    yield
    logger = logging.getLogger("versionsync")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Point the user configuration at a file that does not exist."""
    monkeypatch.setenv("VERSIONSYNC_CONFIG", str(tmp_path / "versionsync.cfg"))
