import logging
import sys


logger = logging.getLogger("versionsync")

# Azure Pipelines formatting commands, highlighted in the build log
BUILD_LOG_PREFIXES = {
    logging.DEBUG: "##[debug]",
    logging.WARNING: "##[warning]",
    logging.ERROR: "##[error]",
    logging.CRITICAL: "##[error]",
}


class BuildLogFormatter(logging.Formatter):
    """Prefix debug, warning and error records so the build host marks them."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        prefix = BUILD_LOG_PREFIXES.get(record.levelno, "")
        if not prefix:
            return message
        return "\n".join(prefix + line for line in message.splitlines())


def configure_logging(debug: bool):
    """
    Configures the logging system based on the debug flag.

    Records go to stdout; the build host fails a step on stderr output when
    failOnStderr is set.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(BuildLogFormatter("%(message)s"))

    log_level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(log_level)

    if not logger.handlers:
        logger.addHandler(handler)
