import logging
import sys
from pathlib import Path

from ebookeria.core.context import get_current_user_email


LOG_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] [user=%(acting_user)s] %(message)s"


class ActingUserFilter(logging.Filter):
    """Stamp every record with the email bound by ``acting_user``, or ``-``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.acting_user = get_current_user_email() or "-"
        return True


def setup_logging(log_level: str = "INFO", log_file: Path | None = None, echo_sql: bool = False) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level.upper())

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    user_filter = ActingUserFilter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(user_filter)
        root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if echo_sql else logging.WARNING)
