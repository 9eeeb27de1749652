"""
Logging configuration for the schema analyzer CLI.

Log records go to stderr so generated SQL written to stdout can be
redirected on its own.
"""

import logging
import logging.handlers
import sys

LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_file=None, verbose=False, echo_sql=False):
    """
    Configure the root logger once per CLI run.

    Args:
        log_file: Also append to this rotating log file (None = stderr only)
        verbose: Enable DEBUG level logging (includes generated catalog SQL)
        echo_sql: Log every statement sent through SQLAlchemy engines
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            handlers.append(logging.handlers.RotatingFileHandler(
                log_file,
                maxBytes=10*1024*1024,  # 10MB
                backupCount=5
            ))
        except OSError as e:
            print(f"Warning: Could not create log file {log_file}: {e}", file=sys.stderr)

    for handler in handlers:
        handler.setFormatter(formatter)

    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, handlers=handlers, force=True)

    # engine and pool records are noise unless statements were asked for
    logging.getLogger('sqlalchemy').setLevel(logging.WARNING)
    if echo_sql:
        logging.getLogger('sqlalchemy.engine').setLevel(logging.INFO)
