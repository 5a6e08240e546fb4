import logging
from typing import Union


class CustomFormatter(logging.Formatter):
    """Custom formatter to remove the project name from the logger name."""

    def format(self, record):
        if record.name.startswith('xmlnorm'):
            record.name = record.name[len('xmlnorm'):]
            if record.name.startswith('.'):
                record.name = record.name[1:]
        return super().format(record)


def setup_logging(level: Union[int, str] = logging.INFO):
    """Set up logging for the command line interface."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    formatter = CustomFormatter('%(levelname)s:%(name)s:%(message)s')
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root_logger = logging.getLogger('xmlnorm')
    root_logger.setLevel(level)
    # Replace handlers from earlier calls instead of stacking them
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    # Prevent propagation to the root logger to avoid duplicate messages
    root_logger.propagate = False
