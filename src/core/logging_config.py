import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from pythonjsonlogger import jsonlogger

SERVICE_NAME = "kinetic-style-assessment"
LOG_FORMAT = '%(timestamp)s %(level)s %(service)s %(name)s %(module)s %(lineno)d %(message)s'


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON log lines tagged with the service name and a UTC ISO 8601 timestamp."""

    def __init__(self, *args, service_name: str = SERVICE_NAME, **kwargs):
        super(CustomJsonFormatter, self).__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)
        if not log_record.get('timestamp'):
            log_record['timestamp'] = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        if log_record.get('level'):
            log_record['level'] = log_record['level'].upper()
        else:
            log_record['level'] = record.levelname

        log_record['service'] = self.service_name
        log_record['module'] = record.module
        log_record['lineno'] = record.lineno
        if record.exc_info and record.exc_info[0] is not None:
            log_record['exc_type'] = record.exc_info[0].__name__


def setup_logging(log_level_str: str = "INFO", service_name: Optional[str] = None):
    """
    Configures structured JSON logging on the root logger.
    Safe to call more than once: the JSON handler is only installed the first time.
    """
    log_level = getattr(logging, log_level_str.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    if not any(isinstance(h, logging.StreamHandler) and isinstance(h.formatter, CustomJsonFormatter) for h in root_logger.handlers):
        log_handler = logging.StreamHandler(sys.stdout)
        formatter = CustomJsonFormatter(LOG_FORMAT, service_name=service_name or SERVICE_NAME)
        log_handler.setFormatter(formatter)
        root_logger.addHandler(log_handler)
        root_logger.info(f"Structured JSON logging configured with level: {logging.getLevelName(log_level)}")
    else:
        root_logger.info(f"Structured JSON logging already configured. Current level: {logging.getLevelName(root_logger.getEffectiveLevel())}")
