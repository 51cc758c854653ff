# logging_config.py

import os
import re
import sys
import logging
import logging.handlers
from pathlib import Path
from pythonjsonlogger import jsonlogger
from typing import Dict

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_DIR = Path(os.getenv("LOG_DIR", "logs"))

ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

TEXT_FORMAT = '[%(asctime)s] %(levelname)-8s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
JSON_FORMAT = '%(timestamp)s %(level)s %(name)s %(message)s'


class SensitiveDataFilter(logging.Filter):

    SENSITIVE_KEYS = [
        'password', 'token', 'api_key', 'secret', 'authorization',
        'access_token', 'credentials', 'bearer',
    ]

    PATTERNS = [
        (re.compile(r'(api[_-]?key=)[^\s&]+', re.I), r'\1***MASKED***'),
        (re.compile(r'(token=)[^\s&]+', re.I), r'\1***MASKED***'),
        (re.compile(r'(password=)[^\s&]+', re.I), r'\1***MASKED***'),
        (re.compile(r'(Bearer\s+)[^\s]+'), r'\1***MASKED***'),
        (re.compile(r'(://[^:/\s]+:)[^@/\s]+(@)'), r'\1***MASKED***\2'),
    ]

    def filter(self, record):
        if hasattr(record, 'msg'):
            msg = str(record.msg)
            if any(key in msg.lower() for key in self.SENSITIVE_KEYS) or '@' in msg:
                record.msg = self._mask_sensitive_data(msg)

        if hasattr(record, 'args') and record.args and isinstance(record.args, tuple):
            record.args = tuple(
                self._mask_if_sensitive(arg) for arg in record.args
            )

        return True

    def _mask_sensitive_data(self, text):
        for pattern, replacement in self.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def _mask_if_sensitive(self, value):
        if isinstance(value, str):
            return self._mask_sensitive_data(value)
        return value


class CustomJsonFormatter(jsonlogger.JsonFormatter):

    def add_fields(self, log_record, record, message_dict):
        super(CustomJsonFormatter, self).add_fields(log_record, record, message_dict)

        log_record['timestamp'] = self.formatTime(record, self.datefmt)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['module'] = record.module
        log_record['function'] = record.funcName
        log_record['line'] = record.lineno

        if hasattr(record, 'service_name'):
            log_record['service'] = record.service_name

        if hasattr(record, 'base_url'):
            log_record['base_url'] = record.base_url

        if hasattr(record, 'batch_id'):
            log_record['batch_id'] = record.batch_id

        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)


class MetricsLogger:

    _metrics = {
        'batches_started': 0,
        'batches_completed': 0,
        'batches_cancelled': 0,
        'probe_fallbacks': 0,
        'links_unresolved': 0,
        'links_blocked': 0,
        'pages_failed': 0,
    }

    @classmethod
    def increment(cls, metric_name: str, value: int = 1):
        if metric_name in cls._metrics:
            cls._metrics[metric_name] += value

    @classmethod
    def get_metrics(cls) -> Dict[str, int]:
        return cls._metrics.copy()

    @classmethod
    def reset_metrics(cls):
        for key in cls._metrics:
            cls._metrics[key] = 0


def _build_formatter():
    if ENVIRONMENT == "production":
        return CustomJsonFormatter(JSON_FORMAT)
    return logging.Formatter(TEXT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')


def setup_logging(service_name="linkcheck", log_to_files=True):

    logger = logging.getLogger()
    logger.setLevel(LOG_LEVEL)

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    sensitive_filter = SensitiveDataFilter()
    formatter = _build_formatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(LOG_LEVEL)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(sensitive_filter)
    logger.addHandler(console_handler)

    if log_to_files:
        LOG_DIR.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / f"{service_name}.log",
            maxBytes=50 * 1024 * 1024,
            backupCount=10,
            encoding='utf-8'
        )
        file_handler.setLevel(LOG_LEVEL)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(sensitive_filter)
        logger.addHandler(file_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            LOG_DIR / f"{service_name}_error.log",
            maxBytes=50 * 1024 * 1024,
            backupCount=10,
            encoding='utf-8'
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(sensitive_filter)
        logger.addHandler(error_handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.INFO)

    return logger


class ServiceLoggerAdapter(logging.LoggerAdapter):

    def process(self, msg, kwargs):
        kwargs['extra'] = {**self.extra, **(kwargs.get('extra') or {})}
        return msg, kwargs


def get_logger(name, service_name=None):
    logger = logging.getLogger(name)

    if service_name:
        logger = ServiceLoggerAdapter(logger, {'service_name': service_name})

    return logger


class LinkCheckLogger:

    def __init__(self):
        self.logger = get_logger('linkcheck_service', service_name='linkcheck')

    def log_batch_started(self, batch_id, base_url, links_count, concurrency_limit):
        self.logger.info(
            f"Link batch started: {links_count} links from {base_url}",
            extra={
                'batch_id': batch_id,
                'base_url': base_url,
                'links_count': links_count,
                'concurrency_limit': concurrency_limit,
            }
        )
        MetricsLogger.increment('batches_started')

    def log_batch_completed(self, batch_id, base_url, total, broken, duration):
        self.logger.info(
            f"Link batch completed: {broken}/{total} broken in {duration:.2f}s",
            extra={
                'batch_id': batch_id,
                'base_url': base_url,
                'total_links': total,
                'broken_count': broken,
                'duration_seconds': round(duration, 3),
            }
        )
        MetricsLogger.increment('batches_completed')

    def log_batch_cancelled(self, batch_id, completed, pending):
        self.logger.warning(
            f"Link batch cancelled: {completed} done, {pending} abandoned",
            extra={'batch_id': batch_id, 'completed': completed, 'abandoned': pending}
        )
        MetricsLogger.increment('batches_cancelled')

    def log_probe_fallback(self, url, reason):
        self.logger.debug(
            f"Falling back to GET for {url}: {reason}",
            extra={'url': url, 'reason': reason}
        )
        MetricsLogger.increment('probe_fallbacks')

    def log_link_unresolved(self, base_url, raw, reason):
        self.logger.info(
            f"Unresolvable link {raw!r}: {reason}",
            extra={'base_url': base_url, 'raw_target': raw, 'reason': reason}
        )
        MetricsLogger.increment('links_unresolved')

    def log_link_blocked(self, base_url, url):
        self.logger.warning(
            f"Refusing to check private target {url}",
            extra={'base_url': base_url, 'url': url}
        )
        MetricsLogger.increment('links_blocked')

    def log_page_fetch_failed(self, url, error):
        self.logger.warning(
            f"Page fetch failed: {url}",
            extra={'base_url': url, 'error': str(error)}
        )
        MetricsLogger.increment('pages_failed')
