"""
Structured logging with run correlation and context management.
"""
import json
import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Optional

# Context variables for run correlation
run_id: ContextVar[Optional[str]] = ContextVar('run_id', default=None)
image_path: ContextVar[Optional[str]] = ContextVar('image_path', default=None)

_RESERVED_ATTRS = frozenset((
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'run_id', 'image_path',
    'exc_info', 'exc_text', 'stack_info',
))


class CorrelationFormatter(logging.Formatter):
    """Logging formatter that emits one JSON object per record with run context."""

    def format(self, record: logging.LogRecord) -> str:
        record.run_id = run_id.get()
        record.image_path = image_path.get()

        log_entry = {
            'timestamp': time.time(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'run_id': record.run_id,
            'image_path': record.image_path,
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        extra_fields = {
            k: v for k, v in record.__dict__.items()
            if k not in _RESERVED_ATTRS
        }
        if extra_fields:
            log_entry['extra'] = extra_fields

        return json.dumps(log_entry, default=str, separators=(',', ':'))


class StructuredLogger:
    """Logger with structured output and operation helpers."""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, extra=kwargs)

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra=kwargs)

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, extra=kwargs)

    def error(self, message: str, **kwargs):
        self.logger.error(message, extra=kwargs)

    def log_operation_start(self, operation: str, **context):
        """Log the start of an operation."""
        self.info(f"Starting operation: {operation}",
                  operation=operation,
                  operation_status='started',
                  **context)

    def log_operation_success(self, operation: str, duration: float = None, **context):
        """Log successful completion of an operation."""
        extra = {
            'operation': operation,
            'operation_status': 'success',
            **context
        }
        if duration is not None:
            extra['duration_seconds'] = duration

        self.info(f"Operation completed successfully: {operation}", **extra)

    def log_operation_error(self, operation: str, error: Exception, duration: float = None, **context):
        """Log operation failure."""
        extra = {
            'operation': operation,
            'operation_status': 'error',
            'error_type': type(error).__name__,
            'error_message': str(error),
            **context
        }
        if duration is not None:
            extra['duration_seconds'] = duration

        self.error(f"Operation failed: {operation}", **extra)

    def log_stage_result(self, stage: str, success: bool, **counts: int):
        """Log the outcome of a segmentation stage with element counts."""
        if success:
            self.info(f"Stage {stage} succeeded", stage=stage, stage_success=True, **counts)
        else:
            self.warning(f"Stage {stage} failed",
                         stage=stage, stage_success=False, **counts)


@contextmanager
def log_context(**context_vars):
    """Context manager to set logging context variables."""
    tokens = []

    try:
        for key, value in context_vars.items():
            if key == 'run_id':
                tokens.append((run_id, run_id.set(value)))
            elif key == 'image_path':
                tokens.append((image_path, image_path.set(value)))

        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


@contextmanager
def log_operation(logger: StructuredLogger, operation: str, **context):
    """Context manager to log operation start/end with timing."""
    start_time = time.time()
    logger.log_operation_start(operation, **context)

    try:
        yield
        duration = time.time() - start_time
        logger.log_operation_success(operation, duration, **context)
    except Exception as e:
        duration = time.time() - start_time
        logger.log_operation_error(operation, e, duration, **context)
        raise


def generate_run_id() -> str:
    """Generate a new run correlation ID."""
    return str(uuid.uuid4())


def get_run_id() -> Optional[str]:
    """Get current run ID."""
    return run_id.get()


def setup_logging(level: str = 'INFO', enable_structured: bool = True):
    """Setup global logging configuration."""
    logging_level = getattr(logging, level.upper(), logging.INFO)

    if enable_structured:
        formatter = CorrelationFormatter()

        root_logger = logging.getLogger()
        root_logger.setLevel(logging_level)

        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

        handler = logging.StreamHandler()
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
    else:
        logging.basicConfig(
            level=logging_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
