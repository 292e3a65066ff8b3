import logging
import json
import os
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Dict, Any, Optional

from feed_doctor.core.config import settings

# Log format for file and console output
TEXT_LOG_FORMAT = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

# Log levels map
LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class StructuredLogger(logging.Logger):
    """Logger that can attach a dict payload to a record as ``structured_data``."""

    def structured(
        self,
        level: int,
        msg: str,
        structured_data: Dict[str, Any],
        *args,
        **kwargs
    ):
        """Log with structured data that can be easily parsed"""
        if self.isEnabledFor(level):
            extra = kwargs.pop("extra", None) or {}
            extra["structured_data"] = structured_data
            self._log(level, msg, args, extra=extra, **kwargs)


class JsonFormatter(logging.Formatter):
    """Format logs as JSON for better parsing"""

    def format(self, record):
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        # Add structured data if available
        structured_data = getattr(record, "structured_data", None)
        if structured_data:
            log_data["data"] = structured_data

        # Add exception info if available
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logger(
    name: str,
    log_level: str = "INFO",
    log_to_file: bool = False,
    log_to_console: bool = True,
    json_format: bool = False
) -> StructuredLogger:
    """
    Set up a structured logger with file and console handlers

    Args:
        name: Logger name
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_to_file: Whether to log to a rotating file under LOG_DIR
        log_to_console: Whether to log to console
        json_format: Whether to format logs as JSON

    Returns:
        Configured logger
    """
    # Register the logger class
    logging.setLoggerClass(StructuredLogger)

    logger = logging.getLogger(name)
    logger.setLevel(LOG_LEVELS.get(log_level.upper(), logging.INFO))
    logger.handlers = []  # Clear existing handlers
    formatter = JsonFormatter() if json_format else TEXT_LOG_FORMAT

    if log_to_file:
        os.makedirs(settings.LOG_DIR, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(settings.LOG_DIR, f"{name}.log"),
            maxBytes=10 * 1024 * 1024,  # 10 MB
            backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if log_to_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    return logger


def configure_logger() -> StructuredLogger:
    """Root application logger used by the FastAPI factory."""
    return setup_logger("feed_doctor", log_level=settings.API_LOG_LEVEL, log_to_file=settings.LOG_TO_FILE)


# Create application loggers
api_logger = setup_logger("api", log_level=settings.API_LOG_LEVEL, log_to_file=settings.LOG_TO_FILE)
db_logger = setup_logger("db", log_level=settings.DB_LOG_LEVEL, log_to_file=settings.LOG_TO_FILE)
ai_logger = setup_logger("ai", log_level=settings.AI_LOG_LEVEL, log_to_file=settings.LOG_TO_FILE, json_format=True)
analysis_logger = setup_logger("analysis", log_level=settings.ANALYSIS_LOG_LEVEL, log_to_file=settings.LOG_TO_FILE)


# Helper function to log API requests
def log_api_request(
    request_id: str,
    method: str,
    path: str,
    status_code: int,
    processing_time: float,
    tenant_id: Optional[str] = None,
    error: Optional[str] = None
):
    """Log an API request with structured data"""
    data = {
        "request_id": request_id,
        "method": method,
        "path": path,
        "status_code": status_code,
        "processing_time_ms": round(processing_time * 1000, 2),
        "tenant_id": tenant_id
    }

    if error:
        data["error"] = error
        api_logger.structured(
            logging.ERROR,
            f"API Request: {method} {path} - Status: {status_code}",
            data
        )
    else:
        api_logger.structured(
            logging.INFO,
            f"API Request: {method} {path} - Status: {status_code}",
            data
        )


# Helper function to log AI requests
def log_ai_request(
    provider: str,
    prompt_type: str,
    processing_time: float,
    tenant_id: Optional[str] = None,
    error: Optional[str] = None
):
    """Log an AI provider call with structured data"""
    data = {
        "provider": provider,
        "prompt_type": prompt_type,
        "processing_time_ms": round(processing_time * 1000, 2),
        "tenant_id": tenant_id
    }

    if error:
        # Provider failures degrade to the rule path, so they are warnings
        data["error"] = error
        ai_logger.structured(
            logging.WARNING,
            f"AI Request: {provider} - Type: {prompt_type} failed",
            data
        )
    else:
        ai_logger.structured(
            logging.INFO,
            f"AI Request: {provider} - Type: {prompt_type}",
            data
        )


# Helper function to log analysis lifecycle events
def log_analysis_event(
    tenant_id: str,
    product_id: str,
    status: str,
    processing_time: float,
    overall_score: Optional[int] = None,
    ai_powered: bool = False,
    error: Optional[str] = None
):
    """Log the outcome of a single product analysis"""
    data = {
        "tenant_id": tenant_id,
        "product_id": product_id,
        "status": status,
        "overall_score": overall_score,
        "ai_powered": ai_powered,
        "processing_time_ms": round(processing_time * 1000, 2)
    }

    if error:
        data["error"] = error
        analysis_logger.structured(
            logging.ERROR,
            f"Analysis {status}: product {product_id}",
            data
        )
    else:
        analysis_logger.structured(
            logging.INFO,
            f"Analysis {status}: product {product_id}",
            data
        )
