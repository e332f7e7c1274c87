import json
import logging
import os
import time
from typing import Any, Dict, List, Optional

DEFAULT_METRIC_NAMESPACE = "SlotFinder"

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def get_logger(name: str) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(os.environ.get("LOG_LEVEL", "INFO").upper())
    return logger


def _payload(msg: str, fields: Dict[str, Any]) -> str:
    # datetimes, zones and intervals are logged via str()
    return json.dumps({"msg": msg, **fields}, default=str)


def log_json(logger: logging.Logger, level: str, msg: str, **fields: Any) -> None:
    if level.lower() == "exception":
        log_exception(logger, msg, **fields)
        return
    logger.log(_LEVELS.get(level.lower(), logging.INFO), _payload(msg, fields))


def log_exception(logger: logging.Logger, msg: str, **fields: Any) -> None:
    logger.exception(_payload(msg, fields))


def record_warning(
    logger: logging.Logger,
    diagnostics: Optional[List[Dict[str, Any]]],
    code: str,
    **fields: Any,
) -> None:
    """Log a degraded-input warning and, if given a list, collect it there too."""
    log_json(logger, "warning", code, **fields)
    if diagnostics is not None:
        diagnostics.append({"code": code, **fields})


def _metric_dimensions(dims: Optional[Dict[str, str]]) -> Dict[str, str]:
    dimensions = {}
    stage = os.environ.get("STAGE")
    if stage:
        dimensions["Stage"] = stage
    dimensions.update(dims or {})
    return dimensions


def emit_metric(
    name: str,
    value: float = 1,
    unit: str = "Count",
    dims: Optional[Dict[str, str]] = None,
) -> None:
    """Print one CloudWatch Embedded Metric Format record to stdout."""
    dimensions = _metric_dimensions(dims)
    namespace = os.environ.get("METRIC_NAMESPACE") or DEFAULT_METRIC_NAMESPACE
    directive = {
        "Namespace": namespace,
        "Dimensions": [sorted(dimensions)],
        "Metrics": [{"Name": name, "Unit": unit}],
    }
    record = {
        "_aws": {"Timestamp": int(time.time() * 1000), "CloudWatchMetrics": [directive]},
        **dimensions,
        name: value,
    }
    print(json.dumps(record))


def elapsed_ms(start_time: float) -> int:
    return int((time.time() - start_time) * 1000)
