"""
Logging setup for the Sherlok simulator.

Every component logs with a ``[Component]`` prefix. The prefix is lifted into
its own column, and the ``[EventLog]`` mirror of the display log is routed to
a dedicated events file so the run log stays readable.
"""

from datetime import datetime, timezone
import os
import re
import sys
from typing import NamedTuple

from loguru import logger

EVENT_LOG_COMPONENT = "EventLog"

_TAG = re.compile(r"^\[(?P<component>[A-Za-z_][\w.]*)\]\s*")


class LogPaths(NamedTuple):
    run_log: str
    event_log: str


def tag_component(record) -> None:
    """Move a leading ``[Component]`` tag from the message into ``extra``."""
    match = _TAG.match(record["message"])
    if match:
        record["extra"]["component"] = match.group("component")
        record["message"] = record["message"][match.end():]
    else:
        record["extra"].setdefault("component", record["name"])


def _is_event(record) -> bool:
    return record["extra"].get("component") == EVENT_LOG_COMPONENT


def _is_not_event(record) -> bool:
    return not _is_event(record)


def setup_logger(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    enable_colors: bool = True,
    compression: str | None = "zip",
) -> LogPaths:
    """
    Set up console logging, a rotating run log and a separate event log.

    Args:
        log_dir: Directory for log files
        level: Level for the console and run log (the event log always keeps DEBUG)
        rotation: Log rotation policy (e.g., "50 MB", "1 day")
        retention: Log retention policy (e.g., "30 days", "1 month")
        enable_colors: Whether to enable colored console output
        compression: Archive format for closed log files, None to keep them plain

    Returns:
        Paths of the run log and the event log
    """
    os.makedirs(log_dir, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    paths = LogPaths(
        run_log=os.path.join(log_dir, f"simulation_{timestamp}.log"),
        event_log=os.path.join(log_dir, f"events_{timestamp}.log"),
    )

    logger.remove()
    logger.configure(patcher=tag_component)

    colorize = enable_colors and sys.stdout.isatty()
    if colorize:
        console_format = (
            "<green>{time:HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]: <18}</cyan> | "
            "<level>{message}</level>"
        )
    else:
        console_format = "{time:HH:mm:ss.SSS} | {level: <8} | {extra[component]: <18} | {message}"

    logger.add(
        sys.stdout,
        level=level,
        format=console_format,
        colorize=colorize,
        filter=_is_not_event,
        backtrace=True,
        diagnose=False,
    )

    logger.add(
        paths.run_log,
        level=level,
        format=(
            "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[component]} | "
            "{name}:{line} | {message}"
        ),
        filter=_is_not_event,
        rotation=rotation,
        retention=retention,
        compression=compression,
        encoding="utf-8",
        backtrace=True,
        diagnose=False,
    )

    # display log mirror: one timestamped line per simulation event
    logger.add(
        paths.event_log,
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {message}",
        filter=_is_event,
        rotation=rotation,
        retention=retention,
        compression=compression,
        encoding="utf-8",
    )

    logger.info("[Logging] Run log: {}, event log: {}", paths.run_log, paths.event_log)
    logger.debug("[Logging] Level: {}, Colors: {}", level, colorize)
    return paths
