#!/usr/bin/env python3
"""
log_manager.py - Logging Management

Asynchronous log sink for the lifecycle manager and its modules. Hand
``LogManager.logger_factory()`` to the manager's ``logger_factory`` setting to
route every module logger through one queue.

Features:
- Non-blocking logging through an asyncio queue and a worker task
- Level-based filtering
- Plain text or structured (JSON) output
- Console and file outputs, files written with aiofiles
- Per-module loggers
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

import asyncio
import datetime
import json
import os
import sys
import time
import traceback
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

import aiofiles

from .module_base import LogLevel, ZeroStepError

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Log Event Class
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

DEFAULT_FORMAT = "[{timestamp}] [{service}] [{component}] [{level}] {message}"


@dataclass
class LogEvent:
    """Container for log event data with metadata."""
    level: LogLevel
    message: str
    timestamp: float = field(default_factory=time.time)
    service: str = "zerostep"
    component: str = "unknown"
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert log event to dictionary for structured logging."""
        result = asdict(self)
        result['level'] = self.level.value
        result['timestamp_iso'] = datetime.datetime.fromtimestamp(
            self.timestamp
        ).isoformat()
        return result

    def to_str(self, fmt: Optional[str] = None) -> str:
        """Format log event as string using format string."""
        timestamp_str = datetime.datetime.fromtimestamp(
            self.timestamp
        ).strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        return (fmt or DEFAULT_FORMAT).format(
            timestamp=timestamp_str,
            service=self.service,
            component=self.component,
            level=self.level.value,
            message=self.message,
            **self.context
        )

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Exceptions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class LoggingError(ZeroStepError):
    """Base exception for logging errors."""
    pass

class LogFileError(LoggingError):
    """Error related to log file operations."""
    pass

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Log Manager
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class LogManager:
    """
    Asynchronous log manager with a single queue and multiple outputs.

    Before ``start()`` (and after ``stop()``) events are written directly,
    so nothing is lost while the worker is not running.
    """

    def __init__(
        self,
        service_name: str = "zerostep",
        log_level: Union[str, LogLevel] = LogLevel.INFO,
        log_file: Optional[Union[str, Path]] = None,
        json_format: bool = False,
        console_output: bool = True,
        log_format: Optional[str] = None,
        queue_size: int = 10000
    ):
        """
        Initialize log manager.

        Args:
            service_name: Name of the service for log identification
            log_level: Minimum log level to record
            log_file: Log file path, appended to
            json_format: Whether to log in JSON format
            console_output: Whether to output logs to stderr
            log_format: Format string for text log messages
            queue_size: Maximum number of pending events
        """
        self.service_name = service_name
        self.log_level = LogLevel.from_string(log_level) if isinstance(log_level, str) else log_level
        self.json_format = json_format
        self.console_output = console_output
        self.log_format = log_format or DEFAULT_FORMAT
        self.log_file = Path(log_file) if log_file else None

        self.queue_size = queue_size
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._file_handle = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self) -> None:
        """Open the log file and start the worker task."""
        if self._task:
            return

        if self.log_file:
            try:
                os.makedirs(self.log_file.parent, exist_ok=True)
                self._file_handle = await aiofiles.open(self.log_file, 'a', encoding='utf-8')
            except OSError as e:
                raise LogFileError(f"Failed to open log file: {e}")

        self._queue = asyncio.Queue(maxsize=self.queue_size)
        self._task = asyncio.create_task(self._process_events())

    async def stop(self, timeout: float = 2.0) -> None:
        """Drain pending events, stop the worker and close the log file."""
        if not self._task:
            return

        try:
            await asyncio.wait_for(self._queue.join(), timeout=timeout)
        except asyncio.TimeoutError:
            print("Log queue did not drain before shutdown", file=sys.stderr)

        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)
        self._task = None

        if self._file_handle:
            await self._file_handle.close()
            self._file_handle = None

    async def _process_events(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                await self._write_log_event(event)
            finally:
                self._queue.task_done()

    async def _write_log_event(self, event: LogEvent) -> None:
        """Write log event to configured outputs."""
        try:
            if self.json_format:
                log_message = json.dumps(event.to_dict(), default=str)
            else:
                log_message = event.to_str(self.log_format)

            if self._file_handle:
                await self._file_handle.write(log_message + '\n')
                await self._file_handle.flush()

            if self.console_output:
                print(log_message, file=sys.stderr)

        except Exception as e:
            # Last resort, logging must never break the caller
            print(f"Error writing log event: {e}", file=sys.stderr)

    def _should_log(self, level: LogLevel) -> bool:
        """Check if a log level should be logged."""
        return level.rank >= self.log_level.rank

    async def log(
        self,
        level: LogLevel,
        message: str,
        component: str = "log_manager",
        context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Log a message with the specified level.

        Args:
            level: Log level
            message: Log message
            component: Component (module) name
            context: Additional context data
        """
        if not self._should_log(level):
            return

        event = LogEvent(
            level=level,
            message=message,
            service=self.service_name,
            component=component,
            context=context or {}
        )

        if not self._task:
            await self._write_log_event(event)
            return

        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            print(f"Log queue full! {event.to_str()}", file=sys.stderr)

    async def verbose(self, message: str, component: str = "log_manager", context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.VERBOSE, message, component, context)

    async def info(self, message: str, component: str = "log_manager", context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.INFO, message, component, context)

    async def warning(self, message: str, component: str = "log_manager", context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.WARNING, message, component, context)

    async def error(self, message: str, component: str = "log_manager", context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.ERROR, message, component, context)

    async def exception(self, exc: BaseException, message: Optional[str] = None, component: str = "log_manager") -> None:
        """Log an exception with traceback."""
        message = f"{message}: {exc}" if message else f"Exception: {exc}"
        context = {
            'exception_type': exc.__class__.__name__,
            'traceback': ''.join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        }
        await self.error(message, component, context)

    def logger_factory(self) -> Callable[[str], 'ComponentLogger']:
        """Factory for the lifecycle manager's ``logger_factory`` setting."""
        return lambda name: ComponentLogger(self, name)

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Component Logger
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ComponentLogger:
    """Logger for one module (or the manager itself) that delegates to a log manager."""

    def __init__(self, log_manager: LogManager, component_name: str):
        self.log_manager = log_manager
        self.component_name = component_name

    async def log(self, level: LogLevel, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log_manager.log(level, message, self.component_name, context)

    async def verbose(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.VERBOSE, message, context)

    async def info(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.INFO, message, context)

    async def warning(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.WARNING, message, context)

    async def error(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        await self.log(LogLevel.ERROR, message, context)

    async def exception(self, exc: BaseException, message: Optional[str] = None) -> None:
        await self.log_manager.exception(exc, message, self.component_name)

    def _should_log(self, level: LogLevel) -> bool:
        return self.log_manager._should_log(level)

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Helper Functions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

def create_log_manager(
    service_name: str = "zerostep",
    log_level: Union[str, LogLevel] = LogLevel.INFO,
    log_file: Optional[Union[str, Path]] = None,
    json_format: bool = False,
    console_output: bool = True
) -> LogManager:
    """
    Create a log manager with standard settings.

    Returns:
        Configured LogManager instance (not yet started)
    """
    return LogManager(
        service_name=service_name,
        log_level=log_level,
        log_file=log_file,
        json_format=json_format,
        console_output=console_output
    )
