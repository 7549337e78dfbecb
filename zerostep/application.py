#!/usr/bin/env python3
"""
application.py - Application Runner

Runs a lifecycle manager as the core of a process: initialize, wait for a
termination signal or an unhandled error, destroy, exit. The manager itself
knows nothing about signals; this module only calls its public operations.
"""

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Imports
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

import asyncio
import enum
import signal
import sys
from typing import Any, Dict, Optional, Sequence

from .module_base import ZeroStepError, settle

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Type Definitions
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ExitCode(enum.IntEnum):
    """Process exit status reflecting why the application stopped."""
    OK = 0
    INIT_FAILED = 1
    UNHANDLED_ERROR = 3


DEFAULT_SIGNALS = (signal.SIGINT, signal.SIGTERM)

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Runner
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class ApplicationRunner:
    """
    Drives one manager through init, wait and destroy.

    Shutdown is requested by a handled signal, by an unhandled error reported
    to the event loop, or explicitly through ``request_shutdown``. Only the
    first request counts.
    """

    def __init__(self, core: Any, signals: Sequence[signal.Signals] = DEFAULT_SIGNALS):
        """
        Args:
            core: Lifecycle manager exposing ``init()``, ``destroy()`` and ``name``
            signals: Signals that trigger a clean shutdown
        """
        self.core = core
        self.signals = tuple(signals)
        self.exit_code: Optional[ExitCode] = None
        self.reason: Optional[str] = None
        self._shutdown_event: Optional[asyncio.Event] = None
        self._previous_handlers: Dict[signal.Signals, Any] = {}
        self._logger = core.logger_factory(f"{core.name}.application")

    def request_shutdown(self, reason: str, exit_code: ExitCode = ExitCode.OK) -> None:
        """Ask the runner to destroy the core and return ``exit_code``."""
        if self.exit_code is not None:
            return
        self.exit_code = exit_code
        self.reason = reason
        if self._shutdown_event is not None:
            self._shutdown_event.set()

    def _install_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, f"Received {sig.name}")
            except (NotImplementedError, RuntimeError):
                # add_signal_handler is unavailable on Windows event loops
                self._previous_handlers[sig] = signal.signal(
                    sig,
                    lambda signum, frame: loop.call_soon_threadsafe(
                        self.request_shutdown, f"Received {signal.Signals(signum).name}"
                    )
                )

        loop.set_exception_handler(self._handle_loop_exception)

    def _remove_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        for sig in self.signals:
            if sig in self._previous_handlers:
                signal.signal(sig, self._previous_handlers.pop(sig))
            else:
                loop.remove_signal_handler(sig)
        loop.set_exception_handler(None)

    def _handle_loop_exception(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        loop.default_exception_handler(context)
        exc = context.get('exception')
        reason = f"Unhandled error: {exc if exc is not None else context.get('message')}"
        self.request_shutdown(reason, ExitCode.UNHANDLED_ERROR)

    async def run(self) -> ExitCode:
        """
        Initialize the core, wait for a shutdown request, then destroy it.

        Returns:
            The exit code for the process
        """
        loop = asyncio.get_running_loop()
        self._shutdown_event = asyncio.Event()
        if self.exit_code is not None:
            self._shutdown_event.set()

        signal_names = ', '.join(sig.name for sig in self.signals)
        await settle(self._logger.info(f"Registering global signal handlers ({signal_names})"))
        self._install_handlers(loop)

        try:
            try:
                await self.core.init()
            except ZeroStepError as e:
                await settle(self._logger.error(f"Initialization failed: {e}"))
                self.request_shutdown("Initialization failed", ExitCode.INIT_FAILED)

            await self._shutdown_event.wait()
            await settle(self._logger.info(f"{self.reason}... shutting down"))
            await self.core.destroy()
        finally:
            self._remove_handlers(loop)

        return self.exit_code


def run_application(core: Any, signals: Sequence[signal.Signals] = DEFAULT_SIGNALS) -> None:
    """Run ``core`` until shutdown and exit the process with the resulting code."""
    runner = ApplicationRunner(core, signals)
    sys.exit(int(asyncio.run(runner.run())))
