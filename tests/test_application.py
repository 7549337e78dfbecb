#!/usr/bin/env python3
"""
Tests for the application runner.

These tests verify the proper operation of:
- Shutdown requests and the resulting exit codes
- Signal handling around a lifecycle manager
- Unhandled event loop errors triggering a clean shutdown
"""

import asyncio
import os
import signal
import sys
from pathlib import Path
from unittest import mock

import pytest

# Add parent directory to sys.path to allow importing the package
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from zerostep import ZeroStep, ApplicationRunner, ExitCode, LogLevel, run_application

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Test Classes & Helpers
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class MockLogger:
    """Mock logger for testing."""

    def __init__(self, logs):
        self.logs = logs

    async def info(self, message):
        self.logs.append((LogLevel.INFO, message))

    async def error(self, message):
        self.logs.append((LogLevel.ERROR, message))


def create_core(logs=None):
    logs = [] if logs is None else logs
    return ZeroStep({'name': 'app', 'env': {}, 'logger_factory': lambda name: MockLogger(logs)})


def create_dummy_module(name='dummyModule', init=None):
    return {
        'name': name,
        'init': init or mock.AsyncMock(return_value=None),
        'destroy': mock.AsyncMock(return_value=None),
    }

posix_only = pytest.mark.skipif(sys.platform == 'win32', reason='POSIX signals required')

#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~
# Test Cases
#-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~-+-~

class TestApplicationRunner:
    """Test cases for ApplicationRunner."""

    def test_first_request_wins(self):
        """Test later shutdown requests are ignored."""
        runner = ApplicationRunner(create_core(), signals=())

        runner.request_shutdown('first')
        runner.request_shutdown('second', ExitCode.UNHANDLED_ERROR)

        assert runner.exit_code == ExitCode.OK
        assert runner.reason == 'first'

    @pytest.mark.asyncio
    async def test_requested_shutdown(self):
        """Test a clean run initializes, then destroys the core."""
        logs = []
        core = create_core(logs)
        module = create_dummy_module()
        core.register(module)

        runner = ApplicationRunner(core, signals=())
        runner.request_shutdown('Requested by test')
        exit_code = await runner.run()

        assert exit_code == ExitCode.OK
        module['init'].assert_awaited_once()
        module['destroy'].assert_awaited_once()
        assert core.destroyed
        assert (LogLevel.INFO, 'Requested by test... shutting down') in logs

    @pytest.mark.asyncio
    async def test_shutdown_from_module(self):
        """Test a module may request shutdown once it is running."""
        runner = None

        def init(ctx):
            asyncio.get_running_loop().call_later(0.01, runner.request_shutdown, 'Work done')

        core = create_core()
        core.register(create_dummy_module(init=init))
        runner = ApplicationRunner(core, signals=())

        assert await runner.run() == ExitCode.OK
        assert runner.reason == 'Work done'

    @pytest.mark.asyncio
    async def test_init_failure(self):
        """Test a failed init exits with INIT_FAILED after rollback."""
        logs = []
        core = create_core(logs)
        dummy_module = create_dummy_module()
        faulty_module = create_dummy_module('Faulty init')
        faulty_module['init'].side_effect = RuntimeError('I am faulty!')
        core.register(dummy_module).register(faulty_module)

        runner = ApplicationRunner(core, signals=())
        exit_code = await runner.run()

        assert exit_code == ExitCode.INIT_FAILED
        dummy_module['destroy'].assert_awaited_once()
        faulty_module['destroy'].assert_not_called()
        assert any(
            level == LogLevel.ERROR and msg.startswith('Initialization failed')
            for level, msg in logs
        )

    @pytest.mark.asyncio
    async def test_unhandled_loop_error(self):
        """Test an error escaping a callback shuts the application down."""
        def boom():
            raise RuntimeError('kaboom')

        def init(ctx):
            asyncio.get_running_loop().call_soon(boom)

        core = create_core()
        module = create_dummy_module(init=init)
        core.register(module)

        runner = ApplicationRunner(core, signals=())
        exit_code = await runner.run()

        assert exit_code == ExitCode.UNHANDLED_ERROR
        assert runner.reason == 'Unhandled error: kaboom'
        module['destroy'].assert_awaited_once()
        assert asyncio.get_running_loop().get_exception_handler() is None

    @posix_only
    @pytest.mark.asyncio
    async def test_signal_triggers_shutdown(self):
        """Test a handled signal shuts the application down cleanly."""
        def init(ctx):
            asyncio.get_running_loop().call_later(0.01, os.kill, os.getpid(), signal.SIGUSR1)

        core = create_core()
        module = create_dummy_module(init=init)
        core.register(module)

        runner = ApplicationRunner(core, signals=(signal.SIGUSR1,))
        exit_code = await runner.run()

        assert exit_code == ExitCode.OK
        assert runner.reason == 'Received SIGUSR1'
        module['destroy'].assert_awaited_once()


class TestRunApplication:
    """Test cases for run_application."""

    @posix_only
    def test_exits_with_code(self):
        """Test the process exit status reflects the runner outcome."""
        def init(ctx):
            asyncio.get_running_loop().call_later(0.01, os.kill, os.getpid(), signal.SIGUSR1)

        core = create_core()
        core.register(create_dummy_module(init=init))

        with pytest.raises(SystemExit) as exc_info:
            run_application(core, signals=(signal.SIGUSR1,))

        assert exc_info.value.code == 0

    def test_init_failure_exit_code(self):
        """Test a failed init exits with status 1."""
        core = create_core()
        core.register({'name': 'broken', 'init': mock.Mock(side_effect=RuntimeError('broken'))})

        with pytest.raises(SystemExit) as exc_info:
            run_application(core, signals=())

        assert exc_info.value.code == 1
