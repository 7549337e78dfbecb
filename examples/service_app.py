#!/usr/bin/env python3
"""
service_app.py - Long-Running Application

Runs a small ticker service until SIGINT or SIGTERM. All module logs go
through one LogManager, to stderr and to ``logs/service_app.log``.
"""

import asyncio

from zerostep import ZeroStep, Validator, create_log_manager, run_application


class Ticker:
    """Prints a line every few seconds until stopped."""

    def __init__(self, logger, interval: float):
        self.logger = logger
        self.interval = interval
        self._task = asyncio.create_task(self._run())

    async def _run(self):
        count = 0
        while True:
            count += 1
            await self.logger.info(f"tick {count}")
            await asyncio.sleep(self.interval)

    async def stop(self):
        self._task.cancel()
        await asyncio.gather(self._task, return_exceptions=True)


async def start_ticker(ctx):
    return Ticker(ctx.logger, float(ctx.env['TICK_INTERVAL']))


async def stop_ticker(ctx, ticker):
    await ticker.stop()


def build_core(log_manager) -> ZeroStep:
    core = ZeroStep({'name': 'service_app', 'logger_factory': log_manager.logger_factory()})

    core.register({'name': 'log-manager', 'init': lambda ctx: log_manager.start(),
                   'destroy': lambda ctx, value: log_manager.stop()})
    core.register({
        'name': 'ticker',
        'env': [{'name': 'TICK_INTERVAL', 'default': 2, 'valid': Validator.positive}],
        'init': start_ticker,
        'destroy': stop_ticker,
    })
    return core


if __name__ == "__main__":
    run_application(build_core(create_log_manager("service_app", log_file="logs/service_app.log")))
