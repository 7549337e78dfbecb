#!/usr/bin/env python3
"""
two_modules.py - Sharing a Service

Module ``one`` exports a service that module ``two`` imports. Both log
through their own scoped logger, and ``two`` is torn down before ``one``.
"""

import asyncio

from zerostep import ZeroStep


async def init_one(ctx):
    await ctx.logger.info('hello from 1')
    return 'Message from one'


async def init_two(ctx):
    await ctx.logger.info('hello from 2')
    await ctx.logger.info(f"got {ctx.symbolFromOne}")


async def main():
    zs = ZeroStep({'name': 'two-modules'})

    zs.register({
        'name': 'one',
        'export': 'symbolFromOne',
        'init': init_one,
        'destroy': lambda ctx, value: print('goodbye from 1'),
    })

    zs.register({
        'name': 'two',
        'imports': ['symbolFromOne'],
        'init': init_two,
        'destroy': lambda ctx, value: print('goodbye from 2'),
    })

    await zs.init()
    await zs.destroy()


if __name__ == "__main__":
    asyncio.run(main())
