#!/usr/bin/env python3
"""
use_env.py - Environment Declarations

The module declares the variables it needs. Missing values fall back to
their defaults, and every value is checked before any module starts. Values
can also come from an ``env.json`` file next to this script; the process
environment overrides it.

Try:
    GREETING_COUNT=abc python use_env.py
"""

import asyncio
from pathlib import Path

from zerostep import (
    EnvDeclaration, Validator, ZeroStep, ZeroStepError,
    find_env_file, load_environment
)


async def init(ctx):
    for _ in range(int(ctx.env['GREETING_COUNT'])):
        await ctx.logger.info(ctx.env['message'])


async def main():
    env_file = find_env_file(search_paths=[Path(__file__).resolve().parent])
    zs = ZeroStep({'env': load_environment(env_file), 'log_level': 'VERBOSE'})

    zs.register({
        'name': 'hello-world',
        'env': [
            {
                'name': 'message',
                # optional attributes
                'default': 'Hello, world!',
                'valid': Validator.non_empty,
                'show_value': True,
                'hint': 'Please provide a message to display to the user',
            },
            EnvDeclaration(name='GREETING_COUNT', default=1, valid=Validator.in_range(1, 5)),
            EnvDeclaration(name='API_TOKEN', default='not-a-real-token', show_value=False),
        ],
        'init': init,
    })

    try:
        await zs.init()
    except ZeroStepError as e:
        print(f"Could not start: {e}")
    finally:
        await zs.destroy()


if __name__ == "__main__":
    asyncio.run(main())
