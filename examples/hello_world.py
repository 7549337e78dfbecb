#!/usr/bin/env python3
"""
hello_world.py - Minimal Example

One module with an init and a destroy step.
"""

import asyncio

from zerostep import ZeroStep


async def main():
    """Bring the module up and tear it down again."""
    zs = ZeroStep()

    zs.register({
        'name': 'hello-world',
        'init': lambda ctx: print('hello, world'),
        'destroy': lambda ctx, value: print('goodbye, world'),
    })

    await zs.init()
    await zs.destroy()


if __name__ == "__main__":
    asyncio.run(main())
