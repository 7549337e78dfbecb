#!/usr/bin/env python3
"""
shortcuts.py - Chained Registration and Init Values

Shows that ``register`` calls can be chained and that whatever ``init``
returns is handed back to ``destroy``.
"""

import asyncio

from zerostep import ModuleDescriptor, ZeroStep


class SecretHolder:
    """Resource created during init and released in destroy."""

    def __init__(self, secret: str):
        self._secret = secret

    def close(self):
        print(f"Destroying obj with secret:= {self._secret}")


def secret_module() -> ModuleDescriptor:
    holder = SecretHolder('S3C43T')
    return ModuleDescriptor(
        name='Secret and init value usage in destroy',
        init=lambda ctx: holder,
        destroy=lambda ctx, value: value.close(),
    )


async def main():
    zs = ZeroStep()

    (zs
        .register(secret_module())
        .register({
            'name': 'Module which was added by chaining register calls!',
            'init': lambda ctx: print('Hello from chained module!'),
        }))

    await zs.init()
    await zs.destroy()


if __name__ == "__main__":
    asyncio.run(main())
