import asyncio
import random


def jittered(base_delay: float, variation: float = 0.0) -> float:
    """Apply a random +/- `variation` fraction to a delay in seconds."""
    if base_delay <= 0:
        return 0.0
    if variation <= 0:
        return base_delay
    return base_delay * random.uniform(1 - variation, 1 + variation)


async def random_delay(base_delay: float, variation: float = 0.0) -> None:
    """Sleep for `base_delay` seconds with optional random variation."""
    await asyncio.sleep(jittered(base_delay, variation))
