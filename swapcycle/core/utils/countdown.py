import asyncio
import sys

from swapcycle.core.utils.format_utils import format_countdown


async def sleep_with_countdown(seconds: int, label: str = "Next swap cycle") -> None:
    """Sleep for `seconds`, rewriting a one-line countdown on stdout every second."""
    remaining = int(seconds)
    while remaining > 0:
        sys.stdout.write(f"\r{label} in {format_countdown(remaining)}   ")
        sys.stdout.flush()
        await asyncio.sleep(1)
        remaining -= 1
    sys.stdout.write("\n")
    sys.stdout.flush()
