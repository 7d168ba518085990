#!/usr/bin/env python3
"""
Example: Headless layer tracking
Shows how to drive KanataStatusController from a non-Textual program.

This example demonstrates:
- A custom DisplayPort that prints layer changes
- attach()/detach() lifecycle around an asyncio program
- Running without the systemd reconnect feature
"""

import asyncio
import sys

try:
    from kanata_status import ConnectionTarget, StatusConfig
    from textual_kanata import KanataStatusController
except ImportError:
    print("Error: Install textual-kanata first: pip install textual-kanata")
    sys.exit(1)


class PrintDisplay:
    """DisplayPort that writes every visible layer to stdout."""

    def __init__(self):
        self.text = ""

    def set_layer(self, text: str) -> None:
        self.text = text

    def set_visible(self, visible: bool) -> None:
        print(f"layer: {self.text}" if visible else "(hidden)")

    def destroy(self) -> None:
        print("bye")


async def main(port: int, seconds: float) -> None:
    config = StatusConfig(target=ConnectionTarget("127.0.0.1", port))
    controller = KanataStatusController(config, display=PrintDisplay(), enable_service_monitor=False)
    controller.attach(asyncio.get_running_loop())
    try:
        await asyncio.sleep(seconds)
    finally:
        await controller.detach()


if __name__ == "__main__":
    asyncio.run(main(int(sys.argv[1]) if len(sys.argv) > 1 else 10000, 30.0))
