"""Expire active carts older than the configured retention window.

Meant to be run once a day from cron when the Celery beat schedule is not
in use. Exits with status 1 if the sweep fails.
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from storefront.core.logging import cart_logger, setup_logging
from storefront.tasks.carts import run_expiry


async def main(max_age_days: int | None = None) -> int:
    try:
        expired = await run_expiry(max_age_days)
    except Exception:
        # run_expiry ya registró el error en el canal de carritos
        return 1
    cart_logger().info("Cart expiry script finished", extra={"expired_count": expired})
    return 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(asyncio.run(main()))
