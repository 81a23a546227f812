"""
Periodic jobs for the inventory service.

Run the low-stock check once (e.g. from cron)::

    python -m services.inventory.app.jobs

or keep it running on an interval::

    python -m services.inventory.app.jobs --interval 300
"""

import argparse
import time

from services.inventory.app.application.alerts import LowStockAlertService
from services.inventory.app.core_settings import get_settings
from services.inventory.app.infrastructure.clients import get_product_client
from services.inventory.app.infrastructure.db import SessionLocal, init_models
from shared.core.logging_config import generate_request_id, get_logger, set_request_context, setup_logging

logger = get_logger(__name__)


def run_low_stock_check() -> int:
    """Run one low-stock check and return the number of alerts created."""
    set_request_context(request_id=generate_request_id())
    db = SessionLocal()
    try:
        service = LowStockAlertService(db, get_product_client(), get_settings())
        return len(service.check_low_stock())
    finally:
        db.close()


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Inventory low-stock check")
    parser.add_argument("--interval", type=int, default=0, help="Seconds between runs; 0 runs once")
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(service_name="inventory-jobs", level=settings.LOG_LEVEL)
    init_models()

    while True:
        try:
            created = run_low_stock_check()
            logger.info(f"Low stock job finished, {created} alerts created")
        except Exception as e:
            logger.error(f"Low stock job failed: {e}", exc_info=True)
            if not args.interval:
                raise
        if not args.interval:
            break
        time.sleep(args.interval)


if __name__ == "__main__":
    main()
