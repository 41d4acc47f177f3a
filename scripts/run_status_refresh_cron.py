#!/usr/bin/env python3
"""
Cron script that refreshes every pending background check once
Run this via cron every hour: 0 * * * * /path/to/venv/bin/python /path/to/run_status_refresh_cron.py
"""

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime
from app.database import init_db
from app.services.polling_service import PollingService
from app.utils.logger import get_logger

logger = get_logger('status_refresh_cron')


def main():
    """Main cron job function"""
    logger.info(f"Starting status refresh cron job at {datetime.utcnow()}")

    try:
        init_db()

        summary = PollingService().refresh_pending()

        logger.info(f"Status refresh cron job completed: {summary}")
        return summary

    except Exception as e:
        logger.error(f"Error in status refresh cron job: {str(e)}")
        raise


if __name__ == "__main__":
    main()
