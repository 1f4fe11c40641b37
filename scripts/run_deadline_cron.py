#!/usr/bin/env python3
"""
Cron script for the homework deadline sweep
Run this via cron every hour: 0 * * * * /path/to/venv/bin/python /path/to/run_deadline_cron.py
or keep it running with: run_deadline_cron.py --every 60
"""

import argparse
import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from apscheduler.schedulers.blocking import BlockingScheduler
from educhain.services.homework_service import HomeworkService
from educhain.utils.logger import get_logger
from educhain.database import init_db
from config.config import Config
from datetime import datetime

logger = get_logger('educhain.deadline_cron')


def sweep():
    """Penalize missed deadlines and close expired homeworks"""
    logger.info(f"Starting deadline sweep at {datetime.utcnow()}")

    try:
        homework_service = HomeworkService()

        # Penalize before closing so every overdue enrollment is seen
        applied = homework_service.apply_deadline_penalties()
        closed = homework_service.close_expired_homeworks()

        logger.info(f"Deadline sweep completed: {len(applied)} penalties, {closed} homeworks closed")

    except Exception as e:
        logger.error(f"Error in deadline sweep: {str(e)}")
        raise


def main():
    parser = argparse.ArgumentParser(description='EduChain deadline sweep')
    parser.add_argument('--every', type=int, nargs='?', const=Config.DEADLINE_SWEEP_MINUTES,
                        help='keep running and sweep every N minutes')
    args = parser.parse_args()

    # Initialize database
    init_db()

    if not args.every:
        sweep()
        return

    scheduler = BlockingScheduler()
    scheduler.add_job(sweep, 'interval', minutes=args.every, next_run_time=datetime.now())
    logger.info(f"Deadline sweep scheduled every {args.every} minutes")

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Deadline sweep scheduler stopped")


if __name__ == "__main__":
    main()
