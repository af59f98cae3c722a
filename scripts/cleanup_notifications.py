import sys
import os
import asyncio
import argparse

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from automations.retention import cleanup_old_notifications
from services.notification_store import NotificationStore
from logging_config import setup_logging
from config import config

async def main(days: int):
    deleted = await cleanup_old_notifications(NotificationStore(), days=days)
    print(f"🧹 Deleted {deleted} read notifications older than {days} days")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Delete old read notifications')
    parser.add_argument('--days', type=int, default=config.NOTIFICATION_RETENTION_DAYS, help='Retention window in days')
    args = parser.parse_args()

    setup_logging()
    asyncio.run(main(args.days))
