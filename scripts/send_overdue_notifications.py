"""
Send overdue reminders for open tasks past their due date.

Run it from whatever scheduler you use (cron, a CI job, by hand):
    python scripts/send_overdue_notifications.py
"""
import sys
import os
import asyncio

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from automations.overdue import notify_overdue_tasks
from services.notification_engine import NotificationEngine
from services.notification_store import NotificationStore
from logging_config import setup_logging

async def main():
    engine = NotificationEngine(NotificationStore())
    sent = await notify_overdue_tasks(engine)
    print(f"✅ Sent {sent} overdue notifications")

if __name__ == "__main__":
    setup_logging()
    asyncio.run(main())
