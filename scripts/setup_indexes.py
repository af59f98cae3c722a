import sys
import os
import asyncio
from pymongo import ASCENDING

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import tasks_collection, users_collection
from services.notification_store import NotificationStore
from logging_config import get_logger, setup_logging

logger = get_logger("setup_indexes")

async def create_indexes():
    print("🚀 Starting Index Creation...")

    # --- Notifications ---
    print("\n📦 Notifications Collection:")
    # (recipient, read), (recipient, created_at DESC), (related_task), (id UNIQUE)
    await NotificationStore().ensure_indexes()
    print("✅ Created indexes: (recipient, read), (recipient, created_at DESC), (related_task), (id UNIQUE)")

    # --- Tasks ---
    print("\n📦 Tasks Collection:")
    # For My Tasks and the overdue sweep: find({assigned_to: X, status: Y})
    await tasks_collection.create_index([("assigned_to", ASCENDING), ("status", ASCENDING)])
    print("✅ Created index: (assigned_to, status)")

    await tasks_collection.create_index([("created_by", ASCENDING)])
    print("✅ Created index: (created_by)")

    await tasks_collection.create_index([("due_date", ASCENDING)])
    print("✅ Created index: (due_date)")

    await tasks_collection.create_index([("id", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE)")

    # --- Users ---
    print("\n📦 Users Collection:")
    # Email lookup is frequent for auth
    await users_collection.create_index([("email", ASCENDING)], unique=True)
    print("✅ Created index: (email UNIQUE)")

    # Sender/recipient resolution in the inbox: find({id: {$in: [...]}})
    await users_collection.create_index([("id", ASCENDING)], unique=True)
    print("✅ Created index: (id UNIQUE)")

    print("\n✨ All indexes created successfully!")

if __name__ == "__main__":
    setup_logging()
    asyncio.run(create_indexes())
