"""
Add a user and print a bearer token for them, for trying the API locally.
Real credential issuance lives outside this service.
"""
import sys
import os
import asyncio
import argparse
from datetime import timedelta

# Add parent directory to path to import database
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database import users_collection
from models.user import UserModel
from routes.deps import create_access_token
from logging_config import setup_logging

async def add_user(email: str, name: str, days: int):
    user = await users_collection.find_one({"email": email})
    if user:
        print(f"User {email} already exists.")
    else:
        user = UserModel(email=email, name=name).model_dump()
        await users_collection.insert_one(user)
        print(f"✅ Successfully added user: {email}")

    token = create_access_token({"sub": user["id"]}, expires_delta=timedelta(days=days))
    print(f"USER_ID={user['id']}")
    print(f"TOKEN={token}")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description='Add a user and issue a token')
    parser.add_argument('email', type=str, help='Email address')
    parser.add_argument('--name', type=str, default='Admin User', help='User name')
    parser.add_argument('--days', type=int, default=7, help='Token lifetime in days')
    args = parser.parse_args()

    setup_logging()
    asyncio.run(add_user(args.email, args.name, args.days))
