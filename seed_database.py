"""
Database Maintenance
Promotes an admin account and repairs contest participant counts
Run: python seed_database.py admin@example.com [--recount]
"""
import asyncio
import os
import sys
from datetime import datetime, timezone
from motor.motor_asyncio import AsyncIOMotorClient
from dotenv import load_dotenv

from contestverse.services.contest.contest import ContestService

# Load environment variables
load_dotenv()

# MongoDB connection
MONGODB_URL = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "contest_verse_db")


async def seed_admin(db, email: str):
    """Create or promote the admin user"""
    now = datetime.now(timezone.utc)
    result = await db.users.update_one(
        {"email": email},
        {
            "$set": {"role": "admin", "updatedAt": now},
            "$setOnInsert": {"email": email, "createdAt": now},
        },
        upsert=True
    )

    if result.upserted_id:
        print(f"[OK] Created admin user {email}")
    else:
        print(f"[OK] Promoted {email} to admin")


async def recount_participants(db):
    """Recompute every contest's participants from stored payments"""
    contest_service = ContestService(db)
    contests = await db.contests.find({}, {"_id": 1}).to_list(length=None)

    for contest in contests:
        count = await contest_service.sync_participant_count(str(contest["_id"]))
        print(f"  - {contest['_id']}: {count} participants")

    print(f"[OK] Recounted {len(contests)} contests")


async def main(admin_email: str = None, recount: bool = False):
    """Main seed function"""
    print("=" * 60)
    print("Starting database maintenance...")
    print("=" * 60)

    client = AsyncIOMotorClient(MONGODB_URL)
    db = client[DATABASE_NAME]

    try:
        if admin_email:
            await seed_admin(db, admin_email)
        if recount:
            await recount_participants(db)
    finally:
        client.close()

    print("=" * 60)
    print("Done")
    print("=" * 60)


if __name__ == "__main__":
    args = [a for a in sys.argv[1:] if not a.startswith("--")]
    asyncio.run(main(
        admin_email=args[0] if args else os.getenv("ADMIN_EMAIL"),
        recount="--recount" in sys.argv
    ))
