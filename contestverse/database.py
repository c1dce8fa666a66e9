import os
from motor.motor_asyncio import AsyncIOMotorClient
from typing import Optional
from dotenv import load_dotenv
from pymongo import ASCENDING, DESCENDING

# Load environment variables
load_dotenv()


class Database:
    client: Optional[AsyncIOMotorClient] = None

    @classmethod
    async def connect_db(cls):
        """
        Connect to MongoDB.

        Raises if the server does not answer a ping, so a broken store
        aborts application startup.
        """
        mongodb_url = os.getenv("MONGODB_URL", "mongodb://localhost:27017")
        cls.client = AsyncIOMotorClient(mongodb_url)

        try:
            await cls.client.admin.command("ping")
        except Exception as e:
            print(f"[ERROR] Could not reach MongoDB at startup: {e}")
            cls.client.close()
            cls.client = None
            raise

        print("[OK] Connected to MongoDB")

        # Create indexes
        await cls.create_indexes()

    @classmethod
    async def create_indexes(cls):
        """Create database indexes"""
        db = cls.get_db()

        # Users: email is the identity key
        try:
            await db.users.create_index([("email", ASCENDING)], unique=True)
            print("[OK] Created unique index on users.email")
        except Exception as e:
            print(f"[WARN] Index on users.email may already exist: {e}")

        # Contests: creator listing and popularity ordering
        try:
            await db.contests.create_index([("creatorEmail", ASCENDING)])
            await db.contests.create_index([("participants", DESCENDING)])
            print("[OK] Created indexes on contests")
        except Exception as e:
            print(f"[WARN] Indexes on contests may already exist: {e}")

        # Payments: one document per provider transaction
        try:
            await db.payments.create_index([("transactionId", ASCENDING)], unique=True)
            await db.payments.create_index([("userEmail", ASCENDING)])
            await db.payments.create_index([("contestId", ASCENDING)])
            print("[OK] Created indexes on payments")
        except Exception as e:
            print(f"[WARN] Indexes on payments may already exist: {e}")

        # Submissions: one entry per user per contest
        try:
            await db.submissions.create_index(
                [("contestId", ASCENDING), ("userEmail", ASCENDING)],
                unique=True
            )
            await db.submissions.create_index([("contestId", ASCENDING), ("submittedAt", DESCENDING)])
            await db.submissions.create_index([("userEmail", ASCENDING), ("status", ASCENDING)])
            print("[OK] Created indexes on submissions")
        except Exception as e:
            print(f"[WARN] Indexes on submissions may already exist: {e}")

        # Creator applications
        try:
            await db.creators.create_index([("status", ASCENDING)])
            print("[OK] Created index on creators.status")
        except Exception as e:
            print(f"[WARN] Index on creators.status may already exist: {e}")

    @classmethod
    async def close_db(cls):
        """Close MongoDB connection"""
        if cls.client:
            cls.client.close()
            cls.client = None
            print("[OK] Disconnected from MongoDB")

    @classmethod
    def get_db(cls):
        """Get database instance"""
        database_name = os.getenv("DATABASE_NAME", "contest_verse_db")
        return cls.client[database_name]
