from motor.motor_asyncio import AsyncIOMotorClient
from logging_config import get_logger
from config import config
import certifi

logger = get_logger("database")

uri = config.MONGO_URI

if uri:
    logger.info(f"MongoDB connection string found: {uri[:20]}...")
else:
    logger.warning("MONGO_URI not found in configuration, falling back to localhost")

class DatabaseProxy:
    def __init__(self):
        self._client = None

    def initialize(self):
        if self._client is None:
            if config.ENV == "production":
                self._client = AsyncIOMotorClient(uri, tlsCAFile=certifi.where())
            else:
                self._client = AsyncIOMotorClient(uri or "mongodb://localhost:27017/")
            logger.info(f"Database client initialized for DB: {config.DB_NAME}")

    def __getattr__(self, name):
        self.initialize()
        return getattr(self._client, name)

    def __getitem__(self, name):
        self.initialize()
        return self._client[name]


client = DatabaseProxy()

class DBProxy:
    def get_collection(self, name):
        # DB_NAME is read lazily so tests can point at their own database
        return client[config.DB_NAME][name]

    def __getattr__(self, attr):
        return self.get_collection(attr)

    def __getitem__(self, key):
        return self.get_collection(key)

db = DBProxy()

class AsyncCollectionProxy:
    def __init__(self, name):
        self.name = name

    def _get_collection(self):
        return db.get_collection(self.name)

    def __getattr__(self, attr):
        return getattr(self._get_collection(), attr)

    def __getitem__(self, key):
        return self._get_collection()[key]

users_collection = AsyncCollectionProxy("users")
tasks_collection = AsyncCollectionProxy("tasks")
notifications_collection = AsyncCollectionProxy("notifications")
