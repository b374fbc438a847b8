from motor.motor_asyncio import AsyncIOMotorClient
from .config import settings

client = AsyncIOMotorClient(settings.mongo_uri)
db = client[settings.mongo_db]

activity_coll = db["useractivities"]
item_weights_coll = db["useritemweights"]
