from typing import Dict, Optional
from motor.motor_asyncio import AsyncIOMotorCollection


class RecipientScopedCollection:
    """
    Wraps a motor collection to enforce recipient ownership on all queries.
    Holds even if authorization upstream is bypassed: every filter a caller
    builds is narrowed to the owning recipient before it reaches the driver.
    """
    def __init__(self, collection: AsyncIOMotorCollection, recipient_id: str, field_name: str = "recipient"):
        if not recipient_id:
            raise ValueError("recipient_id is required for a scoped collection")
        self._collection = collection
        self.recipient_id = recipient_id
        self.field_name = field_name

    def _scope_filter(self) -> Dict[str, str]:
        return {self.field_name: self.recipient_id}

    def _merge_filter(self, filter: Optional[Dict] = None) -> Dict:
        """Merges caller filter with scope filter."""
        # An explicit recipient in the caller filter is overwritten back (Guardrail)
        return {**(filter or {}), **self._scope_filter()}

    def find(self, filter: Optional[Dict] = None, *args, **kwargs):
        return self._collection.find(self._merge_filter(filter), *args, **kwargs)

    async def find_one(self, filter: Optional[Dict] = None, *args, **kwargs) -> Optional[Dict]:
        return await self._collection.find_one(self._merge_filter(filter), *args, **kwargs)

    async def count_documents(self, filter: Optional[Dict] = None, *args, **kwargs) -> int:
        return await self._collection.count_documents(self._merge_filter(filter), *args, **kwargs)

    async def find_one_and_update(self, filter: Dict, update: Dict, *args, **kwargs):
        return await self._collection.find_one_and_update(self._merge_filter(filter), update, *args, **kwargs)

    async def update_many(self, filter: Dict, update: Dict, *args, **kwargs):
        return await self._collection.update_many(self._merge_filter(filter), update, *args, **kwargs)

    async def delete_one(self, filter: Dict, *args, **kwargs):
        return await self._collection.delete_one(self._merge_filter(filter), *args, **kwargs)
