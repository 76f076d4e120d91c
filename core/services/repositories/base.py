"""Base repository with shared MongoDB collection."""

from pymongo.asynchronous.collection import AsyncCollection


class BaseRepository:
    """Base class for all repositories.

    The collection is injected by the application lifespan; repositories
    never open their own connections.
    """

    def __init__(self, collection: AsyncCollection) -> None:
        self.collection = collection
