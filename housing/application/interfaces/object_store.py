from abc import ABC, abstractmethod

from housing.domain.entities.housing_share import MediaFile, MediaRef


class ObjectStore(ABC):
    """Port for the external store holding listing photos."""

    @abstractmethod
    async def upload(self, file: MediaFile) -> MediaRef:
        """Store the file and return a durable reference. Raises ObjectStoreError."""
        ...

    @abstractmethod
    async def delete(self, deletable_id: str) -> None:
        """Remove the object. Deleting an unknown id is not an error."""
        ...
