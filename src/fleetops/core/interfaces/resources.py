from abc import ABC, abstractmethod

from fleetops.core.models.resource import ResolvedResource


class ResourceResolverPort(ABC):
    @abstractmethod
    async def resolve(self, subject: str, resource_type: str) -> ResolvedResource:
        """Map a name/serial/identifier to the platform's canonical resource.

        Raises ResourceNotFoundError when the subject does not exist.
        """
        pass
