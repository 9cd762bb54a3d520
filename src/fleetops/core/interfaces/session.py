from abc import ABC, abstractmethod


class SessionPort(ABC):
    """Provides the bearer token attached to every platform request.

    Implementations must be safe to share between concurrent requests.
    """

    @abstractmethod
    def get_token(self) -> str:
        pass
