from abc import ABC, abstractmethod
from .types import ModelRequest, ModelResponse


class ModelBackend(ABC):
    """
    Abstract completion boundary.
    The reply generator depends ONLY on this interface.
    """

    @abstractmethod
    def generate(self, request: ModelRequest) -> ModelResponse:
        """Produce a completion. Failures come back as a non-success status."""
        raise NotImplementedError
