"""Base class for booking wizard steps."""

from abc import ABC, abstractmethod

from src.schemas.booking import BookingState


class BaseStep(ABC):
    """A wizard step knows which of its fields are missing or invalid."""

    @abstractmethod
    def validate(self, state: BookingState) -> dict[str, str]:
        """Check the fields this step collects.

        Args:
            state: Current wizard state

        Returns:
            Field name → error message for every failing field; empty if valid
        """
        ...
