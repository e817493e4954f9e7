"""Abstract interface for consecutive counter persistence."""

from abc import ABC, abstractmethod

from facturacr.core.entities.sequence import Environment, SequenceScope


class ISequenceStore(ABC):
    """Interface for per-scope counter persistence."""

    @abstractmethod
    async def get_counter(self, scope: SequenceScope) -> int:
        """Get the last issued value for a scope (0 if none)."""
        pass

    @abstractmethod
    async def set_counter(self, scope: SequenceScope, value: int) -> None:
        """
        Persist the last issued value for a scope.

        Implementations shared between processes must refuse values that
        are not greater than the stored one (DuplicateConsecutiveError).
        """
        pass

    @abstractmethod
    async def reset_counter(self, scope: SequenceScope) -> None:
        """Start the scope's counter again at 0."""
        pass

    @abstractmethod
    async def get_active_environment(self, scope: SequenceScope) -> Environment | None:
        """Get the active environment for a scope, ignoring scope.environment."""
        pass

    @abstractmethod
    async def set_active_environment(self, scope: SequenceScope) -> None:
        """Mark scope.environment as the active one for the scope."""
        pass
