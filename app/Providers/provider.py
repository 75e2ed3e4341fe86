from abc import ABC, abstractmethod


class Provider(ABC):
    """Abstract base class for long-running bot front ends."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return provider name identifier (e.g., "telegram_journal_bot")."""

    @abstractmethod
    async def start_monitoring(self) -> None:
        """Start polling or other background tasks."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop the provider and release its sessions."""
