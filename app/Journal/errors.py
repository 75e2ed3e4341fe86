"""Error types raised by the journal collaborators and caught by the wizard"""


class JournalError(Exception):
    """Base class for journal errors"""


class StoreUnavailableError(JournalError):
    """Raised when a storage collaborator cannot be reached or fails"""


class StaleStateError(JournalError):
    """Raised when a conditional conversation write loses to a newer write"""

    def __init__(self, user_id: int, expected_version: int, actual_version: int):
        self.user_id = user_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Conversation for user {user_id} changed "
            f"(expected version {expected_version}, found {actual_version})"
        )


class MarketDataError(JournalError):
    """Raised when the market data provider fails"""
