"""Error types shared across the nutrition log."""


class PersistenceError(RuntimeError):
    """Raised when a durable read or write fails."""
