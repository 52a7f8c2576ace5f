"""Service layer exceptions."""


class AIServiceError(Exception):
    """A call to the remote AI provider failed or returned nothing usable."""
