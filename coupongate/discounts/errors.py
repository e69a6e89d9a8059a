from typing import Optional


class ProviderError(Exception):
    """The rule provider could not give an answer (network, auth, bad payload)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class MissingCredentialsError(ProviderError):
    pass
