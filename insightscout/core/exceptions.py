# core/exceptions.py

"""
Domain exceptions raised below the router layer
"""


class ProviderError(Exception):
    """An external enrichment source failed for one company"""


class ProviderNotConfiguredError(ProviderError):
    """A required API key is missing"""


class InsufficientCreditsError(ProviderError):
    """The contact API account has run out of credits"""


class UnsupportedFileError(ValueError):
    """An uploaded company list could not be accepted or parsed"""
