"""
Exceptions raised by mfa-rotate.

File access problems are left as the built-in OSError family.
"""


class MFARotateError(Exception):
    """Base class for all mfa-rotate errors."""


class ConfigurationError(MFARotateError, ValueError):
    """Profile or region missing from the rotation configuration."""


class SectionNotFoundError(MFARotateError, KeyError):
    """A required section is absent from the credentials file."""

    def __init__(self, section):
        self.section = section
        super().__init__(f"Section '[{section}]' not found in credentials file")

    def __str__(self):
        return self.args[0]


class DurationParseError(MFARotateError, ValueError):
    """A duration value could not be parsed."""


class ExpirationParseError(MFARotateError, ValueError):
    """A stored expiration timestamp could not be parsed."""


class ExternalServiceError(MFARotateError):
    """The STS call or the one-time code generation failed."""
