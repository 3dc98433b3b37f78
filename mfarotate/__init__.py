"""
mfa-rotate: rotate temporary MFA-authenticated AWS credentials for a profile.

A Python CLI utility that reads an MFA seed section from the shared AWS
credentials file, generates a TOTP code, exchanges it for temporary
credentials with STS GetSessionToken and writes them to the plain profile
section, leaving every other section of the file untouched.

Key features:
- Section-level rewrites that preserve unknown fields and formatting
- TOTP code generation from a stored base32 secret
- Expiration check with confirmation before replacing valid credentials
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .core import (
    RotationConfig,
    generate_mfa_token,
    get_aws_credentials_path,
    get_session_token,
    rotate_profile,
    save_credentials,
    seed_section_name,
)
from .exceptions import (
    ConfigurationError,
    DurationParseError,
    ExpirationParseError,
    ExternalServiceError,
    MFARotateError,
    SectionNotFoundError,
)
from .expiration import describe_remaining, is_still_valid, remaining_hours
from .fields import (
    CredentialRecord,
    MFAParameters,
    decode_mfa_parameters,
    encode_credential_record,
    format_duration,
    parse_duration,
    read_expiration,
)
from .store import find_section, load, replace_section, section_end, write

__all__ = [
    # Rotation workflow
    "RotationConfig",
    "rotate_profile",
    "save_credentials",
    "get_session_token",
    "generate_mfa_token",
    "get_aws_credentials_path",
    "seed_section_name",
    # Profile store
    "load",
    "find_section",
    "section_end",
    "replace_section",
    "write",
    # Field codec
    "CredentialRecord",
    "MFAParameters",
    "decode_mfa_parameters",
    "encode_credential_record",
    "format_duration",
    "parse_duration",
    "read_expiration",
    # Expiration policy
    "is_still_valid",
    "remaining_hours",
    "describe_remaining",
    # Errors
    "MFARotateError",
    "ConfigurationError",
    "SectionNotFoundError",
    "DurationParseError",
    "ExpirationParseError",
    "ExternalServiceError",
]
