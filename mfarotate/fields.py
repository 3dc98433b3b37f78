"""
Typed records read from and written to credentials file sections.

The seed section stores ``aws_mfa_duration`` as whole seconds, while the
rotated profile section stores it as a duration string such as ``1h0m0s``.
Both conventions are kept as-is because other tools read the file.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone

from .exceptions import DurationParseError, ExpirationParseError, SectionNotFoundError
from .store import find_section, read_section, section_end

logger = logging.getLogger(__name__)

EXPIRATION_FORMAT = "%Y-%m-%d %H:%M:%S"

MFA_DEVICE_KEY = "aws_mfa_device"
MFA_DURATION_KEY = "aws_mfa_duration"
MFA_SECRET_KEY = "aws_mfa_secret_key"

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DURATION_PART_RE = re.compile(r"([0-9]+(?:\.[0-9]*)?|\.[0-9]+)(h|m|s)")
_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


@dataclass
class MFAParameters:
    """MFA settings read from a profile's seed section."""

    device: str = ""
    duration: str = ""
    secret_key: str = ""


@dataclass
class CredentialRecord:
    """Temporary credentials as written to the profile section."""

    access_key_id: str
    secret_access_key: str
    mfa_device: str
    mfa_duration: str
    mfa_secret_key: str
    assumed_role: bool
    session_token: str
    expiration: datetime


def format_duration(seconds):
    """
    Format a number of seconds as a duration string.

    Examples: 3600 -> "1h0m0s", 90 -> "1m30s", 45 -> "45s", 0 -> "0s".
    """
    if seconds == 0:
        return "0s"

    sign = "-" if seconds < 0 else ""
    hours, rest = divmod(abs(seconds), 3600)
    minutes, secs = divmod(rest, 60)

    if hours:
        return f"{sign}{hours}h{minutes}m{secs}s"
    if minutes:
        return f"{sign}{minutes}m{secs}s"
    return f"{sign}{secs}s"


def parse_duration(text):
    """
    Parse a duration string made of h/m/s components into whole seconds.

    Accepts the output of format_duration as well as forms like "90m" or
    "1.5h". Fractions of a second are truncated.

    Raises:
        DurationParseError: If the text is not a valid duration
    """
    value = text.strip()
    sign = 1
    if value[:1] in ("+", "-"):
        sign = -1 if value[0] == "-" else 1
        value = value[1:]

    if value == "0":
        return 0
    if not value:
        raise DurationParseError(f"Invalid duration: '{text}'")

    total = 0.0
    pos = 0
    for match in _DURATION_PART_RE.finditer(value):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos != len(value):
        raise DurationParseError(f"Invalid duration: '{text}'")

    return sign * int(total)


def decode_mfa_parameters(lines, section_name):
    """
    Read the MFA device, duration and secret from a seed section.

    Unknown keys and lines without ``=`` are ignored. The duration is stored
    as integer seconds and returned as a duration string.

    Args:
        lines: Document lines
        section_name: Name of the seed section

    Returns:
        MFAParameters

    Raises:
        SectionNotFoundError: If the section does not exist
        DurationParseError: If aws_mfa_duration is not an integer
    """
    index, found = find_section(lines, section_name)
    if not found:
        raise SectionNotFoundError(section_name)

    params = MFAParameters()
    for line in lines[index + 1 : section_end(lines, index)]:
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip()

        if key == MFA_DEVICE_KEY:
            params.device = value
        elif key == MFA_DURATION_KEY:
            if not _INTEGER_RE.fullmatch(value):
                raise DurationParseError(
                    f"Invalid {MFA_DURATION_KEY} '{value}' in [{section_name}]: "
                    f"expected a whole number of seconds"
                )
            params.duration = format_duration(int(value))
        elif key == MFA_SECRET_KEY:
            params.secret_key = value

    logger.debug(
        "Read MFA parameters from [%s] (device=%s, duration=%s)",
        section_name,
        params.device,
        params.duration or "default",
    )
    return params


def encode_credential_record(record):
    """Format a CredentialRecord as the eight ``key = value`` lines of a profile."""
    return [
        f"aws_access_key_id = {record.access_key_id}",
        f"aws_secret_access_key = {record.secret_access_key}",
        f"{MFA_DEVICE_KEY} = {record.mfa_device}",
        f"{MFA_DURATION_KEY} = {record.mfa_duration}",
        f"{MFA_SECRET_KEY} = {record.mfa_secret_key}",
        f"assumed_role = {'true' if record.assumed_role else 'false'}",
        f"aws_session_token = {record.session_token}",
        f"expiration = {record.expiration.strftime(EXPIRATION_FORMAT)}",
    ]


def read_expiration(lines, profile):
    """
    Read the expiration timestamp of a profile section.

    The stored value carries no zone and is interpreted as UTC.

    Returns:
        datetime (UTC) or None if the section or field is missing

    Raises:
        ExpirationParseError: If the stored value is not YYYY-MM-DD HH:MM:SS
    """
    values = read_section(lines, profile)
    if values is None or "expiration" not in values:
        return None

    try:
        expiration = datetime.strptime(values["expiration"], EXPIRATION_FORMAT)
    except ValueError as e:
        raise ExpirationParseError(
            f"Invalid expiration '{values['expiration']}' in [{profile}]: {e}"
        ) from e
    return expiration.replace(tzinfo=timezone.utc)
