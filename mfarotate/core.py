"""
Core credential rotation functions for mfa-rotate.
"""

import logging
import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone

import boto3
import botocore.session
import pyotp
from botocore.exceptions import BotoCoreError, ClientError

from . import store
from .exceptions import (
    ConfigurationError,
    ExpirationParseError,
    ExternalServiceError,
)
from .expiration import is_still_valid
from .fields import (
    CredentialRecord,
    decode_mfa_parameters,
    encode_credential_record,
    parse_duration,
    read_expiration,
)

logger = logging.getLogger(__name__)

SEED_SUFFIX = "-seed"
PROFILE_ENV = "AWS_MFA_PROFILE"
REGION_ENV = "AWS_MFA_REGION"
CREDENTIALS_FILE_ENV = "AWS_SHARED_CREDENTIALS_FILE"


def get_aws_credentials_path():
    """Get the AWS credentials file path."""
    override = os.environ.get(CREDENTIALS_FILE_ENV)
    if override:
        return os.path.expanduser(override)
    return os.path.expanduser("~/.aws/credentials")


def seed_section_name(profile):
    """Name of the section holding the MFA seed for a profile."""
    return f"{profile}{SEED_SUFFIX}"


def setup_logging(debug=False):
    """Send mfarotate log records to stderr, verbose in debug mode."""
    root = logging.getLogger("mfarotate")
    root.setLevel(logging.DEBUG if debug else logging.WARNING)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root.handlers = [handler]
    root.propagate = False


@dataclass
class RotationConfig:
    """Profile, region and credentials file used for one rotation."""

    profile: str
    region: str
    credentials_file: str = field(default_factory=get_aws_credentials_path)

    def __post_init__(self):
        missing = []
        if not self.profile:
            missing.append(f"profile (set {PROFILE_ENV} or use --profile)")
        if not self.region:
            missing.append(f"region (set {REGION_ENV} or use --region)")
        if missing:
            raise ConfigurationError("Missing " + " and ".join(missing))

    @property
    def seed_section(self):
        return seed_section_name(self.profile)

    @classmethod
    def from_environment(cls, environ=None, profile=None, region=None, credentials_file=None):
        """
        Build a config from explicit values, falling back to the environment.

        Args:
            environ: Mapping to read from (default: os.environ)
            profile: Overrides AWS_MFA_PROFILE
            region: Overrides AWS_MFA_REGION
            credentials_file: Overrides the default credentials file path

        Raises:
            ConfigurationError: If profile or region ends up empty
        """
        environ = os.environ if environ is None else environ
        return cls(
            profile=profile or environ.get(PROFILE_ENV, ""),
            region=region or environ.get(REGION_ENV, ""),
            credentials_file=credentials_file or get_aws_credentials_path(),
        )


def generate_mfa_token(secret, now=None):
    """
    Generate the current TOTP code for a base32 MFA secret.

    Raises:
        ExternalServiceError: If the secret is empty or not valid base32
    """
    if not secret:
        raise ExternalServiceError("MFA secret key is empty")
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        return pyotp.TOTP(secret).at(now)
    except (ValueError, TypeError) as e:
        raise ExternalServiceError(f"Failed to generate TOTP code: {e}") from e


def create_sts_client(lines, config):
    """
    Create an STS client for the long-term identity of a profile.

    Long-term keys stored in the seed section are used directly. Without them
    boto3 resolves the seed section name as a named profile, looked up in the
    same credentials file the rotation reads and writes.
    """
    values = store.read_section(lines, config.seed_section) or {}
    access_key = values.get("aws_access_key_id")
    secret_key = values.get("aws_secret_access_key")

    try:
        if access_key and secret_key:
            logger.debug("Using long-term keys from [%s]", config.seed_section)
            session = boto3.Session(
                aws_access_key_id=access_key,
                aws_secret_access_key=secret_key,
                region_name=config.region,
            )
        else:
            logger.debug(
                "Using boto3 profile '%s' from %s", config.seed_section, config.credentials_file
            )
            core_session = botocore.session.Session()
            core_session.set_config_variable("credentials_file", config.credentials_file)
            session = boto3.Session(
                botocore_session=core_session,
                profile_name=config.seed_section,
                region_name=config.region,
            )
        return session.client("sts")
    except BotoCoreError as e:
        raise ExternalServiceError(f"Failed to create STS client: {e}") from e


def get_session_token(sts_client, params, token_code):
    """
    Exchange a TOTP code for temporary credentials using GetSessionToken.

    Args:
        sts_client: boto3 STS client
        params: MFAParameters from the seed section
        token_code: Current one-time code

    Returns:
        CredentialRecord for the new session

    Raises:
        ExternalServiceError: If STS rejects the request or cannot be reached
    """
    request = {"SerialNumber": params.device, "TokenCode": token_code}
    if params.duration:
        request["DurationSeconds"] = parse_duration(params.duration)

    logger.debug(
        "Calling GetSessionToken for %s (duration=%s)",
        params.device,
        request.get("DurationSeconds", "default"),
    )
    try:
        response = sts_client.get_session_token(**request)
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        raise ExternalServiceError(f"GetSessionToken failed ({error_code}): {e}") from e
    except BotoCoreError as e:
        raise ExternalServiceError(f"AWS connection failed: {e}") from e

    credentials = response["Credentials"]
    return CredentialRecord(
        access_key_id=credentials["AccessKeyId"],
        secret_access_key=credentials["SecretAccessKey"],
        mfa_device=params.device,
        mfa_duration=params.duration,
        mfa_secret_key=params.secret_key,
        assumed_role=False,
        session_token=credentials["SessionToken"],
        expiration=credentials["Expiration"],
    )


def save_credentials(path, profile, record, lines=None):
    """
    Write a credential record to the profile section of the credentials file.

    Args:
        path: Credentials file path
        profile: Destination section name
        record: CredentialRecord to store
        lines: Already loaded document; the file is read when omitted and
            treated as empty if it does not exist yet

    Returns:
        list of str: The document that was written
    """
    if lines is None:
        try:
            lines = store.load(path)
        except FileNotFoundError:
            lines = []

    section = [store.section_header(profile)] + encode_credential_record(record)
    updated = store.replace_section(lines, profile, section)
    store.write(path, updated)
    return updated


def current_expiration(lines, profile):
    """Expiration of the profile's current credentials, None if unknown."""
    try:
        return read_expiration(lines, profile)
    except ExpirationParseError as e:
        logger.warning("Ignoring stored expiration: %s", e)
        return None


def rotate_profile(config, confirm=None, now=None, sts_client=None, token_generator=None):
    """
    Replace a profile's temporary credentials with a fresh MFA session.

    Args:
        config: RotationConfig
        confirm: Called as confirm(expiration, now) when the current credentials
            are still valid; returning False aborts the rotation.
            Without it the rotation always proceeds.
        now: Current time (default: now, UTC)
        sts_client: STS client to use (default: built from the seed section)
        token_generator: Callable(secret, now) -> code (default: generate_mfa_token)

    Returns:
        CredentialRecord written to the file, or None if aborted

    Raises:
        OSError: If the credentials file cannot be read or written
        SectionNotFoundError: If the seed section is missing
        DurationParseError: If the seed duration is malformed
        ExternalServiceError: If code generation or the STS call fails
    """
    if now is None:
        now = datetime.now(timezone.utc)
    if token_generator is None:
        token_generator = generate_mfa_token

    lines = store.load(config.credentials_file)

    expiration = current_expiration(lines, config.profile)
    if expiration is None:
        logger.info("Profile '%s' has no current credentials", config.profile)
    elif is_still_valid(expiration, now) and confirm is not None:
        if not confirm(expiration, now):
            logger.info("Rotation of '%s' aborted", config.profile)
            return None

    params = decode_mfa_parameters(lines, config.seed_section)
    token_code = token_generator(params.secret_key, now)

    if sts_client is None:
        sts_client = create_sts_client(lines, config)
    record = get_session_token(sts_client, params, token_code)

    save_credentials(config.credentials_file, config.profile, record, lines=lines)
    logger.info("Saved new credentials for '%s'", config.profile)
    return record
