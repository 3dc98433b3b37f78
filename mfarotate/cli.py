"""
Command-line interface for mfa-rotate.
"""

import argparse
import shutil
import sys
from datetime import datetime, timezone

from . import store
from .core import (
    CREDENTIALS_FILE_ENV,
    PROFILE_ENV,
    REGION_ENV,
    RotationConfig,
    current_expiration,
    rotate_profile,
    setup_logging,
)
from .exceptions import ConfigurationError, MFARotateError
from .expiration import describe_remaining, is_still_valid
from .fields import EXPIRATION_FORMAT


def print_setup_instructions():
    """Explain how to provide the profile, region and seed section."""
    print(
        f"Set {PROFILE_ENV} and {REGION_ENV} (or use --profile/--region) to continue.\n"
        f"Example:\n"
        f"  export {PROFILE_ENV}=<profile>\n"
        f"  export {REGION_ENV}=<region>\n"
        f"\n"
        f"The credentials file must contain a seed section for the profile:\n"
        f"  [<profile>-seed]\n"
        f"  aws_access_key_id = <aws_access_key_id>\n"
        f"  aws_secret_access_key = <aws_secret_access_key>\n"
        f"  aws_mfa_device = <aws_mfa_device>\n"
        f"  aws_mfa_duration = <seconds>\n"
        f"  aws_mfa_secret_key = <aws_mfa_secret_key>",
        file=sys.stderr,
    )


def confirm_rotation(expiration, now):
    """Ask whether to replace credentials that are still valid."""
    print(f"ℹ The current token is {describe_remaining(expiration, now)}.")
    try:
        answer = input("Do you want to continue and generate a new token? (y/n): ")
    except EOFError:
        return False
    return answer.strip().lower() == "y"


def show_status(config):
    """Print the validity of the profile's current credentials."""
    lines = store.load(config.credentials_file)
    now = datetime.now(timezone.utc)
    expiration = current_expiration(lines, config.profile)
    print(f"Profile '{config.profile}': {describe_remaining(expiration, now)}")
    return 0 if is_still_valid(expiration, now) else 1


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Rotate temporary MFA-authenticated AWS credentials for a profile",
        epilog="Examples:\n"
        "  mfa-rotate --profile alice --region us-east-1   # Rotate credentials for 'alice'\n"
        "  mfa-rotate --status                             # Show current token validity\n"
        "  mfa-rotate --force                              # Rotate without asking",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--profile",
        default=None,
        help=f"Profile to rotate (default: ${PROFILE_ENV}). MFA settings are read from [<profile>-seed]",
    )
    parser.add_argument(
        "--region",
        default=None,
        help=f"AWS region for the STS call (default: ${REGION_ENV})",
    )
    parser.add_argument(
        "--credentials-file",
        default=None,
        help=f"Credentials file to update (default: ${CREDENTIALS_FILE_ENV} or ~/.aws/credentials)",
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Rotate even if the current token is still valid, without asking",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Only report whether the current token is still valid (exit 0 if valid, 1 otherwise)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to stderr",
    )

    args = parser.parse_args(argv)
    setup_logging(debug=args.debug)

    try:
        config = RotationConfig.from_environment(
            profile=args.profile,
            region=args.region,
            credentials_file=args.credentials_file,
        )
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        print_setup_instructions()
        return 1

    if shutil.which("aws") is None:
        print(
            "⚠ AWS CLI is not installed. Install it to use the rotated profile:\n"
            "  https://docs.aws.amazon.com/cli/latest/userguide/install-cliv2.html",
            file=sys.stderr,
        )

    try:
        if args.status:
            return show_status(config)

        confirm = None if args.force else confirm_rotation
        record = rotate_profile(config, confirm=confirm)
    except (MFARotateError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if record is None:
        print("Operation aborted.")
        return 0

    print(f"✓ Credentials saved for profile '{config.profile}'")
    print(f"✓ Credentials expire at: {record.expiration.strftime(EXPIRATION_FORMAT)}")
    print(f"ℹ Example: aws --profile {config.profile} s3 ls")
    return 0


if __name__ == "__main__":
    sys.exit(main())
