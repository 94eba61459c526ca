"""Command that issues a license key for a robot."""

from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from .issuer import Issuer, KeyLoadError
from .licenseformat import License


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="escapepod-license", description="Issue a signed license key."
    )
    parser.add_argument("-email", "--email", default="", help="The email address of the user")
    parser.add_argument(
        "-robot", "--robot", default="", help="the robot s/n.  NOTE:  use vic: prefix."
    )
    parser.add_argument(
        "-key", "--key", default="", help="path of the PEM file holding the signing key"
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Print a license key for the given user and robot; return the exit code."""
    parser = _parser()
    args = parser.parse_args(argv)

    if not args.email or not args.robot or not args.key:
        parser.print_help(sys.stderr)
        return 1

    try:
        with open(args.key, "rb") as handle:
            issuer = Issuer(handle.read())
    except (OSError, KeyLoadError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    request = License(email=args.email, bot=args.robot.lower())
    try:
        key = issuer.generate(request)
    except (ValueError, TypeError) as exc:
        print(f"Error: {exc}")
        return 1
    print(key)
    return 0


if __name__ == "__main__":
    sys.exit(main())