#!/usr/bin/env python3
"""
Admin password helper for LexPix.

    python generate_password_hash.py            print an ADMIN_PASSWORD_HASH line for .env
    python generate_password_hash.py --check H  check a password against hash H
"""
import getpass
import sys

from lexpix.utils.auth import hash_password, verify_password


def prompt_new_password() -> str:
    password = getpass.getpass("Admin password: ")
    if len(password) < 6:
        raise SystemExit("Error: password must be at least 6 characters")
    if getpass.getpass("Confirm password: ") != password:
        raise SystemExit("Error: passwords do not match")
    return password


def main(argv) -> int:
    if len(argv) >= 2 and argv[0] == "--check":
        password = getpass.getpass("Password to check: ")
        if verify_password(password, argv[1]):
            print("Password matches.")
            return 0
        print("Password does not match. Generate a new hash and update ADMIN_PASSWORD_HASH in .env.")
        return 1

    password = prompt_new_password()
    print("Generating hash...")
    print()
    print(f"ADMIN_PASSWORD_HASH={hash_password(password)}")
    print()
    print("Keep this hash out of version control.")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
