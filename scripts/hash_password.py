#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from resumail.auth.passwords import hash_password


def main() -> None:
    pw1 = getpass("Admin password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")
    if not pw1:
        raise SystemExit("Empty password")
    print(f"ADMIN_PASSWORD_HASH={hash_password(pw1)}")


if __name__ == "__main__":
    main()
