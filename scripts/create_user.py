#!/usr/bin/env python3
from __future__ import annotations

import os
from getpass import getpass
from pathlib import Path

from postboard.auth.accounts import create_account
from postboard.core.errors import DuplicateAccountError
from postboard.infra.db import init_db, make_engine, make_sessionmaker

DATA_DIR = Path(os.getenv("POSTBOARD_DATA_DIR", "data")).resolve()
DATABASE_URL = os.getenv("POSTBOARD_DATABASE_URL", f"sqlite:///{DATA_DIR / 'postboard.db'}")


def main() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    engine = make_engine(DATABASE_URL)
    init_db(engine)
    SessionLocal = make_sessionmaker(engine)

    username = input("Username: ").strip()
    email = input("Email: ").strip()

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    with SessionLocal() as db:
        try:
            account = create_account(db, username=username, email=email, password=pw1)
        except (ValueError, DuplicateAccountError) as e:
            raise SystemExit(str(e))

    print(f"OK -> account {account.id} ({account.username}) in {DATABASE_URL}")


if __name__ == "__main__":
    main()
