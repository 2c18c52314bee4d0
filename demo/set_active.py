#!/usr/bin/env python3
"""
Activate or deactivate a user. Run on the server.

There is no endpoint for this; it's an operator action. Deactivating a
user also deletes all of their sessions, so their bearer tokens stop
working immediately.

Usage:
    python demo/set_active.py alice.smith@email.com --deactivate
    python demo/set_active.py alice.smith@email.com --activate
"""

import argparse
import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select  # noqa: E402

from banking_portal.database import AsyncSessionLocal, engine  # noqa: E402
from banking_portal.models import User  # noqa: E402
from banking_portal.services import auth_service  # noqa: E402


async def set_active(email: str, active: bool) -> bool:
    async with AsyncSessionLocal() as session:
        user_id = await session.scalar(select(User.id).where(User.email == email))
        found = user_id is not None and await auth_service.set_user_active(session, user_id, active)
        await session.commit()
    await engine.dispose()
    return found


def main() -> None:
    parser = argparse.ArgumentParser(description="Toggle a user's active flag")
    parser.add_argument("email")
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--activate", action="store_true")
    group.add_argument("--deactivate", action="store_true")
    args = parser.parse_args()

    if not asyncio.run(set_active(args.email, args.activate)):
        print(f"No user with email {args.email}")
        sys.exit(1)
    print(f"{args.email} is now {'active' if args.activate else 'deactivated'}")


if __name__ == "__main__":
    main()
