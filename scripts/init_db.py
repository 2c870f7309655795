#!/usr/bin/env python3
"""
Create the feedback backend tables and optionally seed an operator account.

Usage:
  python3 scripts/init_db.py
  python3 scripts/init_db.py --operator-email admin@example.org --role admin

Connection settings come from DATABASE_URL or DATABASE_HOST/PORT/USER/PASSWORD/NAME
(a backend .env file is loaded first when present).
"""

import argparse
import asyncio
import sys
from pathlib import Path

from dotenv import load_dotenv

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create feedback backend tables")
    parser.add_argument("--operator-email", help="Seed an active operator with this email")
    parser.add_argument("--operator-name", default=None, help="Full name for the seeded operator")
    parser.add_argument(
        "--role",
        default="admin",
        choices=["admin", "moderator", "viewer"],
        help="Role for the seeded operator (default: admin)",
    )
    return parser.parse_args()


async def init_db(args: argparse.Namespace) -> None:
    from sqlalchemy import select

    from libs.db import AsyncSessionLocal, engine
    from models import audit, directory, feedback, operator, pending_entry, survey  # noqa: F401
    from models.base import Base
    from models.operator import Operator

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    print(f"Tables ready: {', '.join(sorted(Base.metadata.tables))}")

    if args.operator_email:
        async with AsyncSessionLocal() as session:
            result = await session.execute(select(Operator).where(Operator.email == args.operator_email))
            if result.scalar_one_or_none() is not None:
                print(f"Operator {args.operator_email} already exists")
            else:
                session.add(
                    Operator(email=args.operator_email, full_name=args.operator_name, role=args.role)
                )
                await session.commit()
                print(f"Seeded {args.role} {args.operator_email}")

    await engine.dispose()


def main() -> int:
    backend_env = ROOT / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

    asyncio.run(init_db(parse_args()))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
