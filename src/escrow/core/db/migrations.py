"""Reusable migration runner for both production and tests."""

import asyncio

from alembic.config import Config

from alembic import command


def run_migrations_sync() -> None:
    """Run Alembic migrations synchronously up to head."""
    alembic_cfg = Config("alembic.ini")
    command.upgrade(alembic_cfg, "head")


async def run_migrations_async() -> None:
    """Run Alembic migrations from async context without blocking the loop."""
    await asyncio.to_thread(run_migrations_sync)
