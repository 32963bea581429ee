"""Tests for the database manager's session scope and connectivity checks."""

import pytest
from sqlalchemy import select

from database.connection import DatabaseManager
from database.models import Deployment, DeploymentLog
from exceptions import DatabaseConnectionError, DatabaseIntegrityError


async def test_check_connection(db_manager):
    assert await db_manager.check_connection() is True


async def test_session_commits(db_manager):
    async with db_manager.session() as session:
        session.add(Deployment(name="web", display_name="Web", url="https://web.example.com"))

    async with db_manager.session() as session:
        names = (await session.execute(select(Deployment.name))).scalars().all()

    assert names == ["web"]


async def test_session_maps_integrity_error(db_manager):
    with pytest.raises(DatabaseIntegrityError):
        async with db_manager.session() as session:
            session.add(
                DeploymentLog(
                    deployment_id="missing", log_type="created", message="orphan", meta={}
                )
            )

    async with db_manager.session() as session:
        rows = (await session.execute(select(DeploymentLog))).scalars().all()

    assert rows == []


async def test_session_rolls_back_on_error(db_manager):
    with pytest.raises(RuntimeError):
        async with db_manager.session() as session:
            session.add(Deployment(name="web", display_name="Web", url="https://web.example.com"))
            await session.flush()
            raise RuntimeError("abort")

    async with db_manager.session() as session:
        rows = (await session.execute(select(Deployment))).scalars().all()

    assert rows == []


async def test_session_requires_initialize(settings):
    manager = DatabaseManager(settings.database)

    with pytest.raises(DatabaseConnectionError):
        async with manager.session():
            pass
