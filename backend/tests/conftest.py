"""Pytest configuration and fixtures."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database import create_engine_for, init_db
from schemas import ExtractedRecord, FleetEntry
from services.pipeline_service import PipelineService
from services.storage_service import StorageService


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test."""
    engine = create_engine_for(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def storage(session_factory):
    return StorageService(session_factory)


@pytest.fixture
def pipeline(storage):
    return PipelineService(storage)


def make_record(id: str, plate: str = "", tag: str = None, owner: str = "?", **extra) -> ExtractedRecord:
    return ExtractedRecord(
        id=id,
        plate=plate,
        tag=tag,
        owner=owner,
        amount=extra.pop("amount", 100.0),
        concept=extra.pop("concept", "Peaje"),
        **extra,
    )


def make_fleet(plate: str = "", owner: str = "ACME", tag: str = None, unit_code: str = None) -> FleetEntry:
    return FleetEntry(plate=plate, owner=owner, tag=tag, unit_code=unit_code)
