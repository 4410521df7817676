# app/api/v1/deps.py
"""
FastAPI dependencies for the v1 API layer.

Routes receive repositories rather than a raw database handle so tests can
swap them out through ``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from app.core.db import get_db
from app.infrastructure.db.repositories.explorer_repository import ExplorerRepository
from app.infrastructure.db.repositories.gstr3b_repository import Gstr3bRepository


def get_explorer_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> ExplorerRepository:
    return ExplorerRepository(db)


def get_gstr3b_repository(db: AsyncIOMotorDatabase = Depends(get_db)) -> Gstr3bRepository:
    return Gstr3bRepository(db)
