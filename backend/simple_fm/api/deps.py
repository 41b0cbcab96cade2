"""
Shared FastAPI dependencies
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from simple_fm.core.settings import settings
from simple_fm.db.session import get_db
from simple_fm.services.inventory_service import InventoryStore


def get_store(db: Session = Depends(get_db)) -> InventoryStore:
    """InventoryStore bound to the request's session"""
    return InventoryStore(db, degrade_reads=settings.DEGRADE_READS_TO_EMPTY)
