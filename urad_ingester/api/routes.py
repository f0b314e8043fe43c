from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends

from ..storage.history import HistoryStore
from .schemas import HistoryEntryOut

router = APIRouter()


# Overridden by create_app() via app.dependency_overrides.
def get_history() -> HistoryStore:
    raise RuntimeError("History dependency not configured")


# plain def: runs on the worker threadpool, so a long snapshot never stalls the loop
@router.get("/", response_model=List[HistoryEntryOut])
def get_data(history: HistoryStore = Depends(get_history)):
    return [entry.to_dict() for entry in history.snapshot()]
