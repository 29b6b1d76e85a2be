"""Enhancement history API: audit ledger listing and export."""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends

from catalog_enhancer.history import HistoryLedger

from app.deps import get_ledger

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/history", tags=["history"])

Ledger = Annotated[HistoryLedger, Depends(get_ledger)]


@router.get("")
def list_history(
    ledger: Ledger,
    product_id: Optional[str] = None,
    field: Optional[str] = None,
) -> dict:
    """Newest entries first, optionally narrowed to one product and/or field."""
    entries = [
        e for e in ledger.entries()
        if (product_id is None or e.product_id == product_id)
        and (field is None or e.field == field)
    ]
    entries.reverse()
    return {"entries": [e.to_dict() for e in entries], "total": len(entries)}


@router.get("/export")
def export_history(ledger: Ledger) -> dict:
    return ledger.export()
