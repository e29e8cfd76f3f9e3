from typing import List, Optional
from fastapi import APIRouter, Depends, Query

from easybail.api.deps import get_outbox
from easybail.schemas.email import OutboxProcessResponse, QueuedEmailInDB
from easybail.services.email_outbox import EmailOutbox

router = APIRouter()


@router.get("/", response_model=List[QueuedEmailInDB])
async def read_outbox(
    status: Optional[str] = Query(None, description="Filter by 'pending', 'sent' or 'failed'"),
    limit: int = 100,
    outbox: EmailOutbox = Depends(get_outbox)
):
    """List queued emails, newest first."""
    return await outbox.list(status=status, limit=limit)


@router.post("/process", response_model=OutboxProcessResponse)
async def process_outbox(outbox: EmailOutbox = Depends(get_outbox)):
    """Attempt delivery of pending emails now."""
    sent = await outbox.process()
    return OutboxProcessResponse(sent=sent, pending=await outbox.pending_count())
