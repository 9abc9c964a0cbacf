from fastapi import APIRouter

from url_dispatcher.schemas.responses import StatusOut

router = APIRouter(tags=["Status"])


@router.get("/status", response_model=StatusOut)
async def status() -> StatusOut:
    # liveness only: never touches the store or the queue
    return StatusOut()
