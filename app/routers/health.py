from fastapi import APIRouter
from fastapi.responses import PlainTextResponse
import datetime

router = APIRouter()


@router.get("/", response_class=PlainTextResponse)
async def root():
    return "API running!"


@router.get("/health")
async def health():
    return {"status": "ok", "time": datetime.datetime.now(datetime.timezone.utc).isoformat()}
