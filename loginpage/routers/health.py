# loginpage/routers/health.py
from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/")
async def root():
    return {"status": "ok"}
