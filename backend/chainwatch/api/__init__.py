"""API route definitions for the chain monitor."""

from fastapi import APIRouter

from .eth import router as eth_router
from .btc import router as btc_router
from .stream import router as stream_router


api_router = APIRouter()
api_router.include_router(eth_router)
api_router.include_router(btc_router)
api_router.include_router(stream_router)


__all__ = ["api_router"]
