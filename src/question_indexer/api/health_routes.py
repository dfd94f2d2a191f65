from fastapi import APIRouter

from ..config import settings
from .models import HealthResponse

router = APIRouter(tags=["health"])

@router.get("/health", response_model=HealthResponse)
def health():
    return {"status": "ok", "index": settings.pinecone_index_name}
