from fastapi import APIRouter

from app.core.timezone_utils import utcnow

router = APIRouter(tags=["Health"])


@router.get("/health")
def health():
    return {"status": "OK", "timestamp": utcnow().isoformat()}
