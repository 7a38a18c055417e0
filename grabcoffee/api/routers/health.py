from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/api/health")
def health():
    return {"status": "ok", "message": "Backend server is running"}


@router.get("/ping")
def ping():
    return {"message": "pong"}
