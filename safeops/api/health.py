"""Unauthenticated endpoints: liveness and the demo greeting."""
from fastapi import APIRouter
from pydantic import BaseModel

router = APIRouter()


class HealthResponse(BaseModel):
    status: str = "ok"


class HelloResponse(BaseModel):
    message: str


@router.get("/health", response_model=HealthResponse, tags=["health"])
async def health_check():
    # liveness only; never touches the database
    return HealthResponse()


@router.get("/api/hello", response_model=HelloResponse, tags=["hello"])
async def hello():
    return HelloResponse(message="Hello from SafeOps API")
