from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from yuki.core.deps import get_db
from yuki.core.exceptions import DatabaseError, ProviderError
from yuki.schemas.settings import AppSettingsResponse, AppSettingsUpdate, ConnectionTestResponse
from yuki.services.providers import get_gateway
from yuki.services.settings_service import SettingsService

router = APIRouter()


@router.get("/", response_model=AppSettingsResponse)
def get_settings(db: Session = Depends(get_db)):
    return SettingsService.get_settings(db)


@router.put("/", response_model=AppSettingsResponse)
def update_settings(update: AppSettingsUpdate, db: Session = Depends(get_db)):
    try:
        return SettingsService.save_settings(db, update)
    except DatabaseError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/test-connection", response_model=ConnectionTestResponse)
def test_connection(db: Session = Depends(get_db)):
    """Send a tiny prompt to the configured provider"""
    try:
        gateway = get_gateway(SettingsService.require_provider_config(db))
    except ProviderError as e:
        return ConnectionTestResponse(ok=False, message=e.message)

    if gateway.test_connection():
        return ConnectionTestResponse(ok=True, message=f"Connected to {gateway.config.provider} ({gateway.config.model})")
    return ConnectionTestResponse(ok=False, message=f"Could not reach {gateway.config.provider}")
