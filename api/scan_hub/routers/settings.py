from __future__ import annotations
from fastapi import APIRouter, Depends, HTTPException

from scan_hub.errors import ScanHubError, as_http_error
from scan_hub.models import SettingsState
from scan_hub.runtime import Hub, get_hub

router = APIRouter(tags=["settings"])


@router.get("/settings", response_model=SettingsState, response_model_by_alias=True)
def get_settings(hub: Hub = Depends(get_hub)) -> SettingsState:
    return hub.settings.current


@router.put("/settings", response_model=SettingsState, response_model_by_alias=True)
def put_settings(state: SettingsState, hub: Hub = Depends(get_hub)) -> SettingsState:
    try:
        return hub.settings.update(state)
    except ScanHubError as e:
        raise as_http_error(e) from e
    except OSError as e:
        raise HTTPException(500, detail=f"Cannot save settings: {e}") from e


@router.post("/settings/reset", response_model=SettingsState, response_model_by_alias=True)
def reset_settings(hub: Hub = Depends(get_hub)) -> SettingsState:
    return hub.settings.reset()
