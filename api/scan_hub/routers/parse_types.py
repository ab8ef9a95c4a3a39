from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, HTTPException

from scan_hub.errors import ScanHubError, as_http_error
from scan_hub.models import CodeIn, NameIn, ParseOut, ParseType, ScanErrorOut
from scan_hub.runtime import Hub, get_hub
from scan_hub.services.messages import error_message
from scan_hub.services.scan_processor import ScanResult, ScanSuccess
from scan_hub.services.settings_service import UiContext

router = APIRouter(tags=["parse-types"])


def parse_out(result: ScanResult, ui: UiContext) -> ParseOut:
    if isinstance(result, ScanSuccess):
        return ParseOut(
            ok=True,
            code=result.code,
            group_key=result.group_key,
            sum_values=result.sum_values,
            info_values=result.info_values,
        )
    return ParseOut(
        ok=False,
        code=result.code,
        error=ScanErrorOut(
            code=result.error.error_code,
            message=error_message(result.error, ui.language),
            field_title=result.error.field_title,
        ),
    )


@router.get("/parse-types", response_model=List[ParseType], response_model_by_alias=True)
def list_parse_types(hub: Hub = Depends(get_hub)):
    return hub.parse_types.list_all()


@router.post("/parse-types", response_model=ParseType, response_model_by_alias=True, status_code=201)
def create_parse_type(body: NameIn, hub: Hub = Depends(get_hub)):
    return hub.parse_types.create(body.name.strip())


@router.get("/parse-types/{parse_type_id}", response_model=ParseType, response_model_by_alias=True)
def get_parse_type(parse_type_id: str, hub: Hub = Depends(get_hub)):
    try:
        return hub.parse_types.get(parse_type_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.put("/parse-types/{parse_type_id}", response_model=ParseType, response_model_by_alias=True)
def put_parse_type(parse_type_id: str, body: ParseType, hub: Hub = Depends(get_hub)):
    if body.id != parse_type_id:
        raise HTTPException(400, detail="Parse type id in body does not match the URL")
    try:
        return hub.parse_types.save(body)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.delete("/parse-types/{parse_type_id}", status_code=204)
def delete_parse_type(parse_type_id: str, hub: Hub = Depends(get_hub)):
    try:
        hub.parse_types.delete(parse_type_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.post("/parse-types/{parse_type_id}/parse", response_model=ParseOut, response_model_by_alias=True)
def parse_code(parse_type_id: str, body: CodeIn, hub: Hub = Depends(get_hub)):
    """Dry run: parse a code without recording it anywhere. Parse errors come back in the body."""
    try:
        result = hub.parse_types.parse(parse_type_id, body.code)
    except ScanHubError as e:
        raise as_http_error(e) from e
    return parse_out(result, hub.settings.ui_context())
