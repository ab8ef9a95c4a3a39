from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from scan_hub.errors import ScanHubError, as_http_error
from scan_hub.models import CodeIn, NameIn, ScanList, ScanListIn, ScanLogEntry, ScanOut
from scan_hub.routers.parse_types import parse_out
from scan_hub.runtime import Hub, get_hub
from scan_hub.services.export import summary_csv

router = APIRouter(tags=["scan-lists"])


@router.get("/scan-lists", response_model=List[ScanList], response_model_by_alias=True)
def list_scan_lists(hub: Hub = Depends(get_hub)):
    return hub.scan_lists.list_all()


@router.post("/scan-lists", response_model=ScanList, response_model_by_alias=True, status_code=201)
def create_scan_list(body: ScanListIn, hub: Hub = Depends(get_hub)):
    try:
        return hub.scan_lists.create(body.name, body.parse_type_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.get("/scan-lists/{list_id}", response_model=ScanList, response_model_by_alias=True)
def get_scan_list(list_id: str, hub: Hub = Depends(get_hub)):
    try:
        return hub.scan_lists.summary(list_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.put("/scan-lists/{list_id}", response_model=ScanList, response_model_by_alias=True)
def rename_scan_list(list_id: str, body: NameIn, hub: Hub = Depends(get_hub)):
    try:
        return hub.scan_lists.rename(list_id, body.name)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.delete("/scan-lists/{list_id}", status_code=204)
def delete_scan_list(list_id: str, hub: Hub = Depends(get_hub)):
    try:
        hub.scan_lists.delete(list_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.post("/scan-lists/{list_id}/scan", response_model=ScanOut, response_model_by_alias=True)
def scan_code(list_id: str, body: CodeIn, hub: Hub = Depends(get_hub)):
    """Record one scanned code. A rejected code is still logged and answered with 200."""
    try:
        outcome = hub.scan_lists.scan(list_id, body.code)
    except ScanHubError as e:
        raise as_http_error(e) from e
    return ScanOut(
        result=parse_out(outcome.result, hub.settings.ui_context()),
        entry=outcome.entry,
        scan_list=outcome.scan_list,
    )


@router.get("/scan-lists/{list_id}/log", response_model=List[ScanLogEntry], response_model_by_alias=True)
def get_scan_log(list_id: str, newest_first: bool = Query(True), hub: Hub = Depends(get_hub)):
    try:
        entries = hub.scan_lists.log(list_id)
    except ScanHubError as e:
        raise as_http_error(e) from e
    return list(reversed(entries)) if newest_first else entries


@router.delete("/scan-lists/{list_id}/entries/{entry_id}", response_model=ScanList, response_model_by_alias=True)
def remove_scan_entry(list_id: str, entry_id: str, hub: Hub = Depends(get_hub)):
    try:
        return hub.scan_lists.remove_entry(list_id, entry_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.post("/scan-lists/{list_id}/clear", response_model=ScanList, response_model_by_alias=True)
def clear_scan_list(list_id: str, hub: Hub = Depends(get_hub)):
    try:
        return hub.scan_lists.clear(list_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.get("/scan-lists/{list_id}/export.csv")
def export_scan_list(list_id: str, hub: Hub = Depends(get_hub)):
    try:
        scan_list = hub.scan_lists.summary(list_id)
        parse_type = hub.parse_types.get(scan_list.parse_type_id)
    except ScanHubError as e:
        raise as_http_error(e) from e
    return Response(
        content=summary_csv(scan_list, parse_type),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="scan-list-{list_id}.csv"'},
    )
