from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends

from scan_hub.errors import ScanHubError, as_http_error
from scan_hub.models import Product, ProductIn
from scan_hub.runtime import Hub, get_hub

router = APIRouter(tags=["products"])


@router.get("/products", response_model=List[Product], response_model_by_alias=True)
def list_products(hub: Hub = Depends(get_hub)):
    return hub.products.list_all()


@router.post("/products", response_model=Product, response_model_by_alias=True, status_code=201)
def create_product(body: ProductIn, hub: Hub = Depends(get_hub)):
    product = hub.products.create(body.name.strip(), body.aliases)
    hub.scan_lists.refresh_products()
    return product


@router.get("/products/{product_id}", response_model=Product, response_model_by_alias=True)
def get_product(product_id: str, hub: Hub = Depends(get_hub)):
    try:
        return hub.products.get(product_id)
    except ScanHubError as e:
        raise as_http_error(e) from e


@router.put("/products/{product_id}", response_model=Product, response_model_by_alias=True)
def put_product(product_id: str, body: ProductIn, hub: Hub = Depends(get_hub)):
    try:
        product = hub.products.update(product_id, body.name.strip(), body.aliases)
    except ScanHubError as e:
        raise as_http_error(e) from e
    hub.scan_lists.refresh_products()
    return product


@router.delete("/products/{product_id}", status_code=204)
def delete_product(product_id: str, hub: Hub = Depends(get_hub)):
    try:
        hub.products.delete(product_id)
    except ScanHubError as e:
        raise as_http_error(e) from e
    hub.scan_lists.refresh_products()
