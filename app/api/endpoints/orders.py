import logging
from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.core import schemas
from app.core.database import get_order_repository
from app.core.errors import DuplicateKeyError, OrderStoreError
from app.core.repository import OrderRepository

router = APIRouter(tags=["Orders"])

# Resolved per request from the routing header
repo_dep = Annotated[OrderRepository, Depends(get_order_repository)]


def internal_error():
    return HTTPException(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal error.")


# Plain `def` endpoints: FastAPI runs each request on its own worker thread
@router.post("/orders", status_code=status.HTTP_201_CREATED)
def insert_order(order: schemas.Order, repository: repo_dep):
    logging.debug(f"Inserting order: {order!r}")
    try:
        repository.insert(order)
    except DuplicateKeyError:
        raise HTTPException(
            status.HTTP_409_CONFLICT, f"Order {order.order_id} already exists."
        )
    except OrderStoreError as error:
        logging.error(f"Error inserting order {order!r}: {error!r} ({error.__cause__})")
        raise internal_error()
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("/orders", response_model=List[schemas.Order])
def get_orders(repository: repo_dep):
    try:
        return repository.list_all()
    except OrderStoreError as error:
        logging.error(f"Error retrieving orders: {error!r} ({error.__cause__})")
        raise internal_error()


@router.get("/namespace/{namespace}/orders", response_model=List[schemas.Order])
def get_namespace_orders(namespace: str, repository: repo_dep):
    logging.debug(f"Retrieving orders for namespace: {namespace}")
    try:
        return repository.list_by_namespace(namespace)
    except OrderStoreError as error:
        logging.error(
            f"Error retrieving orders in namespace {namespace}: {error!r} ({error.__cause__})"
        )
        raise internal_error()


@router.delete("/orders", status_code=status.HTTP_204_NO_CONTENT)
def delete_orders(repository: repo_dep):
    logging.debug("Deleting all orders")
    try:
        repository.delete_all()
    except OrderStoreError as error:
        logging.error(f"Error deleting orders: {error!r} ({error.__cause__})")
        raise internal_error()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/namespace/{namespace}/orders", status_code=status.HTTP_204_NO_CONTENT
)
def delete_namespace_orders(namespace: str, repository: repo_dep):
    logging.debug(f"Deleting orders in namespace {namespace}")
    try:
        repository.delete_by_namespace(namespace)
    except OrderStoreError as error:
        logging.error(
            f"Error deleting orders in namespace {namespace}: {error!r} ({error.__cause__})"
        )
        raise internal_error()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
