from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.crm.schemas import (
    ClientCompanyCreate,
    ClientCompanyRead,
    ClientCompanyUpdate,
    ContactCreate,
    ContactRead,
    ContactUpdate,
    DealCreate,
    DealRead,
    DealUpdate,
)
from ubos.crm.service import crm_service
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context, get_writable_org_context


clients_router = APIRouter(prefix="/api/clients", tags=["crm"])
contacts_router = APIRouter(prefix="/api/contacts", tags=["crm"])
deals_router = APIRouter(prefix="/api/deals", tags=["crm"])


@clients_router.get("", response_model=list[ClientCompanyRead])
def list_clients(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[ClientCompanyRead] | JSONResponse:
    try:
        return crm_service.list_clients(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="client_list_failed", resource="crm.client")


@clients_router.post("", response_model=ClientCompanyRead, status_code=status.HTTP_201_CREATED)
def create_client(
    request: Request,
    dto: ClientCompanyCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ClientCompanyRead | JSONResponse:
    try:
        return crm_service.create_client(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="client_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="client_create_failed", resource="crm.client")


@clients_router.get("/{client_id}", response_model=ClientCompanyRead)
def get_client(
    request: Request,
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> ClientCompanyRead | JSONResponse:
    try:
        return crm_service.get_client(db, ctx, client_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="client_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="client_read_failed", resource="crm.client")


@clients_router.patch("/{client_id}", response_model=ClientCompanyRead)
def update_client(
    request: Request,
    client_id: uuid.UUID,
    dto: ClientCompanyUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ClientCompanyRead | JSONResponse:
    try:
        return crm_service.update_client(db, ctx, client_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="client_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="client_update_failed", resource="crm.client")


@clients_router.delete("/{client_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_client(
    request: Request,
    client_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        crm_service.delete_client(db, ctx, client_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="client_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="client_delete_failed", resource="crm.client")


@contacts_router.get("", response_model=list[ContactRead])
def list_contacts(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[ContactRead] | JSONResponse:
    try:
        return crm_service.list_contacts(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contact_list_failed", resource="crm.contact")


@contacts_router.post("", response_model=ContactRead, status_code=status.HTTP_201_CREATED)
def create_contact(
    request: Request,
    dto: ContactCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ContactRead | JSONResponse:
    try:
        return crm_service.create_contact(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contact_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contact_create_failed", resource="crm.contact")


@contacts_router.get("/{contact_id}", response_model=ContactRead)
def get_contact(
    request: Request,
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> ContactRead | JSONResponse:
    try:
        return crm_service.get_contact(db, ctx, contact_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contact_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contact_read_failed", resource="crm.contact")


@contacts_router.patch("/{contact_id}", response_model=ContactRead)
def update_contact(
    request: Request,
    contact_id: uuid.UUID,
    dto: ContactUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ContactRead | JSONResponse:
    try:
        return crm_service.update_contact(db, ctx, contact_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contact_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contact_update_failed", resource="crm.contact")


@contacts_router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_contact(
    request: Request,
    contact_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        crm_service.delete_contact(db, ctx, contact_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contact_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contact_delete_failed", resource="crm.contact")


@deals_router.get("", response_model=list[DealRead])
def list_deals(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[DealRead] | JSONResponse:
    try:
        return crm_service.list_deals(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="deal_list_failed", resource="crm.deal")


@deals_router.post("", response_model=DealRead, status_code=status.HTTP_201_CREATED)
def create_deal(
    request: Request,
    dto: DealCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> DealRead | JSONResponse:
    try:
        return crm_service.create_deal(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="deal_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="deal_create_failed", resource="crm.deal")


@deals_router.get("/{deal_id}", response_model=DealRead)
def get_deal(
    request: Request,
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> DealRead | JSONResponse:
    try:
        return crm_service.get_deal(db, ctx, deal_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="deal_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="deal_read_failed", resource="crm.deal")


@deals_router.patch("/{deal_id}", response_model=DealRead)
def update_deal(
    request: Request,
    deal_id: uuid.UUID,
    dto: DealUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> DealRead | JSONResponse:
    try:
        return crm_service.update_deal(db, ctx, deal_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="deal_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="deal_update_failed", resource="crm.deal")


@deals_router.delete("/{deal_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_deal(
    request: Request,
    deal_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        crm_service.delete_deal(db, ctx, deal_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="deal_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="deal_delete_failed", resource="crm.deal")
