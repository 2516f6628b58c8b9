from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context, get_writable_org_context
from ubos.revenue.schemas import (
    BillCreate,
    BillRead,
    BillUpdate,
    InvoiceCreate,
    InvoiceRead,
    InvoiceUpdate,
    VendorCreate,
    VendorRead,
)
from ubos.revenue.service import revenue_service


invoices_router = APIRouter(prefix="/api/invoices", tags=["revenue"])
bills_router = APIRouter(prefix="/api/bills", tags=["revenue"])
vendors_router = APIRouter(prefix="/api/vendors", tags=["revenue"])


@invoices_router.get("", response_model=list[InvoiceRead])
def list_invoices(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[InvoiceRead] | JSONResponse:
    try:
        return revenue_service.list_invoices(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_list_failed", resource="revenue.invoice")


@invoices_router.post("", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
def create_invoice(
    request: Request,
    dto: InvoiceCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> InvoiceRead | JSONResponse:
    try:
        return revenue_service.create_invoice(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="invoice_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_create_failed", resource="revenue.invoice")


@invoices_router.get("/{invoice_id}", response_model=InvoiceRead)
def get_invoice(
    request: Request,
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> InvoiceRead | JSONResponse:
    try:
        return revenue_service.get_invoice(db, ctx, invoice_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="invoice_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_read_failed", resource="revenue.invoice")


@invoices_router.patch("/{invoice_id}", response_model=InvoiceRead)
def update_invoice(
    request: Request,
    invoice_id: uuid.UUID,
    dto: InvoiceUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> InvoiceRead | JSONResponse:
    try:
        return revenue_service.update_invoice(db, ctx, invoice_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="invoice_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_update_failed", resource="revenue.invoice")


@invoices_router.delete("/{invoice_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_invoice(
    request: Request,
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        revenue_service.delete_invoice(db, ctx, invoice_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="invoice_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_delete_failed", resource="revenue.invoice")


@invoices_router.post("/{invoice_id}/send", response_model=InvoiceRead)
def send_invoice(
    request: Request,
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> InvoiceRead | JSONResponse:
    try:
        return revenue_service.send_invoice(db, ctx, invoice_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="invoice_send_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_send_failed", resource="revenue.invoice")


@invoices_router.post("/{invoice_id}/mark-paid", response_model=InvoiceRead)
def mark_invoice_paid(
    request: Request,
    invoice_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> InvoiceRead | JSONResponse:
    try:
        return revenue_service.mark_invoice_paid(db, ctx, invoice_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="invoice_mark_paid_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="invoice_mark_paid_failed", resource="revenue.invoice")


@vendors_router.get("", response_model=list[VendorRead])
def list_vendors(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[VendorRead] | JSONResponse:
    try:
        return revenue_service.list_vendors(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="vendor_list_failed", resource="revenue.vendor")


@vendors_router.post("", response_model=VendorRead, status_code=status.HTTP_201_CREATED)
def create_vendor(
    request: Request,
    dto: VendorCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> VendorRead | JSONResponse:
    try:
        return revenue_service.create_vendor(db, ctx, dto)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="vendor_create_failed", resource="revenue.vendor")


@bills_router.get("", response_model=list[BillRead])
def list_bills(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[BillRead] | JSONResponse:
    try:
        return revenue_service.list_bills(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_list_failed", resource="revenue.bill")


@bills_router.post("", response_model=BillRead, status_code=status.HTTP_201_CREATED)
def create_bill(
    request: Request,
    dto: BillCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> BillRead | JSONResponse:
    try:
        return revenue_service.create_bill(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_create_failed", resource="revenue.bill")


@bills_router.get("/{bill_id}", response_model=BillRead)
def get_bill(
    request: Request,
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> BillRead | JSONResponse:
    try:
        return revenue_service.get_bill(db, ctx, bill_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_read_failed", resource="revenue.bill")


@bills_router.patch("/{bill_id}", response_model=BillRead)
def update_bill(
    request: Request,
    bill_id: uuid.UUID,
    dto: BillUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> BillRead | JSONResponse:
    try:
        return revenue_service.update_bill(db, ctx, bill_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_update_failed", resource="revenue.bill")


@bills_router.delete("/{bill_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_bill(
    request: Request,
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        revenue_service.delete_bill(db, ctx, bill_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_delete_failed", resource="revenue.bill")


@bills_router.post("/{bill_id}/approve", response_model=BillRead)
def approve_bill(
    request: Request,
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> BillRead | JSONResponse:
    try:
        return revenue_service.approve_bill(db, ctx, bill_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_approve_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_approve_failed", resource="revenue.bill")


@bills_router.post("/{bill_id}/reject", response_model=BillRead)
def reject_bill(
    request: Request,
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> BillRead | JSONResponse:
    try:
        return revenue_service.reject_bill(db, ctx, bill_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_reject_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_reject_failed", resource="revenue.bill")


@bills_router.post("/{bill_id}/mark-paid", response_model=BillRead)
def mark_bill_paid(
    request: Request,
    bill_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> BillRead | JSONResponse:
    try:
        return revenue_service.mark_bill_paid(db, ctx, bill_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="bill_mark_paid_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="bill_mark_paid_failed", resource="revenue.bill")
