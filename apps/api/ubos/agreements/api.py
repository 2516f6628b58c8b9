from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ubos.agreements.schemas import (
    ContractCreate,
    ContractRead,
    ContractSignRequest,
    ContractSignResult,
    ContractUpdate,
    ProposalCreate,
    ProposalRead,
    ProposalUpdate,
)
from ubos.agreements.service import agreement_service
from ubos.core.database import get_db
from ubos.core.errors import error_response, storage_failure
from ubos.platform.tenancy.context import OrgContext
from ubos.platform.tenancy.dependencies import get_org_context, get_writable_org_context


proposals_router = APIRouter(prefix="/api/proposals", tags=["agreements"])
contracts_router = APIRouter(prefix="/api/contracts", tags=["agreements"])


@proposals_router.get("", response_model=list[ProposalRead])
def list_proposals(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[ProposalRead] | JSONResponse:
    try:
        return agreement_service.list_proposals(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="proposal_list_failed", resource="agreements.proposal")


@proposals_router.post("", response_model=ProposalRead, status_code=status.HTTP_201_CREATED)
def create_proposal(
    request: Request,
    dto: ProposalCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ProposalRead | JSONResponse:
    try:
        return agreement_service.create_proposal(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="proposal_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="proposal_create_failed", resource="agreements.proposal")


@proposals_router.get("/{proposal_id}", response_model=ProposalRead)
def get_proposal(
    request: Request,
    proposal_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> ProposalRead | JSONResponse:
    try:
        return agreement_service.get_proposal(db, ctx, proposal_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="proposal_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="proposal_read_failed", resource="agreements.proposal")


@proposals_router.patch("/{proposal_id}", response_model=ProposalRead)
def update_proposal(
    request: Request,
    proposal_id: uuid.UUID,
    dto: ProposalUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ProposalRead | JSONResponse:
    try:
        return agreement_service.update_proposal(db, ctx, proposal_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="proposal_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="proposal_update_failed", resource="agreements.proposal")


@proposals_router.delete("/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_proposal(
    request: Request,
    proposal_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        agreement_service.delete_proposal(db, ctx, proposal_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="proposal_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="proposal_delete_failed", resource="agreements.proposal")


@proposals_router.post("/{proposal_id}/send", response_model=ProposalRead)
def send_proposal(
    request: Request,
    proposal_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ProposalRead | JSONResponse:
    try:
        return agreement_service.send_proposal(db, ctx, proposal_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="proposal_send_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="proposal_send_failed", resource="agreements.proposal")


@contracts_router.get("", response_model=list[ContractRead])
def list_contracts(
    request: Request,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> list[ContractRead] | JSONResponse:
    try:
        return agreement_service.list_contracts(db, ctx)
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_list_failed", resource="agreements.contract")


@contracts_router.post("", response_model=ContractRead, status_code=status.HTTP_201_CREATED)
def create_contract(
    request: Request,
    dto: ContractCreate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ContractRead | JSONResponse:
    try:
        return agreement_service.create_contract(db, ctx, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contract_create_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_create_failed", resource="agreements.contract")


@contracts_router.get("/{contract_id}", response_model=ContractRead)
def get_contract(
    request: Request,
    contract_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_org_context),
) -> ContractRead | JSONResponse:
    try:
        return agreement_service.get_contract(db, ctx, contract_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contract_read_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_read_failed", resource="agreements.contract")


@contracts_router.patch("/{contract_id}", response_model=ContractRead)
def update_contract(
    request: Request,
    contract_id: uuid.UUID,
    dto: ContractUpdate,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ContractRead | JSONResponse:
    try:
        return agreement_service.update_contract(db, ctx, contract_id, dto)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contract_update_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_update_failed", resource="agreements.contract")


@contracts_router.delete("/{contract_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
def delete_contract(
    request: Request,
    contract_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> Response:
    try:
        agreement_service.delete_contract(db, ctx, contract_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contract_delete_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_delete_failed", resource="agreements.contract")


@contracts_router.post("/{contract_id}/send", response_model=ContractRead)
def send_contract(
    request: Request,
    contract_id: uuid.UUID,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ContractRead | JSONResponse:
    try:
        return agreement_service.send_contract(db, ctx, contract_id)
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contract_send_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_send_failed", resource="agreements.contract")


@contracts_router.post("/{contract_id}/sign", response_model=ContractSignResult)
def sign_contract(
    request: Request,
    contract_id: uuid.UUID,
    dto: ContractSignRequest | None = None,
    db: Session = Depends(get_db),
    ctx: OrgContext = Depends(get_writable_org_context),
) -> ContractSignResult | JSONResponse:
    try:
        return agreement_service.sign_contract(db, ctx, contract_id, dto or ContractSignRequest())
    except HTTPException as exc:
        return error_response(request, status_code=exc.status_code, code="contract_sign_failed", message=str(exc.detail))
    except SQLAlchemyError:
        return storage_failure(request, db, ctx, code="contract_sign_failed", resource="agreements.contract")
