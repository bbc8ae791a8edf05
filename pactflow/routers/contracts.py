import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from pactflow.exceptions import (
    ActorNotPermittedError,
    ConcurrencyConflictError,
    ContractNotFoundError,
    IllegalTransitionError,
    PactflowError,
    StoreUnavailableError,
    UnauthorizedTransitionError,
)
from pactflow.models import ContractStatus
from pactflow.repositories.base import ContractFilter
from pactflow.routers.actor import Actor, get_actor
from pactflow.schemas.contract import (
    ContractCreate,
    ContractDetailResponse,
    ContractResponse,
    LifecycleEntryResponse,
    NoteCreate,
    NoteResponse,
    RiskUpdateRequest,
    TransitionRequest,
    TransitionResponse,
)
from pactflow.schemas.kpi import ExpiryClassificationResponse
from pactflow.services import lifecycle, temporal
from pactflow.services.lifecycle_service import LifecycleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contracts", tags=["Contract Lifecycle"])


def get_lifecycle_service() -> LifecycleService:
    # Placeholder: overridden in main.py with real DB session injection
    raise NotImplementedError("Dependency override not configured")


def to_http_error(exc: PactflowError) -> HTTPException:
    """Map the error taxonomy onto status codes with a machine-readable kind."""
    detail: dict = {"kind": exc.kind, "message": str(exc)}
    if isinstance(exc, ContractNotFoundError):
        return HTTPException(status_code=404, detail=detail)
    if isinstance(exc, (UnauthorizedTransitionError, ActorNotPermittedError)):
        return HTTPException(status_code=403, detail=detail)
    if isinstance(exc, IllegalTransitionError):
        detail.update(current_status=exc.current_status, target_status=exc.target_status)
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, ConcurrencyConflictError):
        detail.update(expected_status=exc.expected_status, actual_status=exc.actual_status)
        return HTTPException(status_code=409, detail=detail)
    if isinstance(exc, StoreUnavailableError):
        return HTTPException(status_code=503, detail=detail)
    return HTTPException(status_code=400, detail=detail)


@router.post("", response_model=TransitionResponse, status_code=status.HTTP_201_CREATED)
async def create_contract(
    payload: ContractCreate,
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Create a contract in Draft (or submit it immediately with ``submit=true``)."""
    logger.info(f"Create contract request: name={payload.name!r} submit={payload.submit}")
    fields = payload.model_dump(exclude={"submit"})
    try:
        outcome = await service.create_contract(actor.role, actor.id, submit=payload.submit, **fields)
    except PactflowError as e:
        logger.warning(f"Create contract rejected: {e}")
        raise to_http_error(e)
    return TransitionResponse(
        contract=ContractResponse.model_validate(outcome.contract),
        changed=outcome.changed,
        warnings=outcome.warnings,
    )


@router.get("", response_model=list[ContractResponse])
async def list_contracts(
    q: str | None = Query(None, max_length=200),
    status_filter: str | None = Query(None, alias="status"),
    risk: str | None = Query(None),
    company_id: uuid.UUID | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """List contracts newest first. Overdue contracts are reclassified before they are returned."""
    if status_filter:
        try:
            status_filter = ContractStatus.parse(status_filter).value
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))
    contract_filter = ContractFilter(
        search=q, status=status_filter, risk=risk, company_id=company_id, limit=limit
    )
    try:
        contracts = await service.list_contracts(contract_filter)
    except PactflowError as e:
        logger.error(f"List contracts failed: {e}")
        raise to_http_error(e)
    return [ContractResponse.model_validate(c) for c in contracts]


@router.get("/{contract_id}", response_model=ContractDetailResponse)
async def get_contract(
    contract_id: uuid.UUID,
    request: Request,
    view: str = Query("lifecycle", pattern="^(lifecycle|badge)$"),
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Contract details with its expiry classification and the moves the caller may make."""
    logger.info(f"Get contract: contract_id={contract_id}")
    try:
        contract = await service.get_contract(contract_id)
    except PactflowError as e:
        logger.warning(f"Get contract failed: contract_id={contract_id}: {e}")
        raise to_http_error(e)

    policy = request.app.state.settings.expiry_policy()
    thresholds = policy.lifecycle if view == "lifecycle" else policy.badge
    classification = temporal.classify_contract(contract, temporal.today_utc(), thresholds, policy.windows)

    try:
        current = ContractStatus.parse(contract.status)
        allowed = [s.value for s in lifecycle.allowed_targets(current, actor.role)]
    except ValueError:
        allowed = []

    return ContractDetailResponse(
        **ContractResponse.model_validate(contract).model_dump(),
        classification=ExpiryClassificationResponse(
            bucket=classification.bucket,
            days_to_expiry=classification.days_to_expiry,
            temporally_active=classification.temporally_active,
            windows=list(classification.windows),
        ),
        allowed_transitions=allowed,
    )


@router.post("/{contract_id}/transitions", response_model=TransitionResponse)
async def transition_contract(
    contract_id: uuid.UUID,
    payload: TransitionRequest,
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Move a contract to another lifecycle status."""
    logger.info(
        f"Transition request: contract_id={contract_id} target={payload.target_status!r} "
        f"role={actor.role.value}"
    )
    try:
        outcome = await service.transition_contract(
            contract_id,
            payload.target_status,
            actor.role,
            note=payload.note,
            actor_id=actor.id,
            expected_status=payload.expected_status,
        )
    except PactflowError as e:
        logger.warning(f"Transition rejected: contract_id={contract_id} kind={e.kind}: {e}")
        raise to_http_error(e)

    if outcome.warnings:
        logger.warning(f"Transition committed with warnings: contract_id={contract_id} {outcome.warnings}")
    return TransitionResponse(
        contract=ContractResponse.model_validate(outcome.contract),
        changed=outcome.changed,
        warnings=outcome.warnings,
    )


@router.put("/{contract_id}/risk", response_model=ContractResponse)
async def update_risk(
    contract_id: uuid.UUID,
    payload: RiskUpdateRequest,
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        contract = await service.update_risk(contract_id, payload.risk, actor.role)
    except PactflowError as e:
        logger.warning(f"Risk update rejected: contract_id={contract_id}: {e}")
        raise to_http_error(e)
    return ContractResponse.model_validate(contract)


@router.get("/{contract_id}/notes", response_model=list[NoteResponse])
async def list_notes(
    contract_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Legal notes, newest first."""
    try:
        notes = await service.list_notes(contract_id)
    except PactflowError as e:
        raise to_http_error(e)
    return [NoteResponse.model_validate(n) for n in notes]


@router.post("/{contract_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note(
    contract_id: uuid.UUID,
    payload: NoteCreate,
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        note = await service.add_note(contract_id, payload.note, actor.role, author=actor.id)
    except PactflowError as e:
        logger.warning(f"Add note rejected: contract_id={contract_id}: {e}")
        raise to_http_error(e)
    return NoteResponse.model_validate(note)


@router.get("/{contract_id}/lifecycle", response_model=list[LifecycleEntryResponse])
async def list_lifecycle(
    contract_id: uuid.UUID,
    actor: Actor = Depends(get_actor),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Lifecycle history, oldest first."""
    try:
        entries = await service.list_lifecycle(contract_id)
    except PactflowError as e:
        raise to_http_error(e)
    return [LifecycleEntryResponse.model_validate(e) for e in entries]
