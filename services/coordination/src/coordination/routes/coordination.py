"""Coordination API endpoints.

Every mutating route follows the same path: load, apply through the
status engine, save, append to the audit ledger, then hand the fan-outs
to the dispatcher. Delivery never affects the response status.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import ValidationError
from sqlalchemy.engine import Engine

from services.coordination.src.coordination.core.errors import EntityNotFound, InvalidTransition
from services.coordination.src.coordination.core.escalation import EscalationSweeper
from services.coordination.src.coordination.core.status import StatusEngine
from services.coordination.src.coordination.db.engine import get_engine
from services.coordination.src.coordination.db.repository import (
    AuditEventRepository,
    SqlEntityStore,
)
from services.coordination.src.coordination.domains.base import TransitionOutcome, validation_reason
from services.coordination.src.coordination.domains.consultation.schemas import Consultation
from services.coordination.src.coordination.domains.feedback.schemas import Feedback
from services.coordination.src.coordination.domains.referral.schemas import Referral
from services.coordination.src.coordination.domains.report.schemas import HealthReport
from services.coordination.src.coordination.domains.schemas import Actor, BaseEntity
from services.coordination.src.coordination.realtime.dispatcher import Dispatcher
from services.coordination.src.coordination.schemas.enums import PROVIDER_ROLES, EntityKind
from services.coordination.src.coordination.schemas.responses import (
    ActionRequest,
    AuditEventResponse,
    CreateConsultationRequest,
    CreateFeedbackRequest,
    CreateReferralRequest,
    CreateReportRequest,
    EntityResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_COLLECTIONS = {
    "consultations": EntityKind.CONSULTATION,
    "referrals": EntityKind.REFERRAL,
    "reports": EntityKind.REPORT,
    "feedback": EntityKind.FEEDBACK,
}

# Keyword names StatusEngine.transition already takes
_RESERVED_PARAMS = frozenset({"entity", "action", "actor", "now"})


def _engine() -> Engine:
    return get_engine()


def _status_engine(request: Request) -> StatusEngine:
    return request.app.state.status_engine


def _dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


def _actor(request: Request, authorization: str | None = Header(None)) -> Actor:
    token = None
    if authorization and authorization.lower().startswith("bearer "):
        token = authorization.split(" ", 1)[1].strip()
    actor = request.app.state.identity_resolver.from_token(token)
    if actor is None:
        raise HTTPException(401, "Valid bearer token required")
    return actor


def _kind(collection: str) -> EntityKind:
    if collection not in _COLLECTIONS:
        raise HTTPException(404, f"Unknown collection: {collection}")
    return _COLLECTIONS[collection]


def _str_dt(dt) -> str:
    return dt.isoformat() if hasattr(dt, "isoformat") else str(dt)


def _entity_response(entity: BaseEntity, notified: int = 0) -> EntityResponse:
    return EntityResponse(
        kind=entity.kind.value,
        id=entity.id,
        status=entity.status_value,
        entity=entity.snapshot(),
        notified=notified,
    )


def _commit(
    outcome: TransitionOutcome,
    step: str,
    actor: Actor,
    engine: Engine,
    dispatcher: Dispatcher,
    details: dict | None = None,
) -> EntityResponse:
    saved = SqlEntityStore(engine).save(outcome.entity)
    trace_id = str(uuid.uuid4())
    AuditEventRepository(engine).append(
        entity_id=saved.id,
        kind=saved.kind.value,
        trace_id=trace_id,
        step=step,
        actor_id=actor.id,
        payload_json={"status": saved.status_value, **(details or {})},
    )
    notified = dispatcher.deliver(outcome.effects)
    logger.info("entity_committed", extra={
        "kind": saved.kind.value,
        "entity_id": saved.id,
        "step": step,
        "trace_id": trace_id,
        "notified": notified,
    })
    return _entity_response(saved, notified)


def _create(
    build,
    actor: Actor,
    engine: Engine,
    status_engine: StatusEngine,
    dispatcher: Dispatcher,
) -> EntityResponse:
    try:
        entity = build()
    except ValidationError as exc:
        raise HTTPException(422, validation_reason(exc)) from None
    outcome = status_engine.create(entity, actor)
    return _commit(outcome, "CREATED", actor, engine, dispatcher)


# ---------------------------------------------------------------------------
# Creation
# ---------------------------------------------------------------------------

@router.post("/consultations", response_model=EntityResponse, status_code=201)
def create_consultation(
    req: CreateConsultationRequest,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
    status_engine: StatusEngine = Depends(_status_engine),
    dispatcher: Dispatcher = Depends(_dispatcher),
) -> EntityResponse:
    return _create(
        lambda: Consultation(patient_ref=actor.id, **req.model_dump()),
        actor, engine, status_engine, dispatcher,
    )


@router.post("/referrals", response_model=EntityResponse, status_code=201)
def create_referral(
    req: CreateReferralRequest,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
    status_engine: StatusEngine = Depends(_status_engine),
    dispatcher: Dispatcher = Depends(_dispatcher),
) -> EntityResponse:
    if not actor.has_role(PROVIDER_ROLES):
        raise HTTPException(403, "Only providers can create referrals")
    return _create(
        lambda: Referral(referring_provider_ref=actor.id, **req.model_dump()),
        actor, engine, status_engine, dispatcher,
    )


@router.post("/reports", response_model=EntityResponse, status_code=201)
def create_report(
    req: CreateReportRequest,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
    status_engine: StatusEngine = Depends(_status_engine),
    dispatcher: Dispatcher = Depends(_dispatcher),
) -> EntityResponse:
    return _create(
        lambda: HealthReport(reporter_ref=actor.id, **req.model_dump()),
        actor, engine, status_engine, dispatcher,
    )


@router.post("/feedback", response_model=EntityResponse, status_code=201)
def create_feedback(
    req: CreateFeedbackRequest,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
    status_engine: StatusEngine = Depends(_status_engine),
    dispatcher: Dispatcher = Depends(_dispatcher),
) -> EntityResponse:
    return _create(
        lambda: Feedback(patient_ref=actor.id, **req.model_dump()),
        actor, engine, status_engine, dispatcher,
    )


# ---------------------------------------------------------------------------
# Reads, actions, audit
# ---------------------------------------------------------------------------

@router.get("/{collection}/{entity_id}", response_model=EntityResponse)
def get_entity(
    collection: str,
    entity_id: str,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
    status_engine: StatusEngine = Depends(_status_engine),
    dispatcher: Dispatcher = Depends(_dispatcher),
) -> EntityResponse:
    """Read an entity, applying any due escalation or auto-completion first."""
    kind = _kind(collection)
    sweeper = EscalationSweeper(
        SqlEntityStore(engine), status_engine, dispatcher, AuditEventRepository(engine),
    )
    try:
        entity = sweeper.refresh(kind, entity_id)
    except EntityNotFound as exc:
        raise HTTPException(404, str(exc)) from None
    return _entity_response(entity)


@router.post("/{collection}/{entity_id}/{action}", response_model=EntityResponse)
def apply_action(
    collection: str,
    entity_id: str,
    action: str,
    body: ActionRequest | None = None,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
    status_engine: StatusEngine = Depends(_status_engine),
    dispatcher: Dispatcher = Depends(_dispatcher),
) -> EntityResponse:
    kind = _kind(collection)
    params = {
        k: v for k, v in (body.params if body else {}).items() if k not in _RESERVED_PARAMS
    }
    sweeper = EscalationSweeper(
        SqlEntityStore(engine), status_engine, dispatcher, AuditEventRepository(engine),
    )
    try:
        entity = sweeper.refresh(kind, entity_id)
    except EntityNotFound as exc:
        raise HTTPException(404, str(exc)) from None

    try:
        outcome = status_engine.transition(entity, action, actor, **params)
    except InvalidTransition as exc:
        raise HTTPException(409, exc.reason) from None

    return _commit(
        outcome,
        action.upper(),
        actor,
        engine,
        dispatcher,
        details={"from_status": entity.status_value, "params": params},
    )


@router.get("/{collection}/{entity_id}/audit", response_model=list[AuditEventResponse])
def get_audit(
    collection: str,
    entity_id: str,
    actor: Actor = Depends(_actor),
    engine: Engine = Depends(_engine),
) -> list[AuditEventResponse]:
    kind = _kind(collection)
    try:
        SqlEntityStore(engine).load(kind, entity_id)
    except EntityNotFound as exc:
        raise HTTPException(404, str(exc)) from None

    return [
        AuditEventResponse(
            id=row["id"],
            entity_id=row["entity_id"],
            kind=row["kind"],
            trace_id=row["trace_id"],
            step=row["step"],
            actor_id=row["actor_id"],
            payload_json=row["payload_json"],
            created_at=_str_dt(row["created_at"]),
        )
        for row in AuditEventRepository(engine).list_by_entity(entity_id)
    ]
