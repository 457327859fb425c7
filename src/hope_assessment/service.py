from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from .assembler import variants_to_dict
from .evaluator import ActiveSet
from .rules import RuleSet
from .session import (
    AssessmentConfig,
    AssessmentSession,
    MutationResult,
    finalize_report_to_dict,
)
from .signatures import SignatureEntry
from .violations import violation_to_dict

logger = logging.getLogger(__name__)


class AssessmentCreate(BaseModel):
    reason_for_record: str | None = Field(default=None, min_length=1, max_length=1)
    payload: dict[str, Any] | None = None


class FieldUpdate(BaseModel):
    path: str = Field(min_length=1)
    value: str | bool | None = None


class GroupUpdate(BaseModel):
    values: dict[str, bool]


class SignatureBody(BaseModel):
    signature: str | None = None
    title: str | None = None
    sections: str | None = None
    date: str | None = None


class ActiveSetView(BaseModel):
    fields: list[str]
    required: list[str]
    purge: list[str]


class AssessmentState(BaseModel):
    assessment_id: str
    reason_for_record: str | None
    variant: str | None
    status: str
    active: ActiveSetView
    payload: dict[str, Any]
    cleared: list[str] = Field(default_factory=list)


class MutationView(BaseModel):
    assessment_id: str
    path: str
    applied: bool
    status: str
    format_errors: list[dict[str, Any]]
    cleared: list[str]
    excluded: list[str]
    active: ActiveSetView
    payload: dict[str, Any]


class ValidationView(BaseModel):
    accepted: bool
    violations: list[dict[str, Any]]
    warnings: list[dict[str, Any]]
    record: dict[str, Any] | None = None


def _active_view(active: ActiveSet) -> ActiveSetView:
    return ActiveSetView(
        fields=sorted(active.fields),
        required=sorted(active.required),
        purge=sorted(active.purge),
    )


def _state(
    assessment_id: str,
    session: AssessmentSession,
    cleared: tuple[str, ...] = (),
) -> AssessmentState:
    return AssessmentState(
        assessment_id=assessment_id,
        reason_for_record=session.reason_for_record,
        variant=session.variant,
        status=session.status,
        active=_active_view(session.active),
        payload=session.to_payload(),
        cleared=list(cleared),
    )


def _signature_changes(body: SignatureBody) -> dict[str, str | None]:
    """Only the parts the client sent; omitted parts keep their value."""

    sent = body.model_fields_set
    parts = {
        "name": ("signature", body.signature),
        "title": ("title", body.title),
        "sections_completed": ("sections", body.sections),
        "date": ("date", body.date),
    }
    return {part: value for part, (wire, value) in parts.items() if wire in sent}


def _mutation_view(
    assessment_id: str,
    session: AssessmentSession,
    result: MutationResult,
) -> MutationView:
    return MutationView(
        assessment_id=assessment_id,
        path=result.path,
        applied=result.applied,
        status=result.status,
        format_errors=[violation_to_dict(error) for error in result.format_errors],
        cleared=list(result.cleared),
        excluded=list(result.excluded),
        active=_active_view(result.active),
        payload=session.to_payload(),
    )


def create_assessment_app(
    rule_set: RuleSet | None = None,
    config: AssessmentConfig | None = None,
) -> FastAPI:
    app = FastAPI(
        title="HOPE Assessment API",
        version="0.1.0",
        description="Skip-pattern evaluation and finalize checks for HOPE assessment records.",
    )
    app.state.sessions = {}
    app.state.rule_set = rule_set
    app.state.config = config or AssessmentConfig()

    def _get_session(request: Request, assessment_id: str) -> AssessmentSession:
        sessions: dict[str, AssessmentSession] = request.app.state.sessions
        session = sessions.get(assessment_id)
        if session is None:
            raise HTTPException(status_code=404, detail="assessment not found")
        return session

    def _editable_session(request: Request, assessment_id: str) -> AssessmentSession:
        session = _get_session(request, assessment_id)
        if session.status == "submitted":
            raise HTTPException(status_code=409, detail="assessment has been submitted")
        return session

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/v1/variants")
    def list_variants() -> list[dict[str, object]]:
        return variants_to_dict()

    @app.post("/api/v1/assessments", response_model=AssessmentState, status_code=201)
    def create_assessment(body: AssessmentCreate, request: Request) -> AssessmentState:
        try:
            session = AssessmentSession(
                reason_for_record=body.reason_for_record,
                payload=body.payload,
                rule_set=request.app.state.rule_set,
                config=request.app.state.config,
            )
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error

        assessment_id = uuid.uuid4().hex
        request.app.state.sessions[assessment_id] = session
        logger.info("created assessment %s", assessment_id)
        return _state(assessment_id, session, cleared=session.initial_cleared)

    @app.get("/api/v1/assessments/{assessment_id}", response_model=AssessmentState)
    def get_assessment(assessment_id: str, request: Request) -> AssessmentState:
        return _state(assessment_id, _get_session(request, assessment_id))

    @app.delete("/api/v1/assessments/{assessment_id}", status_code=204)
    def discard_assessment(assessment_id: str, request: Request) -> Response:
        sessions: dict[str, AssessmentSession] = request.app.state.sessions
        if sessions.pop(assessment_id, None) is None:
            raise HTTPException(status_code=404, detail="assessment not found")
        logger.info("discarded assessment %s", assessment_id)
        return Response(status_code=204)

    @app.patch("/api/v1/assessments/{assessment_id}/fields", response_model=MutationView)
    def update_field(assessment_id: str, body: FieldUpdate, request: Request) -> MutationView:
        session = _editable_session(request, assessment_id)
        try:
            result = session.set_field(body.path, body.value)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return _mutation_view(assessment_id, session, result)

    @app.patch("/api/v1/assessments/{assessment_id}/groups/{item}", response_model=MutationView)
    def update_group(
        assessment_id: str,
        item: str,
        body: GroupUpdate,
        request: Request,
    ) -> MutationView:
        session = _editable_session(request, assessment_id)
        try:
            result = session.set_group(item, body.values)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return _mutation_view(assessment_id, session, result)

    @app.post(
        "/api/v1/assessments/{assessment_id}/signatures",
        response_model=MutationView,
        status_code=201,
    )
    def add_signature(
        assessment_id: str,
        body: SignatureBody,
        request: Request,
    ) -> MutationView:
        session = _editable_session(request, assessment_id)
        try:
            entry = SignatureEntry.from_dict(body.model_dump())
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        result = session.add_signature(entry)
        if result.cardinality is not None:
            raise HTTPException(status_code=409, detail=violation_to_dict(result.cardinality))
        return _mutation_view(assessment_id, session, result)

    @app.patch(
        "/api/v1/assessments/{assessment_id}/signatures/{index}",
        response_model=MutationView,
    )
    def update_signature(
        assessment_id: str,
        index: int,
        body: SignatureBody,
        request: Request,
    ) -> MutationView:
        session = _editable_session(request, assessment_id)
        try:
            result = session.update_signature(index, **_signature_changes(body))
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        return _mutation_view(assessment_id, session, result)

    @app.delete(
        "/api/v1/assessments/{assessment_id}/signatures/{index}",
        response_model=MutationView,
    )
    def remove_signature(assessment_id: str, index: int, request: Request) -> MutationView:
        session = _editable_session(request, assessment_id)
        try:
            result = session.remove_signature(index)
        except ValueError as error:
            raise HTTPException(status_code=400, detail=str(error)) from error
        if result.cardinality is not None:
            raise HTTPException(status_code=409, detail=violation_to_dict(result.cardinality))
        return _mutation_view(assessment_id, session, result)

    @app.post("/api/v1/assessments/{assessment_id}/validate", response_model=ValidationView)
    def validate_assessment(
        assessment_id: str,
        request: Request,
        today: date | None = Query(default=None),
    ) -> ValidationView:
        session = _get_session(request, assessment_id)
        report = session.validate(today=today)
        return ValidationView(**finalize_report_to_dict(report))

    @app.post("/api/v1/assessments/{assessment_id}/finalize", response_model=ValidationView)
    def finalize_assessment(
        assessment_id: str,
        request: Request,
        today: date | None = Query(default=None),
    ) -> ValidationView | JSONResponse:
        session = _editable_session(request, assessment_id)
        report = session.finalize(today=today)
        payload = finalize_report_to_dict(report)
        if not report.accepted:
            return JSONResponse(status_code=422, content=payload)
        return ValidationView(**payload)

    return app

