"""FastAPI application exposing the CareCompare estimation engine."""

from __future__ import annotations

import hashlib
import json
import logging
from io import BytesIO
from typing import Any

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse, StreamingResponse

from carecompare import config
from carecompare.estimator import compare_plans, estimate_detailed, estimate_summary
from carecompare.exporter import DOCX_MEDIA_TYPE, build_breakdown_docx, build_breakdown_pdf
from carecompare.formatting import SCENARIOS
from carecompare.importer import (
	PLAN_IMPORT_PROMPT,
	PlanImportError,
	import_people,
	import_plan_from_json,
	import_plans,
)
from carecompare.models import (
	CompareRequest,
	EstimateRequest,
	PeopleImportRequest,
	PlanImportRequest,
	ScenarioRequest,
)
from carecompare.scenarios import create_scenarios
from carecompare.storage import (
	COLLECTION_FILES,
	clear_all_data,
	delete_session,
	export_json,
	list_sessions,
	load_collection,
	record_audit_entry,
	resolve_session,
	save_collection,
	start_session,
)

logging.basicConfig(
	level=getattr(logging, config.LOG_LEVEL, logging.INFO),
	format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _with_audit_hash(payload: dict[str, Any]) -> dict[str, Any]:
	material = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
	hash_value = hashlib.sha256(material.encode("utf-8")).hexdigest()
	response = dict(payload)
	response["audit_hash"] = hash_value
	return response


def _audit(session_id: str | None, prefix: str, payload: dict[str, Any]) -> None:
	resolved = resolve_session(session_id, required=False)
	if resolved:
		record_audit_entry(resolved, prefix, payload)


def _download(body: bytes, media_type: str, filename: str) -> StreamingResponse:
	headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
	return StreamingResponse(BytesIO(body), media_type=media_type, headers=headers)


def _slug(text: str) -> str:
	cleaned = "".join(ch if ch.isalnum() else "_" for ch in text.strip())
	return cleaned.strip("_") or "plan"


app = FastAPI(title="CareCompare", version=VERSION)

app.add_middleware(
	CORSMiddleware,
	allow_origins=["*"],
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)


@app.get("/", include_in_schema=False)
def root() -> RedirectResponse:
	"""Redirect callers to the interactive documentation."""
	return RedirectResponse(url="/docs")


@app.get("/health")
async def health_check() -> dict[str, object]:
	"""Return readiness metadata for external monitors."""
	return {"ok": True, "service": "CareCompare", "version": VERSION}


@app.post("/estimate/summary")
async def estimate_summary_route(request: EstimateRequest, session_id: str | None = Query(None)) -> dict[str, object]:
	"""Premium, out-of-pocket and total for one plan."""

	summary = estimate_summary(
		request.plan,
		request.people,
		request.cost_settings,
		coinsurance_mode=request.coinsurance_mode,
	)
	response = _with_audit_hash({"plan_name": request.plan.name, "summary": summary.model_dump(by_alias=True)})
	_audit(session_id, "summary", response)
	return response


@app.post("/estimate/detailed")
async def estimate_detailed_route(request: EstimateRequest, session_id: str | None = Query(None)) -> dict[str, object]:
	"""Fully itemized estimate for the drill-down view."""

	breakdown = estimate_detailed(
		request.plan,
		request.people,
		request.cost_settings,
		coinsurance_mode=request.coinsurance_mode,
	)
	response = _with_audit_hash({"breakdown": breakdown.model_dump(by_alias=True)})
	_audit(session_id, "detailed", response)
	return response


@app.post("/compare")
async def compare(request: CompareRequest) -> dict[str, object]:
	"""Rank plans for the household, optionally across all three scenarios."""

	if not request.plans:
		raise HTTPException(status_code=400, detail="at least one plan is required")
	rows = compare_plans(
		request.plans,
		request.people,
		request.cost_settings,
		scenarios=request.scenarios,
		coinsurance_mode=request.coinsurance_mode,
	)
	return _with_audit_hash({"plans": rows, "scenarios": list(SCENARIOS) if request.scenarios else []})


@app.post("/scenarios/generate")
async def scenarios_generate(request: ScenarioRequest, session_id: str | None = Query(None)) -> dict[str, object]:
	"""Derive best and worst case households from the most likely baseline."""

	scenarios = create_scenarios(request.people).model_dump(by_alias=True)
	resolved = resolve_session(session_id, required=False)
	if resolved:
		save_collection(resolved, "scenarios", scenarios)
	return _with_audit_hash({"scenarios": scenarios})


@app.post("/plans/import")
async def plans_import(request: PlanImportRequest) -> dict[str, object]:
	"""Import a single plan with a premium, or a list of plans carrying their own premiums."""

	try:
		if request.premium is not None and not isinstance(request.data, list):
			new_id = max([int(plan.id) for plan in request.current_plans if isinstance(plan.id, int)] + [0]) + 1
			plans = [import_plan_from_json(request.data, request.premium, new_id)]
		else:
			plans = import_plans(request.data, request.current_plans)
	except PlanImportError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return _with_audit_hash({"plans": [plan.model_dump(by_alias=True) for plan in plans]})


@app.post("/people/import")
async def people_import(request: PeopleImportRequest) -> dict[str, object]:
	"""Import household members; entries without a name, visits or medications are skipped."""

	try:
		people = import_people(request.data, request.current_people)
	except PlanImportError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return _with_audit_hash({"people": [person.model_dump(by_alias=True) for person in people]})


@app.get("/prompt/plan_import")
async def plan_import_prompt() -> dict[str, str]:
	"""Prompt that turns a Summary of Benefits and Coverage into importable plan JSON."""
	return {"prompt": PLAN_IMPORT_PROMPT}


@app.post("/session/start")
async def session_start_route(payload: dict[str, Any] | None = None) -> dict[str, str]:
	"""Create and initialize a new session."""
	session_id = (payload or {}).get("session_id")
	return start_session(str(session_id) if session_id else None)


@app.get("/session/list")
async def session_list_route() -> dict[str, Any]:
	"""List stored sessions."""
	return list_sessions()


@app.post("/session/purge")
async def session_purge(payload: dict[str, str]) -> dict[str, object]:
	"""Delete every artifact for the session."""
	return delete_session(payload.get("session_id", ""))


@app.post("/session/clear")
async def session_clear(payload: dict[str, str]) -> dict[str, object]:
	"""Remove the household, plans and scenarios for the session."""
	resolved = resolve_session(payload.get("session_id"), required=True)
	assert resolved is not None
	return clear_all_data(resolved)


@app.get("/session/{kind}")
async def session_collection_get(kind: str, session_id: str | None = Query(None)) -> dict[str, object]:
	"""Return one stored collection: people, plans, cost_settings or scenarios."""

	if kind not in COLLECTION_FILES:
		raise HTTPException(status_code=404, detail=f"unknown collection '{kind}'")
	resolved = resolve_session(session_id, required=True)
	assert resolved is not None
	value = load_collection(resolved, kind)
	if isinstance(value, list):
		data: Any = [item.model_dump(by_alias=True) for item in value]
	else:
		data = value.model_dump(by_alias=True)
	return _with_audit_hash({"session_id": resolved, kind: data})


@app.post("/session/{kind}")
async def session_collection_set(kind: str, payload: dict[str, Any]) -> dict[str, object]:
	"""Replace one stored collection. The payload carries ``session_id`` and ``data``."""

	if kind not in COLLECTION_FILES:
		raise HTTPException(status_code=404, detail=f"unknown collection '{kind}'")
	resolved = resolve_session(payload.get("session_id"), required=True)
	assert resolved is not None
	try:
		stored = save_collection(resolved, kind, payload.get("data"))
	except ValueError as exc:
		raise HTTPException(status_code=400, detail=str(exc)) from exc
	return _with_audit_hash({"status": "ok", "session_id": resolved, kind: stored})


@app.post("/export/breakdown_docx")
async def export_breakdown_docx(request: EstimateRequest) -> StreamingResponse:
	"""Export one plan's itemized estimate as a DOCX file."""

	breakdown = estimate_detailed(request.plan, request.people, request.cost_settings, coinsurance_mode=request.coinsurance_mode)
	body = build_breakdown_docx(breakdown)
	return _download(body, DOCX_MEDIA_TYPE, f"estimate_{_slug(breakdown.plan_name)}.docx")


@app.post("/export/breakdown_pdf")
async def export_breakdown_pdf(request: EstimateRequest) -> StreamingResponse:
	"""Export one plan's itemized estimate as a PDF file."""

	breakdown = estimate_detailed(request.plan, request.people, request.cost_settings, coinsurance_mode=request.coinsurance_mode)
	body = build_breakdown_pdf(breakdown)
	return _download(body, "application/pdf", f"estimate_{_slug(breakdown.plan_name)}.pdf")


@app.post("/export/json")
async def export_json_route(payload: dict[str, Any]) -> StreamingResponse:
	"""Download a stored collection (or an inline ``data`` payload) as pretty-printed JSON."""

	kind = str(payload.get("kind") or "").strip()
	if kind:
		if kind not in COLLECTION_FILES:
			raise HTTPException(status_code=404, detail=f"unknown collection '{kind}'")
		resolved = resolve_session(payload.get("session_id"), required=True)
		assert resolved is not None
		value = load_collection(resolved, kind)
		data: Any = [item.model_dump(by_alias=True) for item in value] if isinstance(value, list) else value.model_dump(by_alias=True)
		filename = f"healthcare-{kind.replace('_', '-')}"
	elif "data" in payload:
		data = payload["data"]
		filename = str(payload.get("filename") or "healthcare-export")
	else:
		raise HTTPException(status_code=400, detail="kind or data is required")

	body, name = export_json(data, filename)
	return _download(body, "application/json", name)
