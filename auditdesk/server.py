"""
AuditDesk — AR Audit Assistant
FastAPI routing layer: ledger risk scoring, document cut-off verification,
dashboard counts, AI-drafted audit summary and auditor chat.
"""

import os
import logging
from typing import List

from fastapi import Body, FastAPI, File, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from auditdesk.config import (
    ALLOWED_MEDIA_TYPES, MAX_UPLOAD_MB, USE_REAL_API, VERSION, configure_logging, ensure_dirs,
)
from auditdesk.cutoff import evaluate
from auditdesk.dashboard import build_dashboard
from auditdesk.db import get_store
from auditdesk.documents import verify_document
from auditdesk.models import ChatMessage
from auditdesk.policy import POLICY_PRESETS, apply_preset, get_fiscal_year_end, get_policy, update_policy
from auditdesk.reporting import build_chat_context, chat_with_auditor, generate_audit_summary
from auditdesk.scoring import analyze_risk

logger = logging.getLogger(__name__)

app = FastAPI(title="AuditDesk", version=VERSION)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_credentials=True, allow_methods=["*"], allow_headers=["*"])


class ChatRequest(BaseModel):
    messages: List[ChatMessage]


# ============================================================
# HEALTH
# ============================================================
@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION, "ai": "claude_api" if USE_REAL_API else "offline"}


# ============================================================
# TRANSACTIONS / RISK
# ============================================================
@app.get("/api/transactions")
async def get_transactions():
    store = get_store()
    txns = store.get_transactions()
    return {"transactions": [t.to_dict() for t in txns], "total": len(txns), "analyzed": store.analyzed}


@app.put("/api/transactions")
async def replace_transactions(rows: list = Body(...)):
    records = get_store().replace_transactions(rows)
    logger.info(f"[Ledger] Loaded {len(records)} of {len(rows)} rows")
    return {"transactions": [t.to_dict() for t in records], "total": len(records), "skipped": len(rows) - len(records)}


@app.post("/api/transactions/analyze")
async def analyze_transactions():
    store = get_store()
    scored = await analyze_risk(store.get_transactions(), policy=get_policy())
    store.store_scored(scored)
    return {"transactions": [t.to_dict() for t in scored], "total": len(scored), "analyzed": True}


# ============================================================
# DOCUMENTS / CUT-OFF
# ============================================================
@app.get("/api/documents")
async def get_documents():
    docs = get_store().get_documents()
    return {"documents": [d.to_dict() for d in docs], "total": len(docs)}


@app.post("/api/documents/upload")
async def upload_document(file: UploadFile = File(...)):
    media_type = file.content_type or "application/octet-stream"
    if media_type not in ALLOWED_MEDIA_TYPES:
        raise HTTPException(415, f"Unsupported file type: {media_type}")
    content = await file.read()
    if len(content) > MAX_UPLOAD_MB * 1024 * 1024:
        raise HTTPException(413, f"File exceeds {MAX_UPLOAD_MB:g} MB limit")

    result = await verify_document(content, media_type, file.filename or "upload")
    get_store().append_document(result)
    return {"success": True, "document": result.to_dict()}


@app.post("/api/cutoff/evaluate")
async def evaluate_cutoff(payload: dict = Body(...)):
    fye = payload.get("fiscalYearEnd") or get_fiscal_year_end()
    result = evaluate(payload.get("invoiceDate"), payload.get("deliveryDate"), fye)
    return result.to_dict()


# ============================================================
# DASHBOARD
# ============================================================
@app.get("/api/dashboard")
async def get_dashboard():
    return build_dashboard(get_store(), get_policy())


# ============================================================
# REPORTING
# ============================================================
@app.post("/api/report")
async def generate_report():
    store = get_store()
    summary = await generate_audit_summary(store.get_transactions(), store.get_documents(), policy=get_policy())
    store.log("report_generated")
    store.save()
    return {"summary": summary}


@app.post("/api/chat")
async def chat(req: ChatRequest):
    store = get_store()
    try:
        reply = await chat_with_auditor(req.messages, build_chat_context(store, get_policy()))
    except ValueError as e:
        raise HTTPException(400, str(e))
    return {"role": "model", "text": reply}


# ============================================================
# POLICY
# ============================================================
@app.get("/api/policy")
async def read_policy():
    return {"policy": get_policy(), "presets": {k: {"name": v["name"], "description": v["description"]}
                                                for k, v in POLICY_PRESETS.items()}}


@app.post("/api/policy")
async def write_policy(updates: dict = Body(...)):
    return {"policy": update_policy(updates)}


@app.post("/api/policy/preset/{name}")
async def use_preset(name: str):
    if name not in POLICY_PRESETS:
        raise HTTPException(404, f"Unknown preset: {name}")
    return {"policy": apply_preset(name)}


# ============================================================
# ADMIN
# ============================================================
@app.post("/api/reset")
async def reset(seed: bool = True):
    get_store().reset(seed=seed)
    return {"success": True}


@app.get("/api/export")
async def export():
    return get_store().snapshot()


if __name__ == "__main__":
    import uvicorn
    configure_logging()
    ensure_dirs()
    port = int(os.environ.get("PORT", 8000))
    logger.info(f"Starting AuditDesk v{VERSION} on port {port}")
    logger.info(f"Claude API: {'Connected' if USE_REAL_API else 'Offline Mode'}")
    uvicorn.run(app, host="0.0.0.0", port=port)
