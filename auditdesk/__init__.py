"""
AuditDesk — AR Audit Assistant Backend (v1.0.0)

Architecture:
  auditdesk/
  ├── config/      — Paths, env flags, model names, logging setup
  ├── policy/      — Risk weights, bands, fiscal year end, score reconciliation
  ├── models/      — Pydantic records: Transaction, ExtractedDocumentData, ...
  ├── risk/        — 4 deterministic transaction risk rules (pure)
  ├── dates.py     — ISO date parsing shared by models, cutoff and policy
  ├── cutoff/      — Fiscal-year cut-off evaluation (pure)
  ├── dashboard/   — Risk bands and cut-off counts
  ├── db/          — Audit store: ledger, documents, activity log
  ├── extraction/  — Claude vision extraction + offline extractor
  ├── scoring/     — Heuristic / Claude risk scorers and reconciliation
  ├── documents/   — Upload → extraction → cut-off → verification result
  ├── reporting/   — Audit summary drafting and auditor chat
  └── server.py    — FastAPI routing layer

The pure core (risk, cutoff, dashboard) holds no state and performs no I/O.
Everything that talks to Claude is an injected collaborator with an
offline fallback.
"""
