"""
HTTP surface tests, offline mode, against the seeded in-memory demo ledger.
"""

PNG = b"\x89PNG\r\n\x1a\n fake image bytes"


def upload(client, name, content=PNG, media_type="image/png"):
    return client.post("/api/documents/upload", files={"file": (name, content, media_type)})


def test_health(client):
    data = client.get("/api/health").json()
    assert data["status"] == "ok"
    assert data["ai"] == "offline"


def test_get_transactions(client):
    data = client.get("/api/transactions").json()
    assert data["total"] == 6
    assert data["analyzed"] is False
    assert data["transactions"][0]["id"] == "TXN-001"
    assert data["transactions"][0]["riskScore"] == 10


def test_analyze_scores_demo_ledger(client):
    resp = client.post("/api/transactions/analyze")
    assert resp.status_code == 200
    scores = {t["id"]: t["riskScore"] for t in resp.json()["transactions"]}
    assert scores == {"TXN-001": 40, "TXN-002": 0, "TXN-003": 50, "TXN-004": 0, "TXN-005": 40, "TXN-006": 50}
    assert client.get("/api/transactions").json()["analyzed"] is True

    dash = client.get("/api/dashboard").json()
    assert dash["analyzed"] is True
    assert (dash["transactions"]["highRisk"], dash["transactions"]["mediumRisk"], dash["transactions"]["lowRisk"]) == (0, 4, 2)
    assert dash["topRisks"][0]["id"] == "TXN-003"


def test_replace_transactions(client):
    rows = [{"id": "A1", "date": "2025-03-01", "customer": "Acme", "amount": 2000},
            {"id": "A2", "date": "2025-03-03", "customer": "Acme", "amount": "2000"},
            "not a row"]
    data = client.put("/api/transactions", json=rows).json()
    assert data["total"] == 2
    assert data["skipped"] == 1

    scored = client.post("/api/transactions/analyze").json()["transactions"]
    # 2025-03-01 is a Saturday; both amounts are round and duplicated
    assert [t["riskScore"] for t in scored] == [40, 40]
    assert scored[0]["riskReason"] == "Round-number amount"


def test_upload_flags_cutoff_error(client):
    resp = upload(client, "INV-1001_2025-01-05_2024-12-20.png")
    assert resp.status_code == 200
    doc = resp.json()["document"]
    assert doc["cutOffTestPassed"] is False
    assert doc["notes"] == "Potential Cut-off Error: Goods delivered before Year End, Invoiced after."
    assert doc["extraction"]["invoiceNumber"] == "INV-1001"

    upload(client, "scan.png")
    docs = client.get("/api/documents").json()
    assert docs["total"] == 2
    assert docs["documents"][0]["fileName"] == "scan.png"
    assert docs["documents"][0]["cutOffTestPassed"] is None

    dash = client.get("/api/dashboard").json()
    assert dash["documents"] == {"total": 2, "cutOffPassed": 0, "cutOffFailed": 1, "cutOffIndeterminate": 1}


def test_upload_rejects_unsupported_type(client):
    resp = upload(client, "notes.txt", b"hello", "text/plain")
    assert resp.status_code == 415
    assert client.get("/api/documents").json()["total"] == 0


def test_upload_rejects_oversized_file(client, monkeypatch):
    monkeypatch.setattr("auditdesk.server.MAX_UPLOAD_MB", 0.0001)
    resp = upload(client, "big.png", PNG * 20)
    assert resp.status_code == 413


def test_cutoff_evaluate(client):
    data = client.post("/api/cutoff/evaluate", json={"invoiceDate": "2024-12-30", "deliveryDate": "2025-01-02"}).json()
    assert data == {"passed": False, "notes": "Potential Cut-off Error: Invoiced before Year End, Goods delivered after."}

    data = client.post("/api/cutoff/evaluate", json={"invoiceDate": "2024-12-31", "deliveryDate": "2024-12-31"}).json()
    assert data["passed"] is True

    data = client.post("/api/cutoff/evaluate", json={"invoiceDate": "2024-12-30"}).json()
    assert data == {"passed": None, "notes": "Dates missing for cut-off test."}

    data = client.post("/api/cutoff/evaluate", json={"invoiceDate": "2024-12-30", "deliveryDate": "2025-01-02",
                                                     "fiscalYearEnd": "2025-06-30"}).json()
    assert data["passed"] is True


def test_report(client):
    client.post("/api/transactions/analyze")
    upload(client, "INV-1001_2025-01-05_2024-12-20.png")
    summary = client.post("/api/report").json()["summary"]
    assert "## Executive Summary" in summary
    assert "INV-1001" in summary
    actions = [e["action"] for e in client.get("/api/export").json()["activity_log"]]
    assert actions[-1] == "report_generated"


def test_chat(client):
    assert client.post("/api/chat", json={"messages": []}).status_code == 400
    assert client.post("/api/chat", json={"messages": [{"role": "model", "text": "hi"}]}).status_code == 400
    assert client.post("/api/chat", json={"messages": [{"role": "auditor", "text": "hi"}]}).status_code == 422

    data = client.post("/api/chat", json={"messages": [{"role": "user", "text": "How many transactions?"}]}).json()
    assert data["role"] == "model"
    assert "Transactions: 6" in data["text"]


def test_policy_endpoints(client):
    data = client.get("/api/policy").json()
    assert data["policy"]["weekend_score"] == 35
    assert "strict_audit" in data["presets"]

    data = client.post("/api/policy", json={"weekend_score": 60, "risk_source_policy": "heuristic"}).json()
    assert data["policy"]["weekend_score"] == 60
    assert data["policy"]["risk_source_policy"] == "heuristic"

    assert client.post("/api/policy/preset/strict_audit").json()["policy"]["outlier_multiple"] == 2.0
    assert client.post("/api/policy/preset/nope").status_code == 404


def test_policy_changes_rescoring(client):
    client.post("/api/policy", json={"round_number_score": 10})
    scores = {t["id"]: t["riskScore"] for t in client.post("/api/transactions/analyze").json()["transactions"]}
    # duplicate-amount rule (30) now outranks the round-number rule
    assert scores["TXN-001"] == 30


def test_reset_and_export(client):
    client.post("/api/transactions/analyze")
    upload(client, "scan.png")
    assert client.post("/api/reset").json() == {"success": True}
    snap = client.get("/api/export").json()
    assert len(snap["transactions"]) == 6
    assert snap["documents"] == []
    assert snap["analyzed"] is False

    client.post("/api/reset", params={"seed": False})
    assert client.get("/api/transactions").json()["total"] == 0


def test_fractional_round_unit_is_ignored_and_analysis_still_runs(client):
    policy = client.post("/api/policy", json={"round_number_unit": 0.5}).json()["policy"]
    assert policy["round_number_unit"] == 1000
    resp = client.post("/api/transactions/analyze")
    assert resp.status_code == 200
    scores = {t["id"]: t["riskScore"] for t in resp.json()["transactions"]}
    assert scores["TXN-001"] == 40
