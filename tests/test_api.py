"""
APIエンドポイントのテスト
"""

import uuid

from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from invoice_pit.api.health import missing_tables


def item_payload(amount=10000, **overrides):
    payload = {
        "name": "出演料",
        "quantity": 1,
        "unitAmount": amount,
        "category": "performance_fee",
        "isTaxIncluded": False,
        "isWithholdingTarget": True,
        "isTaxExempt": False,
    }
    payload.update(overrides)
    return payload


def invoice_payload(amount=10000, **overrides):
    payload = {
        "items": [item_payload(amount)],
        "subject": "2024年12月分出演料",
        "recipient_name": "株式会社テスト",
    }
    payload.update(overrides)
    return payload


class TestHealthEndpoints:
    """ヘルスチェックエンドポイントのテスト"""

    def test_root_endpoint(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["service"] == "請求書ぴっと"
        assert "version" in data

    def test_health_check(self, client):
        response = client.get("/health/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] in ["healthy", "degraded"]
        assert data["services"]["database"] == "connected"

    def test_liveness_check(self, client):
        response = client.get("/health/live")
        assert response.status_code == 200
        assert response.json()["status"] == "alive"

    def test_readiness_check(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_missing_tables_not_ready(self):
        empty = create_engine("sqlite://")
        with Session(empty) as session:
            assert "invoices" in missing_tables(session)


class TestErrorHandling:
    """エラーハンドリングのテスト"""

    def test_404_error(self, client):
        response = client.get("/nonexistent")
        assert response.status_code == 404

    def test_method_not_allowed(self, client):
        response = client.put("/categories")
        assert response.status_code == 405

    def test_missing_identity(self, client):
        response = client.get("/talent/invoices")
        assert response.status_code == 401

    def test_invalid_identity(self, client):
        response = client.get("/talent/invoices", headers={"X-User-Id": "not-a-uuid"})
        assert response.status_code == 401


class TestPreview:
    """ジャンル一覧・金額プレビュー"""

    def test_categories(self, client):
        response = client.get("/categories")
        assert response.status_code == 200
        ids = [c["id"] for c in response.json()]
        assert ids[0] == "performance_fee"
        assert "discount" in ids

    def test_preview(self, client):
        response = client.post("/invoices/preview", json={"items": [item_payload()]})
        assert response.status_code == 200
        assert response.json() == {"subtotal": 10000, "tax": 1000, "withholding": 1021, "total": 9979}

    def test_preview_rejects_zero_quantity(self, client):
        response = client.post("/invoices/preview", json={"items": [item_payload(quantity=0)]})
        assert response.status_code == 422


class TestTalentEndpoints:
    """タレント側エンドポイントのテスト"""

    def test_first_access_creates_profile(self, client):
        headers = {"X-User-Id": str(uuid.uuid4()), "X-User-Email": "new@example.com"}

        response = client.get("/talent/subscription", headers=headers)

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "trial"
        assert data["status_label"] == "トライアル中"
        assert data["can_create_invoice"] is True
        assert "お名前" in data["missing_profile_fields"]

    def test_incomplete_profile_cannot_create(self, client):
        headers = {"X-User-Id": str(uuid.uuid4()), "X-User-Email": "new@example.com"}

        response = client.post("/talent/invoices", json=invoice_payload(), headers=headers)

        assert response.status_code == 400
        assert "プロフィール" in response.json()["detail"]

    def test_update_profile(self, client, talent_headers):
        response = client.put("/talent/profile", json={"phone": "03-1111-2222"}, headers=talent_headers)

        assert response.status_code == 200
        assert response.json()["phone"] == "03-1111-2222"
        assert response.json()["full_name"] == "山田花子"

    def test_update_profile_rejects_account_type(self, client, talent_headers):
        response = client.put("/talent/profile", json={"account_type": "貯蓄"}, headers=talent_headers)
        assert response.status_code == 422

    def test_create_and_list(self, client, talent_headers):
        response = client.post("/talent/invoices", json=invoice_payload(), headers=talent_headers)
        assert response.status_code == 201
        created = response.json()
        assert created["total"] == 9979
        assert created["is_editable"] is True

        response = client.get("/talent/invoices", headers=talent_headers)
        assert response.status_code == 200
        data = response.json()
        assert [inv["id"] for inv in data["invoices"]] == [created["id"]]
        assert data["stats"]["total_sales"] == 9979
        assert data["stats"]["unpaid_amount"] == 9979

    def test_unknown_organizer_code(self, client, talent_headers):
        response = client.post(
            "/talent/invoices", json=invoice_payload(organizer_code="ZZZZ9999"), headers=talent_headers
        )
        assert response.status_code == 404
        assert response.json()["detail"] == "主催者コードが見つかりません"

    def test_empty_items_rejected(self, client, talent_headers):
        response = client.post("/talent/invoices", json=invoice_payload(items=[]), headers=talent_headers)
        assert response.status_code == 422

    def test_payment_status_and_delete(self, client, talent_headers):
        invoice_id = client.post("/talent/invoices", json=invoice_payload(), headers=talent_headers).json()["id"]

        response = client.post(
            f"/talent/invoices/{invoice_id}/payment-status",
            json={"payment_status": "paid"},
            headers=talent_headers,
        )
        assert response.status_code == 200
        assert response.json()["payment_status"] == "paid"

        response = client.delete(f"/talent/invoices/{invoice_id}", headers=talent_headers)
        assert response.status_code == 204

        response = client.get(f"/talent/invoices/{invoice_id}", headers=talent_headers)
        assert response.status_code == 404

    def test_pdf_download(self, client, talent_headers):
        invoice = client.post("/talent/invoices", json=invoice_payload(), headers=talent_headers).json()

        response = client.get(f"/talent/invoices/{invoice['id']}/pdf", headers=talent_headers)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.content.startswith(b"%PDF")

    def test_other_talent_cannot_read(self, client, talent_headers):
        invoice_id = client.post("/talent/invoices", json=invoice_payload(), headers=talent_headers).json()["id"]
        other = {"X-User-Id": str(uuid.uuid4()), "X-User-Email": "other@example.com"}

        response = client.get(f"/talent/invoices/{invoice_id}", headers=other)
        assert response.status_code == 404


class TestOrganizerEndpoints:
    """主催者側エンドポイントのテスト"""

    def test_register_and_verify(self, client):
        headers = {"X-User-Id": str(uuid.uuid4()), "X-User-Email": "hall@example.com"}

        response = client.post("/organizers", json={"name": "佐藤", "company_name": "渋谷ホール"}, headers=headers)
        assert response.status_code == 201
        code = response.json()["organizer_code"]
        assert len(code) == 8

        response = client.get("/organizers/verify", params={"code": code.lower()}, headers=headers)
        assert response.status_code == 200
        assert response.json()["name"] == "渋谷ホール"

    def test_update_organizer_profile(self, client, organizer_headers, talent_headers):
        response = client.put(
            "/organizers/me",
            json={"company_name": "株式会社新ABC", "phone": "03-9999-0000", "address": "東京都港区1-2-3"},
            headers=organizer_headers,
        )
        assert response.status_code == 200
        data = response.json()
        assert data["company_name"] == "株式会社新ABC"
        assert data["phone"] == "03-9999-0000"
        assert data["organizer_code"] == "ABCD2345"

        me = client.get("/organizers/me", headers=organizer_headers).json()
        assert me["address"] == "東京都港区1-2-3"

        response = client.get("/organizers/verify", params={"code": "ABCD2345"}, headers=talent_headers)
        assert response.json()["name"] == "株式会社新ABC"

    def test_update_organizer_requires_registration(self, client, talent_headers):
        response = client.put("/organizers/me", json={"name": "誰か"}, headers=talent_headers)
        assert response.status_code == 403

    def test_update_organizer_rejects_empty_name(self, client, organizer_headers):
        response = client.put("/organizers/me", json={"name": ""}, headers=organizer_headers)
        assert response.status_code == 422

    def test_verify_bad_format(self, client, talent_headers):
        response = client.get("/organizers/verify", params={"code": "x"}, headers=talent_headers)
        assert response.status_code == 400

    def test_not_registered(self, client, talent_headers):
        response = client.get("/organizer/invoices", headers=talent_headers)
        assert response.status_code == 403

    def test_full_cycle(self, client, talent_headers, organizer_headers):
        """作成 → 差し戻し → 再提出 → 承認 → 支払"""
        response = client.post(
            "/talent/invoices", json=invoice_payload(organizer_code="abcd2345"), headers=talent_headers
        )
        assert response.status_code == 201
        invoice = response.json()
        assert invoice["is_editable"] is False

        received = client.get("/organizer/invoices", headers=organizer_headers).json()
        assert len(received) == 1
        assert received[0]["status"] == "pending"
        oi_id = received[0]["id"]

        response = client.post(f"/organizer/invoices/{oi_id}/return", json={"comment": ""}, headers=organizer_headers)
        assert response.status_code == 400

        response = client.post(
            f"/organizer/invoices/{oi_id}/return", json={"comment": "交通費が抜けています"}, headers=organizer_headers
        )
        assert response.status_code == 200
        assert response.json()["status"] == "returned"

        talent_view = client.get(f"/talent/invoices/{invoice['id']}", headers=talent_headers).json()
        assert talent_view["return_status"] == "returned"
        assert talent_view["return_comment"] == "交通費が抜けています"
        assert talent_view["is_editable"] is True

        returned = client.get("/talent/invoices", params={"returned_only": True}, headers=talent_headers).json()
        assert len(returned["invoices"]) == 1
        assert returned["stats"]["returned_count"] == 1

        edited = invoice_payload()
        edited["items"].append(item_payload(2000, name="交通費", category="transportation",
                                            isWithholdingTarget=False, isTaxExempt=True))
        response = client.put(f"/talent/invoices/{invoice['id']}", json=edited, headers=talent_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "sent"
        assert response.json()["return_status"] == "resubmitted"
        assert response.json()["total"] == 11979

        detail = client.get(f"/organizer/invoices/{oi_id}", headers=organizer_headers).json()
        assert detail["status"] == "pending"
        assert detail["total"] == 11979
        assert detail["return_status"] == "resubmitted"

        response = client.post(f"/organizer/invoices/{oi_id}/pay", headers=organizer_headers)
        assert response.status_code == 409

        response = client.post(f"/organizer/invoices/{oi_id}/approve", headers=organizer_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        response = client.post(f"/organizer/invoices/{oi_id}/pay", headers=organizer_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "paid"

        talent_view = client.get(f"/talent/invoices/{invoice['id']}", headers=talent_headers).json()
        assert talent_view["status"] == "paid"
        assert talent_view["payment_status"] == "paid"

        response = client.put(f"/talent/invoices/{invoice['id']}", json=invoice_payload(), headers=talent_headers)
        assert response.status_code == 409

    def test_linked_invoice_payment_toggle_rejected(self, client, talent_headers, organizer_headers):
        invoice_id = client.post(
            "/talent/invoices", json=invoice_payload(organizer_code="ABCD2345"), headers=talent_headers
        ).json()["id"]

        response = client.post(
            f"/talent/invoices/{invoice_id}/payment-status",
            json={"payment_status": "paid"},
            headers=talent_headers,
        )
        assert response.status_code == 409

    def test_export_csv(self, client, talent_headers, organizer_headers):
        client.post("/talent/invoices", json=invoice_payload(organizer_code="ABCD2345"), headers=talent_headers)

        response = client.get("/organizer/invoices/export", headers=organizer_headers)

        assert response.status_code == 200
        assert response.content.startswith(b"\xef\xbb\xbf")
        text = response.content.decode("utf-8-sig")
        assert "請求書番号" in text
        assert "山田花子" in text
        assert "未承認" in text

    def test_export_excel(self, client, talent_headers, organizer_headers):
        client.post("/talent/invoices", json=invoice_payload(organizer_code="ABCD2345"), headers=talent_headers)

        response = client.get("/organizer/invoices/export", params={"format": "xlsx"}, headers=organizer_headers)

        assert response.status_code == 200
        assert response.content[:2] == b"PK"

    def test_status_filter(self, client, talent_headers, organizer_headers):
        client.post("/talent/invoices", json=invoice_payload(organizer_code="ABCD2345"), headers=talent_headers)

        approved = client.get("/organizer/invoices", params={"status": "approved"}, headers=organizer_headers)
        pending = client.get("/organizer/invoices", params={"status": "pending"}, headers=organizer_headers)

        assert approved.json() == []
        assert len(pending.json()) == 1
