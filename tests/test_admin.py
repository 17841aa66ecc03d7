import pytest
from sqlalchemy import select

from cryptovault.models.asset import Asset
from cryptovault.models.audit import AuditLog
from cryptovault.models.withdrawal import WithdrawalRequest
from cryptovault.services.withdrawals import WithdrawalInput, create_withdrawal


@pytest.fixture
def withdrawal(db_session, wallet_user, fund):
    fund(wallet_user, "ETH", 50, price_usd=2000)
    return create_withdrawal(
        db_session,
        wallet_user,
        WithdrawalInput(
            wallet_id=wallet_user.wallets[0].id,
            symbol="ETH",
            amount=10,
            destination_address="0x" + "5" * 40,
            network="ethereum",
            email="alice@example.com",
        ),
    )


@pytest.fixture
def admin_headers(admin_user, auth_headers):
    return auth_headers(admin_user)


class TestAdminAuthorization:
    """Every /api/admin route needs an admin session"""

    @pytest.mark.parametrize(
        "method,path",
        [
            ("get", "/api/admin/user-balances"),
            ("get", "/api/admin/withdrawal-requests"),
            ("get", "/api/admin/withdrawal-requests/any"),
            ("patch", "/api/admin/withdrawal-requests/any/stage"),
            ("patch", "/api/admin/withdrawal-requests/any/status"),
        ],
    )
    def test_anonymous_is_401(self, client, method, path):
        response = getattr(client, method)(path)

        assert response.status_code == 401

    def test_regular_user_is_403(self, client, wallet_user, auth_headers):
        response = client.get("/api/admin/withdrawal-requests", headers=auth_headers(wallet_user))

        assert response.status_code == 403
        assert response.json() == {"error": "Admin access required"}


class TestAdminReads:
    def test_user_balances(self, client, admin_headers, wallet_user, fund):
        fund(wallet_user, "ETH", 2, price_usd=2000)
        fund(wallet_user, "BTC", 1, price_usd=50000)

        response = client.get("/api/admin/user-balances", headers=admin_headers)

        assert response.status_code == 200
        rows = {row["userId"]: row for row in response.json()["data"]}
        assert rows[wallet_user.id]["totalBalance"] == pytest.approx(54000)
        assert rows[wallet_user.id]["assetCount"] == 3

    def test_lists_all_withdrawals(self, client, admin_headers, withdrawal):
        response = client.get("/api/admin/withdrawal-requests", headers=admin_headers)

        data = response.json()["data"]
        assert [w["id"] for w in data] == [withdrawal.id]
        assert data[0]["email"] == withdrawal.user.email

    def test_detail_includes_progress(self, client, admin_headers, withdrawal):
        response = client.get(f"/api/admin/withdrawal-requests/{withdrawal.id}", headers=admin_headers)

        body = response.json()["data"]
        assert body["fee"] == pytest.approx(0.1)
        assert len(body["stages"]) == 3

    def test_unknown_withdrawal_is_404(self, client, admin_headers):
        response = client.get("/api/admin/withdrawal-requests/nope", headers=admin_headers)

        assert response.status_code == 404
        assert response.json() == {"error": "Withdrawal not found"}


class TestStageWorkflow:
    """Tests for PATCH .../stage"""

    @pytest.mark.parametrize("stage", [0, 4, -1])
    def test_out_of_range_stage_is_400(self, client, admin_headers, withdrawal, stage):
        response = client.patch(
            f"/api/admin/withdrawal-requests/{withdrawal.id}/stage",
            json={"stage": stage},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_non_integer_stage_is_400(self, client, admin_headers, withdrawal):
        response = client.patch(
            f"/api/admin/withdrawal-requests/{withdrawal.id}/stage",
            json={"stage": "two"},
            headers=admin_headers,
        )

        assert response.status_code == 400

    def test_advance_one_stage(self, client, db_session, admin_headers, withdrawal):
        response = client.patch(
            f"/api/admin/withdrawal-requests/{withdrawal.id}/stage",
            json={"stage": 2},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["stage"] == 2
        db_session.expire_all()
        assert db_session.get(WithdrawalRequest, withdrawal.id).stage == 2

    def test_may_skip_ahead(self, client, admin_headers, withdrawal):
        response = client.patch(
            f"/api/admin/withdrawal-requests/{withdrawal.id}/stage",
            json={"stage": 3},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["stage"] == 3

    def test_cannot_move_backwards(self, client, admin_headers, withdrawal):
        url = f"/api/admin/withdrawal-requests/{withdrawal.id}/stage"
        client.patch(url, json={"stage": 3}, headers=admin_headers)

        response = client.patch(url, json={"stage": 2}, headers=admin_headers)

        assert response.status_code == 400
        assert "backwards" in response.json()["error"]

    def test_stage_frozen_after_cancel(self, client, admin_headers, withdrawal):
        base = f"/api/admin/withdrawal-requests/{withdrawal.id}"
        client.patch(f"{base}/status", json={"status": "cancelled"}, headers=admin_headers)

        response = client.patch(f"{base}/stage", json={"stage": 3}, headers=admin_headers)

        assert response.status_code == 400
        assert response.json() == {"error": "Cannot change stage of withdrawal in status=cancelled"}
        detail = client.get(base, headers=admin_headers).json()["data"]
        assert detail["stage"] == 1

    def test_stage_change_is_audited(self, client, db_session, admin_user, admin_headers, withdrawal):
        client.patch(
            f"/api/admin/withdrawal-requests/{withdrawal.id}/stage",
            json={"stage": 2},
            headers=admin_headers,
        )

        entry = db_session.scalar(
            select(AuditLog).where(AuditLog.action == "WITHDRAWAL_STAGE_UPDATED")
        )
        assert entry.user_id == admin_user.id
        assert entry.new_values == {"stage": 2, "previous_stage": 1}


class TestStatusWorkflow:
    """Tests for PATCH .../status"""

    def _patch(self, client, headers, withdrawal_id, status):
        return client.patch(
            f"/api/admin/withdrawal-requests/{withdrawal_id}/status",
            json={"status": status},
            headers=headers,
        )

    def test_unknown_status_is_400(self, client, admin_headers, withdrawal):
        response = self._patch(client, admin_headers, withdrawal.id, "teleported")

        assert response.status_code == 400

    def test_complete_sets_completed_at(self, client, admin_headers, withdrawal):
        response = self._patch(client, admin_headers, withdrawal.id, "completed")

        body = response.json()["data"]
        assert body["status"] == "completed"
        assert body["completedAt"] is not None

    def test_terminal_status_is_frozen(self, client, admin_headers, withdrawal):
        self._patch(client, admin_headers, withdrawal.id, "completed")

        response = self._patch(client, admin_headers, withdrawal.id, "processing")

        assert response.status_code == 400

    @pytest.mark.parametrize("status", ["failed", "cancelled"])
    def test_failed_or_cancelled_refunds_amount_and_fee(
        self, client, db_session, admin_headers, withdrawal, status
    ):
        asset_id = withdrawal.asset_id
        db_session.expire_all()
        assert db_session.get(Asset, asset_id).balance == pytest.approx(39.9)

        response = self._patch(client, admin_headers, withdrawal.id, status)

        assert response.status_code == 200
        db_session.expire_all()
        asset = db_session.get(Asset, asset_id)
        assert asset.balance == pytest.approx(50)
        assert asset.balance_usd == pytest.approx(100000)
