"""
tests/integration/test_groups.py — Group endpoints.

Endpoints covered:
  POST   /groups        → 201
  GET    /groups        → 200
  GET    /groups/:id    → 200 / 403 / 404
  PUT    /groups/:id    → 200 / 403
  DELETE /groups/:id    → 200 / 403

Key properties:
  - The creator gets an admin membership in the same transaction.
  - A member (non-admin) update is 403 and leaves the group unchanged.
  - Deleting a group removes its cycles, payments and memberships.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select

from tontine.app.extensions import db
from tontine.app.models.cycle import Cycle
from tontine.app.models.membership import Membership
from tontine.app.models.payment import Payment

from .conftest import add_member, auth_headers, make_cycle, make_group, signup


class TestCreateGroup:

    def test_create_group_returns_201_and_admin_role(self, client):
        _, token = signup(client)
        resp = client.post("/groups", json={
            "name": "Family Circle",
            "description": "Monthly savings",
            "contribution": "50.00",
            "frequency": "monthly",
            "maxMembers": 10,
        }, headers=auth_headers(token))
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["name"] == "Family Circle"
        assert Decimal(data["contribution"]) == Decimal("50.00")
        assert data["frequency"] == "monthly"
        assert data["maxMembers"] == 10
        assert data["role"] == "admin"
        assert data["memberCount"] == 1

    def test_contribution_accepts_json_number(self, client):
        _, token = signup(client)
        group = make_group(client, token, contribution=12.5)
        assert Decimal(group["contribution"]) == Decimal("12.5")

    def test_optional_fields_default_to_null(self, client):
        _, token = signup(client)
        group = make_group(client, token)
        assert group["contribution"] is None
        assert group["maxMembers"] is None

    def test_blank_name_rejected(self, client):
        _, token = signup(client)
        resp = client.post("/groups", json={"name": "   "}, headers=auth_headers(token))
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "name"

    def test_three_decimal_contribution_rejected(self, client):
        _, token = signup(client)
        resp = client.post(
            "/groups",
            json={"name": "G", "contribution": "10.123"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 400
        error = resp.get_json()["error"]
        assert error["code"] == "INVALID_AMOUNT_PRECISION"
        assert error["field"] == "contribution"


class TestListAndGetGroups:

    def test_list_returns_only_callers_groups_with_role_and_count(self, client):
        alice, alice_token = signup(client, name="alice")
        bob, bob_token = signup(client, name="bob")
        g1 = make_group(client, alice_token, name="Alice's")
        make_group(client, bob_token, name="Bob's")
        add_member(client, alice_token, g1["id"], bob["id"])

        alice_groups = client.get("/groups", headers=auth_headers(alice_token)).get_json()["data"]
        assert [g["name"] for g in alice_groups] == ["Alice's"]
        assert alice_groups[0]["memberCount"] == 2
        assert alice_groups[0]["role"] == "admin"

        bob_groups = client.get("/groups", headers=auth_headers(bob_token)).get_json()["data"]
        roles = {g["name"]: g["role"] for g in bob_groups}
        assert roles == {"Alice's": "member", "Bob's": "admin"}

    def test_get_group_includes_memberships_with_users(self, client):
        alice, token = signup(client, name="alice")
        bob, _ = signup(client, name="bob")
        group = make_group(client, token)
        add_member(client, token, group["id"], bob["id"])

        resp = client.get(f"/groups/{group['id']}", headers=auth_headers(token))
        assert resp.status_code == 200
        memberships = resp.get_json()["data"]["memberships"]
        assert [m["user"]["id"] for m in memberships] == [alice["id"], bob["id"]]
        assert [m["role"] for m in memberships] == ["admin", "member"]
        assert "password_hash" not in memberships[0]["user"]

    def test_get_group_non_member_returns_403(self, client):
        _, alice_token = signup(client, name="alice")
        _, bob_token = signup(client, name="bob")
        group = make_group(client, alice_token)
        resp = client.get(f"/groups/{group['id']}", headers=auth_headers(bob_token))
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"

    def test_get_missing_group_returns_404(self, client):
        _, token = signup(client)
        resp = client.get("/groups/99999", headers=auth_headers(token))
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "GROUP_NOT_FOUND"


class TestUpdateGroup:

    def test_admin_update_overwrites_supplied_fields_only(self, client):
        _, token = signup(client)
        group = make_group(client, token, name="Old", frequency="weekly", contribution="20.00")

        resp = client.put(
            f"/groups/{group['id']}",
            json={"name": "New", "contribution": "30.00"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["name"] == "New"
        assert Decimal(data["contribution"]) == Decimal("30.00")
        assert data["frequency"] == "weekly"

    def test_explicit_null_clears_optional_field(self, client):
        _, token = signup(client)
        group = make_group(client, token, description="something")
        resp = client.put(
            f"/groups/{group['id']}",
            json={"description": None},
            headers=auth_headers(token),
        )
        assert resp.get_json()["data"]["description"] is None

    def test_member_update_returns_403_and_group_unchanged(self, client):
        _, admin_token = signup(client, name="admin")
        member, member_token = signup(client, name="member")
        group = make_group(client, admin_token, name="Original")
        add_member(client, admin_token, group["id"], member["id"])

        resp = client.put(
            f"/groups/{group['id']}",
            json={"name": "Hijacked"},
            headers=auth_headers(member_token),
        )
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"

        after = client.get(f"/groups/{group['id']}", headers=auth_headers(admin_token))
        assert after.get_json()["data"]["name"] == "Original"

    def test_negative_contribution_is_accepted(self, client):
        _, token = signup(client)
        group = make_group(client, token)
        resp = client.put(
            f"/groups/{group['id']}",
            json={"contribution": "-5.00"},
            headers=auth_headers(token),
        )
        assert resp.status_code == 200


class TestDeleteGroup:

    def test_delete_cascades_to_cycles_payments_and_memberships(self, app, client):
        _, token = signup(client, name="admin")
        bob, _ = signup(client, name="bob")
        group = make_group(client, token)
        add_member(client, token, group["id"], bob["id"])
        make_cycle(client, token, group["id"], 1)
        make_cycle(client, token, group["id"], 2)

        resp = client.delete(f"/groups/{group['id']}", headers=auth_headers(token))
        assert resp.status_code == 200

        with app.app_context():
            gid = group["id"]
            assert db.session.scalar(
                select(func.count(Membership.id)).where(Membership.group_id == gid)
            ) == 0
            assert db.session.scalar(
                select(func.count(Cycle.id)).where(Cycle.group_id == gid)
            ) == 0
            assert db.session.scalar(select(func.count(Payment.id))) == 0

        missing = client.get(f"/groups/{group['id']}", headers=auth_headers(token))
        assert missing.status_code == 404

    def test_member_cannot_delete(self, client):
        _, admin_token = signup(client, name="admin")
        member, member_token = signup(client, name="member")
        group = make_group(client, admin_token)
        add_member(client, admin_token, group["id"], member["id"])

        resp = client.delete(f"/groups/{group['id']}", headers=auth_headers(member_token))
        assert resp.status_code == 403
        still = client.get(f"/groups/{group['id']}", headers=auth_headers(admin_token))
        assert still.status_code == 200
