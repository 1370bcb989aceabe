"""Tests for registration and pending-invite consumption at signup."""
from datetime import timedelta

from nocarry.database import utcnow
from nocarry.models.invite import ProjectInvite
from nocarry.models.project import ProjectMember
from tests.conftest import auth, create_test_project, create_test_user


def _invite(client, project, inviter, email, role="STUDENT"):
    resp = client.post(
        f"/api/projects/{project['project_id']}/invite",
        json={"email": email, "role": role},
        headers=auth(inviter),
    )
    assert resp.status_code == 200, resp.text
    return resp.json()


class TestRegister:
    def test_register_and_me(self, client):
        user = create_test_user(client, name="Alice", email="alice@school.edu")
        assert user["global_role"] == "STUDENT"
        assert user["projects_joined"] == 0

        resp = client.get("/api/auth/me", headers=auth(user))
        assert resp.status_code == 200
        assert resp.json()["email"] == "alice@school.edu"

    def test_register_professor(self, client):
        prof = create_test_user(client, name="Prof", role="PROFESSOR")
        assert prof["global_role"] == "PROFESSOR"

    def test_register_twice_conflicts(self, client):
        user = create_test_user(client, name="Alice")
        resp = client.post("/api/auth/register", json={"name": "Alice"}, headers=auth(user))
        assert resp.status_code == 400
        assert resp.json()["code"] == "conflict"

    def test_unregistered_identity_has_no_account(self, client):
        resp = client.get(
            "/api/auth/me",
            headers={"X-User-Id": "11111111-1111-1111-1111-111111111111", "X-User-Email": "ghost@school.edu"},
        )
        assert resp.status_code == 404

    def test_missing_credentials(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        body = resp.json()
        assert body["code"] == "unauthenticated"
        assert body["trace_id"]


class TestSignupConsumesInvites:
    def test_pending_invite_becomes_membership(self, client, db):
        leader = create_test_user(client, name="Leader")
        project = create_test_project(client, leader)
        _invite(client, project, leader, "Newbie@School.edu", role="TEAM_LEADER")

        newbie = create_test_user(client, name="Newbie", email="newbie@school.edu")
        assert newbie["projects_joined"] == 1

        member = db.query(ProjectMember).filter(ProjectMember.user_id == newbie["user_id"]).one()
        assert member.project_id == project["project_id"]
        assert member.role.value == "TEAM_LEADER"
        assert db.query(ProjectInvite).one().used_at is not None

    def test_invites_to_several_projects(self, client, db):
        leader = create_test_user(client, name="Leader")
        first = create_test_project(client, leader, name="First")
        second = create_test_project(client, leader, name="Second")
        _invite(client, first, leader, "newbie@school.edu")
        _invite(client, second, leader, "newbie@school.edu")

        newbie = create_test_user(client, name="Newbie", email="newbie@school.edu")
        assert newbie["projects_joined"] == 2

        resp = client.get("/api/projects/", headers=auth(newbie))
        assert {p["name"] for p in resp.json()} == {"First", "Second"}

    def test_expired_invite_is_ignored(self, client, db):
        leader = create_test_user(client, name="Leader")
        project = create_test_project(client, leader)
        _invite(client, project, leader, "late@school.edu")
        invite = db.query(ProjectInvite).one()
        invite.expires_at = utcnow() - timedelta(days=1)
        db.commit()

        late = create_test_user(client, name="Late", email="late@school.edu")
        assert late["projects_joined"] == 0
        assert db.query(ProjectMember).filter(ProjectMember.user_id == late["user_id"]).count() == 0

    def test_retried_signup_does_not_duplicate(self, client, db):
        leader = create_test_user(client, name="Leader")
        project = create_test_project(client, leader)
        _invite(client, project, leader, "newbie@school.edu")

        newbie = create_test_user(client, name="Newbie", email="newbie@school.edu")
        resp = client.post("/api/auth/register", json={"name": "Newbie"}, headers=auth(newbie))
        assert resp.status_code == 400

        count = db.query(ProjectMember).filter(
            ProjectMember.project_id == project["project_id"],
            ProjectMember.user_id == newbie["user_id"],
        ).count()
        assert count == 1
