"""Tests for the project and personal activity feeds."""
from tests.conftest import add_member, auth, create_test_project, create_test_task, create_test_user


class TestProjectFeed:
    def test_feed_newest_first_with_labels(self, client):
        leader = create_test_user(client, name="Leader")
        project = create_test_project(client, leader, name="Capstone")
        create_test_task(client, project, leader, title="Outline")

        resp = client.get(f"/api/projects/{project['project_id']}/activity", headers=auth(leader))
        assert resp.status_code == 200
        feed = resp.json()
        assert [e["action"] for e in feed] == ["TASK_CREATED", "PROJECT_CREATED"]
        assert feed[0]["label"] == "created task"
        assert feed[0]["metadata"] == {"task_title": "Outline"}
        assert feed[0]["actor_name"] == "Leader"
        assert feed[1]["project_name"] == "Capstone"

    def test_feed_requires_membership(self, client):
        leader = create_test_user(client, name="Leader")
        outsider = create_test_user(client, name="Outsider")
        project = create_test_project(client, leader)
        resp = client.get(f"/api/projects/{project['project_id']}/activity", headers=auth(outsider))
        assert resp.status_code == 403


class TestUserFeed:
    def test_feed_spans_member_projects_only(self, client):
        alice = create_test_user(client, name="Alice")
        bob = create_test_user(client, name="Bob")
        shared = create_test_project(client, alice, name="Shared")
        create_test_project(client, bob, name="Private")
        add_member(client, shared, alice, bob)

        alice_feed = client.get("/api/activity", headers=auth(alice)).json()
        assert {e["project_name"] for e in alice_feed} == {"Shared"}

        bob_feed = client.get("/api/activity", headers=auth(bob)).json()
        assert {e["project_name"] for e in bob_feed} == {"Shared", "Private"}
        assert bob_feed[0]["action"] == "MEMBER_INVITED"
        assert bob_feed[0]["label"] == "invited a member"
