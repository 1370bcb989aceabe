"""Tests for project file metadata, uploads and deletion."""
import pytest

from nocarry.config import settings
from nocarry.errors import ValidationError
from nocarry.models.activity_log import ActivityAction, ActivityLog
from nocarry.routers import files as files_router
from nocarry.services import storage_service
from tests.conftest import add_member, auth, create_test_project, create_test_user


@pytest.fixture
def storage(monkeypatch):
    """Record storage calls instead of talking to the storage service."""
    calls = {"upload": [], "remove": []}
    monkeypatch.setattr(settings, "STORAGE_URL", "https://storage.example.com")
    monkeypatch.setattr(settings, "STORAGE_BUCKET", "project-files")

    def fake_upload(path, content, content_type="application/octet-stream"):
        calls["upload"].append((path, content, content_type))
        return storage_service.public_url(path)

    def fake_remove(path):
        calls["remove"].append(path)
        return True

    monkeypatch.setattr(files_router.storage_service, "upload", fake_upload)
    monkeypatch.setattr(files_router.storage_service, "remove", fake_remove)
    return calls


def _add_file(client, project, user, name="report.pdf", url=None):
    url = url or f"https://storage.example.com/storage/v1/object/public/project-files/{project['project_id']}/{name}"
    resp = client.post(
        f"/api/projects/{project['project_id']}/files",
        json={"name": name, "url": url, "size": 1024, "mime_type": "application/pdf"},
        headers=auth(user),
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


def _upload(client, project, user, filename, content=b"hello"):
    return client.post(
        f"/api/projects/{project['project_id']}/files/upload",
        files={"upload": (filename, content, "text/plain")},
        headers=auth(user),
    )


class TestFiles:
    def test_add_and_list(self, client, db):
        user = create_test_user(client, name="Alice")
        project = create_test_project(client, user)
        record = _add_file(client, project, user)
        assert record["uploaded_by"]["name"] == "Alice"

        resp = client.get(f"/api/projects/{project['project_id']}/files", headers=auth(user))
        assert [f["file_id"] for f in resp.json()] == [record["file_id"]]

        log = db.query(ActivityLog).filter(ActivityLog.action == ActivityAction.FILE_UPLOADED).one()
        assert log.meta["file_name"] == "report.pdf"

    def test_upload_through_api(self, client, storage):
        user = create_test_user(client, name="Alice")
        project = create_test_project(client, user)
        resp = _upload(client, project, user, "notes.txt")
        assert resp.status_code == 201, resp.text
        body = resp.json()
        assert body["name"] == "notes.txt"
        assert body["size"] == 5

        [(path, content, content_type)] = storage["upload"]
        assert path.startswith(f"{project['project_id']}/")
        assert path.endswith("-notes.txt")
        assert (content, content_type) == (b"hello", "text/plain")
        assert body["url"].endswith(f"/project-files/{path}")

    def test_upload_stays_inside_project(self, client, storage):
        user = create_test_user(client, name="Alice")
        project = create_test_project(client, user)
        resp = _upload(client, project, user, "../victim-project/report.pdf")
        assert resp.status_code == 201, resp.text
        assert resp.json()["name"] == "report.pdf"

        [(path, _, _)] = storage["upload"]
        assert path.startswith(f"{project['project_id']}/")
        assert ".." not in path.split("/")
        assert path.count("/") == 1

    @pytest.mark.parametrize("filename", ["..", ".", "dir/.."])
    def test_upload_rejects_bare_dot_names(self, client, storage, filename):
        user = create_test_user(client, name="Alice")
        project = create_test_project(client, user)
        resp = _upload(client, project, user, filename)
        assert resp.status_code == 400
        assert storage["upload"] == []

    def test_same_name_uploads_do_not_collide(self, client, storage):
        alice = create_test_user(client, name="Alice")
        bob = create_test_user(client, name="Bob")
        project = create_test_project(client, alice)
        add_member(client, project, alice, bob)

        alice_file = _upload(client, project, alice, "notes.txt").json()
        bob_file = _upload(client, project, bob, "notes.txt").json()
        assert alice_file["url"] != bob_file["url"]

        resp = client.delete(
            f"/api/projects/{project['project_id']}/files/{bob_file['file_id']}", headers=auth(bob)
        )
        assert resp.status_code == 200
        assert storage["remove"] == [storage_service.path_from_url(bob_file["url"])]

        remaining = client.get(f"/api/projects/{project['project_id']}/files", headers=auth(alice)).json()
        assert [f["file_id"] for f in remaining] == [alice_file["file_id"]]

    def test_delete_leaves_other_projects_objects_alone(self, client, storage):
        alice = create_test_user(client, name="Alice")
        project = create_test_project(client, alice)
        record = _add_file(
            client, project, alice,
            url="https://storage.example.com/storage/v1/object/public/project-files/other-project/report.pdf",
        )
        resp = client.delete(f"/api/projects/{project['project_id']}/files/{record['file_id']}", headers=auth(alice))
        assert resp.status_code == 200
        assert storage["remove"] == []

    def test_upload_without_storage(self, client, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_URL", "")
        user = create_test_user(client, name="Alice")
        project = create_test_project(client, user)
        resp = client.post(
            f"/api/projects/{project['project_id']}/files/upload",
            files={"upload": ("notes.txt", b"hello", "text/plain")},
            headers=auth(user),
        )
        assert resp.status_code == 400

    def test_only_uploader_deletes(self, client, storage):
        alice = create_test_user(client, name="Alice")
        bob = create_test_user(client, name="Bob")
        project = create_test_project(client, alice)
        add_member(client, project, alice, bob)
        record = _add_file(client, project, bob)

        url = f"/api/projects/{project['project_id']}/files/{record['file_id']}"
        assert client.delete(url, headers=auth(alice)).status_code == 403

        resp = client.delete(url, headers=auth(bob))
        assert resp.status_code == 200
        assert storage["remove"] == [f"{project['project_id']}/report.pdf"]
        assert client.get(f"/api/projects/{project['project_id']}/files", headers=auth(bob)).json() == []

    def test_outsider_cannot_list(self, client):
        alice = create_test_user(client, name="Alice")
        outsider = create_test_user(client, name="Outsider")
        project = create_test_project(client, alice)
        resp = client.get(f"/api/projects/{project['project_id']}/files", headers=auth(outsider))
        assert resp.status_code == 403


class TestStoragePaths:
    def test_path_from_url(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_BUCKET", "project-files")
        url = "https://x.example.com/storage/v1/object/public/project-files/p1/a b.pdf"
        assert storage_service.path_from_url(url) == "p1/a b.pdf"
        assert storage_service.path_from_url("https://elsewhere.example.com/file.pdf") is None

    def test_remove_without_storage_is_noop(self, monkeypatch):
        monkeypatch.setattr(settings, "STORAGE_URL", "")
        assert storage_service.remove("p1/file.pdf") is False

    def test_clean_filename(self):
        assert storage_service.clean_filename("../../etc/passwd") == "passwd"
        assert storage_service.clean_filename("C:\\Users\\me\\notes.txt") == "notes.txt"
        with pytest.raises(ValidationError):
            storage_service.clean_filename("..")

    def test_project_paths_are_unique(self):
        first = storage_service.project_path("p1", "notes.txt")
        second = storage_service.project_path("p1", "notes.txt")
        assert first != second
        assert storage_service.in_project("p1", first)

    def test_in_project(self):
        assert not storage_service.in_project("p1", "p2/file.pdf")
        assert not storage_service.in_project("p1", "p1/../p2/file.pdf")
        assert not storage_service.in_project("p1", None)
