from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from rest_framework import status
from rest_framework.test import APITestCase

from bids.models import Bid
from core.tests.fakes import FakeStorage, make_user
from projects.models import Project

VALID_PAYLOAD = {
    "title": "Landing page for a bakery",
    "description": "Need a one-page site with a menu and a contact form.",
    "category": "web",
    "budgetType": "fixed",
    "budgetAmount": "25000",
    "isRemote": True,
    "skills": ["html", "css"],
}


class ProjectApiTestCase(APITestCase):
    def setUp(self):
        self.owner = make_user("owner")
        self.other = make_user("other", role="freelancer")
        self.storage = FakeStorage()
        patcher = mock.patch("projects.views.get_storage", return_value=self.storage)
        patcher.start()
        self.addCleanup(patcher.stop)

    def auth(self, user):
        self.client.force_authenticate(user=user)

    def make_project(self, **extra):
        fields = {
            "client": self.owner,
            "title": "Existing project",
            "description": "An existing project description",
            "category": "web",
            "is_remote": True,
            "status": Project.STATUS_PUBLISHED,
        }
        fields.update(extra)
        return Project.objects.create(**fields)


class CreateProjectTests(ProjectApiTestCase):
    def test_create_published_project(self):
        self.auth(self.owner)
        resp = self.client.post("/api/projects/", VALID_PAYLOAD, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        data = resp.json()["data"]
        self.assertEqual(data["status"], "published")
        self.assertEqual(data["budget_amount"], "25000.00")
        self.assertEqual(data["currency"], "RUB")
        self.assertEqual(data["skills"], ["html", "css"])
        self.assertTrue(data["is_owner"])
        self.assertIsNotNone(data["published_at"])
        self.assertEqual(data["moderation_verdict"], "safe")

    def test_anonymous_cannot_create(self):
        resp = self.client.post("/api/projects/", VALID_PAYLOAD, format="json")
        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_every_invalid_field_is_reported(self):
        self.auth(self.owner)
        resp = self.client.post(
            "/api/projects/",
            {"description": "too short", "category": "web", "budgetAmount": "abc"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        details = resp.json()["details"]
        for field in ("title", "description", "budget_amount", "city"):
            self.assertIn(field, details)
        self.assertFalse(Project.objects.exists())

    def test_city_name_satisfies_city_requirement(self):
        self.auth(self.owner)
        payload = dict(VALID_PAYLOAD, isRemote=False, cityName="Казань")
        resp = self.client.post("/api/projects/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.json()["data"]["city"], "Казань")

    def test_questionable_text_goes_to_review(self):
        self.auth(self.owner)
        payload = dict(VALID_PAYLOAD, title="Сайт, сука, срочно")
        resp = self.client.post("/api/projects/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.json()["data"]
        self.assertEqual(data["status"], "pending")
        self.assertEqual(data["moderation_verdict"], "needs_review")
        self.assertIsNone(data["published_at"])

    def test_severe_text_blocks_publication(self):
        self.auth(self.owner)
        payload = dict(VALID_PAYLOAD, title="хуй и пизда")
        resp = self.client.post("/api/projects/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("title", resp.json()["details"])
        self.assertFalse(Project.objects.exists())

    def test_drafts_are_moderated_in_advisory_mode(self):
        self.auth(self.owner)
        payload = dict(VALID_PAYLOAD, title="хуй и пизда", status="draft")
        resp = self.client.post("/api/projects/", payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.json()["data"]["moderation_verdict"], "severe")

    def test_publication_fails_closed_when_moderation_is_down(self):
        self.auth(self.owner)
        with mock.patch("moderation.engine.moderate", side_effect=RuntimeError("boom")):
            resp = self.client.post("/api/projects/", VALID_PAYLOAD, format="json")
            self.assertEqual(resp.status_code, status.HTTP_502_BAD_GATEWAY)

            draft = self.client.post("/api/projects/", dict(VALID_PAYLOAD, status="draft"), format="json")
        self.assertEqual(draft.status_code, status.HTTP_201_CREATED)
        self.assertEqual(draft.json()["data"]["moderation_verdict"], "unverified")
        self.assertEqual(Project.objects.count(), 1)

    def test_multipart_upload_reports_failed_files(self):
        self.storage.fail_suffixes = (".txt",)
        self.auth(self.owner)
        payload = dict(VALID_PAYLOAD)
        payload["skills"] = '["html"]'
        payload["files"] = [
            SimpleUploadedFile("photo.png", b"\x89PNG...", content_type="image/png"),
            SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain"),
        ]
        resp = self.client.post("/api/projects/", payload, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)

        data = resp.json()["data"]
        self.assertEqual(len(data["images"]), 1)
        self.assertTrue(data["images"][0].startswith(f"https://cdn.test/projects/{data['id']}/"))
        self.assertEqual(data["failed_uploads"], [{"name": "notes.txt", "error": "upstream_failure"}])
        self.assertEqual(data["skills"], ["html"])


class ReadProjectTests(ProjectApiTestCase):
    def test_each_fetch_counts_a_view(self):
        project = self.make_project()
        self.auth(self.other)
        first = self.client.get(f"/api/projects/{project.id}/")
        second = self.client.get(f"/api/projects/{project.id}/")
        self.assertEqual(first.json()["data"]["views_count"], 1)
        self.assertEqual(second.json()["data"]["views_count"], 2)
        self.assertFalse(second.json()["data"]["is_owner"])

    def test_drafts_are_hidden_from_other_users(self):
        project = self.make_project(status=Project.STATUS_DRAFT)
        self.auth(self.other)
        self.assertEqual(self.client.get(f"/api/projects/{project.id}/").status_code, status.HTTP_404_NOT_FOUND)
        self.auth(self.owner)
        self.assertEqual(self.client.get(f"/api/projects/{project.id}/").status_code, status.HTTP_200_OK)

    def test_listing_shows_published_projects_only(self):
        visible = self.make_project(title="Visible")
        self.make_project(title="Draft", status=Project.STATUS_DRAFT)
        self.make_project(title="Gone", status=Project.STATUS_DELETED)
        resp = self.client.get("/api/projects/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        data = resp.json()["data"]
        self.assertEqual(data["count"], 1)
        self.assertEqual([p["id"] for p in data["results"]], [visible.id])

    def test_listing_filters(self):
        self.make_project(title="Logo", category="design", is_remote=False, city="Казань")
        self.make_project(title="Site", category="web")
        resp = self.client.get("/api/projects/?category=design")
        self.assertEqual([p["title"] for p in resp.json()["data"]["results"]], ["Logo"])
        resp = self.client.get("/api/projects/?q=site")
        self.assertEqual([p["title"] for p in resp.json()["data"]["results"]], ["Site"])

    def test_my_projects(self):
        self.make_project(title="Mine")
        self.make_project(title="Theirs", client=self.other)
        self.auth(self.owner)
        resp = self.client.get("/api/projects/mine/")
        self.assertEqual([p["title"] for p in resp.json()["data"]], ["Mine"])


class UpdateProjectTests(ProjectApiTestCase):
    def test_owner_updates_fields(self):
        project = self.make_project()
        self.auth(self.owner)
        resp = self.client.put(
            f"/api/projects/{project.id}/",
            {"title": "Renamed project", "budgetAmount": "100"},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.title, "Renamed project")
        self.assertEqual(str(project.budget_amount), "100.00")

    def test_non_owner_is_forbidden(self):
        project = self.make_project()
        self.auth(self.other)
        resp = self.client.put(f"/api/projects/{project.id}/", {"title": "Mine now"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(resp.json()["error"], "forbidden")

    def test_existing_images_replace_the_list_before_new_uploads(self):
        project = self.make_project(images=["https://cdn.test/old-1.png", "https://cdn.test/old-2.png"])
        self.auth(self.owner)
        resp = self.client.put(
            f"/api/projects/{project.id}/",
            {
                "existingImages": '["https://cdn.test/old-2.png"]',
                "files": [SimpleUploadedFile("new.png", b"img", content_type="image/png")],
            },
            format="multipart",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        images = resp.json()["data"]["images"]
        self.assertEqual(images[0], "https://cdn.test/old-2.png")
        self.assertEqual(len(images), 2)

    def test_rewording_a_published_project_into_profanity_is_blocked(self):
        project = self.make_project()
        self.auth(self.owner)
        resp = self.client.put(f"/api/projects/{project.id}/", {"title": "хуй и пизда"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        project.refresh_from_db()
        self.assertEqual(project.title, "Existing project")

    def test_edits_after_publication_stay_moderated(self):
        for project_status in (Project.STATUS_IN_PROGRESS, Project.STATUS_CANCELLED):
            project = self.make_project(status=project_status, freelancer=self.other)
            self.auth(self.owner)
            resp = self.client.put(
                f"/api/projects/{project.id}/",
                {"description": "Теперь тут только хуй и пизда, пизда и хуй"},
                format="json",
            )
            self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST, project_status)
            project.refresh_from_db()
            self.assertEqual(project.description, "An existing project description")


class ProjectStatusTests(ProjectApiTestCase):
    def patch_status(self, project, new_status):
        return self.client.patch(f"/api/projects/{project.id}/", {"status": new_status}, format="json")

    def test_publish_draft(self):
        project = self.make_project(status=Project.STATUS_DRAFT)
        self.auth(self.owner)
        resp = self.patch_status(project, "published")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_PUBLISHED)
        self.assertIsNotNone(project.published_at)

    def test_publishing_runs_the_moderation_gate(self):
        project = self.make_project(status=Project.STATUS_DRAFT, title="хуй и пизда")
        self.auth(self.owner)
        resp = self.patch_status(project, "published")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_DRAFT)

    def test_unknown_status_is_a_validation_error(self):
        project = self.make_project()
        self.auth(self.owner)
        resp = self.patch_status(project, "in_progress")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_illegal_transition_is_invalid_state(self):
        project = self.make_project()
        self.auth(self.owner)
        resp = self.patch_status(project, "draft")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "invalid_state")

    def test_same_status_is_a_no_op(self):
        project = self.make_project()
        self.auth(self.owner)
        resp = self.patch_status(project, "published")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

    def test_cancel_and_reopen(self):
        project = self.make_project()
        self.auth(self.owner)
        self.assertEqual(self.patch_status(project, "cancelled").status_code, status.HTTP_200_OK)
        self.assertEqual(self.patch_status(project, "published").status_code, status.HTTP_200_OK)
        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_PUBLISHED)

    def test_awarded_project_cannot_be_reopened(self):
        project = self.make_project()
        bid = Bid.objects.create(
            project=project, freelancer=self.other, proposal="I can do it", price="1000", delivery_days=5
        )
        self.auth(self.owner)
        self.assertEqual(self.client.post(f"/api/bids/{bid.id}/accept/").status_code, status.HTTP_200_OK)
        self.assertEqual(self.patch_status(project, "cancelled").status_code, status.HTTP_200_OK)

        resp = self.patch_status(project, "published")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "invalid_state")
        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_CANCELLED)

    def test_non_owner_cannot_change_status(self):
        project = self.make_project()
        self.auth(self.other)
        self.assertEqual(self.patch_status(project, "cancelled").status_code, status.HTTP_403_FORBIDDEN)


class DeleteProjectTests(ProjectApiTestCase):
    def test_delete_removes_files_then_row(self):
        project = self.make_project()
        self.storage.objects[f"projects/{project.id}/a.png"] = b"a"
        self.storage.objects[f"projects/{project.id}/b.png"] = b"b"
        self.storage.objects["projects/999/keep.png"] = b"other"

        self.auth(self.owner)
        resp = self.client.delete(f"/api/projects/{project.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)

        data = resp.json()["data"]
        self.assertTrue(data["hard_deleted"])
        self.assertEqual(len(data["removed_files"]), 2)
        self.assertEqual(data["remaining_files"], [])
        self.assertFalse(Project.objects.filter(pk=project.id).exists())
        self.assertEqual(list(self.storage.objects), ["projects/999/keep.png"])

    def test_files_that_cannot_be_removed_are_reported(self):
        project = self.make_project()
        stuck = f"projects/{project.id}/stuck.png"
        self.storage.objects[stuck] = b"x"
        self.storage.fail_remove = {stuck}

        self.auth(self.owner)
        data = self.client.delete(f"/api/projects/{project.id}/").json()["data"]
        self.assertEqual(data["remaining_files"], [stuck])
        self.assertTrue(data["hard_deleted"])

    def test_row_delete_failure_falls_back_to_soft_delete(self):
        project = self.make_project()
        self.auth(self.owner)
        with mock.patch.object(Project, "delete", side_effect=DatabaseError("fk violation")):
            resp = self.client.delete(f"/api/projects/{project.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertFalse(resp.json()["data"]["hard_deleted"])

        project.refresh_from_db()
        self.assertEqual(project.status, Project.STATUS_DELETED)
        self.assertIsNotNone(project.deleted_at)
        self.assertEqual(self.client.get(f"/api/projects/{project.id}/").status_code, status.HTTP_404_NOT_FOUND)

    def test_non_owner_cannot_delete(self):
        project = self.make_project()
        self.auth(self.other)
        self.assertEqual(self.client.delete(f"/api/projects/{project.id}/").status_code, status.HTTP_403_FORBIDDEN)
        self.assertTrue(Project.objects.filter(pk=project.id).exists())

    def test_completed_project_cannot_be_deleted(self):
        project = self.make_project(status=Project.STATUS_COMPLETED)
        self.auth(self.owner)
        self.assertEqual(self.client.delete(f"/api/projects/{project.id}/").status_code, status.HTTP_409_CONFLICT)
