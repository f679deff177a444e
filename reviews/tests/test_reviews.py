from decimal import Decimal

from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from core.tests.fakes import make_user
from projects.models import Project
from reviews.models import Review
from reviews.services import recompute_rating
from users.models import User


class ReviewApiTests(APITestCase):
    def setUp(self):
        self.owner = make_user("client")
        self.freelancer = make_user("freelancer", role="freelancer")
        self.stranger = make_user("stranger")
        self.project = Project.objects.create(
            client=self.owner,
            freelancer=self.freelancer,
            title="Brand book",
            description="Full brand book for a new coffee brand",
            category="design",
            is_remote=True,
            status=Project.STATUS_COMPLETED,
            completed_at=timezone.now(),
        )

    def review(self, user, **payload):
        self.client.force_authenticate(user)
        body = {"projectId": self.project.id, "rating": 5, "comment": "Excellent"}
        body.update(payload)
        return self.client.post("/api/reviews/", body, format="json")

    def test_client_reviews_freelancer(self):
        resp = self.review(self.owner, criteria={"quality": 5, "deadline": 4})
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.json()["data"]
        self.assertEqual(data["reviewee"], self.freelancer.id)
        self.assertTrue(data["is_verified"])
        self.assertEqual(data["criteria"], {"quality": 5, "deadline": 4, "communication": None, "price": None})

        self.freelancer.refresh_from_db()
        self.assertEqual(self.freelancer.rating, Decimal("5.00"))
        self.assertEqual(self.freelancer.reviews_count, 1)

    def test_one_review_per_reviewer_and_project(self):
        self.review(self.owner)
        resp = self.review(self.owner, rating=1)
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(Review.objects.count(), 1)

    def test_only_participants_review(self):
        self.assertEqual(self.review(self.stranger).status_code, status.HTTP_403_FORBIDDEN)

    def test_project_must_be_completed(self):
        Project.objects.filter(pk=self.project.pk).update(status=Project.STATUS_IN_PROGRESS)
        resp = self.review(self.owner)
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(resp.json()["error"], "invalid_state")

    def test_invalid_ratings_are_all_reported(self):
        resp = self.review(self.owner, rating=7, criteria={"quality": 0})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(set(resp.json()["details"]), {"rating", "quality"})

    def test_offensive_comment_is_rejected(self):
        resp = self.review(self.owner, comment="хуй и пизда")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Review.objects.exists())

    def test_reviewee_replies_once(self):
        review_id = self.review(self.owner).json()["data"]["id"]

        self.client.force_authenticate(self.owner)
        resp = self.client.post(f"/api/reviews/{review_id}/reply/", {"reply": "Thanks"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.freelancer)
        resp = self.client.post(f"/api/reviews/{review_id}/reply/", {"reply": "Thank you!"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["data"]["reply"], "Thank you!")

        resp = self.client.post(f"/api/reviews/{review_id}/reply/", {"reply": "Again"}, format="json")
        self.assertEqual(resp.status_code, status.HTTP_409_CONFLICT)

    def test_public_listing_and_summary(self):
        self.review(self.owner, rating=4, criteria={"quality": 5})
        self.client.force_authenticate(None)

        resp = self.client.get(f"/api/reviews/users/{self.freelancer.id}/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(len(resp.json()["data"]), 1)

        summary = self.client.get(f"/api/reviews/users/{self.freelancer.id}/summary/").json()["data"]
        self.assertEqual(summary["average"], 4.0)
        self.assertEqual(summary["total"], 1)
        self.assertEqual(summary["distribution"]["4"], 1)
        self.assertEqual(summary["distribution"]["5"], 0)
        self.assertEqual(summary["criteria"]["quality"], 5.0)
        self.assertIsNone(summary["criteria"]["price"])

    def test_unknown_user(self):
        resp = self.client.get("/api/reviews/users/424242/summary/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)


class RatingTests(APITestCase):
    def _completed(self, client, freelancer, title):
        return Project.objects.create(
            client=client,
            freelancer=freelancer,
            title=title,
            description="Texts for a landing page about tea",
            category="texts",
            is_remote=True,
            status=Project.STATUS_COMPLETED,
        )

    def test_only_verified_reviews_count(self):
        client = make_user("client")
        freelancer = make_user("freelancer", role="freelancer")
        first = self._completed(client, freelancer, "Copywriting")
        second = self._completed(client, freelancer, "Proofreading")

        Review.objects.create(project=first, reviewer=client, reviewee=freelancer, rating=5, is_verified=True)
        review = Review.objects.create(project=second, reviewer=client, reviewee=freelancer, rating=2)

        self.assertEqual(recompute_rating(freelancer.id), (Decimal("5.00"), 1))

        self.client.force_authenticate(client)
        resp = self.client.post(f"/api/reviews/{review.id}/verify/")
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertTrue(resp.json()["data"]["is_verified"])

        freelancer = User.objects.get(pk=freelancer.pk)
        self.assertEqual(freelancer.rating, Decimal("3.50"))
        self.assertEqual(freelancer.reviews_count, 2)
