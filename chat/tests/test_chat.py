from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework import status
from rest_framework.test import APITestCase

from bids.models import Bid
from chat.models import Message
from chat.services import ChatService, direct_room
from core.tests.fakes import FakeStorage, make_user
from notifications.models import Notification
from projects.models import Project


class ChatTestCase(APITestCase):
    def setUp(self):
        self.owner = make_user("client")
        self.freelancer = make_user("freelancer", role="freelancer")
        self.stranger = make_user("stranger")
        self.project = Project.objects.create(
            client=self.owner,
            title="Bot for Telegram",
            description="A Telegram bot that takes pizza orders",
            category="bots",
            is_remote=True,
        )
        self.bid = Bid.objects.create(
            project=self.project,
            freelancer=self.freelancer,
            proposal="Done it before",
            price="9000",
            delivery_days=7,
        )
        self.storage = FakeStorage()
        patcher = mock.patch("chat.views.get_storage", return_value=self.storage)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.url = f"/api/bids/{self.bid.id}/messages/"

    def post(self, user, payload, url=None, format="json"):
        self.client.force_authenticate(user)
        return self.client.post(url or self.url, payload, format=format)


class BidThreadTests(ChatTestCase):
    def test_participants_talk(self):
        with self.captureOnCommitCallbacks(execute=True):
            resp = self.post(self.freelancer, {"content": "When do we start?"})
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        data = resp.json()["data"]
        self.assertEqual(data["room"], f"bid-{self.bid.id}")
        self.assertEqual(data["receiver"], self.owner.id)
        self.assertTrue(
            Notification.objects.filter(user=self.owner, type=Notification.TYPE_MESSAGE_RECEIVED).exists()
        )

        self.post(self.owner, {"content": "Monday"})
        resp = self.client.get(self.url)
        self.assertEqual([m["content"] for m in resp.json()["data"]], ["When do we start?", "Monday"])

    def test_outsiders_are_refused(self):
        self.assertEqual(self.post(self.stranger, {"content": "hi"}).status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_bid_thread(self):
        self.client.force_authenticate(self.owner)
        self.assertEqual(self.client.get("/api/bids/999999/messages/").status_code, status.HTTP_404_NOT_FOUND)

    def test_text_message_needs_content(self):
        resp = self.post(self.freelancer, {"content": "   "})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("content", resp.json()["details"])

    def test_attachment_upload(self):
        upload = SimpleUploadedFile("brief.pdf", b"%PDF-1.4", content_type="application/pdf")
        resp = self.post(self.freelancer, {"type": "file", "file": upload}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        url = resp.json()["data"]["attachment_url"]
        self.assertTrue(url.startswith(f"https://cdn.test/chat/bid-{self.bid.id}/"))
        self.assertTrue(url.endswith(".pdf"))

    def test_attachment_timeout_is_504(self):
        self.storage.timeout_suffixes = (".pdf",)
        upload = SimpleUploadedFile("brief.pdf", b"%PDF-1.4", content_type="application/pdf")
        resp = self.post(self.freelancer, {"type": "file", "file": upload}, format="multipart")
        self.assertEqual(resp.status_code, status.HTTP_504_GATEWAY_TIMEOUT)
        self.assertFalse(Message.objects.exists())

    def test_image_without_attachment_is_invalid(self):
        resp = self.post(self.freelancer, {"type": "image"})
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_read(self):
        self.post(self.freelancer, {"content": "one"})
        self.post(self.freelancer, {"content": "two"})

        self.client.force_authenticate(self.owner)
        resp = self.client.post(f"/api/chat/rooms/bid-{self.bid.id}/read/")
        self.assertEqual(resp.json()["data"]["marked_read"], 2)
        self.assertFalse(Message.objects.filter(is_read=False).exists())

    def test_reactions_are_additive(self):
        message_id = self.post(self.freelancer, {"content": "Deal?"}).json()["data"]["id"]
        reaction_url = f"/api/chat/messages/{message_id}/reactions/"

        self.post(self.owner, {"emoji": "👍"}, url=reaction_url)
        resp = self.post(self.owner, {"emoji": "👍"}, url=reaction_url)
        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.json()["data"]["reactions"], {"👍": [self.owner.id]})

        resp = self.post(self.freelancer, {"emoji": "👍"}, url=reaction_url)
        self.assertEqual(resp.json()["data"]["reactions"], {"👍": [self.owner.id, self.freelancer.id]})

        self.assertEqual(
            self.post(self.stranger, {"emoji": "👎"}, url=reaction_url).status_code,
            status.HTTP_403_FORBIDDEN,
        )


class DirectThreadTests(ChatTestCase):
    def test_direct_room_key_is_symmetric(self):
        self.assertEqual(direct_room(7, 3), "dm-3-7")
        self.assertEqual(direct_room(3, 7), "dm-3-7")

    def test_direct_messages(self):
        url = f"/api/chat/direct/{self.freelancer.id}/"
        resp = self.post(self.owner, {"content": "Hi there"}, url=url)
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED)
        self.assertEqual(resp.json()["data"]["room"], direct_room(self.owner.id, self.freelancer.id))

        self.client.force_authenticate(self.freelancer)
        resp = self.client.get(f"/api/chat/direct/{self.owner.id}/")
        self.assertEqual([m["content"] for m in resp.json()["data"]], ["Hi there"])

    def test_cannot_message_self(self):
        resp = self.post(self.owner, {"content": "me"}, url=f"/api/chat/direct/{self.owner.id}/")
        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_unknown_recipient(self):
        resp = self.post(self.owner, {"content": "hello?"}, url="/api/chat/direct/999999/")
        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)

    def test_outsider_cannot_read_someone_elses_room(self):
        self.post(self.owner, {"content": "private"}, url=f"/api/chat/direct/{self.freelancer.id}/")
        self.client.force_authenticate(self.stranger)
        room = direct_room(self.owner.id, self.freelancer.id)
        self.assertEqual(self.client.post(f"/api/chat/rooms/{room}/read/").status_code, status.HTTP_403_FORBIDDEN)


class GreetingTests(ChatTestCase):
    def test_greeting_is_sent_once(self):
        service = ChatService(storage=self.storage)
        self.assertIsNotNone(service.open_bid_thread(self.bid, self.owner))
        self.assertIsNone(service.open_bid_thread(self.bid, self.owner))
        self.assertEqual(Message.objects.filter(room=f"bid-{self.bid.id}").count(), 1)
