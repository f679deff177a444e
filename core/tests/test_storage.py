import shutil
import tempfile
import typing
from unittest import mock

import httpx
from django.core.files.storage import FileSystemStorage
from django.test import SimpleTestCase

from core.exceptions import Timeout, UpstreamFailure
from core.supabase_client import LocalMediaStorage, StorageError, SupabaseStorage, build_object_name


class ObjectNameTests(SimpleTestCase):
    def test_keeps_prefix_and_lowercased_extension(self):
        name = build_object_name("projects/42/", "Photo.PNG")
        self.assertTrue(name.startswith("projects/42/"))
        self.assertTrue(name.endswith(".png"))

    def test_names_are_unique(self):
        self.assertNotEqual(build_object_name("p", "a.txt"), build_object_name("p", "a.txt"))

    def test_storage_signatures_resolve(self):
        for backend in (LocalMediaStorage, SupabaseStorage):
            hints = typing.get_type_hints(backend.remove)
            self.assertEqual(hints["paths"], typing.List[str])
            self.assertEqual(hints["return"], typing.List[str])

    def test_error_mapping(self):
        self.assertIsInstance(StorageError("x", retryable=True).as_api_error(), Timeout)
        self.assertIsInstance(StorageError("x").as_api_error(), UpstreamFailure)


class LocalMediaStorageTests(SimpleTestCase):
    def setUp(self):
        self.root = tempfile.mkdtemp()
        self.addCleanup(shutil.rmtree, self.root, ignore_errors=True)
        self.storage = LocalMediaStorage(FileSystemStorage(location=self.root, base_url="/media/"))

    def test_upload_list_remove(self):
        url = self.storage.upload("projects/1/a.txt", b"hello")
        self.assertEqual(url, "/media/projects/1/a.txt")
        self.storage.upload("projects/1/b.txt", b"world")

        paths = self.storage.list("projects/1")
        self.assertEqual(paths, ["projects/1/a.txt", "projects/1/b.txt"])

        removed = self.storage.remove(paths)
        self.assertEqual(removed, paths)
        self.assertEqual(self.storage.list("projects/1"), [])

    def test_list_of_missing_prefix_is_empty(self):
        self.assertEqual(self.storage.list("projects/999"), [])


class SupabaseStorageTests(SimpleTestCase):
    def setUp(self):
        self.bucket = mock.Mock()
        client = mock.Mock()
        client.storage.from_.return_value = self.bucket
        self.storage = SupabaseStorage(client, "project-images")

    def test_upload_returns_public_url(self):
        self.bucket.get_public_url.return_value = "https://cdn/x.png"
        self.assertEqual(self.storage.upload("projects/1/x.png", b"data"), "https://cdn/x.png")
        args, kwargs = self.bucket.upload.call_args
        self.assertEqual(args[0], "projects/1/x.png")
        self.assertEqual(kwargs["file_options"]["content-type"], "image/png")

    def test_timeout_is_retryable(self):
        self.bucket.upload.side_effect = httpx.ReadTimeout("slow")
        with self.assertRaises(StorageError) as ctx:
            self.storage.upload("projects/1/x.png", b"data")
        self.assertTrue(ctx.exception.retryable)

    def test_other_failures_are_not_retryable(self):
        self.bucket.list.side_effect = RuntimeError("boom")
        with self.assertRaises(StorageError) as ctx:
            self.storage.list("projects/1")
        self.assertFalse(ctx.exception.retryable)

    def test_list_prefixes_entry_names(self):
        self.bucket.list.return_value = [{"name": "a.png"}, {"name": "b.png"}, {"name": None}]
        self.assertEqual(self.storage.list("projects/1/"), ["projects/1/a.png", "projects/1/b.png"])

    def test_remove_reports_what_the_backend_deleted(self):
        self.bucket.remove.return_value = [{"name": "projects/1/a.png"}]
        removed = self.storage.remove(["projects/1/a.png", "projects/1/b.png"])
        self.assertEqual(removed, ["projects/1/a.png"])
