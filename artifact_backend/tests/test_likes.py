import os
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor

from artifact_backend import likes
from artifact_backend.db import InMemoryDbClient, SqlDbClient
from artifact_backend.errors import NotFound, ValidationError

CONCURRENT_USERS = 12


class LikeToggleTests(unittest.TestCase):
    def make_db(self):
        return InMemoryDbClient()

    def setUp(self):
        self.db = self.make_db()
        self.addCleanup(self.db.close)
        self.artifact_id = self.db.create_artifact(
            {"email": "owner@x.com"}, {"name": "Urn"}
        ).artifact_id

    def test_toggle_twice_restores_state(self):
        self.assertTrue(likes.toggle_like(self.db, self.artifact_id, "u@x.com"))
        self.assertEqual(self.db.get_artifact(self.artifact_id).like_count, 1)
        self.assertFalse(likes.toggle_like(self.db, self.artifact_id, "u@x.com"))
        record = self.db.get_artifact(self.artifact_id)
        self.assertEqual(record.like_count, 0)
        self.assertEqual(record.liked_by, [])

    def test_toggle_validation(self):
        with self.assertRaises(ValidationError):
            likes.toggle_like(self.db, self.artifact_id, "")
        with self.assertRaises(NotFound):
            likes.toggle_like(self.db, "missing", "u@x.com")

    def test_liked_artifacts_empty_is_not_found(self):
        with self.assertRaises(NotFound):
            likes.liked_artifacts(self.db, "u@x.com")
        likes.toggle_like(self.db, self.artifact_id, "u@x.com")
        self.assertEqual(len(likes.liked_artifacts(self.db, "u@x.com")), 1)

    def test_concurrent_toggles_by_distinct_users_are_all_counted(self):
        emails = [f"user{i}@x.com" for i in range(CONCURRENT_USERS)]
        with ThreadPoolExecutor(max_workers=CONCURRENT_USERS) as pool:
            results = list(
                pool.map(lambda e: likes.toggle_like(self.db, self.artifact_id, e), emails)
            )
        self.assertTrue(all(results))
        record = self.db.get_artifact(self.artifact_id)
        self.assertEqual(record.like_count, CONCURRENT_USERS)
        self.assertEqual(sorted(record.liked_by), sorted(emails))

    def test_concurrent_toggles_by_same_user_never_double_count(self):
        with ThreadPoolExecutor(max_workers=4) as pool:
            list(
                pool.map(
                    lambda _: likes.toggle_like(self.db, self.artifact_id, "u@x.com"),
                    range(4),
                )
            )
        record = self.db.get_artifact(self.artifact_id)
        # An even number of flips lands back on "not liked".
        self.assertEqual(record.like_count, 0)
        self.assertEqual(record.liked_by, [])


class SqlLikeToggleTests(LikeToggleTests):
    """File-backed SQLite so every worker thread gets its own connection."""

    def make_db(self):
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = os.path.join(tmpdir.name, "artifacts.db")
        return SqlDbClient(f"sqlite+pysqlite:///{path}")


if __name__ == "__main__":
    unittest.main()
