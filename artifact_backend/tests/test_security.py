import unittest

import jwt

from artifact_backend.config import Settings
from artifact_backend.errors import ArtifactServiceError, Unauthorized
from artifact_backend.security import create_access_token, verify_token

SECRET = "unit-test-secret-that-is-long-enough-for-hs256"


class SessionTokenTests(unittest.TestCase):
    def setUp(self):
        self.settings = Settings(access_token_secret=SECRET)

    def test_issue_and_verify(self):
        token = create_access_token({"email": "u@x.com", "name": "U"}, self.settings)
        claims = verify_token(token, self.settings)
        self.assertEqual(claims["email"], "u@x.com")
        self.assertEqual(claims["name"], "U")
        # Roughly a year of validity.
        self.assertGreater(claims["exp"] - claims["iat"], 364 * 24 * 60 * 60)

    def test_caller_cannot_choose_expiry(self):
        token = create_access_token({"email": "u@x.com", "exp": 1}, self.settings)
        self.assertEqual(verify_token(token, self.settings)["email"], "u@x.com")

    def test_missing_token(self):
        for token in (None, ""):
            with self.assertRaises(Unauthorized):
                verify_token(token, self.settings)

    def test_expired_token(self):
        expired = Settings(access_token_secret=SECRET, access_token_expire_days=-1)
        token = create_access_token({"email": "u@x.com"}, expired)
        with self.assertRaises(Unauthorized):
            verify_token(token, self.settings)

    def test_wrong_secret_and_garbage(self):
        forged = jwt.encode({"email": "u@x.com"}, "some-other-secret-of-decent-length!!", algorithm="HS256")
        with self.assertRaises(Unauthorized):
            verify_token(forged, self.settings)
        with self.assertRaises(Unauthorized):
            verify_token("not.a.token", self.settings)

    def test_unconfigured_secret(self):
        settings = Settings(access_token_secret=None)
        with self.assertRaises(ArtifactServiceError):
            create_access_token({"email": "u@x.com"}, settings)
        token = create_access_token({"email": "u@x.com"}, self.settings)
        with self.assertRaises(Unauthorized):
            verify_token(token, settings)


if __name__ == "__main__":
    unittest.main()
