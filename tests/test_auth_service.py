import unittest
from datetime import datetime, timedelta, timezone

from image_exchange.errors import Unauthorized
from image_exchange.services.auth_service import AuthService

ISSUED = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestAuthService(unittest.TestCase):

    def setUp(self):
        self.service = AuthService("jon", "shhh!", secret_key="test-secret")

    def test_login_issues_token_expiring_in_72_hours(self):
        issued = self.service.login("jon", "shhh!", now=ISSUED)
        self.assertEqual(issued.expires_at, ISSUED + timedelta(hours=72))

        identity = self.service.authenticate(issued.token, now=ISSUED + timedelta(hours=1))
        self.assertEqual(identity.subject, "jon")
        self.assertTrue(identity.admin)
        self.assertEqual(identity.expires_at, ISSUED + timedelta(hours=72))

    def test_token_accepted_until_expiry_instant(self):
        token = self.service.login("jon", "shhh!", now=ISSUED).token
        expiry = ISSUED + timedelta(hours=72)

        self.service.authenticate(token, now=expiry - timedelta(seconds=1))
        with self.assertRaises(Unauthorized):
            self.service.authenticate(token, now=expiry)
        with self.assertRaises(Unauthorized):
            self.service.authenticate(token, now=expiry + timedelta(days=1))

    def test_wrong_credentials(self):
        for username, password in (("jon", "wrong"), ("bob", "shhh!"), ("", ""), ("JON", "shhh!")):
            with self.subTest(username=username, password=password):
                with self.assertRaises(Unauthorized) as ctx:
                    self.service.login(username, password)
                self.assertEqual(ctx.exception.message, "invalid credentials")

    def test_malformed_tokens_rejected(self):
        for token in ("", "garbage", "a.b.c", "eyJzdWIiOiJqb24ifQ"):
            with self.subTest(token=token):
                with self.assertRaises(Unauthorized):
                    self.service.authenticate(token)

    def test_token_signed_with_other_secret_rejected(self):
        other = AuthService("jon", "shhh!", secret_key="another-secret")
        token = other.login("jon", "shhh!").token
        with self.assertRaises(Unauthorized):
            self.service.authenticate(token)

    def test_tampered_token_rejected(self):
        token = self.service.login("jon", "shhh!").token
        payload, _, signature = token.rpartition(".")
        tampered = payload + "." + ("A" if signature[0] != "A" else "B") + signature[1:]
        with self.assertRaises(Unauthorized):
            self.service.authenticate(tampered)

    def test_generated_secret_when_none_configured(self):
        service = AuthService("jon", "shhh!")
        token = service.login("jon", "shhh!").token
        self.assertEqual(service.authenticate(token).subject, "jon")

    def test_custom_ttl(self):
        service = AuthService("jon", "shhh!", secret_key="s", token_ttl=timedelta(minutes=5))
        token = service.login("jon", "shhh!", now=ISSUED).token
        with self.assertRaises(Unauthorized):
            service.authenticate(token, now=ISSUED + timedelta(minutes=5))


if __name__ == '__main__':
    unittest.main()
