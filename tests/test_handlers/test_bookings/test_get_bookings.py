import importlib
import json
import os
import unittest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

from roombook.models.bookings import Booking
from roombook.models.intervals import TimeInterval
from roombook.models.rooms import Room
from roombook.utils.custom_exceptions import StoreUnavailable


class GetUserBookingsTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.env = patch.dict(os.environ, {"TABLE_NAME": "test-table"}, clear=False)
        cls.env.start()
        cls.resource = patch("boto3.resource")
        mock_res = cls.resource.start()
        mock_res.return_value.Table.return_value = MagicMock()
        import handlers.bookings.get_bookings as mod
        cls.mod = importlib.reload(mod)

    @classmethod
    def tearDownClass(cls):
        cls.resource.stop(); cls.env.stop()

    def setUp(self):
        self.p_get = patch.object(self.mod.booking_service, "get_user_bookings")
        self.mock_get = self.p_get.start()

    def tearDown(self):
        self.p_get.stop()

    def _event(self, user_id="u1"):
        return {"requestContext": {"authorizer": {"user_id": user_id}}}

    def test_missing_authorizer_returns_401(self):
        resp = self.mod.get_user_bookings({"requestContext": {}}, None)
        self.assertEqual(401, resp["statusCode"])

    def test_only_own_bookings_are_listed(self):
        self.mock_get.return_value = []
        resp = self.mod.get_user_bookings(self._event(user_id="u7"), None)
        self.assertEqual(200, resp["statusCode"])
        self.mock_get.assert_called_once_with("u7")

    def test_store_unavailable_returns_503(self):
        self.mock_get.side_effect = StoreUnavailable("timeout")
        resp = self.mod.get_user_bookings(self._event(), None)
        self.assertEqual(503, resp["statusCode"])

    def test_generic_error_returns_500(self):
        self.mock_get.side_effect = RuntimeError("boom")
        resp = self.mod.get_user_bookings(self._event(), None)
        self.assertEqual(500, resp["statusCode"])

    def test_success_returns_bookings_in_service_order(self):
        def booking(booking_id, start, end):
            return Booking(
                booking_id=booking_id,
                user_id="u1",
                room_id="r1",
                booking_date=date(2099, 1, 1),
                interval=TimeInterval.parse(start, end),
                total_hours=Decimal("1.00"),
                total_amount=Decimal("500.00"),
                room=Room("r1", "Board", Decimal("500")),
            )

        self.mock_get.return_value = [booking("b2", "12:00", "13:00"), booking("b1", "09:00", "10:00")]

        resp = self.mod.get_user_bookings(self._event(), None)

        self.assertEqual(200, resp["statusCode"])
        data = json.loads(resp["body"])["data"]
        self.assertEqual(data["count"], 2)
        self.assertEqual([b["booking_id"] for b in data["bookings"]], ["b2", "b1"])
        self.assertEqual(data["bookings"][0]["room"]["name"], "Board")


if __name__ == "__main__":
    unittest.main()
