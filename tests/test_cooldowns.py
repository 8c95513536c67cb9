import unittest

from goldbot.config.settings import DAY_MS, HOUR_MS, MINUTE_MS, WEEK_MS
from goldbot.core.cooldowns import try_claim, wait_units


class CooldownGateTests(unittest.TestCase):
    def test_never_claimed_is_allowed(self) -> None:
        self.assertTrue(try_claim(None, 5_000, HOUR_MS).allowed)
        self.assertTrue(try_claim(0, 5_000, HOUR_MS).allowed)

    def test_boundary(self) -> None:
        t0 = 1_000_000
        early = try_claim(t0, t0 + HOUR_MS - 1, HOUR_MS)
        self.assertFalse(early.allowed)
        self.assertEqual(early.remaining_ms, 1)
        self.assertTrue(try_claim(t0, t0 + HOUR_MS, HOUR_MS).allowed)
        self.assertTrue(try_claim(t0, t0 + 2 * HOUR_MS, HOUR_MS).allowed)

    def test_remaining_is_reported(self) -> None:
        check = try_claim(1_000, 1_000 + 10 * MINUTE_MS, 30 * MINUTE_MS)
        self.assertFalse(check.allowed)
        self.assertEqual(check.remaining_ms, 20 * MINUTE_MS)

    def test_wait_units_follow_period(self) -> None:
        self.assertEqual(wait_units(20 * MINUTE_MS + 1, 30 * MINUTE_MS), (21, "minute"))
        self.assertEqual(wait_units(59 * MINUTE_MS, HOUR_MS), (59, "minute"))
        self.assertEqual(wait_units(5 * HOUR_MS + 1, DAY_MS), (6, "hour"))
        self.assertEqual(wait_units(2 * DAY_MS, WEEK_MS), (2, "day"))
        self.assertEqual(wait_units(1, WEEK_MS), (1, "day"))


if __name__ == "__main__":
    unittest.main()
