import unittest

from goldbot.services.money import format_gold, parse_amount


class MoneyTests(unittest.TestCase):
    def test_parse_amount_accepts_whole_numbers(self) -> None:
        self.assertEqual(parse_amount("100"), 100)
        self.assertEqual(parse_amount(" 1,500 "), 1500)
        self.assertEqual(parse_amount("-5"), -5)
        self.assertEqual(parse_amount(0), 0)

    def test_parse_amount_rejects_non_numeric(self) -> None:
        self.assertIsNone(parse_amount(None))
        self.assertIsNone(parse_amount(""))
        self.assertIsNone(parse_amount("ten"))
        self.assertIsNone(parse_amount("12.5"))
        self.assertIsNone(parse_amount(True))

    def test_format_gold_groups_thousands(self) -> None:
        self.assertEqual(format_gold(0), "0")
        self.assertEqual(format_gold(1234567), "1,234,567")


if __name__ == "__main__":
    unittest.main()
