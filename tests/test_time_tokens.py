from __future__ import annotations

import unittest

from resolution_dates.engine.time_tokens import parse_time_token


class ParseTimeTokenTests(unittest.TestCase):
    def test_empty_input_is_midnight(self) -> None:
        self.assertEqual(parse_time_token(""), (0, 0))
        self.assertEqual(parse_time_token(None), (0, 0))

    def test_pm_hour_only(self) -> None:
        self.assertEqual(parse_time_token("9PM"), (21, 0))
        self.assertEqual(parse_time_token("3pm"), (15, 0))

    def test_hour_and_minute_with_marker(self) -> None:
        self.assertEqual(parse_time_token("3:15AM"), (3, 15))
        self.assertEqual(parse_time_token("9:00 PM"), (21, 0))

    def test_noon_and_midnight(self) -> None:
        self.assertEqual(parse_time_token("12PM"), (12, 0))
        self.assertEqual(parse_time_token("12:30am"), (0, 30))

    def test_range_uses_start_unless_end_preferred(self) -> None:
        self.assertEqual(parse_time_token("9:00PM-9:15PM"), (21, 0))
        self.assertEqual(parse_time_token("9:00PM-9:15PM", prefer_end=True), (21, 15))

    def test_range_end_without_marker_is_24_hour(self) -> None:
        self.assertEqual(parse_time_token("9PM-10", prefer_end=True), (10, 0))

    def test_empty_range_end_falls_back_to_start(self) -> None:
        self.assertEqual(parse_time_token("8PM-", prefer_end=True), (20, 0))

    def test_no_marker_passes_through(self) -> None:
        self.assertEqual(parse_time_token("14:45"), (14, 45))

    def test_malformed_numbers_parse_to_zero(self) -> None:
        self.assertEqual(parse_time_token("xx:yyPM"), (12, 0))
        self.assertEqual(parse_time_token("noon"), (0, 0))


if __name__ == "__main__":
    unittest.main()
