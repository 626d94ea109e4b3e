"""Tests for the command-line scripts and the replay position source."""

import asyncio
import contextlib
import io
import tempfile
import unittest
from pathlib import Path

from sorinb.client.sources import ReplayPositionSource, load_positions, position_from_dict
from sorinb.client.tracker import POSITION_UNAVAILABLE, GeolocationError, Position, PositionOptions
from sorinb.scripts import create_user, track
from sorinb.services.users import authenticate
from tests.helpers import PASSWORD, make_database


class TestCreateUserScript(unittest.TestCase):

    def setUp(self) -> None:
        self.database = make_database()
        self.addCleanup(self.database.dispose)

    def run_script(self, *argv: str) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(out), contextlib.redirect_stderr(err):
            code = create_user.main(list(argv), database=self.database)
        return code, out.getvalue(), err.getvalue()

    def test_creates_admin(self) -> None:
        code, out, _ = self.run_script("Ops@Example.com", PASSWORD, "admin")
        self.assertEqual(code, 0)
        self.assertIn("ops@example.com", out)
        db = self.database.session()
        try:
            user = authenticate(db, "ops@example.com", PASSWORD)
            self.assertEqual(user.role, "admin")
        finally:
            db.close()

    def test_duplicate_email(self) -> None:
        self.run_script("dup@example.com", PASSWORD)
        code, _, err = self.run_script("dup@example.com", PASSWORD)
        self.assertEqual(code, 1)
        self.assertIn("already registered", err)

    def test_rejects_short_password(self) -> None:
        code, _, err = self.run_script("short@example.com", "short")
        self.assertEqual(code, 1)
        self.assertIn("8-128", err)

    def test_rejects_bad_email(self) -> None:
        code, _, _ = self.run_script("not-an-email", PASSWORD)
        self.assertEqual(code, 1)


class TestPositionFiles(unittest.TestCase):

    def test_position_from_dict(self) -> None:
        position = position_from_dict(
            {"lat": "44.5", "lng": 26, "altitudeAccuracy": 3, "speed": True, "timestamp": 17.0}
        )
        self.assertEqual(position.lat, 44.5)
        self.assertEqual(position.altitude_accuracy, 3.0)
        self.assertIsNone(position.speed)
        self.assertEqual(position.timestamp, 17)

    def test_position_from_dict_requires_coordinates(self) -> None:
        with self.assertRaises(ValueError):
            position_from_dict({"lat": 1})

    def test_load_positions(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "walk.jsonl"
            path.write_text('{"lat": 1, "lng": 2}\n\n{"lat": 3, "lng": 4, "accuracy": 5}\n', encoding="utf-8")
            positions = load_positions(path)
        self.assertEqual([(p.lat, p.lng) for p in positions], [(1.0, 2.0), (3.0, 4.0)])
        self.assertEqual(positions[1].accuracy, 5.0)

    def test_load_positions_reports_line(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "bad.jsonl"
            path.write_text('{"lat": 1, "lng": 2}\nnot json\n', encoding="utf-8")
            with self.assertRaises(ValueError) as ctx:
                load_positions(path)
        self.assertIn(":2:", str(ctx.exception))


class TestReplayPositionSource(unittest.TestCase):

    def test_stamps_and_exhausts(self) -> None:
        source = ReplayPositionSource([Position(lat=1, lng=2)], now_ms=lambda: 42)
        first = asyncio.run(source.get_current_position(PositionOptions()))
        self.assertEqual(first.timestamp, 42)
        with self.assertRaises(GeolocationError) as ctx:
            asyncio.run(source.get_current_position(PositionOptions()))
        self.assertEqual(ctx.exception.code, POSITION_UNAVAILABLE)

    def test_loop_and_watches(self) -> None:
        source = ReplayPositionSource([Position(lat=1, lng=2, timestamp=7)], loop=True)
        for _ in range(3):
            self.assertEqual(asyncio.run(source.get_current_position(PositionOptions())).timestamp, 7)
        watch_id = source.watch_position(None, None, PositionOptions())
        self.assertEqual(source.active_watches, {watch_id})
        source.clear_watch(watch_id)
        self.assertEqual(source.active_watches, set())


class TestTrackScript(unittest.TestCase):

    def test_needs_positions(self) -> None:
        with self.assertLogs("sorinb.scripts.track", level="ERROR"):
            self.assertEqual(track.main(["--lat", "44.4"]), 1)

    def test_fixed_position_from_args(self) -> None:
        args = track.build_parser().parse_args(["--lat", "44.4", "--lng", "26.1", "--anonymous"])
        self.assertEqual(track._positions(args), [Position(lat=44.4, lng=26.1)])
        self.assertTrue(args.anonymous)
        self.assertEqual(args.interval, 60.0)


if __name__ == "__main__":
    unittest.main()
