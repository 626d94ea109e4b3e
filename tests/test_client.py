"""Tests for the API client and page state, in-process against the app and with mocked transports."""

import json
import unittest

import httpx

from sorinb.client.api import ApiClient, ApiError
from sorinb.client.shell import DEFAULT_MAP_CENTER, Shell
from sorinb.client.sources import ReplayPositionSource
from sorinb.client.tracker import GeoStatus, GeoTracker, Position, SaveStatus
from sorinb.services.users import bootstrap_admin
from tests.helpers import ADMIN_EMAIL, ADMIN_PASSWORD, PASSWORD, make_app

HERE = Position(lat=44.4268, lng=26.1025, accuracy=8.0, altitude_accuracy=2.0, timestamp=1760000000000)


class AppClientTestCase(unittest.IsolatedAsyncioTestCase):
    """ApiClient over ASGITransport. The lifespan does not run, so the admin is created here."""

    async def asyncSetUp(self) -> None:
        self.app, self.database = make_app()
        db = self.database.session()
        try:
            bootstrap_admin(db, self.app.state.settings)
        finally:
            db.close()
        self.addCleanup(self.database.dispose)
        self.http = httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.app), base_url="http://testserver"
        )
        self.addAsyncCleanup(self.http.aclose)
        self.api = ApiClient(client=self.http)


class TestApiClient(AppClientTestCase):

    async def test_me_is_none_when_signed_out(self) -> None:
        self.assertIsNone(await self.api.me())

    async def test_register_remembers_token(self) -> None:
        data = await self.api.register("New@Example.com", PASSWORD)
        self.assertEqual(data["user"]["email"], "new@example.com")
        self.assertEqual(self.api.token, data["token"])
        me = await self.api.me()
        self.assertEqual(me["email"], "new@example.com")

    async def test_bearer_works_without_cookie(self) -> None:
        await self.api.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        self.http.cookies.clear()
        me = await self.api.me()
        self.assertEqual(me["role"], "admin")

    async def test_login_failure_carries_server_message(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            await self.api.login(ADMIN_EMAIL, "wrong-password")
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Invalid email or password.")
        self.assertEqual(self.api.token, "")

    async def test_logout_clears_session(self) -> None:
        await self.api.register("leaving@example.com", PASSWORD)
        await self.api.logout()
        self.assertEqual(self.api.token, "")
        self.assertIsNone(await self.api.me())

    async def test_save_location_requires_login(self) -> None:
        with self.assertRaises(ApiError) as ctx:
            await self.api.save_location(HERE)
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.message, "Please login first to save locations.")

    async def test_save_and_list_locations(self) -> None:
        await self.api.register("walker@example.com", PASSWORD)
        row = await self.api.save_location(HERE)
        self.assertEqual(row["altitudeAccuracy"], 2.0)
        self.assertEqual(row["timestamp"], 1760000000000)
        listed = await self.api.list_locations(limit=10)
        self.assertEqual(listed["count"], 1)
        self.assertEqual(listed["data"][0]["id"], row["id"])

    async def test_send_gps_is_anonymous(self) -> None:
        await self.api.register("holder@example.com", PASSWORD)
        body = await self.api.send_gps(HERE)
        self.assertTrue(body["ok"])
        self.assertIsNone(body["saved"]["user_id"])
        listed = await self.api.list_locations()
        self.assertEqual(listed["count"], 0)

    async def test_admin_user_management(self) -> None:
        await self.api.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        users = await self.api.list_users()
        self.assertEqual(users["count"], 1)
        other = ApiClient(client=httpx.AsyncClient(
            transport=httpx.ASGITransport(app=self.app), base_url="http://testserver"
        ))
        self.addAsyncCleanup(other._client.aclose)
        created = await other.register("staff@example.com", PASSWORD)
        user_id = created["user"]["id"]

        updated = await self.api.update_user(user_id, role="admin", password="")
        self.assertEqual(updated["user"]["role"], "admin")
        self.assertEqual(await self.api.delete_user(user_id), {"ok": True})
        with self.assertRaises(ApiError) as ctx:
            await self.api.delete_user(user_id)
        self.assertEqual(ctx.exception.status_code, 404)

    async def test_run_query_disabled(self) -> None:
        await self.api.login(ADMIN_EMAIL, ADMIN_PASSWORD)
        with self.assertRaises(ApiError) as ctx:
            await self.api.run_query("SELECT 1")
        self.assertEqual(ctx.exception.status_code, 404)


class TestShell(AppClientTestCase):

    async def asyncSetUp(self) -> None:
        await super().asyncSetUp()
        self.shell = Shell(self.api)

    async def test_initial_state(self) -> None:
        self.assertTrue(self.shell.auth_loading)
        self.assertTrue(self.shell.loading)
        self.assertEqual(self.shell.auth_mode, "login")
        self.assertFalse(self.shell.is_admin)

    async def test_refresh_signed_out(self) -> None:
        await self.shell.refresh()
        self.assertIsNone(self.shell.auth_user)
        self.assertFalse(self.shell.auth_loading)
        self.assertFalse(self.shell.loading)
        self.assertIsNone(self.shell.auth_error)

    async def test_admin_login_loads_table(self) -> None:
        self.assertTrue(await self.shell.submit_auth(ADMIN_EMAIL, ADMIN_PASSWORD))
        self.assertTrue(self.shell.is_admin)
        tables = {t["table_name"] for t in self.shell.db_data["tables"]}
        self.assertIn("users", tables)
        self.assertIn("locations", tables)
        columns, rows = self.shell.table()
        self.assertEqual(columns, ["id", "email", "role", "created_at"])
        self.assertEqual(rows[0]["email"], ADMIN_EMAIL)

    async def test_register_mode_user_sees_no_table(self) -> None:
        self.shell.set_auth_mode("register")
        self.assertTrue(await self.shell.submit_auth("plain@example.com", PASSWORD))
        self.assertFalse(self.shell.is_admin)
        self.assertIsNone(self.shell.db_data)
        self.assertEqual(self.shell.table(), ([], []))
        await self.shell.fetch_data()
        self.assertEqual(self.shell.error, "Not authorized (admin only).")

    async def test_failed_auth_sets_error(self) -> None:
        self.assertFalse(await self.shell.submit_auth(ADMIN_EMAIL, "nope-nope-nope"))
        self.assertEqual(self.shell.auth_error, "Invalid email or password.")
        self.shell.set_auth_mode("register")
        self.assertIsNone(self.shell.auth_error)

    async def test_duplicate_register_sets_error(self) -> None:
        self.shell.set_auth_mode("register")
        self.assertFalse(await self.shell.submit_auth(ADMIN_EMAIL, PASSWORD))
        self.assertEqual(self.shell.auth_error, "Email already registered.")

    async def test_unknown_auth_mode(self) -> None:
        with self.assertRaises(ValueError):
            self.shell.set_auth_mode("sso")

    async def test_logout_resets_state(self) -> None:
        self.assertEqual(self.shell.token, "")
        await self.shell.submit_auth(ADMIN_EMAIL, ADMIN_PASSWORD)
        self.assertEqual(self.shell.token, self.api.token)
        self.assertNotEqual(self.shell.token, "")
        await self.shell.logout()
        self.assertEqual(self.shell.token, "")
        self.assertIsNone(self.shell.auth_user)
        self.assertIsNone(self.shell.db_data)
        await self.shell.refresh()
        self.assertIsNone(self.shell.auth_user)

    async def test_map_center(self) -> None:
        self.assertEqual(Shell.map_center(None), DEFAULT_MAP_CENTER)
        self.assertEqual(Shell.map_center(HERE), (44.4268, 26.1025))


class TestTrackerEndToEnd(AppClientTestCase):

    async def test_capture_saves_for_signed_in_user(self) -> None:
        await self.api.register("tracker@example.com", PASSWORD)
        tracker = GeoTracker(ReplayPositionSource([HERE]), self.api.save_location)
        self.assertEqual(await tracker.capture_and_save(), HERE)
        self.assertEqual(tracker.save_status, SaveStatus.SAVED)
        listed = await self.api.list_locations()
        self.assertEqual(listed["count"], 1)
        self.assertEqual(listed["data"][0]["lat"], 44.4268)

    async def test_capture_signed_out_reports_login_hint(self) -> None:
        tracker = GeoTracker(ReplayPositionSource([HERE]), self.api.save_location)
        await tracker.capture_and_save()
        self.assertEqual(tracker.geo_status, GeoStatus.READY)
        self.assertEqual(tracker.save_status, SaveStatus.ERROR)
        self.assertEqual(tracker.save_error, "Please login first to save locations.")

    async def test_anonymous_sink_is_not_listed_for_user(self) -> None:
        tracker = GeoTracker(ReplayPositionSource([HERE]), self.api.send_gps)
        await tracker.capture_and_save()
        self.assertEqual(tracker.save_status, SaveStatus.SAVED)
        await self.api.register("someone@example.com", PASSWORD)
        self.assertEqual((await self.api.list_locations())["count"], 0)


class TestApiClientErrors(unittest.IsolatedAsyncioTestCase):
    """Failure shapes, with a mocked transport."""

    def client_for(self, handler) -> ApiClient:
        http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://api.test")
        self.addAsyncCleanup(http.aclose)
        return ApiClient(token="abc", client=http)

    async def test_sends_bearer_header(self) -> None:
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers.get("Authorization", ""))
            return httpx.Response(200, json={"user": {"id": 1}})

        await self.client_for(handler).me()
        self.assertEqual(seen, ["Bearer abc"])

    async def test_non_json_error_body(self) -> None:
        api = self.client_for(lambda request: httpx.Response(502, text="upstream down"))
        with self.assertRaises(ApiError) as ctx:
            await api.get_data()
        self.assertEqual(ctx.exception.status_code, 502)
        self.assertEqual(ctx.exception.message, "HTTP 502 Bad Gateway upstream down")

    async def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with self.assertRaises(ApiError) as ctx:
            await self.client_for(handler).list_locations()
        self.assertIsNone(ctx.exception.status_code)
        self.assertIn("Network error", ctx.exception.message)

    async def test_non_json_success_body(self) -> None:
        api = self.client_for(lambda request: httpx.Response(200, text="<html>proxy page</html>"))
        with self.assertRaises(ApiError) as ctx:
            await api.get_data()
        self.assertEqual(ctx.exception.status_code, 200)
        self.assertEqual(ctx.exception.message, "Invalid JSON response")

    async def test_shell_keeps_non_json_success_in_flags(self) -> None:
        shell = Shell(self.client_for(lambda request: httpx.Response(200, text="not json")))
        await shell.fetch_me()
        self.assertEqual(shell.auth_error, "Session check failed: Invalid JSON response")
        await shell.fetch_data()
        self.assertEqual(shell.error, "Invalid JSON response")
        self.assertFalse(shell.loading)

    async def test_me_server_error_is_raised(self) -> None:
        api = self.client_for(lambda request: httpx.Response(500, json={"error": "db down"}))
        with self.assertRaises(ApiError) as ctx:
            await api.me()
        self.assertEqual(ctx.exception.message, "Session check failed: db down")

    async def test_shell_surfaces_session_check_failure(self) -> None:
        shell = Shell(self.client_for(lambda request: httpx.Response(500, json={"error": "db down"})))
        await shell.fetch_me()
        self.assertIsNone(shell.auth_user)
        self.assertFalse(shell.auth_loading)
        self.assertEqual(shell.auth_error, "Session check failed: db down")

    async def test_logout_failure_still_clears_token(self) -> None:
        api = self.client_for(lambda request: httpx.Response(500, json={"error": "boom"}))
        await api.logout()
        self.assertEqual(api.token, "")

    async def test_update_user_omits_blank_password(self) -> None:
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            return httpx.Response(200, json={"user": {}})

        await self.client_for(handler).update_user(3, role="user", password="")
        self.assertEqual([json.loads(body) for body in bodies], [{"role": "user"}])


if __name__ == "__main__":
    unittest.main()
