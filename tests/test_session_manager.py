import unittest

import httpx

from api.session_manager import ChatSessionManager


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestChatSessionManager(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(503)),
            base_url="http://proxy.test",
        )
        self.clock = FakeClock()
        self.manager = ChatSessionManager(ttl_seconds=60, max_sessions=2, clock=self.clock)

    async def asyncTearDown(self):
        await self.client.aclose()

    async def test_idle_session_is_dropped_after_ttl(self):
        controller = await self.manager.create_session(self.client, "fr")

        self.clock.now += 61

        self.assertIsNone(self.manager.get_session(controller.session_id))
        self.assertEqual(self.manager.sessions, {})
        self.assertEqual(self.manager.last_access, {})

    async def test_access_keeps_session_alive(self):
        controller = await self.manager.create_session(self.client, "fr")

        self.clock.now += 40
        self.assertIs(self.manager.get_session(controller.session_id), controller)
        self.clock.now += 40

        self.assertIs(self.manager.get_session(controller.session_id), controller)

    async def test_least_recently_used_session_is_dropped_at_capacity(self):
        first = await self.manager.create_session(self.client, "fr")
        self.clock.now += 1
        second = await self.manager.create_session(self.client, "fr")
        self.clock.now += 1
        self.manager.get_session(first.session_id)
        self.clock.now += 1

        third = await self.manager.create_session(self.client, "fr")

        self.assertEqual(
            set(self.manager.sessions), {first.session_id, third.session_id}
        )
        self.assertIsNone(self.manager.get_session(second.session_id))

    async def test_session_with_request_in_flight_is_not_expired(self):
        controller = await self.manager.create_session(self.client, "fr")
        controller._pending.add("in-flight")

        self.clock.now += 120

        self.assertEqual(self.manager.evict_expired(), 0)
        self.assertIs(self.manager.get_session(controller.session_id), controller)

    async def test_close_session(self):
        controller = await self.manager.create_session(self.client, "fr")

        self.assertTrue(await self.manager.close_session(controller.session_id))
        self.assertFalse(await self.manager.close_session(controller.session_id))
        self.assertNotIn(controller.session_id, self.manager.last_access)


if __name__ == "__main__":
    unittest.main()
