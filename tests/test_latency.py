"""Tests for netbench.latency."""

import unittest

from netbench.latency import measure_ping
from netbench.transfer import FaultKind, NetworkFault

from fakes import FakeTransferClient


class TestMeasurePing(unittest.IsolatedAsyncioTestCase):
    async def test_truncates_to_whole_milliseconds(self):
        client = FakeTransferClient(head_latency=0.0257)
        self.assertEqual(await measure_ping(client, "http://dl.test/file"), 25)
        self.assertEqual(client.head_calls, ["http://dl.test/file"])

    async def test_sub_millisecond_is_zero(self):
        client = FakeTransferClient(head_latency=0.0004)
        self.assertEqual(await measure_ping(client, "http://dl.test/file"), 0)

    async def test_fault_passes_through(self):
        fault = NetworkFault(FaultKind.CONNECT_FAILURE, "connection refused")
        client = FakeTransferClient(head_fault=fault)
        with self.assertRaises(NetworkFault) as ctx:
            await measure_ping(client, "http://dl.test/file")
        self.assertIs(ctx.exception, fault)


if __name__ == "__main__":
    unittest.main()
