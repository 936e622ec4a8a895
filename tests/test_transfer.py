"""Tests for netbench.transfer -- fault classification and a local HTTP server."""

import asyncio
import errno
import socket
import unittest
from unittest import mock

import aiohttp
from aiohttp import web
from aiohttp.test_utils import TestServer

from netbench.config import TransferConfig
from netbench.transfer import (
    FaultKind,
    NetworkFault,
    TransferClient,
    classify_fault,
)


class TestClassifyFault(unittest.TestCase):
    def test_asyncio_timeout(self):
        self.assertIs(classify_fault(asyncio.TimeoutError()).kind, FaultKind.TIMEOUT)

    def test_server_timeout(self):
        self.assertIs(classify_fault(aiohttp.ServerTimeoutError("read")).kind, FaultKind.TIMEOUT)

    def test_connector_error(self):
        exc = aiohttp.ClientConnectorError(mock.Mock(), OSError(errno.ECONNREFUSED, "refused"))
        self.assertIs(classify_fault(exc).kind, FaultKind.CONNECT_FAILURE)

    def test_connection_refused(self):
        self.assertIs(classify_fault(ConnectionRefusedError()).kind, FaultKind.CONNECT_FAILURE)

    def test_payload_error(self):
        exc = aiohttp.ClientPayloadError("Response payload is not completed")
        self.assertIs(classify_fault(exc).kind, FaultKind.RESET_OR_MID_STREAM)

    def test_server_disconnected(self):
        self.assertIs(classify_fault(aiohttp.ServerDisconnectedError()).kind, FaultKind.RESET_OR_MID_STREAM)

    def test_connection_reset(self):
        self.assertIs(classify_fault(ConnectionResetError()).kind, FaultKind.RESET_OR_MID_STREAM)

    def test_client_os_error_reset_errno(self):
        exc = aiohttp.ClientOSError(errno.ECONNRESET, "Connection reset by peer")
        self.assertIs(classify_fault(exc).kind, FaultKind.RESET_OR_MID_STREAM)

    def test_other(self):
        self.assertIs(classify_fault(aiohttp.InvalidURL("nope")).kind, FaultKind.OTHER)
        self.assertIs(classify_fault(ValueError("x")).kind, FaultKind.OTHER)

    def test_network_fault_passthrough(self):
        fault = NetworkFault(FaultKind.TIMEOUT, "slow")
        self.assertIs(classify_fault(fault), fault)

    def test_message_never_empty(self):
        fault = classify_fault(asyncio.TimeoutError())
        self.assertTrue(str(fault))
        self.assertTrue(fault.is_timeout)


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestTransferClient(unittest.IsolatedAsyncioTestCase):
    BODY = b"x" * 200_000

    async def asyncSetUp(self):
        app = web.Application()
        app.router.add_get("/file", self._file)
        app.router.add_get("/missing", self._missing)
        app.router.add_get("/slow", self._slow)
        app.router.add_get("/truncated", self._truncated)
        app.router.add_post("/upload", self._upload)
        self.received = []
        self.server = TestServer(app)
        await self.server.start_server()

    async def asyncTearDown(self):
        await self.server.close()

    # -- Handlers -----------------------------------------------------------

    async def _file(self, request):
        return web.Response(body=self.BODY)

    async def _missing(self, request):
        return web.Response(status=404, text="not here")

    async def _slow(self, request):
        await asyncio.sleep(1.0)
        return web.Response(text="late")

    async def _truncated(self, request):
        resp = web.StreamResponse()
        resp.content_length = 1_000_000
        await resp.prepare(request)
        await resp.write(b"y" * 1000)
        request.transport.close()
        return resp

    async def _upload(self, request):
        data = await request.read()
        self.received.append(len(data))
        return web.json_response({"received": len(data)})

    def url(self, path):
        return str(self.server.make_url(path))

    # -- Tests --------------------------------------------------------------

    async def test_requires_context_manager(self):
        client = TransferClient()
        with self.assertRaises(RuntimeError):
            await client.head(self.url("/file"))

    async def test_head_returns_duration(self):
        async with TransferClient() as client:
            elapsed = await client.head(self.url("/file"))
        self.assertGreaterEqual(elapsed, 0.0)
        self.assertLess(elapsed, 5.0)

    async def test_get_streaming_reads_body(self):
        async with TransferClient(chunk_size=16 * 1024) as client:
            async with client.get_streaming(self.url("/file")) as stream:
                self.assertEqual(stream.status, 200)
                self.assertEqual(stream.total_size, len(self.BODY))
                chunks = [c async for c in stream.iter_chunks()]
        self.assertEqual(b"".join(chunks), self.BODY)
        self.assertGreater(len(chunks), 1)

    async def test_http_error_is_other_fault(self):
        async with TransferClient() as client:
            with self.assertRaises(NetworkFault) as ctx:
                async with client.get_streaming(self.url("/missing")):
                    pass
        self.assertIs(ctx.exception.kind, FaultKind.OTHER)
        self.assertIn("404", str(ctx.exception))

    async def test_truncated_body_is_mid_stream_fault(self):
        async with TransferClient() as client:
            async with client.get_streaming(self.url("/truncated")) as stream:
                with self.assertRaises(NetworkFault) as ctx:
                    async for _ in stream.iter_chunks():
                        pass
        self.assertIs(ctx.exception.kind, FaultKind.RESET_OR_MID_STREAM)

    async def test_timeout_fault(self):
        async with TransferClient(request_timeout=0.2, connect_timeout=0.2) as client:
            with self.assertRaises(NetworkFault) as ctx:
                await client.head(self.url("/slow"))
        self.assertIs(ctx.exception.kind, FaultKind.TIMEOUT)

    async def test_per_request_timeout_from_config(self):
        config = TransferConfig(target_url=self.url("/slow"), request_timeout=0.2, connect_timeout=0.2)
        async with TransferClient() as client:
            with self.assertRaises(NetworkFault) as ctx:
                async with client.get_streaming(config.target_url, config):
                    pass
        self.assertIs(ctx.exception.kind, FaultKind.TIMEOUT)

    async def test_connect_failure(self):
        url = f"http://127.0.0.1:{_unused_port()}/file"
        async with TransferClient(connect_timeout=2) as client:
            with self.assertRaises(NetworkFault) as ctx:
                await client.head(url)
        self.assertIs(ctx.exception.kind, FaultKind.CONNECT_FAILURE)
        self.assertIsInstance(ctx.exception.__cause__, aiohttp.ClientConnectorError)

    async def test_post_body_sends_payload_and_drains(self):
        payload = b"\1" * 300_000
        async with TransferClient() as client:
            drained = await client.post_body(self.url("/upload"), payload)
        self.assertEqual(self.received, [len(payload)])
        self.assertGreater(drained, 0)


if __name__ == "__main__":
    unittest.main()
