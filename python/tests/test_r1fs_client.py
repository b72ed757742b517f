import base64
import io
import json
import pickle
import threading
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from common.errors import (
    CancelledError,
    DocumentError,
    EncodingError,
    InvalidArgumentError,
    NotFoundError,
    TransportError,
    UnsupportedFeatureError,
)
from r1fs.client import R1FSClient, decode_document
from r1fs.types import DeleteOptions, UploadOptions, YAMLDocument


@pytest.fixture
def client():
    return R1FSClient.mock()


def _http_response(content):
    resp = MagicMock()
    resp.content = content if isinstance(content, bytes) else json.dumps(content).encode()
    return resp


# ============================================================
# get_yaml payload decoding
# ============================================================

class TestDecodeDocument:
    @pytest.mark.parametrize("raw", [None, b"", b"null", b"  null "])
    def test_empty_is_none(self, raw):
        assert decode_document("cid", raw) is None

    @pytest.mark.parametrize("raw", [b'"error"', b'"ERROR"'])
    def test_error_sentinel(self, raw):
        with pytest.raises(DocumentError):
            decode_document("cid", raw)

    def test_file_data(self):
        doc = decode_document("cid", b'{"file_data":{"a":1}}')
        assert doc == YAMLDocument(cid="cid", data={"a": 1})

    def test_missing_file_data(self):
        assert decode_document("cid", b"{}") == YAMLDocument(cid="cid")

    def test_decoder(self):
        doc = decode_document("cid", b'{"file_data":{"a":1}}', decode=lambda v: v["a"])
        assert doc.data == 1
        with pytest.raises(EncodingError):
            decode_document("cid", b'{"file_data":{"a":1}}', decode=lambda v: v["b"])

    def test_other_string_is_not_an_object(self):
        with pytest.raises(EncodingError):
            decode_document("cid", b'"ok"')


# ============================================================
# Facade over the in-memory backend
# ============================================================

class TestMockFacade:
    @pytest.mark.asyncio
    async def test_upload_accepts_file_objects(self, client):
        stat = await client.upload("docs/a.txt", io.BytesIO(b"hello"))
        assert stat["path"] == "/docs/a.txt"
        assert await client.download("/docs/a.txt") == b"hello"

    @pytest.mark.asyncio
    async def test_rejects_non_binary_payload(self, client):
        with pytest.raises(InvalidArgumentError):
            await client.upload("/a", "text")
        with pytest.raises(InvalidArgumentError):
            await client.add_file("a", io.StringIO("text"))

    @pytest.mark.asyncio
    async def test_add_file_then_get_file(self, client):
        stat = await client.add_file("stream.txt", io.BytesIO(b"abc"), 3, UploadOptions(content_type="text/plain"))
        loc = await client.get_file(stat["path"])
        assert loc["filename"] == "stream.txt"
        assert await client.get_file_base64(stat["path"]) == (b"abc", "stream.txt")
        assert (await client.stat(stat["path"]))["content_type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_yaml_roundtrip(self, client):
        cid = await client.add_yaml({"replicas": 3})
        doc = await client.get_yaml(cid)
        assert doc.cid == cid
        assert doc.data == {"replicas": 3}

    @pytest.mark.asyncio
    async def test_unknown_yaml_raises_document_error(self, client):
        with pytest.raises(DocumentError):
            await client.get_yaml("missing")

    @pytest.mark.asyncio
    async def test_add_json_and_list(self, client):
        cid = await client.add_json({"a": 1})
        await client.upload("/docs/x", b"1")
        files = (await client.list())["files"]
        assert sorted(f["path"] for f in files) == sorted(["/" + cid, "/docs/x"])

    @pytest.mark.asyncio
    async def test_delete(self, client):
        await client.upload("/a", b"1")
        await client.delete("/a")
        with pytest.raises(NotFoundError):
            await client.download("/a")

    @pytest.mark.asyncio
    async def test_none_documents_rejected(self, client):
        with pytest.raises(InvalidArgumentError):
            await client.add_yaml(None)
        with pytest.raises(InvalidArgumentError):
            await client.add_json(None)

    @pytest.mark.asyncio
    async def test_non_finite_document_raises_encoding_error(self, client):
        with pytest.raises(EncodingError):
            await client.add_yaml({"x": float("inf")})
        with pytest.raises(EncodingError):
            await client.add_json({"x": float("nan")})

    @pytest.mark.asyncio
    async def test_add_pickle(self, client):
        cid = await client.add_pickle({"version": 1}, nonce=7)
        assert pickle.loads(await client.download(cid)) == {"version": 1}
        with pytest.raises(InvalidArgumentError):
            await client.add_pickle(None)

    @pytest.mark.asyncio
    async def test_calculate_cids(self, client):
        json_cid = await client.calculate_json_cid({"type": "json", "enabled": True}, 42, secret="demo")
        assert json_cid == await client.calculate_json_cid({"type": "json", "enabled": True}, 42)
        assert json_cid != await client.calculate_json_cid({"type": "json", "enabled": True}, 21)
        pickle_cid = await client.calculate_pickle_cid({"version": 1}, 99)
        assert pickle_cid == await client.calculate_pickle_cid({"version": 1}, 99)
        assert (await client.list())["files"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("nonce", ["1", 1.5, True])
    async def test_nonce_must_be_an_integer(self, client, nonce):
        with pytest.raises(InvalidArgumentError):
            await client.add_json({"a": 1}, nonce=nonce)
        with pytest.raises(InvalidArgumentError):
            await client.calculate_json_cid({"a": 1}, nonce)

    @pytest.mark.asyncio
    async def test_calculate_cid_requires_data(self, client):
        with pytest.raises(InvalidArgumentError):
            await client.calculate_json_cid(None, 1)
        with pytest.raises(InvalidArgumentError):
            await client.calculate_pickle_cid(None, 1)

    @pytest.mark.asyncio
    async def test_cancel_event_aborts_calls(self):
        cancel = threading.Event()
        client = R1FSClient.mock(cancel=cancel)
        await client.upload("/a", b"1")
        cancel.set()
        with pytest.raises(CancelledError):
            await client.download("/a")
        with pytest.raises(CancelledError):
            await client.add_pickle({"a": 1})
        cancel.clear()
        assert [f["path"] for f in (await client.list())["files"]] == ["/a"]

    @pytest.mark.asyncio
    async def test_blank_cid_rejected(self, client):
        with pytest.raises(InvalidArgumentError):
            await client.get_yaml("")
        with pytest.raises(InvalidArgumentError):
            await client.get_file(" ")


# ============================================================
# Remote backend (httpx.AsyncClient patched)
# ============================================================

class TestHttpBackend:
    @pytest.mark.asyncio
    async def test_upload_uses_add_file_base64(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {"cid": "Qm1"}})

            stat = await client.upload("/docs/a.txt", b"hello", options=UploadOptions(secret="s"))

            assert stat["path"] == "Qm1"
            assert stat["size"] == 5
            args, kwargs = mock_client.post.call_args
            assert args[0] == "http://r1fs.local/add_file_base64"
            assert kwargs["json"] == {
                "file_base64_str": base64.b64encode(b"hello").decode(),
                "filename": "a.txt",
                "file_path": "/docs/a.txt",
                "secret": "s",
            }

    @pytest.mark.asyncio
    async def test_add_file_is_multipart(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": json.dumps({"cid": "Qm2"})})

            stat = await client.add_file("stream.txt", b"abc")

            assert stat["path"] == "Qm2"
            _, kwargs = mock_client.post.call_args
            assert kwargs["files"]["file"][0] == "stream.txt"
            assert kwargs["files"]["file"][1] == b"abc"
            assert json.loads(kwargs["data"]["body_json"]) == {"fn": "stream.txt"}

    @pytest.mark.asyncio
    async def test_missing_cid_is_encoding_error(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {}})

            with pytest.raises(EncodingError):
                await client.add_yaml({"a": 1})

    @pytest.mark.asyncio
    async def test_add_yaml_body(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {"cid": "Qm3"}})

            assert await client.add_yaml({"a": 1}, filename="cfg.yaml", secret="s") == "Qm3"
            args, kwargs = mock_client.post.call_args
            assert args[0] == "http://r1fs.local/add_yaml"
            assert kwargs["json"] == {"data": {"a": 1}, "fn": "cfg.yaml", "secret": "s"}

    @pytest.mark.asyncio
    async def test_get_yaml(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _http_response({"result": {"file_data": {"a": 1}}})

            doc = await client.get_yaml("Qm3")

            assert doc.data == {"a": 1}
            _, kwargs = mock_client.get.call_args
            assert kwargs["params"] == {"cid": "Qm3"}

    @pytest.mark.asyncio
    async def test_get_yaml_error_sentinel(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _http_response({"result": "error"})

            with pytest.raises(DocumentError):
                await client.get_yaml("Qm3")

    @pytest.mark.asyncio
    async def test_get_file_base64_and_download(self):
        client = R1FSClient.http("http://r1fs.local")
        payload = {"result": {"file_base64_str": base64.b64encode(b"data").decode(), "filename": "a.bin"}}
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response(payload)

            assert await client.get_file_base64("Qm4", secret="s") == (b"data", "a.bin")
            _, kwargs = mock_client.post.call_args
            assert kwargs["json"] == {"cid": "Qm4", "secret": "s"}
            assert await client.download("Qm4") == b"data"

    @pytest.mark.asyncio
    async def test_get_file_filename_fallback(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.get.return_value = _http_response(
                {"result": {"file_path": "/data/r1fs/Qm5/report.pdf", "meta": {"size": 3}}}
            )

            loc = await client.get_file("Qm5")

            assert loc["path"] == "/data/r1fs/Qm5/report.pdf"
            assert loc["filename"] == "report.pdf"
            assert loc["meta"] == {"size": 3}

    @pytest.mark.asyncio
    async def test_delete_rejected(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response(
                {"result": {"success": False, "message": "pinned", "cid": "Qm6"}}
            )

            with pytest.raises(TransportError):
                await client.delete("Qm6")

    @pytest.mark.asyncio
    async def test_list_and_stat_unsupported(self):
        client = R1FSClient.http("http://r1fs.local")
        with pytest.raises(UnsupportedFeatureError):
            await client.list("/")
        with pytest.raises(UnsupportedFeatureError):
            await client.stat("/a")

    @pytest.mark.asyncio
    async def test_upload_and_add_file_forward_nonce(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {"cid": "Qm7"}})

            await client.upload("/a.txt", b"1", options=UploadOptions(nonce=3))
            _, kwargs = mock_client.post.call_args
            assert kwargs["json"]["nonce"] == 3

            await client.add_file("a.txt", b"1", options=UploadOptions(nonce=4, secret="s"))
            _, kwargs = mock_client.post.call_args
            assert json.loads(kwargs["data"]["body_json"]) == {"fn": "a.txt", "secret": "s", "nonce": 4}

    @pytest.mark.asyncio
    async def test_add_json_and_add_pickle_bodies(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {"cid": "Qm8"}})

            assert await client.add_json({"type": "json"}, filename="data.json", secret="demo", nonce=21) == "Qm8"
            args, kwargs = mock_client.post.call_args
            assert args[0] == "http://r1fs.local/add_json"
            assert kwargs["json"] == {"data": {"type": "json"}, "fn": "data.json", "secret": "demo", "nonce": 21}

            assert await client.add_pickle({"version": 1}) == "Qm8"
            args, kwargs = mock_client.post.call_args
            assert args[0] == "http://r1fs.local/add_pickle"
            assert kwargs["json"] == {"data": {"version": 1}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method,endpoint", [
        ("calculate_json_cid", "calculate_json_cid"),
        ("calculate_pickle_cid", "calculate_pickle_cid"),
    ])
    async def test_calculate_cid_bodies(self, method, endpoint):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {"cid": "Qm9"}})

            assert await getattr(client, method)({"v": 1}, 42, secret="demo") == "Qm9"
            args, kwargs = mock_client.post.call_args
            assert args[0] == f"http://r1fs.local/{endpoint}"
            assert kwargs["json"] == {"data": {"v": 1}, "nonce": 42, "secret": "demo"}

    @pytest.mark.asyncio
    async def test_delete_forwards_flags(self):
        client = R1FSClient.http("http://r1fs.local")
        with patch("httpx.AsyncClient") as mock_client_cls:
            mock_client = AsyncMock()
            mock_client_cls.return_value.__aenter__.return_value = mock_client
            mock_client.post.return_value = _http_response({"result": {"success": True, "cid": "Qm6"}})

            await client.delete("Qm6", DeleteOptions(unpin_remote=True, run_gc=False))

            args, kwargs = mock_client.post.call_args
            assert args[0] == "http://r1fs.local/delete_file"
            assert kwargs["json"] == {"cid": "Qm6", "unpin_remote": True, "run_gc": False}
