import asyncio
import io

import sys
from pathlib import Path

# Ensure `python/` directory is on sys.path when running as a script.
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from common.clock import ManualClock
from common.errors import DocumentError, PreconditionFailedError
from common.seed import CStoreSeedEntry, R1FSSeedEntry
from cstore import CStoreClient, SetOptions
from r1fs import DeleteOptions, R1FSClient, UploadOptions


async def main() -> int:
    clock = ManualClock()

    # ===== cstore (all methods, in-memory) =====
    cs = CStoreClient.mock(clock=clock, seed=[CStoreSeedEntry(key="foo", value=b'{"answer":42}')])
    print("[cstore] seeded foo:", await cs.get("foo"))

    item = await cs.set("jobs:1", {"status": "queued"})
    print("[cstore] set jobs:1 etag:", item.etag)
    await cs.set("jobs:1", {"status": "running"}, SetOptions(if_etag_match=item.etag))
    try:
        await cs.set("jobs:1", {"status": "lost"}, SetOptions(if_absent=True))
    except PreconditionFailedError as e:
        print("[cstore] if_absent rejected:", e)
    await cs.set("jobs:2", {"status": "queued"})
    await cs.set("logs:1", "boot ok", SetOptions(ttl_seconds=5))

    page = await cs.list("jobs:", limit=1)
    print("[cstore] list page 1:", [i.key for i in page.items], "next:", page.next_cursor)
    page = await cs.list("jobs:", cursor=page.next_cursor, limit=1)
    print("[cstore] list page 2:", [i.key for i in page.items], "next:", page.next_cursor)

    clock.advance(5)
    print("[cstore] logs:1 after ttl:", await cs.get("logs:1"))
    print("[cstore] keys:", await cs.list_keys())

    await cs.hset("nodes", "n1", {"ip": "10.0.0.1"})
    await cs.hset("nodes", "n2", {"ip": "10.0.0.2"})
    print("[cstore] hget nodes/n1:", await cs.hget("nodes", "n1"))
    print("[cstore] hgetall nodes:", [f.field for f in await cs.hgetall("nodes") or []])
    await cs.hdel("nodes", "n2")
    await cs.delete("jobs:2")
    print("[cstore] status:", await cs.get_status())

    # ===== r1fs (all methods, in-memory) =====
    fs = R1FSClient.mock(
        clock=clock,
        seed=[R1FSSeedEntry(path="/docs/readme.txt", base64="aGVsbG8=", content_type="text/plain")],
    )
    print("[r1fs] seeded readme:", await fs.download("/docs/readme.txt"))

    stat = await fs.upload("docs/notes.txt", b"notes", options=UploadOptions(content_type="text/plain"))
    print("[r1fs] upload path:", stat["path"], "size:", stat["size"])
    print("[r1fs] stat:", (await fs.stat("/docs/notes.txt"))["etag"])

    added = await fs.add_file("stream.txt", io.BytesIO(b"streamed bytes"), options=UploadOptions(secret="s3"))
    cid = added["path"]
    print("[r1fs] add_file cid:", cid)
    print("[r1fs] get_file:", await fs.get_file(cid))
    print("[r1fs] get_file_base64:", await fs.get_file_base64(cid))

    listing = await fs.list("/docs", limit=10)
    print("[r1fs] list /docs:", [f["path"] for f in listing["files"]])

    json_cid = await fs.add_json({"kind": "json"}, filename="data.json", secret="demo", nonce=21)
    print("[r1fs] add_json cid:", json_cid)
    print("[r1fs] calculate_json_cid:", await fs.calculate_json_cid({"kind": "json"}, 42))
    pickle_cid = await fs.add_pickle({"version": 1})
    print("[r1fs] add_pickle cid:", pickle_cid)
    print("[r1fs] calculate_pickle_cid:", await fs.calculate_pickle_cid({"version": 1}, 99))
    yaml_cid = await fs.add_yaml({"replicas": 3}, filename="deploy.yaml")
    print("[r1fs] get_yaml:", await fs.get_yaml(yaml_cid))
    try:
        await fs.get_yaml("unknown-cid")
    except DocumentError as e:
        print("[r1fs] get_yaml unknown:", e)

    await fs.delete("/docs/notes.txt", DeleteOptions(unpin_remote=True))
    print("[r1fs] after delete:", [f["path"] for f in (await fs.list())["files"]])
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
