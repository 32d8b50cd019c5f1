"""
HTTP access to snapshots.
GET /tree/{revision}/{path} streams a file, or serves a directory's index.html
or an HTML listing of its entries.
"""
from typing import Iterator, List, Optional
from datetime import datetime, timezone
from email.utils import format_datetime
from urllib.parse import quote
import html
import logging
import mimetypes

import fastapi
from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import HTMLResponse, RedirectResponse, StreamingResponse

from object_graph.errors import StoreError
from object_graph.store import HistoryWalker, ObjectStore
from snapshot_fs import (
    EndOfDirectory,
    FileInfo,
    Handle,
    NotExist,
    PermissionDenied,
    RevisionNotFound,
    SnapshotFS,
    SnapshotFSError,
    open_snapshot,
)

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
INDEX_PAGE = "index.html"

mimetypes.add_type("text/plain", ".md")
mimetypes.add_type("text/plain", ".go")


def _http_error(location: str, error: Exception) -> HTTPException:
    if isinstance(error, (RevisionNotFound, NotExist)):
        logger.info(f"{location}: {error}")
        return HTTPException(status_code=404, detail=str(error))
    if isinstance(error, PermissionDenied):
        return HTTPException(status_code=403, detail=str(error))
    logger.error(f"{location}: {error}")
    return HTTPException(status_code=500, detail=str(error))


def _last_modified(when: datetime) -> str:
    return format_datetime(when.astimezone(timezone.utc), usegmt=True)


def _iter_content(handle: Handle) -> Iterator[bytes]:
    try:
        while True:
            chunk = handle.read(CHUNK_SIZE)
            if not chunk:
                return
            yield chunk
    finally:
        handle.close()


def _read_all(handle: Handle) -> List[FileInfo]:
    entries: List[FileInfo] = []
    while True:
        try:
            entries.extend(handle.read_entries(-1))
        except EndOfDirectory:
            return entries


def _render_listing(entries: List[FileInfo]) -> str:
    lines = ['<!doctype html>', '<meta name="viewport" content="width=device-width">', '<pre>']
    for info in entries:
        name = info.name + "/" if info.is_dir else info.name
        lines.append(f'<a href="{html.escape(quote(name))}">{html.escape(name)}</a>')
    lines.append('</pre>')
    return "\n".join(lines) + "\n"


class APIHandler:
    store: ObjectStore
    history: HistoryWalker

    def __init__(self, store: ObjectStore, history: HistoryWalker):
        self.router = APIRouter()
        self.store = store
        self.history = history
        self.router.add_api_route("/tree/{revision}", self.serve_root, methods=["GET"])
        self.router.add_api_route("/tree/{revision}/{path:path}", self.serve_tree, methods=["GET"])
        self.router.add_api_route("/healthcheck", self.healthcheck, methods=["GET"])

    def serve_root(self, revision: str, request: Request):
        return self.serve_tree(revision, "", request)

    def serve_tree(self, revision: str, path: str, request: Request):
        location = f"/tree/{revision}/{path}"
        try:
            fs = open_snapshot(self.store, self.history, revision)
            handle = fs.open(path)
        except (SnapshotFSError, StoreError) as e:
            raise _http_error(location, e) from e

        info = handle.stat()
        if not info.is_dir:
            return self._serve_file(handle)
        if not request.url.path.endswith("/"):
            handle.close()
            return RedirectResponse(request.url.path + "/", status_code=301)
        try:
            index = self._open_index(fs, path)
            if index is not None:
                return self._serve_file(index)
            entries = _read_all(handle)
        except (SnapshotFSError, StoreError) as e:
            raise _http_error(location, e) from e
        finally:
            handle.close()
        return HTMLResponse(_render_listing(entries), headers={"Last-Modified": _last_modified(info.mod_time)})

    def _open_index(self, fs: SnapshotFS, path: str) -> Optional[Handle]:
        index_path = "/".join(part for part in (path.strip("/"), INDEX_PAGE) if part)
        if not fs.exists(index_path):
            return None
        index = fs.open(index_path)
        if index.stat().is_dir:
            index.close()
            return None
        return index

    def _serve_file(self, handle: Handle) -> StreamingResponse:
        info = handle.stat()
        media_type = mimetypes.guess_type(info.name)[0] or "application/octet-stream"
        headers = {
            "Content-Length": str(info.size),
            "Last-Modified": _last_modified(info.mod_time),
        }
        return StreamingResponse(_iter_content(handle), media_type=media_type, headers=headers)

    def healthcheck(self) -> str:
        return "ok"


def create_app(store: ObjectStore, history: HistoryWalker) -> fastapi.FastAPI:
    app = fastapi.FastAPI()
    handler = APIHandler(store, history)
    app.include_router(handler.router)
    return app
