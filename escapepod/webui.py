"""Web interface: update files, downloaded logs, version and the single-page app."""

from __future__ import annotations

import html
import json
import logging
import os
import posixpath
import re
import shutil
import socket
from urllib.parse import quote

from werkzeug.exceptions import HTTPException
from werkzeug.routing import Map, Rule
from werkzeug.serving import WSGIRequestHandler, run_simple
from werkzeug.utils import redirect, send_file
from werkzeug.wrappers import Request, Response

from .version import VERSION, default_version_response

logger = logging.getLogger(__name__)

TIMEOUT = 600

ALLOWED_METHODS = ("GET", "POST", "PUT", "HEAD", "OPTIONS", "DELETE")
_SIMPLE_METHODS = ("GET", "HEAD", "POST")
_DEFAULT_ALLOWED_HEADERS = frozenset({"accept", "accept-language", "content-language", "origin"})

_VERSION_ACTION = re.compile(r"\{\{\s*\.Version\s*\}\}")


def _base(path: str) -> str:
    """Return the last element of a slash-separated path."""
    if not path:
        return "."
    stripped = path.rstrip("/")
    if not stripped:
        return "/"
    return stripped.rsplit("/", 1)[-1]


def _not_found() -> Response:
    return Response("404 page not found\n", 404, content_type="text/plain; charset=utf-8")


def _dir_listing(directory: str) -> Response:
    lines = ["<!doctype html>", '<meta name="viewport" content="width=device-width">', "<pre>"]
    for entry in sorted(os.scandir(directory), key=lambda e: e.name):
        name = entry.name + ("/" if entry.is_dir() else "")
        lines.append(f'<a href="{quote(name)}">{html.escape(name)}</a>')
    lines.append("</pre>")
    return Response("\n".join(lines) + "\n", content_type="text/html; charset=utf-8")


def _serve_path(request: Request, fs_path: str, url_path: str) -> Response:
    """Serve a file or directory the way a static file server does."""
    if url_path.endswith("/index.html"):
        return redirect("./", 301)
    if os.path.isdir(fs_path):
        if not url_path.endswith("/"):
            return redirect(_base(url_path) + "/", 301)
        index = os.path.join(fs_path, "index.html")
        if os.path.isfile(index):
            return send_file(index, request.environ)
        return _dir_listing(fs_path)
    if os.path.isfile(fs_path):
        return send_file(fs_path, request.environ)
    return _not_found()


class SpaHandler:
    """Serves a single-page application from a static directory.

    Paths that name no file get the index page, so the app can route them.
    """

    def __init__(
        self,
        static_path: str | os.PathLike[str],
        index_path: str = "index.html",
        index_template: str | None = None,
        version: str = "",
    ) -> None:
        self.static_path = os.fspath(static_path)
        self.index_path = index_path
        self.index_template = index_template
        self.version = version

    def _render(self) -> Response:
        assert self.index_template is not None
        body = _VERSION_ACTION.sub(lambda _: self.version, self.index_template)
        return Response(body, 200, content_type="text/html; charset=utf-8")

    def _respond(self, request: Request) -> Response:
        url_path = request.path
        clean = posixpath.normpath("/" + url_path.lstrip("/"))
        full = os.path.join(self.static_path, clean.lstrip("/"))
        try:
            os.stat(full)
        except FileNotFoundError:
            if self.index_template is not None:
                return self._render()
            index = os.path.join(self.static_path, self.index_path)
            if os.path.isfile(index):
                return send_file(index, request.environ)
            return _not_found()
        except OSError as exc:
            return Response(f"{exc}\n", 500, content_type="text/plain; charset=utf-8")

        if _base(url_path) in ("index.html", "/") and self.index_template is not None:
            return self._render()
        return _serve_path(request, full, url_path)

    def __call__(self, environ, start_response):
        return self._respond(Request(environ))(environ, start_response)


class _TimeoutRequestHandler(WSGIRequestHandler):
    timeout = TIMEOUT


class UIServer:
    """The web interface's WSGI application."""

    def __init__(
        self,
        root_dir: str | os.PathLike[str] = "/usr/lib/escape-pod",
        ota_dir: str = "ota",
        logs_dir: str = "logs",
        ui_dir: str = "dist",
        port: str = "",
        websocket_port: str = "",
    ) -> None:
        self.root_dir = os.fspath(root_dir)
        self.ota_dir = ota_dir
        self.logs_dir = logs_dir
        self.ui_dir = ui_dir
        self.port = str(port)
        self.websocket_port = str(websocket_port)

        self._map = Map(
            [
                Rule("/api/v1/ota/whoami", endpoint="whoami", methods=["GET"]),
                Rule("/api/v1/ota", endpoint="list_ota", methods=["GET"]),
                Rule("/api/v1/ota", endpoint="upload", methods=["POST"]),
                Rule("/api/v1/ota/<file>", endpoint="delete", methods=["DELETE"]),
                Rule("/api/v1/ota/<filename>", endpoint="ota_file", methods=["GET"]),
                Rule("/api/v1/logs/<filename>", endpoint="log_file", methods=["GET"]),
                Rule("/api/v1/logs", endpoint="list_logs", methods=["GET"]),
                Rule("/api/v1/version", endpoint="version", methods=["GET"]),
                Rule("/", endpoint="spa"),
                Rule("/<segment>", endpoint="spa"),
            ]
        )

        static_path = os.path.join(self.root_dir, self.ui_dir)
        with open(os.path.join(static_path, "index.html"), encoding="utf-8") as handle:
            template = handle.read()
        self.spa = SpaHandler(static_path, "index.html", template, VERSION)

    def _dispatch(self, request: Request) -> Response:
        adapter = self._map.bind_to_environ(request.environ)
        try:
            endpoint, args = adapter.match()
        except HTTPException as exc:
            return exc.get_response(request.environ)

        if endpoint == "spa":
            return self.spa._respond(request)
        if endpoint == "whoami":
            return self._whoami()
        if endpoint == "list_ota":
            return self._list_dir(self.ota_dir)
        if endpoint == "list_logs":
            return self._list_dir(self.logs_dir)
        if endpoint == "upload":
            return self._upload(request)
        if endpoint == "delete":
            return self._delete(args["file"])
        if endpoint == "ota_file":
            return self._serve_stored(request, self.ota_dir, args["filename"])
        if endpoint == "log_file":
            return self._serve_stored(request, self.logs_dir, args["filename"])
        return self._version()

    def _with_cors(self, request: Request) -> Response:
        origin = request.headers.get("Origin")
        if origin is None:
            return self._dispatch(request)

        if request.method == "OPTIONS":
            requested = request.headers.get("Access-Control-Request-Method")
            if requested is None:
                return Response(status=400)
            if requested not in ALLOWED_METHODS:
                return Response(status=405)
            asked = [
                name.strip()
                for name in request.headers.get("Access-Control-Request-Headers", "").split(",")
                if name.strip()
            ]
            if any(name.lower() not in _DEFAULT_ALLOWED_HEADERS for name in asked):
                return Response(status=403)
            response = Response(status=200)
            if requested not in _SIMPLE_METHODS:
                response.headers["Access-Control-Allow-Methods"] = requested
            if asked:
                response.headers["Access-Control-Allow-Headers"] = ",".join(asked)
        else:
            if request.method not in ALLOWED_METHODS:
                return Response(status=405)
            response = self._dispatch(request)

        response.headers["Access-Control-Allow-Origin"] = origin
        response.headers.add("Vary", "Origin")
        return response

    def __call__(self, environ, start_response):
        request = Request(environ)
        return self._with_cors(request)(environ, start_response)

    def _whoami(self) -> Response:
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as conn:
                conn.connect(("8.8.8.8", 80))
                local_ip = conn.getsockname()[0]
        except OSError as exc:
            logger.warning("whoami: %s", exc)
            return Response(status=500)
        body = (
            f'{{"localaddr":"{local_ip}",\n'
            f'\t"port":"{self.port}",\n'
            f'\t"wsPort":"{self.websocket_port}"}}'
        )
        return Response(body, 200, content_type="application/json")

    def _list_dir(self, subdir: str) -> Response:
        try:
            names = sorted(os.listdir(os.path.join(self.root_dir, subdir)))
        except OSError:
            return Response(status=500)
        body = {"files": names} if names else {}
        return Response(
            json.dumps(body, separators=(",", ":")), 200, content_type="application/json"
        )

    def _upload(self, request: Request) -> Response:
        upload = request.files.get("file")
        file_name = request.form.get("file_name", "")
        if upload is None or not upload.filename:
            logger.warning("upload: no file in request")
            return Response(status=400)

        name = os.path.basename(upload.filename.replace("\\", "/"))
        path = f"{self.root_dir}/{self.ota_dir}/{name}"
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT, 0o600)
        except OSError as exc:
            logger.warning("upload: %s", exc)
            return Response(status=400)

        with os.fdopen(fd, "wb") as handle:
            try:
                shutil.copyfileobj(upload.stream, handle)
            except OSError as exc:
                logger.warning("upload: %s", exc)
        return Response(f"File {file_name} Uploaded successfully", 200)

    def _delete(self, file: str) -> Response:
        try:
            os.remove(f"{self.root_dir}/{self.ota_dir}/{file}")
        except OSError as exc:
            logger.warning("delete: %s", exc)
            return Response(status=400)
        return Response(status=200)

    def _serve_stored(self, request: Request, subdir: str, filename: str) -> Response:
        if ".." in request.path.split("/"):
            return Response("invalid URL path\n", 400, content_type="text/plain; charset=utf-8")
        path = os.path.join(self.root_dir, subdir, filename)
        return _serve_path(request, path, request.path)

    def _version(self) -> Response:
        body = json.dumps(default_version_response().to_dict(), separators=(",", ":")) + "\n"
        return Response(body, 200, content_type="application/json")

    def serve(self) -> None:
        """Serve the interface on the configured port until interrupted."""
        run_simple(
            "0.0.0.0",
            int(self.port or 0),
            self,
            threaded=True,
            request_handler=_TimeoutRequestHandler,
        )