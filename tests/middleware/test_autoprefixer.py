# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""End-to-end tests for the Autoprefixer middleware."""

import asyncio
import gzip

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response, StreamingResponse
from fastapi.staticfiles import StaticFiles
from fastapi.testclient import TestClient

from stylegate.errors import TransformError
from stylegate.middleware import AutoprefixerMiddleware, Fingerprint
from stylegate.transformer import Prefixer, PrefixerConfig

CSS = ".foo { animation: bar; }"
PREFIXED = ".foo { -webkit-animation: bar; animation: bar; }"
OPTIONS = {"browsers": "Chrome > 30", "cascade": False}


def _fingerprint(**options) -> Fingerprint:
    return Fingerprint.from_description(Prefixer(PrefixerConfig(**{**OPTIONS, **options})).info())


def _tagged(base: str, fingerprint: Fingerprint) -> str:
    return base[:-1] + fingerprint.suffix + base[-1]


def _build_app(static_dir=None, **options) -> FastAPI:
    """A small app serving stylesheets the ways real apps do."""
    app = FastAPI()
    app.state.seen_headers = []
    app.state.dynamic_calls = 0

    @app.api_route("/style.css", methods=["GET", "HEAD", "POST"])
    async def stylesheet(request: Request):
        request.app.state.seen_headers.append(dict(request.headers))
        if request.headers.get("if-none-match") == '"abc"':
            return Response(status_code=304, headers={"ETag": '"abc"'})
        return Response(CSS, media_type="text/css", headers={"ETag": '"abc"'})

    @app.get("/theme.less")
    async def less_stylesheet():
        return Response(CSS, media_type="text/css")

    @app.get("/THEME.CSS")
    async def upper_stylesheet():
        return Response(CSS, media_type="text/css")

    @app.get("/bundle")
    async def bundle():
        return Response(CSS, media_type="text/css")

    @app.get("/streamed.css")
    async def streamed():
        async def chunks():
            yield b".foo { anim"
            yield b"ation: bar; }"

        return StreamingResponse(chunks(), media_type="text/css")

    @app.get("/dynamic")
    async def dynamic(request: Request):
        request.app.state.dynamic_calls += 1
        if request.app.state.dynamic_calls == 1:
            return Response(CSS, media_type="text/css")
        return HTMLResponse(CSS)

    @app.get("/page.html")
    async def page():
        return HTMLResponse(f"<style>{CSS}</style>")

    @app.get("/hello-world.txt")
    async def hello(request: Request):
        request.app.state.seen_headers.append(dict(request.headers))
        return PlainTextResponse("hello world")

    @app.get("/broken.css")
    async def broken():
        return Response(".foo { animation: bar;", media_type="text/css")

    @app.get("/latin1.css")
    async def latin1():
        return Response(b".foo { content: \xff; }", media_type="text/css")

    @app.get("/gzipped.css")
    async def gzipped():
        return Response(
            gzip.compress(CSS.encode()),
            media_type="text/css",
            headers={"Content-Encoding": "gzip"},
        )

    if static_dir is not None:
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    app.add_middleware(AutoprefixerMiddleware, **{**OPTIONS, **options})
    return app


@pytest.fixture
def app(static_dir):
    return _build_app(static_dir)


@pytest.fixture
def client(app):
    return TestClient(app)


# =============================================================================
# Body transformation
# =============================================================================


class TestTransformation:
    """Tests for which responses get prefixed."""

    def test_non_stylesheet_untouched(self, client):
        response = client.get("/hello-world.txt")
        assert response.status_code == 200
        assert response.text == "hello world"
        assert response.headers["content-type"].startswith("text/plain")

    def test_stylesheet_prefixed(self, client):
        response = client.get("/style.css")
        assert response.status_code == 200
        assert response.text == PREFIXED
        assert response.headers["content-type"] == "text/css"
        assert response.headers["content-length"] == str(len(PREFIXED.encode()))

    def test_already_prefixed_stylesheet_unchanged(self, static_dir):
        (static_dir / "done.css").write_text(PREFIXED, encoding="utf-8")
        client = TestClient(_build_app(static_dir))
        assert client.get("/static/done.css").text == PREFIXED

    def test_unneeded_property_unchanged(self, static_dir):
        (static_dir / "radius.css").write_text(".a { border-radius: 4px; }", encoding="utf-8")
        client = TestClient(_build_app(static_dir))
        assert client.get("/static/radius.css").text == ".a { border-radius: 4px; }"

    def test_less_extension_prefixed(self, client):
        response = client.get("/theme.less")
        assert response.text == PREFIXED
        assert response.headers["content-type"] == "text/css"

    def test_extension_match_ignores_case(self, client):
        assert client.get("/THEME.CSS").text == PREFIXED

    def test_query_string_ignored_for_matching(self, client):
        assert client.get("/static/style.css?v=1").text == PREFIXED

    def test_html_untouched(self, client):
        assert client.get("/page.html").text == f"<style>{CSS}</style>"

    def test_streamed_body_prefixed_as_a_whole(self, client):
        response = client.get("/streamed.css")
        assert response.text == PREFIXED
        assert response.headers["content-length"] == str(len(PREFIXED.encode()))

    def test_static_files_prefixed(self, client):
        assert client.get("/static/style.css").text == PREFIXED
        assert client.get("/static/style.less").text == PREFIXED

    def test_error_status_untouched(self, client):
        response = client.get("/static/missing.css")
        assert response.status_code == 404
        assert "etag" not in response.headers

    def test_encoded_body_untouched(self, client):
        response = client.get("/gzipped.css")
        assert response.status_code == 200
        assert response.headers["content-encoding"] == "gzip"
        assert response.text == CSS

    def test_non_get_method_untouched(self, client):
        response = client.post("/style.css")
        assert response.text == CSS
        assert response.headers["etag"] == '"abc"'

    def test_syntax_error_becomes_500(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        response = client.get("/broken.css")
        assert response.status_code == 500
        assert "animation" not in response.text

    def test_syntax_error_propagates(self, client):
        with pytest.raises(TransformError):
            client.get("/broken.css")

    def test_invalid_utf8_becomes_500(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        assert client.get("/latin1.css").status_code == 500

    def test_broken_static_file_becomes_500(self, app):
        client = TestClient(app, raise_server_exceptions=False)
        assert client.get("/static/broken.css").status_code == 500


# =============================================================================
# Content-type cache
# =============================================================================


class TestContentTypeDiscovery:
    """Tests for paths without a stylesheet extension."""

    def test_learned_after_first_response(self, client):
        first = client.get("/bundle")
        assert first.text == CSS

        second = client.get("/bundle")
        assert second.text == PREFIXED
        assert second.headers["content-type"] == "text/css"

    def test_stale_entry_passes_through(self, client):
        assert client.get("/dynamic").text == CSS
        # Cached as CSS, now served as HTML
        second = client.get("/dynamic")
        assert second.text == CSS
        assert second.headers["content-type"].startswith("text/html")
        assert client.get("/dynamic").text == CSS

    def test_cache_size_option(self):
        middleware = AutoprefixerMiddleware(_build_app(), cache_size=3, **OPTIONS)
        assert middleware.cache.max_size == 3

    def test_default_cache_size(self):
        middleware = AutoprefixerMiddleware(_build_app(), **OPTIONS)
        assert middleware.cache.max_size == 100

    def test_evicted_path_relearned(self):
        client = TestClient(_build_app(cache_size=1))
        client.get("/bundle")
        client.get("/hello-world.txt")
        # /bundle was evicted, so it is passed through and learned again
        assert client.get("/bundle").text == CSS
        assert client.get("/bundle").text == PREFIXED


# =============================================================================
# Conditional GET
# =============================================================================


class TestConditionalRequests:
    """Tests for ETag tagging and If-None-Match rewriting."""

    def test_etag_tagged(self, client):
        response = client.get("/style.css")
        assert response.headers["etag"] == _tagged('"abc"', _fingerprint())

    def test_round_trip_yields_304(self, client, app):
        etag = client.get("/style.css").headers["etag"]

        response = client.get("/style.css", headers={"If-None-Match": etag})
        assert response.status_code == 304
        assert response.headers["etag"] == etag
        assert app.state.seen_headers[-1]["if-none-match"] == '"abc"'

    def test_foreign_fingerprint_forces_200(self, client, app):
        stale = _tagged('"abc"', _fingerprint(browsers="Firefox 15"))

        response = client.get("/style.css", headers={"If-None-Match": stale})
        assert response.status_code == 200
        assert response.text == PREFIXED
        assert "if-none-match" not in app.state.seen_headers[-1]

    def test_untagged_validator_forces_200(self, client, app):
        response = client.get("/style.css", headers={"If-None-Match": '"abc"'})
        assert response.status_code == 200
        assert "if-none-match" not in app.state.seen_headers[-1]

    def test_configuration_change_invalidates_etag(self, static_dir):
        old = TestClient(_build_app(static_dir))
        new = TestClient(_build_app(static_dir, browsers="Chrome > 30, Firefox 15"))

        etag = old.get("/static/style.css").headers["etag"]
        response = new.get("/static/style.css", headers={"If-None-Match": etag})
        assert response.status_code == 200
        assert response.headers["etag"] != etag
        assert _fingerprint(browsers="Chrome > 30, Firefox 15").suffix in response.headers["etag"]

    def test_if_modified_since_removed_for_stylesheets(self, client, app):
        client.get("/style.css", headers={"If-Modified-Since": "Wed, 21 Oct 2015 07:28:00 GMT"})
        assert "if-modified-since" not in app.state.seen_headers[-1]

    def test_if_modified_since_kept_for_other_paths(self, client, app):
        client.get("/hello-world.txt", headers={"If-Modified-Since": "Wed, 21 Oct 2015 07:28:00 GMT"})
        assert app.state.seen_headers[-1]["if-modified-since"] == "Wed, 21 Oct 2015 07:28:00 GMT"

    def test_static_stylesheet_round_trip(self, client):
        first = client.get("/static/style.css")
        assert _fingerprint().suffix in first.headers["etag"]

        second = client.get("/static/style.css", headers={"If-None-Match": first.headers["etag"]})
        assert second.status_code == 304
        assert second.headers["etag"] == first.headers["etag"]

    def test_static_non_stylesheet_etag_untouched(self, client):
        first = client.get("/static/script.js")
        etag = first.headers["etag"]
        assert "-autoprefixer[" not in etag

        second = client.get("/static/script.js", headers={"If-None-Match": etag})
        assert second.status_code == 304

    def test_head_request_tagged(self, client):
        response = client.head("/static/style.css")
        assert response.status_code == 200
        assert _fingerprint().suffix in response.headers["etag"]


# =============================================================================
# Construction
# =============================================================================


class TestConstruction:
    """Tests for middleware configuration."""

    def test_config_object(self):
        middleware = AutoprefixerMiddleware(_build_app(), PrefixerConfig(browsers="Chrome > 30", cascade=False))
        assert middleware.fingerprint == _fingerprint()

    def test_config_and_options_conflict(self):
        with pytest.raises(TypeError):
            AutoprefixerMiddleware(_build_app(), PrefixerConfig(), browsers="Chrome > 30")

    def test_ready_made_prefixer(self):
        prefixer = Prefixer(PrefixerConfig(browsers="Safari 8"))
        middleware = AutoprefixerMiddleware(_build_app(), prefixer=prefixer)
        assert middleware.prefixer is prefixer
        assert middleware.fingerprint == Fingerprint.from_description(prefixer.info())

    def test_invalid_browsers_rejected_at_startup(self):
        with pytest.raises(ValueError):
            AutoprefixerMiddleware(_build_app(), browsers="netscape 4")

    @pytest.mark.asyncio
    async def test_non_http_scope_forwarded(self):
        seen = []

        async def downstream(scope, receive, send):
            seen.append(scope["type"])

        middleware = AutoprefixerMiddleware(downstream, **OPTIONS)
        await middleware({"type": "lifespan"}, None, None)
        assert seen == ["lifespan"]


class TestConcurrency:
    """Interleaved requests through one middleware instance."""

    @staticmethod
    def _interleaving_app() -> FastAPI:
        app = FastAPI()

        @app.get("/sheets/{n}.css")
        async def sheet(n: int):
            await asyncio.sleep((n % 3) * 0.01)
            return Response(f".s{n} {{ animation: bar; }}", media_type="text/css", headers={"ETag": f'"css-{n}"'})

        @app.get("/scripts/{n}.js")
        async def script(n: int):
            await asyncio.sleep((n % 3) * 0.01)
            return Response(f"var s{n};", media_type="application/javascript", headers={"ETag": f'"js-{n}"'})

        app.add_middleware(AutoprefixerMiddleware, **OPTIONS)
        return app

    @pytest.mark.asyncio
    async def test_each_response_keeps_its_own_body_and_etag(self):
        app = self._interleaving_app()
        paths = [f"/sheets/{n}.css" if n % 2 else f"/scripts/{n}.js" for n in range(20)]

        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            responses = await asyncio.gather(*(client.get(path) for path in paths))

        fingerprint = _fingerprint()
        for n, response in enumerate(responses):
            assert response.status_code == 200
            if n % 2:
                assert response.text == f".s{n} {{ -webkit-animation: bar; animation: bar; }}"
                assert response.headers["etag"] == _tagged(f'"css-{n}"', fingerprint)
            else:
                assert response.text == f"var s{n};"
                assert response.headers["etag"] == f'"js-{n}"'
