"""Unit tests for Swagger UI page scraping helpers."""

import pytest

from knotty_mcp.fetcher.scraper import (
    extract_embedded_spec,
    extract_json_object,
    extract_spec_url,
    find_init_scripts,
    is_static_asset,
    iter_inline_scripts,
    probe_candidates,
    resolve_url,
)

PAGE_URL = "https://example.com/docs/index.html"


class TestResolveUrl:
    @pytest.mark.parametrize("url,expected", [
        ("https://cdn.example.org/spec.json", "https://cdn.example.org/spec.json"),
        ("//cdn.example.org/spec.json", "https://cdn.example.org/spec.json"),
        ("/v3/api-docs", "https://example.com/v3/api-docs"),
        ("spec.yaml", "https://example.com/docs/spec.yaml"),
    ])
    def test_resolution(self, url, expected):
        assert resolve_url(url, PAGE_URL) == expected

    def test_relative_to_root_page(self):
        assert resolve_url("spec.json", "https://example.com") == "https://example.com/spec.json"


class TestExtractSpecUrl:
    def test_swagger_ui_bundle_config(self):
        html = """
        <script>
          window.ui = SwaggerUIBundle({ url: "/v3/api-docs", dom_id: '#swagger-ui' });
        </script>
        """

        assert extract_spec_url(html, PAGE_URL) == "https://example.com/v3/api-docs"

    def test_relative_spec_url(self):
        html = "<script>SwaggerUIBundle({url: 'openapi.yaml'})</script>"

        assert extract_spec_url(html, PAGE_URL) == "https://example.com/docs/openapi.yaml"

    def test_data_url_attribute(self):
        html = '<redoc data-url="/specs/public"></redoc>'

        assert extract_spec_url(html, PAGE_URL) == "https://example.com/specs/public"

    def test_static_assets_skipped(self):
        html = """
        <script>var theme = {url: "/api-docs/theme.css"};</script>
        <script>load("/v2/api-docs");</script>
        """

        assert extract_spec_url(html, PAGE_URL) == "https://example.com/v2/api-docs"

    def test_no_spec_reference(self):
        html = "<html><body><div id='swagger-ui'></div></body></html>"

        assert extract_spec_url(html, PAGE_URL) is None

    @pytest.mark.parametrize("url", [
        "/swagger-ui.css", "/bundle.js?v=3", "/favicon.ico", "/font.woff",
    ])
    def test_is_static_asset(self, url):
        assert is_static_asset(url)

    def test_spec_is_not_static_asset(self):
        assert not is_static_asset("/v3/api-docs/swagger-config")


class TestInitScripts:
    def test_find_init_scripts(self):
        html = """
        <script src="./swagger-ui-bundle.js"></script>
        <script src="swagger-ui-init.js"></script>
        <script src="/static/swagger-initializer.js"></script>
        """

        scripts = find_init_scripts(html, "https://example.com/api-docs/")

        assert scripts == [
            "https://example.com/api-docs/swagger-ui-init.js",
            "https://example.com/static/swagger-initializer.js",
        ]

    def test_iter_inline_scripts(self):
        html = "<script>one()</script><p>x</p><SCRIPT type='text/javascript'>two()</SCRIPT>"

        scripts = list(iter_inline_scripts(html))

        assert len(scripts) == 2
        assert "one()" in scripts[0]
        assert "two()" in scripts[1]


class TestExtractJsonObject:
    def test_braces_inside_strings_ignored(self):
        text = '{"a": "}{", "b": {"c": "\\"}"}} trailing'

        assert extract_json_object(text) == '{"a": "}{", "b": {"c": "\\"}"}}'

    def test_unclosed_object(self):
        assert extract_json_object('{"a": {"b": 1}') is None

    def test_must_start_with_brace(self):
        assert extract_json_object(' {"a": 1}') is None


class TestExtractEmbeddedSpec:
    def test_swagger_doc_key(self):
        script = """
        window.onload = function () {
          var options = {
            "swaggerDoc": {"openapi": "3.0.0", "info": {"title": "Embedded", "version": "1"}, "paths": {}},
            "customOptions": {}
          };
        };
        """

        document = extract_embedded_spec(script)

        assert document["openapi"] == "3.0.0"
        assert document["info"]["title"] == "Embedded"

    def test_spec_key_fallback(self):
        script = (
            'const ui = SwaggerUIBundle({ spec: {"swagger": "2.0", '
            '"info": {"title": "Inline", "version": "1"}, "paths": {}}, dom_id: "#ui" });'
        )

        document = extract_embedded_spec(script)

        assert document["swagger"] == "2.0"
        assert document["info"]["title"] == "Inline"

    def test_non_spec_object_ignored(self):
        assert extract_embedded_spec('var options = {"swaggerDoc": {"foo": 1}};') is None

    def test_invalid_json_ignored(self):
        assert extract_embedded_spec("var o = {swaggerDoc: {openapi: '3.0.0'}};") is None


class TestProbeCandidates:
    def test_conventional_locations(self):
        candidates = probe_candidates("https://example.com/api-docs/")

        assert candidates[:3] == [
            "https://example.com/v3/api-docs",
            "https://example.com/v2/api-docs",
            "https://example.com/api-docs/v3/api-docs",
        ]
        assert "https://example.com/swagger.json" in candidates
        assert "https://example.com/api/openapi.json" in candidates
        assert "https://example.com/api-docs-json" in candidates

    def test_no_duplicates_and_same_origin(self):
        candidates = probe_candidates("https://example.com/swagger-ui.html")

        assert len(candidates) == len(set(candidates))
        assert all(c.startswith("https://example.com/") for c in candidates)

    def test_root_page_skips_relative_suffix(self):
        candidates = probe_candidates("https://example.com/")

        assert all(c.startswith("https://example.com/") for c in candidates)
        assert "https://example.com-json" not in candidates
