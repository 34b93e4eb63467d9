"""Unit tests for document parsing and fetching."""

import httpx
import pytest
from lxml import etree

from vast_resolver.config import VastParserConfig, VastResolverConfig
from vast_resolver.document import document_from_element, local_name, parse_document
from vast_resolver.exceptions import VastFetchError, VastFetchTimeoutError, VastXMLError
from vast_resolver.fetcher import DocumentFetcher, FetchOptions, UrlDocumentFetcher


VAST_XML = b'<?xml version="1.0"?><VAST version="4.0"><Ad id="1"/></VAST>'


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestParseDocument:
    """Test the lxml document provider."""

    def test_valid_document(self):
        """Test a well-formed VAST document."""
        document = parse_document(VAST_XML)

        assert document.is_valid
        assert document.is_vast
        assert document.version == "4.0"
        assert "<Ad id=\"1\"/>" in document.to_string()

    def test_malformed_document(self):
        """Test malformed XML is reported, not raised."""
        document = parse_document("<VAST><Ad></VAST>")

        assert not document.is_valid
        assert isinstance(document.error, VastXMLError)
        assert document.root is None

    def test_empty_document(self):
        """Test empty input is invalid."""
        document = parse_document("   ")

        assert not document.is_valid
        assert document.error.message == "Empty VAST document"

    def test_valid_but_not_vast(self):
        """Test well-formedness is distinct from being VAST."""
        document = parse_document("<Playlist/>")

        assert document.is_valid
        assert not document.is_vast
        assert document.version is None

    def test_recover_mode(self):
        """Test recovery config lets lxml repair a document."""
        document = parse_document("<VAST><Ad></VAST>", VastParserConfig(recover_on_error=True))

        assert document.is_valid

    def test_document_from_element(self):
        """Test wrapping an existing element."""
        root = etree.fromstring(VAST_XML)
        document = document_from_element(root)

        assert document.is_vast
        assert document.to_string().startswith("<VAST")

    def test_local_name_strips_namespace(self):
        """Test namespaced tags and comments."""
        root = etree.fromstring('<v:VAST xmlns:v="urn:x"><!-- c --></v:VAST>')

        assert local_name(root) == "VAST"
        assert local_name(root[0]) is None


class TestUrlDocumentFetcher:
    """Test fetching over http and from disk."""

    def test_satisfies_protocol(self):
        """Test the default fetcher implements DocumentFetcher."""
        assert isinstance(UrlDocumentFetcher(), DocumentFetcher)

    @pytest.mark.asyncio
    async def test_http_success(self):
        """Test a 200 response is parsed."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = dict(request.headers)
            return httpx.Response(200, content=VAST_XML)

        async with mock_client(handler) as client:
            fetcher = UrlDocumentFetcher(VastResolverConfig(headers={"X-Base": "1"}), client=client)
            result = await fetcher.fetch(
                "http://ads.example.com/vast", FetchOptions(headers={"X-Call": "2"})
            )

        assert result.ok
        assert result.document.version == "4.0"
        assert seen["headers"]["x-base"] == "1"
        assert seen["headers"]["x-call"] == "2"

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        """Test 4xx/5xx come back as VastFetchError."""
        async with mock_client(lambda request: httpx.Response(404)) as client:
            result = await UrlDocumentFetcher(client=client).fetch("http://ads.example.com/404")

        assert not result.ok
        assert isinstance(result.error, VastFetchError)
        assert result.error.status_code == 404

    @pytest.mark.asyncio
    async def test_http_timeout(self):
        """Test timeouts come back as VastFetchTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        async with mock_client(handler) as client:
            result = await UrlDocumentFetcher(client=client).fetch(
                "http://ads.example.com/slow", FetchOptions(timeout=0.5)
            )

        assert isinstance(result.error, VastFetchTimeoutError)
        assert result.error.timeout == 0.5

    @pytest.mark.asyncio
    async def test_http_connect_error(self):
        """Test network errors come back as VastFetchError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with mock_client(handler) as client:
            result = await UrlDocumentFetcher(client=client).fetch("http://ads.example.com/down")

        assert isinstance(result.error, VastFetchError)
        assert result.document is None

    @pytest.mark.asyncio
    async def test_http_malformed_body(self):
        """Test a malformed body is an error result."""
        async with mock_client(lambda request: httpx.Response(200, content=b"<VAST>")) as client:
            result = await UrlDocumentFetcher(client=client).fetch("http://ads.example.com/bad")

        assert isinstance(result.error, VastXMLError)

    @pytest.mark.asyncio
    async def test_file_url(self, urlfor):
        """Test file:// URLs are read from disk."""
        result = await UrlDocumentFetcher().fetch(urlfor("sample.xml"))

        assert result.ok
        assert result.document.version == "3.0"

    @pytest.mark.asyncio
    async def test_bare_path(self, vastfiles_dir):
        """Test plain filesystem paths are accepted."""
        result = await UrlDocumentFetcher().fetch(str(vastfiles_dir / "vpaid.xml"))

        assert result.ok

    @pytest.mark.asyncio
    async def test_missing_file(self, urlfor):
        """Test a missing file is an error result."""
        result = await UrlDocumentFetcher().fetch(urlfor("does-not-exist.xml"))

        assert isinstance(result.error, VastFetchError)

    @pytest.mark.asyncio
    async def test_unsupported_scheme(self):
        """Test unknown schemes are rejected as errors."""
        result = await UrlDocumentFetcher().fetch("ftp://ads.example.com/vast.xml")

        assert isinstance(result.error, VastFetchError)
        assert "Unsupported URL scheme" in result.error.message
