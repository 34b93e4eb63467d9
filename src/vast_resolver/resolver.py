"""
VAST Wrapper Resolver

Follows wrapper chains depth-first, merges every wrapper level into the
ads it resolves to, and reports in-chain failures through lifecycle
notifications and error-URL tracking.
"""

import asyncio
import copy
import time
from dataclasses import dataclass, field
from typing import Any

from lxml import etree

from .ad_parser import ParsedVast, VastAdParser
from .config import ResolveOptions, URLFilter, VastResolverConfig
from .dispatcher import (
    EventDispatcher,
    Handler,
    ResolvedEvent,
    ResolvingEvent,
    VastErrorEvent,
)
from .document import VastDocument, document_from_element, parse_document
from .events import ResolverChannel, VastErrorCode, VastEvents
from .exceptions import (
    VastConfigValidationError,
    VastException,
    VastFetchError,
    VastFetchTimeoutError,
)
from .fetcher import DocumentFetcher, FetchOptions, FetchResult, UrlDocumentFetcher
from .log_config import ResolveLogContext, get_context_logger
from .models import Ad, AdExtension, AdSystem, VastResponse
from .parser_utils import merge_wrapper_ad_data, resolve_vast_ad_tag_uri
from .tracker import ErrorTracker


@dataclass
class _ResolutionState:
    """Accumulators owned by a single top-level resolution."""

    fetcher: DocumentFetcher
    fetch_options: FetchOptions
    wrapper_limit: int
    filters: tuple[URLFilter, ...]
    version: str | None = None
    root_error_url_templates: list[str] = field(default_factory=list)
    nested_error_url_templates: list[str] = field(default_factory=list)
    parent_urls: set[str] = field(default_factory=set)

    @property
    def vast_error_url_templates(self) -> list[str]:
        return [*self.root_error_url_templates, *self.nested_error_url_templates]


class VastResolver:
    """Resolves VAST tags into fully merged ads.

    The filter chain and the subscriber registry belong to the instance and
    are shared by every resolution running on it. Merge state is per call.

    Examples:
        >>> resolver = VastResolver()
        >>> resolver.on(ResolverChannel.ERROR, lambda event: print(event.error_code))
        >>> response = await resolver.resolve("https://ads.example.com/vast")
        >>> [ad.id for ad in response.ads]
        ['ad-1']
    """

    def __init__(
        self,
        config: VastResolverConfig | None = None,
        fetcher: DocumentFetcher | None = None,
        tracker: ErrorTracker | None = None,
        dispatcher: EventDispatcher | None = None,
    ):
        self.config = config or VastResolverConfig()
        self.fetcher = fetcher or UrlDocumentFetcher(self.config)
        self.tracker = tracker or ErrorTracker(config=self.config.tracker)
        self.events = dispatcher or EventDispatcher()
        self.parser = VastAdParser()
        self._filters: list[URLFilter] = []
        self.logger = get_context_logger("vast_resolver")

    # URL filter chain

    def add_filter(self, url_filter: URLFilter) -> None:
        if not callable(url_filter):
            raise VastConfigValidationError(
                "URL filter must be callable", config_key="url_filter", config_value=url_filter
            )
        self._filters.append(url_filter)

    def remove_filter(self, url_filter: URLFilter | None = None) -> bool:
        """Remove ``url_filter``, or the most recently added filter when omitted."""
        if not self._filters:
            return False
        if url_filter is None:
            self._filters.pop()
            return True
        try:
            self._filters.remove(url_filter)
        except ValueError:
            return False
        return True

    def clear_filters(self) -> None:
        self._filters.clear()

    def count_filters(self) -> int:
        return len(self._filters)

    # Lifecycle subscriptions

    def on(self, channel: ResolverChannel | str, handler: Handler) -> Handler:
        return self.events.subscribe(channel, handler)

    def off(self, channel: ResolverChannel | str, handler: Handler) -> bool:
        return self.events.unsubscribe(channel, handler)

    # Public API

    async def resolve(
        self, url: str, options: ResolveOptions | dict[str, Any] | None = None
    ) -> VastResponse:
        """Fetch a VAST tag and resolve its whole wrapper chain.

        Args:
            url: Tag URL
            options: Per-call overrides

        Returns:
            VastResponse with the outermost version and the resolved ads

        Raises:
            VastFetchError: If the tag itself cannot be fetched
            VastXMLError: If the tag is not a well-formed VAST document
        """
        state = self._new_state(ResolveOptions.coerce(options))
        start_time = time.time()

        with ResolveLogContext(root_url=url):
            self.logger.info(VastEvents.RESOLVE_STARTED, url=url, wrapper_limit=state.wrapper_limit)
            result = await self._fetch(url, state, depth=0, original_url=None)
            if not result.ok:
                self.logger.error(
                    VastEvents.RESOLVE_FAILED,
                    url=url,
                    error=str(result.error),
                    error_type=type(result.error).__name__,
                )
                raise result.error or VastFetchError("VAST document fetch failed", url=url)

            response = await self._resolve_root(result.document, url, state)
            self._log_completed(response, start_time)
            return response

    async def resolve_from_parsed_document(
        self,
        document: VastDocument | etree._Element | str | bytes,
        options: ResolveOptions | dict[str, Any] | None = None,
    ) -> VastResponse:
        """Resolve an already available document without fetching it.

        No notifications are emitted for the document itself; nested
        wrapper targets are fetched and reported as usual.

        Raises:
            VastXMLError: If the document is not well-formed VAST
        """
        if isinstance(document, etree._Element):
            document = document_from_element(document)
        elif isinstance(document, (str, bytes)):
            document = parse_document(document, self.config.parser)

        state = self._new_state(ResolveOptions.coerce(options))
        start_time = time.time()

        with ResolveLogContext(root_url=None):
            self.logger.info(VastEvents.RESOLVE_STARTED, parsed_document=True)
            response = await self._resolve_root(document, None, state)
            self._log_completed(response, start_time)
            return response

    # Resolution steps

    def _new_state(self, options: ResolveOptions) -> _ResolutionState:
        filters = self._filters if options.url_filters is None else options.url_filters
        return _ResolutionState(
            fetcher=options.url_handler or self.fetcher,
            fetch_options=FetchOptions(timeout=options.timeout, headers=dict(options.headers)),
            wrapper_limit=options.wrapper_limit or self.config.wrapper_limit,
            filters=tuple(filters),
        )

    def _apply_filters(self, url: str, state: _ResolutionState) -> str:
        for url_filter in state.filters:
            url = url_filter(url)
            if not isinstance(url, str) or not url:
                raise VastConfigValidationError(
                    "URL filter must return a URL",
                    config_key="url_filter",
                    config_value=getattr(url_filter, "__qualname__", repr(url_filter)),
                )
        return url

    async def _fetch(
        self, url: str, state: _ResolutionState, depth: int, original_url: str | None
    ) -> FetchResult:
        """Filter, announce, fetch and report one document of the chain."""
        filtered_url = self._apply_filters(url, state)
        state.parent_urls.update((url, filtered_url))

        self.events.emit(
            ResolverChannel.RESOLVING,
            ResolvingEvent(url=filtered_url, wrapper_depth=depth, original_url=original_url),
        )

        try:
            result = await state.fetcher.fetch(filtered_url, state.fetch_options)
        except VastException as e:
            result = FetchResult(url=filtered_url, error=e)
        except (asyncio.TimeoutError, TimeoutError) as e:
            result = FetchResult(
                url=filtered_url,
                error=VastFetchTimeoutError(
                    "VAST document request timed out", url=filtered_url, cause=e
                ),
            )
        except Exception as e:
            result = FetchResult(
                url=filtered_url,
                error=VastFetchError(str(e) or type(e).__name__, url=filtered_url, cause=e),
            )

        if result.ok:
            xml = result.document.to_string()
            self.events.emit(
                ResolverChannel.RESOLVED,
                ResolvedEvent(url=filtered_url, wrapper_depth=depth, xml=xml),
            )
        else:
            self.events.emit(
                ResolverChannel.RESOLVED,
                ResolvedEvent(url=filtered_url, wrapper_depth=depth, error=result.error),
            )
        return result

    def _parse(
        self, document: VastDocument, state: _ResolutionState, is_root: bool = False
    ) -> ParsedVast:
        """Build one document's ads and collect its VAST-level error URLs."""
        parsed = self.parser.parse(document)
        if is_root:
            state.version = parsed.version
            state.root_error_url_templates = list(parsed.error_url_templates)
        else:
            state.nested_error_url_templates.extend(parsed.error_url_templates)

        for _ in range(parsed.invalid_ads):
            self._report_error(
                state.vast_error_url_templates,
                VastErrorCode.SCHEMA_VALIDATION,
                "Ad has neither a usable InLine nor a Wrapper",
            )
        return parsed

    async def _resolve_root(
        self, document: VastDocument, url: str | None, state: _ResolutionState
    ) -> VastResponse:
        try:
            parsed = self._parse(document, state, is_root=True)
        except VastException as e:
            self.logger.error(VastEvents.RESOLVE_FAILED, error=str(e), error_type=type(e).__name__)
            raise

        ads = await self._resolve_ads(parsed.ads, url, state, depth=0)
        return self._complete(ads, state)

    async def _resolve_ads(
        self, ads: list[Ad], base_url: str | None, state: _ResolutionState, depth: int
    ) -> list[Ad]:
        """Resolve the wrappers among ``ads`` in pod order."""
        resolved: list[Ad] = []
        for ad in ads:
            if ad.is_wrapper:
                resolved.extend(await self._resolve_wrapper(ad, base_url, state, depth))
            else:
                resolved.append(ad)
        return resolved

    async def _resolve_wrapper(
        self, wrapper: Ad, base_url: str | None, state: _ResolutionState, depth: int
    ) -> list[Ad]:
        """Follow one wrapper and fold it into whatever it resolves to.

        Failures are recorded on the wrapper ad itself (``error_code``) and
        reported once the whole chain has unwound.
        """
        next_depth = depth + 1
        next_url = resolve_vast_ad_tag_uri(wrapper.next_wrapper_url, base_url)
        wrapper.next_wrapper_url = None

        if next_depth >= state.wrapper_limit or next_url in state.parent_urls:
            self.logger.warning(
                VastEvents.WRAPPER_LIMIT_REACHED,
                url=next_url,
                wrapper_depth=next_depth,
                wrapper_limit=state.wrapper_limit,
                loop=next_url in state.parent_urls,
            )
            wrapper.error_code = VastErrorCode.WRAPPER_LIMIT
            wrapper.error_message = "Wrapper limit reached"
            return [wrapper]

        self.logger.debug(
            VastEvents.WRAPPER_FOLLOWED, ad_id=wrapper.id, url=next_url, wrapper_depth=next_depth
        )
        result = await self._fetch(next_url, state, depth=next_depth, original_url=next_url)

        parsed = None
        if result.ok:
            try:
                parsed = self._parse(result.document, state)
            except VastException as e:
                result.error = e

        if parsed is None:
            self.logger.warning(
                VastEvents.WRAPPER_FAILED,
                url=next_url,
                wrapper_depth=next_depth,
                error=str(result.error),
                error_type=type(result.error).__name__,
            )
            wrapper.error_code = VastErrorCode.WRAPPER_FAILED
            wrapper.error_message = str(result.error)
            return [wrapper]

        nested_ads = await self._resolve_ads(parsed.ads, next_url, state, next_depth)

        if not nested_ads:
            # Reported as "no ads" (303) once the chain has unwound
            wrapper.creatives = []
            return [wrapper]

        if wrapper.sequence is not None and nested_ads[0].sequence is None:
            nested_ads[0].sequence = wrapper.sequence

        for ad in nested_ads:
            merge_wrapper_ad_data(ad, wrapper)

        self.logger.debug(
            VastEvents.WRAPPER_MERGED,
            ad_id=wrapper.id,
            wrapper_depth=depth,
            merged_ads=len(nested_ads),
        )
        return nested_ads

    def _complete(self, ads: list[Ad], state: _ResolutionState) -> VastResponse:
        """Report failed ads once and build the response from the survivors."""
        vast_errors = state.vast_error_url_templates

        if not ads:
            self._report_error(vast_errors, VastErrorCode.NO_ADS)
            return VastResponse(version=state.version, error_url_templates=tuple(vast_errors))

        kept: list[Ad] = []
        for ad in ads:
            if ad.error_code is not None or not ad.creatives:
                self._report_error(
                    [*ad.error_url_templates, *vast_errors],
                    ad.error_code or VastErrorCode.NO_ADS,
                    ad.error_message,
                    extensions=ad.extensions,
                    system=ad.system,
                )
                continue
            kept.append(copy.deepcopy(ad))

        return VastResponse(
            version=state.version, ads=tuple(kept), error_url_templates=tuple(vast_errors)
        )

    def _report_error(
        self,
        templates: list[str],
        code: int,
        message: str | None = None,
        extensions: list[AdExtension] | None = None,
        system: AdSystem | None = None,
    ) -> None:
        """Emit one error notification and dispatch its tracking batch."""
        code = int(code)
        self.logger.warning(
            VastEvents.ERROR_DISPATCHED,
            error_code=code,
            error_message=message,
            error_urls_count=len(templates),
        )
        self.events.emit(
            ResolverChannel.ERROR,
            VastErrorEvent(
                error_code=code,
                error_message=message,
                extensions=list(extensions or []),
                system=system,
            ),
        )
        self.tracker.track(templates, {"ERRORCODE": code})

    def _log_completed(self, response: VastResponse, start_time: float) -> None:
        self.logger.info(
            VastEvents.RESOLVE_COMPLETED,
            version=response.version,
            ads_count=len(response.ads),
            response_time=round(time.time() - start_time, 3),
        )

    async def close(self) -> None:
        """Wait for tracking requests still in flight."""
        aclose = getattr(self.tracker.transport, "aclose", None)
        if aclose is not None:
            await aclose()


__all__ = ["VastResolver"]
