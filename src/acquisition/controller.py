"""Acquisition controller orchestrating the primary and fallback stores."""

import asyncio
from typing import Callable, List, Optional, TYPE_CHECKING

from src.acquisition.auth import AnonymousAuthProvider, AuthProvider
from src.fetcher.error_classifier import DEFAULT_MESSAGES, ERROR_CODES
from src.models.data_models import (
    SOURCE_LEVEL_CATEGORIES,
    AcquisitionFailure,
    AcquisitionResult,
    AcquisitionSuccess,
    ClassifiedError,
    DetailsResult,
    DetailsSuccess,
    ErrorCategory,
    FetchRequest,
    ListingSnapshot,
    ListingState,
    PageInfo,
    Product,
    SourceMode,
)
from src.monitoring.logger import StructuredLogger

if TYPE_CHECKING:
    from src.fetcher.adapters import DataSourceAdapter


Subscriber = Callable[[ListingSnapshot], None]


class AcquisitionController:
    """
    Decides which store to read from and owns the listing state.

    Behaviour:
    - Starts in PRIMARY mode
    - A PRIMARY-mode failure classified as UNAUTHORIZED or NOT_FOUND moves
      the controller to FALLBACK once and raises a one-time switch notice
    - Any other failure, and any failure in FALLBACK mode, is only stored
    - Nothing is retried automatically; callers re-issue fetch() after a switch
    - Only the most recently issued fetch may update state (last request wins)

    The controller is meant to be driven from a single event loop, so state
    is mutated without locking.
    """

    def __init__(
        self,
        primary: "DataSourceAdapter",
        fallback: "DataSourceAdapter",
        auth_provider: Optional[AuthProvider] = None,
        skip_primary_when_anonymous: bool = False,
        logger: Optional[StructuredLogger] = None
    ):
        """
        Initialize controller.

        Args:
            primary: Adapter for the primary store
            fallback: Adapter for the fallback store
            auth_provider: Source of the signed-in user
            skip_primary_when_anonymous: Skip the primary call when nobody is signed in
            logger: Optional structured logger for telemetry
        """
        self._adapters = {
            SourceMode.PRIMARY: primary,
            SourceMode.FALLBACK: fallback,
        }
        self.auth_provider = auth_provider or AnonymousAuthProvider()
        self.skip_primary_when_anonymous = skip_primary_when_anonymous
        self.logger = logger

        self._mode = SourceMode.PRIMARY
        self._error: Optional[ClassifiedError] = None
        self._products: List[Product] = []
        self._total_count = 0
        self._page_info: Optional[PageInfo] = None
        self._details: Optional[Product] = None
        self._switched = False
        self._switch_notice_pending = False
        self._loading = False

        self._latest_request_id = 0
        self._latest_details_id = 0
        self._subscribers: List[Subscriber] = []

    # Read side

    @property
    def mode(self) -> SourceMode:
        return self._mode

    @property
    def current_error(self) -> Optional[ClassifiedError]:
        return self._error

    @property
    def products(self) -> List[Product]:
        return list(self._products)

    @property
    def product_details(self) -> Optional[Product]:
        return self._details

    @property
    def switched(self) -> bool:
        """True once a switch to FALLBACK happened since the last reset."""
        return self._switched

    @property
    def is_loading(self) -> bool:
        return self._loading

    @property
    def state(self) -> ListingState:
        if self._mode is SourceMode.PRIMARY:
            return ListingState.PRIMARY_ERROR if self._error else ListingState.PRIMARY_OK
        return ListingState.FALLBACK_ERROR if self._error else ListingState.FALLBACK_OK

    def snapshot(self) -> ListingSnapshot:
        return ListingSnapshot(
            products=list(self._products),
            current_error=self._error,
            mode=self._mode,
            state=self.state,
            switched=self._switched,
            is_loading=self._loading,
            total_count=self._total_count,
            page_info=self._page_info,
            product_details=self._details
        )

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback invoked with a fresh snapshot after each state change.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def consume_switch_notice(self) -> bool:
        """Return True exactly once per switch to FALLBACK."""
        pending = self._switch_notice_pending
        self._switch_notice_pending = False
        return pending

    def _notify(self) -> None:
        if not self._subscribers:
            return
        snapshot = self.snapshot()
        for callback in list(self._subscribers):
            callback(snapshot)

    # Commands

    async def fetch(self, request: FetchRequest) -> AcquisitionResult:
        """
        Fetch a listing page from the store matching the current mode.

        The result is returned to the caller either way, but it is applied to
        the controller state only if no newer fetch was issued meanwhile.

        Args:
            request: Filters, sort and page to fetch

        Returns:
            The AcquisitionResult produced by the adapter
        """
        self._latest_request_id += 1
        request_id = self._latest_request_id
        mode = self._mode

        self._loading = True
        self._notify()

        if self.logger:
            self.logger.fetch_start(source=mode.value, request_id=request_id)

        loop = asyncio.get_running_loop()
        start = loop.time()
        settled = False
        try:
            if self._should_skip_primary(mode):
                result: AcquisitionResult = AcquisitionFailure(
                    error=_anonymous_error(),
                    source=SourceMode.PRIMARY
                )
            else:
                result = await self._adapters[mode].get(request)
            settled = True
        finally:
            if not settled and request_id == self._latest_request_id:
                self._loading = False
                self._notify()

        elapsed_ms = (loop.time() - start) * 1000

        if request_id != self._latest_request_id:
            if self.logger:
                self.logger.stale_result_dropped(
                    source=mode.value,
                    request_id=request_id,
                    latest_id=self._latest_request_id
                )
            return result

        self._loading = False
        if isinstance(result, AcquisitionSuccess):
            self._apply_success(result, request_id, elapsed_ms)
        else:
            self._apply_failure(result.error, mode, request_id)
            self._products = []
            self._total_count = 0
            self._page_info = None

        self._notify()
        return result

    async def fetch_details(self, product_id: str) -> DetailsResult:
        """
        Fetch one product from the store matching the current mode.

        A NOT_FOUND here concerns a single item and never switches stores.
        """
        self._latest_details_id += 1
        details_id = self._latest_details_id
        mode = self._mode

        if self._should_skip_primary(mode):
            result: DetailsResult = AcquisitionFailure(error=_anonymous_error(), source=mode)
        else:
            result = await self._adapters[mode].get_details(product_id)

        if details_id != self._latest_details_id:
            return result

        if isinstance(result, DetailsSuccess):
            self._details = result.product
            self._error = None
        else:
            self._details = None
            if result.error.category is ErrorCategory.NOT_FOUND:
                self._error = result.error
            else:
                self._apply_failure(result.error, mode, details_id)

        self._notify()
        return result

    def retry_primary(self) -> None:
        """
        Reset to PRIMARY mode and clear the held error.

        Outstanding fetches are abandoned: their results will be dropped.
        Does not fetch by itself.
        """
        self._latest_request_id += 1
        self._latest_details_id += 1
        self._mode = SourceMode.PRIMARY
        self._error = None
        self._switched = False
        self._switch_notice_pending = False
        self._loading = False

        if self.logger:
            self.logger.mode_reset(mode=self._mode.value)
        self._notify()

    def clear_error(self) -> None:
        """Clear the held error without touching the mode."""
        if self._error is None:
            return
        self._error = None
        self._notify()

    def clear_product_list(self) -> None:
        """Empty the listing and clear the held error."""
        self._products = []
        self._total_count = 0
        self._page_info = None
        self._error = None
        self._notify()

    # Internals

    def _should_skip_primary(self, mode: SourceMode) -> bool:
        return (
            mode is SourceMode.PRIMARY
            and self.skip_primary_when_anonymous
            and self.auth_provider.current_user() is None
        )

    def _apply_success(self, result: AcquisitionSuccess, request_id: int, elapsed_ms: float) -> None:
        self._error = None
        self._products = list(result.records)
        self._total_count = result.total_count
        self._page_info = result.page_info

        if self.logger:
            self.logger.fetch_success(
                source=result.source.value,
                request_id=request_id,
                records=len(result.records),
                elapsed_ms=elapsed_ms
            )

    def _apply_failure(self, error: ClassifiedError, issued_mode: SourceMode, request_id: int) -> None:
        self._error = error

        if self.logger:
            self.logger.fetch_error(
                source=issued_mode.value,
                request_id=request_id,
                status=error.status_code,
                category=error.category.value,
                error=error.message
            )

        if (
            issued_mode is SourceMode.PRIMARY
            and self._mode is SourceMode.PRIMARY
            and error.category in SOURCE_LEVEL_CATEGORIES
        ):
            self._mode = SourceMode.FALLBACK
            self._switched = True
            self._switch_notice_pending = True

            if self.logger:
                self.logger.source_switched(
                    from_mode=SourceMode.PRIMARY.value,
                    to_mode=SourceMode.FALLBACK.value,
                    category=error.category.value
                )


def _anonymous_error() -> ClassifiedError:
    """Error recorded when the primary call is skipped for an anonymous user."""
    return ClassifiedError(
        category=ErrorCategory.UNAUTHORIZED,
        message=DEFAULT_MESSAGES[ErrorCategory.UNAUTHORIZED],
        code=ERROR_CODES[ErrorCategory.UNAUTHORIZED]
    )
