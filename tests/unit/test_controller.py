"""Unit tests for the acquisition controller."""

import asyncio

import pytest

from src.acquisition.auth import StaticAuthProvider
from src.acquisition.controller import AcquisitionController
from src.models.data_models import (
    AcquisitionFailure,
    ErrorCategory,
    FetchRequest,
    ListingState,
    SourceMode,
    UserIdentity,
)
from tests.fixtures.fakes import FakeAdapter, make_failure, make_product, make_success


NON_SWITCHING = [
    ErrorCategory.SERVER_FAULT,
    ErrorCategory.TIMEOUT,
    ErrorCategory.NETWORK_FAULT,
    ErrorCategory.GENERIC_API_FAULT,
]


@pytest.fixture
def controller(primary_adapter, fallback_adapter):
    return AcquisitionController(primary_adapter, fallback_adapter)


class TestInitialState:

    def test_starts_in_primary_ok(self, controller):
        assert controller.mode == SourceMode.PRIMARY
        assert controller.state == ListingState.PRIMARY_OK
        assert controller.current_error is None
        assert controller.products == []
        assert controller.switched is False
        assert controller.is_loading is False


class TestSuccess:

    @pytest.mark.asyncio
    async def test_success_stores_records(self, controller, primary_adapter, men_request):
        products = [make_product("a"), make_product("b")]
        primary_adapter.results = [make_success(SourceMode.PRIMARY, products)]

        await controller.fetch(men_request)

        assert controller.products == products
        assert controller.current_error is None
        assert controller.mode == SourceMode.PRIMARY
        assert primary_adapter.calls == [men_request]

    @pytest.mark.asyncio
    async def test_empty_success_is_not_an_error(self, controller, primary_adapter, men_request):
        primary_adapter.results = [make_success(SourceMode.PRIMARY, [])]

        await controller.fetch(men_request)

        snapshot = controller.snapshot()
        assert snapshot.products == []
        assert snapshot.current_error is None
        assert snapshot.is_empty is True

    @pytest.mark.asyncio
    async def test_success_clears_previous_error(self, controller, primary_adapter, men_request):
        primary_adapter.results = [
            make_failure(SourceMode.PRIMARY, ErrorCategory.SERVER_FAULT, 500),
            make_success(SourceMode.PRIMARY),
        ]

        await controller.fetch(men_request)
        assert controller.state == ListingState.PRIMARY_ERROR

        await controller.fetch(men_request)
        assert controller.state == ListingState.PRIMARY_OK
        assert controller.current_error is None


class TestFallbackSwitching:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("category", NON_SWITCHING)
    async def test_non_source_level_failure_keeps_primary(self, controller, primary_adapter, men_request, category):
        primary_adapter.results = [make_failure(SourceMode.PRIMARY, category)]

        await controller.fetch(men_request)

        assert controller.mode == SourceMode.PRIMARY
        assert controller.current_error.category == category
        assert controller.switched is False
        assert controller.consume_switch_notice() is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("category", [ErrorCategory.UNAUTHORIZED, ErrorCategory.NOT_FOUND])
    async def test_source_level_failure_switches_once(self, controller, primary_adapter, men_request, category):
        primary_adapter.results = [make_failure(SourceMode.PRIMARY, category)]

        await controller.fetch(men_request)

        assert controller.mode == SourceMode.FALLBACK
        assert controller.state == ListingState.FALLBACK_ERROR
        assert controller.switched is True
        assert controller.consume_switch_notice() is True
        assert controller.consume_switch_notice() is False

    @pytest.mark.asyncio
    async def test_unauthorized_scenario_then_refetch_uses_fallback(
        self, controller, primary_adapter, fallback_adapter, men_request
    ):
        primary_adapter.results = [make_failure(SourceMode.PRIMARY, ErrorCategory.UNAUTHORIZED, 401)]

        await controller.fetch(men_request)

        assert controller.mode == SourceMode.FALLBACK
        assert controller.switched is True
        assert controller.current_error.category == ErrorCategory.UNAUTHORIZED
        # No automatic re-invocation
        assert fallback_adapter.calls == []

        await controller.fetch(men_request)

        assert fallback_adapter.calls == [men_request]
        assert len(primary_adapter.calls) == 1
        assert controller.state == ListingState.FALLBACK_OK
        assert controller.switched is True

    @pytest.mark.asyncio
    async def test_failure_in_fallback_does_not_switch_again(self, controller, primary_adapter, fallback_adapter, men_request):
        primary_adapter.results = [make_failure(SourceMode.PRIMARY, ErrorCategory.NOT_FOUND, 404)]
        fallback_adapter.results = [
            make_failure(SourceMode.FALLBACK, ErrorCategory.SERVER_FAULT, 500),
            make_failure(SourceMode.FALLBACK, ErrorCategory.UNAUTHORIZED, 401),
        ]

        await controller.fetch(men_request)
        assert controller.consume_switch_notice() is True

        await controller.fetch(men_request)
        assert controller.mode == SourceMode.FALLBACK
        assert controller.current_error.category == ErrorCategory.SERVER_FAULT

        await controller.fetch(men_request)
        assert controller.mode == SourceMode.FALLBACK
        assert controller.current_error.category == ErrorCategory.UNAUTHORIZED
        assert controller.consume_switch_notice() is False

    @pytest.mark.asyncio
    async def test_failure_clears_product_list(self, controller, primary_adapter, men_request):
        primary_adapter.results = [
            make_success(SourceMode.PRIMARY),
            make_failure(SourceMode.PRIMARY, ErrorCategory.TIMEOUT),
        ]

        await controller.fetch(men_request)
        assert len(controller.products) == 1

        await controller.fetch(men_request)
        assert controller.products == []
        assert controller.snapshot().is_empty is False


class TestResetOperations:

    @pytest.mark.asyncio
    async def test_retry_primary_resets_mode_and_error(self, controller, primary_adapter, men_request):
        primary_adapter.results = [make_failure(SourceMode.PRIMARY, ErrorCategory.UNAUTHORIZED, 401)]
        await controller.fetch(men_request)

        controller.retry_primary()

        assert controller.mode == SourceMode.PRIMARY
        assert controller.current_error is None
        assert controller.switched is False
        assert controller.state == ListingState.PRIMARY_OK

    @pytest.mark.asyncio
    async def test_retry_primary_does_not_fetch(self, controller, primary_adapter, fallback_adapter):
        controller.retry_primary()

        assert primary_adapter.calls == []
        assert fallback_adapter.calls == []

    @pytest.mark.asyncio
    async def test_switch_notice_rearms_after_retry_primary(self, controller, primary_adapter, men_request):
        primary_adapter.results = [
            make_failure(SourceMode.PRIMARY, ErrorCategory.UNAUTHORIZED, 401),
            make_failure(SourceMode.PRIMARY, ErrorCategory.NOT_FOUND, 404),
        ]

        await controller.fetch(men_request)
        assert controller.consume_switch_notice() is True

        controller.retry_primary()
        await controller.fetch(men_request)

        assert controller.mode == SourceMode.FALLBACK
        assert controller.consume_switch_notice() is True

    @pytest.mark.asyncio
    async def test_clear_error_keeps_mode(self, controller, primary_adapter, men_request):
        primary_adapter.results = [make_failure(SourceMode.PRIMARY, ErrorCategory.NOT_FOUND, 404)]
        await controller.fetch(men_request)

        controller.clear_error()

        assert controller.current_error is None
        assert controller.mode == SourceMode.FALLBACK
        assert controller.state == ListingState.FALLBACK_OK

    def test_clear_error_without_error_is_noop(self, controller):
        seen = []
        controller.subscribe(seen.append)
        before = controller.snapshot()

        controller.clear_error()

        assert controller.snapshot() == before
        assert seen == []

    @pytest.mark.asyncio
    async def test_clear_product_list(self, controller, men_request):
        await controller.fetch(men_request)

        controller.clear_product_list()

        assert controller.products == []
        assert controller.snapshot().total_count == 0


class TestLastRequestWins:

    @pytest.mark.asyncio
    async def test_older_result_arriving_late_is_dropped(self, men_request):
        primary = FakeAdapter(SourceMode.PRIMARY, gated=True)
        fallback = FakeAdapter(SourceMode.FALLBACK)
        controller = AcquisitionController(primary, fallback)

        result_a = make_success(SourceMode.PRIMARY, [make_product("a")])
        result_b = make_success(SourceMode.PRIMARY, [make_product("b")])
        primary.results = [result_a, result_b]

        request_b = FetchRequest.build(category=["women"])
        task_a = asyncio.create_task(controller.fetch(men_request))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(controller.fetch(request_b))
        await asyncio.sleep(0)

        # B settles first, then A
        primary.gates[1].set()
        await task_b
        primary.gates[0].set()
        returned_a = await task_a

        assert returned_a is result_a
        assert [p.id for p in controller.products] == ["b"]
        assert controller.is_loading is False

    @pytest.mark.asyncio
    async def test_stale_failure_does_not_switch_mode(self, men_request):
        primary = FakeAdapter(SourceMode.PRIMARY, gated=True)
        controller = AcquisitionController(primary, FakeAdapter(SourceMode.FALLBACK))
        primary.results = [
            make_failure(SourceMode.PRIMARY, ErrorCategory.UNAUTHORIZED, 401),
            make_success(SourceMode.PRIMARY),
        ]

        task_a = asyncio.create_task(controller.fetch(men_request))
        await asyncio.sleep(0)
        task_b = asyncio.create_task(controller.fetch(men_request))
        await asyncio.sleep(0)

        primary.gates[1].set()
        await task_b
        primary.gates[0].set()
        await task_a

        assert controller.mode == SourceMode.PRIMARY
        assert controller.current_error is None

    @pytest.mark.asyncio
    async def test_loading_tracks_latest_request(self, men_request):
        primary = FakeAdapter(SourceMode.PRIMARY, gated=True)
        controller = AcquisitionController(primary, FakeAdapter(SourceMode.FALLBACK))

        task = asyncio.create_task(controller.fetch(men_request))
        await asyncio.sleep(0)
        assert controller.is_loading is True

        primary.gates[0].set()
        await task
        assert controller.is_loading is False

    @pytest.mark.asyncio
    async def test_retry_primary_abandons_outstanding_fetch(self, men_request):
        primary = FakeAdapter(SourceMode.PRIMARY, gated=True)
        controller = AcquisitionController(primary, FakeAdapter(SourceMode.FALLBACK))
        primary.results = [make_failure(SourceMode.PRIMARY, ErrorCategory.UNAUTHORIZED, 401)]

        task = asyncio.create_task(controller.fetch(men_request))
        await asyncio.sleep(0)
        controller.retry_primary()
        primary.gates[0].set()
        await task

        assert controller.mode == SourceMode.PRIMARY
        assert controller.current_error is None


class TestAnonymousPreselection:

    @pytest.mark.asyncio
    async def test_anonymous_user_skips_primary_call(self, primary_adapter, fallback_adapter, men_request):
        controller = AcquisitionController(
            primary_adapter,
            fallback_adapter,
            auth_provider=StaticAuthProvider(),
            skip_primary_when_anonymous=True,
        )

        result = await controller.fetch(men_request)

        assert isinstance(result, AcquisitionFailure)
        assert primary_adapter.calls == []
        assert controller.mode == SourceMode.FALLBACK
        assert controller.current_error.category == ErrorCategory.UNAUTHORIZED
        assert controller.consume_switch_notice() is True

    @pytest.mark.asyncio
    async def test_signed_in_user_calls_primary(self, primary_adapter, fallback_adapter, men_request):
        controller = AcquisitionController(
            primary_adapter,
            fallback_adapter,
            auth_provider=StaticAuthProvider(UserIdentity(user_id="u1", email="u1@example.com")),
            skip_primary_when_anonymous=True,
        )

        await controller.fetch(men_request)

        assert primary_adapter.calls == [men_request]
        assert controller.mode == SourceMode.PRIMARY

    @pytest.mark.asyncio
    async def test_preselection_disabled_by_default(self, controller, primary_adapter, men_request):
        await controller.fetch(men_request)

        assert primary_adapter.calls == [men_request]


class TestDetails:

    @pytest.mark.asyncio
    async def test_details_success(self, controller, primary_adapter):
        await controller.fetch_details("p42")

        assert controller.product_details.id == "p42"
        assert primary_adapter.details_calls == ["p42"]

    @pytest.mark.asyncio
    async def test_details_not_found_never_switches(self, controller, primary_adapter):
        primary_adapter.details_results = [make_failure(SourceMode.PRIMARY, ErrorCategory.NOT_FOUND, 404)]

        await controller.fetch_details("missing")

        assert controller.mode == SourceMode.PRIMARY
        assert controller.product_details is None
        assert controller.current_error.category == ErrorCategory.NOT_FOUND
        assert controller.switched is False

    @pytest.mark.asyncio
    async def test_details_unauthorized_switches(self, controller, primary_adapter, fallback_adapter):
        primary_adapter.details_results = [make_failure(SourceMode.PRIMARY, ErrorCategory.UNAUTHORIZED, 401)]

        await controller.fetch_details("p1")
        assert controller.mode == SourceMode.FALLBACK

        await controller.fetch_details("p1")
        assert fallback_adapter.details_calls == ["p1"]


class TestSubscribers:

    @pytest.mark.asyncio
    async def test_subscribers_see_loading_then_result(self, controller, men_request):
        seen = []
        controller.subscribe(seen.append)

        await controller.fetch(men_request)

        assert [s.is_loading for s in seen] == [True, False]
        assert len(seen[-1].products) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, controller, men_request):
        seen = []
        unsubscribe = controller.subscribe(seen.append)
        unsubscribe()

        await controller.fetch(men_request)

        assert seen == []
