"""
Tests del cliente HTTP: query params, respuestas, mensajes de error,
cache y prefetch. Contra la app real (ASGITransport) y contra MockTransport.
"""

import uuid
from datetime import datetime, timezone

import httpx
import pytest
import pytest_asyncio

from patient_admin.api.patients import get_patient_visit_repository
from patient_admin.client import patient_search_client as client_module
from patient_admin.client.patient_search_client import (
    DEFAULT_ERROR_MESSAGE,
    PatientSearchClient,
    PatientSearchClientError,
    build_search_params,
    extract_error_message,
    parse_search_params,
)
from patient_admin.main import app
from patient_admin.schemas.patient_visit import SearchCriteria


@pytest_asyncio.fixture
async def search_client(memory_repository):
    """Cliente apuntando a la app real con el repositorio en memoria."""
    app.dependency_overrides[get_patient_visit_repository] = lambda: memory_repository
    yield PatientSearchClient("http://test", transport=httpx.ASGITransport(app=app))
    app.dependency_overrides.clear()


def mock_client(handler, **kwargs) -> PatientSearchClient:
    return PatientSearchClient(
        "http://test", transport=httpx.MockTransport(handler), **kwargs
    )


def empty_page(page=1, total=0, size=10):
    pages = -(-total // size)
    return {
        "data": [],
        "totalCount": total,
        "page": page,
        "pageSize": size,
        "totalPages": pages,
        "hasNextPage": page < pages,
        "hasPreviousPage": page > 1,
    }


# ── Query params ─────────────────────────────────────


def test_build_params_omits_absent_fields():
    params = build_search_params(SearchCriteria(search_term="", page=2, page_size=20))

    assert params == {"page": "2", "pageSize": "20"}


def test_build_params_with_all_fields():
    hospital_id = uuid.uuid4()
    criteria = SearchCriteria(
        search_term="doe",
        hospital_id=hospital_id,
        from_date=datetime(2024, 1, 1, tzinfo=timezone.utc),
        to_date=datetime(2024, 2, 1, tzinfo=timezone.utc),
    )

    params = build_search_params(criteria)

    assert params == {
        "searchTerm": "doe",
        "hospitalId": str(hospital_id),
        "fromDate": "2024-01-01T00:00:00+00:00",
        "toDate": "2024-02-01T00:00:00+00:00",
        "page": "1",
        "pageSize": "10",
    }


@pytest.mark.parametrize(
    "criteria",
    [
        SearchCriteria(),
        SearchCriteria(search_term="john", page=3, page_size=25),
        SearchCriteria(
            hospital_id=uuid.uuid4(),
            from_date=datetime(2024, 1, 1, 8, 30, tzinfo=timezone.utc),
        ),
    ],
)
def test_params_round_trip(criteria):
    decoded = parse_search_params(build_search_params(criteria))

    assert decoded == criteria
    if criteria.search_term is None:
        assert decoded.search_term is None


# ── Mensajes de error ────────────────────────────────


def _status_error(status_code, **kwargs):
    request = httpx.Request("GET", "http://test/api/patients/visits")
    response = httpx.Response(status_code, request=request, **kwargs)
    return httpx.HTTPStatusError("server said no", request=request, response=response)


def test_error_message_prefers_error_field():
    exc = _status_error(400, json={"error": "PageSize must be between 1 and 100", "message": "other"})

    assert extract_error_message(exc) == "PageSize must be between 1 and 100"


def test_error_message_falls_back_to_message_field():
    exc = _status_error(500, json={"message": "Service unavailable"})

    assert extract_error_message(exc) == "Service unavailable"


def test_error_message_falls_back_to_transport_text():
    exc = _status_error(502, text="<html>bad gateway</html>")

    assert extract_error_message(exc) == "server said no"


def test_error_message_default():
    assert extract_error_message(None) == DEFAULT_ERROR_MESSAGE
    assert extract_error_message(httpx.ConnectError("")) == DEFAULT_ERROR_MESSAGE


# ── Contra la app real ───────────────────────────────


async def test_search_against_app(search_client):
    page = await search_client.search_patient_visits(SearchCriteria(page_size=4))

    assert page.total_count == 6
    assert page.total_pages == 2
    assert page.has_next_page is True
    assert [r.last_name for r in page.data] == ["Adams", "Doe", "Doe", "Doe"]


async def test_search_validation_error_against_app(search_client):
    with pytest.raises(PatientSearchClientError) as exc_info:
        await search_client.search_patient_visits(SearchCriteria(page_size=101))

    assert exc_info.value.status_code == 400
    assert exc_info.value.message == "PageSize must be between 1 and 100"


async def test_get_visit_against_app(search_client, sample_data):
    record = await search_client.get_patient_visit(
        sample_data.alice.id, sample_data.visits["alice_jan"].id
    )

    assert record.first_name == "Alice"
    assert record.visit_date == sample_data.visits["alice_jan"].date


async def test_get_visit_not_found_against_app(search_client, sample_data):
    with pytest.raises(PatientSearchClientError) as exc_info:
        await search_client.get_patient_visit(sample_data.alice.id, uuid.uuid4())

    assert exc_info.value.status_code == 404
    assert exc_info.value.message == "Patient visit not found"


async def test_get_visit_requires_ids(search_client):
    with pytest.raises(PatientSearchClientError):
        await search_client.get_patient_visit("", uuid.uuid4())


async def test_hospitals_against_app(search_client):
    hospitals = await search_client.get_all_hospitals()

    assert [h.name for h in hospitals] == ["Central Hospital", "Riverside Clinic"]


# ── Cache y prefetch ─────────────────────────────────


async def test_search_results_are_cached():
    calls = []

    def handler(request):
        calls.append(str(request.url))
        return httpx.Response(200, json=empty_page())

    client = mock_client(handler)
    criteria = SearchCriteria(search_term="doe")

    await client.search_patient_visits(criteria)
    await client.search_patient_visits(criteria)

    assert len(calls) == 1
    assert "searchTerm=doe" in calls[0]


async def test_cache_expires_after_ttl(monkeypatch):
    calls = []
    clock = {"now": 1000.0}
    monkeypatch.setattr(client_module.time, "time", lambda: clock["now"])

    def handler(request):
        calls.append(request.url.path)
        return httpx.Response(200, json=[{"id": str(uuid.uuid4()), "name": "Central Hospital"}])

    client = mock_client(handler, hospitals_cache_ttl=600)

    await client.get_all_hospitals()
    clock["now"] += 599
    await client.get_all_hospitals()
    assert len(calls) == 1

    clock["now"] += 2
    await client.get_all_hospitals()
    assert len(calls) == 2


async def test_prefetch_next_page_warms_cache():
    requested_pages = []

    def handler(request):
        page = int(request.url.params["page"])
        requested_pages.append(page)
        return httpx.Response(200, json=empty_page(page=page, total=25))

    client = mock_client(handler)
    criteria = SearchCriteria(page=1)
    current = await client.search_patient_visits(criteria)

    assert await client.prefetch_next_page(criteria, current) is True
    await client.search_patient_visits(SearchCriteria(page=2))

    assert requested_pages == [1, 2]


async def test_prefetch_skipped_on_last_page():
    def handler(request):
        return httpx.Response(200, json=empty_page(total=3))

    client = mock_client(handler)
    criteria = SearchCriteria()
    current = await client.search_patient_visits(criteria)

    assert await client.prefetch_next_page(criteria, current) is False


async def test_prefetch_failure_is_silent():
    def handler(request):
        if request.url.params["page"] == "2":
            return httpx.Response(500, json={"error": "An internal server error occurred"})
        return httpx.Response(200, json=empty_page(total=25))

    client = mock_client(handler)
    criteria = SearchCriteria()
    current = await client.search_patient_visits(criteria)

    assert await client.prefetch_next_page(criteria, current) is False


async def test_transport_failure_becomes_client_error():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    client = mock_client(handler)

    with pytest.raises(PatientSearchClientError) as exc_info:
        await client.get_all_hospitals()

    assert exc_info.value.status_code is None
    assert exc_info.value.message == "connection refused"


async def test_prefetch_with_html_body_is_silent():
    def handler(request):
        if request.url.params["page"] == "2":
            return httpx.Response(200, text="<html>proxy error</html>")
        return httpx.Response(200, json=empty_page(total=25))

    client = mock_client(handler)
    criteria = SearchCriteria()
    current = await client.search_patient_visits(criteria)

    assert await client.prefetch_next_page(criteria, current) is False


async def test_non_json_body_becomes_client_error():
    def handler(request):
        return httpx.Response(200, text="<html>proxy error</html>")

    client = mock_client(handler)

    with pytest.raises(PatientSearchClientError) as exc_info:
        await client.search_patient_visits(SearchCriteria())

    assert exc_info.value.status_code == 200
    assert exc_info.value.message == client_module.INVALID_RESPONSE_MESSAGE


@pytest.mark.parametrize(
    "payload",
    [{"unexpected": True}, [{"id": "not-a-uuid", "name": "Central Hospital"}]],
)
async def test_unexpected_shape_becomes_client_error(payload):
    client = mock_client(lambda request: httpx.Response(200, json=payload))

    with pytest.raises(PatientSearchClientError):
        await client.get_all_hospitals()
    with pytest.raises(PatientSearchClientError):
        await client.search_patient_visits(SearchCriteria())


async def test_expired_entries_are_dropped_on_write(monkeypatch):
    clock = {"now": 1000.0}
    monkeypatch.setattr(client_module.time, "time", lambda: clock["now"])

    client = mock_client(
        lambda request: httpx.Response(200, json=empty_page()), search_cache_ttl=120
    )

    await client.search_patient_visits(SearchCriteria(search_term="doe"))
    clock["now"] += 121
    await client.search_patient_visits(SearchCriteria(search_term="smith"))

    assert len(client._cache) == 1
    assert all("smith" in key for key in client._cache)
