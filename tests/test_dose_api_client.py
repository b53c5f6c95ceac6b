"""Async client for the transition endpoint, against a mocked transport."""

import json

import httpx
import pytest

from dosetrack.clients.dose_api import BackendTimeout, BackendUnavailable, DoseApiClient
from dosetrack.core.errors import AlreadyFinalized, DoseTrackingError, InvalidOrExpiredLink


def _client(handler):
    return DoseApiClient(base_url="http://doses.test", timeout=1.0, transport=httpx.MockTransport(handler))


@pytest.mark.anyio
async def test_mark_dose_success():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "applied": True,
                "idempotent": False,
                "dose": {"status": "given"},
                "progress": {"given_count": 1},
                "redirect": "/dose-success?pet=Biscuit",
            },
        )

    response = await _client(handler).mark_dose(token="tok-1")

    assert seen == {"path": "/api/v1/doses/transition", "body": {"status": "given", "token": "tok-1"}}
    assert response.applied
    assert not response.idempotent
    assert response.redirect == "/dose-success?pet=Biscuit"


@pytest.mark.anyio
async def test_session_fields_are_sent_as_strings():
    seen = {}

    def handler(request):
        seen.update(json.loads(request.content))
        return httpx.Response(200, json={"applied": False, "dose": {}, "progress": {}})

    response = await _client(handler).mark_dose(user_id="u-1", medication_id="m-1", status="skipped")
    assert seen == {"status": "skipped", "user_id": "u-1", "medication_id": "m-1"}
    assert response.idempotent


@pytest.mark.anyio
async def test_timeout_is_transient():
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    with pytest.raises(BackendTimeout):
        await _client(handler).mark_dose(short_code="Ab3dE6gH")


@pytest.mark.anyio
async def test_connection_failure_is_transient():
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(BackendUnavailable):
        await _client(handler).mark_dose(short_code="Ab3dE6gH")


@pytest.mark.anyio
async def test_domain_errors_map_back_to_their_classes():
    def handler(request):
        return httpx.Response(409, json={"detail": "Already skipped.", "code": "already_finalized"})

    with pytest.raises(AlreadyFinalized) as excinfo:
        await _client(handler).mark_dose(short_code="Ab3dE6gH")
    assert excinfo.value.message == "Already skipped."


@pytest.mark.anyio
async def test_link_errors_map_back():
    def handler(request):
        return httpx.Response(404, json={"detail": "gone", "code": "invalid_or_expired_link"})

    with pytest.raises(InvalidOrExpiredLink):
        await _client(handler).mark_dose(short_code="Ab3dE6gH")


@pytest.mark.anyio
async def test_unknown_error_code_falls_back_to_base_error():
    def handler(request):
        return httpx.Response(422, json={"detail": [{"msg": "bad status"}]})

    with pytest.raises(DoseTrackingError) as excinfo:
        await _client(handler).mark_dose(short_code="Ab3dE6gH", status="pending")
    assert type(excinfo.value) is DoseTrackingError


@pytest.mark.anyio
async def test_server_error_is_transient():
    def handler(request):
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(BackendUnavailable):
        await _client(handler).mark_dose(short_code="Ab3dE6gH")


@pytest.mark.anyio
async def test_response_without_applied_is_not_a_confirmation():
    def handler(request):
        return httpx.Response(200, json={"dose": {}})

    with pytest.raises(BackendUnavailable):
        await _client(handler).mark_dose(short_code="Ab3dE6gH")


@pytest.mark.anyio
@pytest.mark.parametrize("body", [["already_finalized"], "conflict", None])
async def test_error_body_that_is_not_an_object(body):
    def handler(request):
        return httpx.Response(409, json=body)

    with pytest.raises(DoseTrackingError) as excinfo:
        await _client(handler).mark_dose(short_code="Ab3dE6gH")
    assert type(excinfo.value) is DoseTrackingError


@pytest.mark.anyio
async def test_success_body_that_is_not_an_object():
    def handler(request):
        return httpx.Response(200, json=[{"applied": True}])

    with pytest.raises(BackendUnavailable):
        await _client(handler).mark_dose(short_code="Ab3dE6gH")
