import httpx
import pytest
import pytest_asyncio
from opentelemetry.trace import SpanKind, StatusCode

from api.dependencies import get_record_store
from domain.common.exceptions import StoreException
from main import app


def _override_store(store):
    async def _get_store():
        return store

    app.dependency_overrides[get_record_store] = _get_store


@pytest_asyncio.fixture
async def client(store):
    _override_store(store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert resp.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_subject_question_and_likes(client):
    resp = await client.post("/api/v1/subjects", json={"title": "Rust"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["code"] == 0
    subject_id = body["data"]["id"]

    resp = await client.post("/api/v1/questions", json={"subject_id": subject_id, "question": "Borrowck?"})
    assert resp.status_code == 200

    resp = await client.get(f"/api/v1/subjects/{subject_id}/questions")
    questions = resp.json()["data"]
    assert [q["question"] for q in questions] == ["Borrowck?"]
    question_id = questions[0]["id"]

    assert (await client.post(f"/api/v1/questions/{question_id}/like")).status_code == 200
    resp = await client.get(f"/api/v1/questions/{question_id}")
    assert resp.json()["data"]["likes"] == 1

    assert (await client.post(f"/api/v1/questions/{question_id}/unlike")).status_code == 200
    resp = await client.post(f"/api/v1/questions/{question_id}/unlike")
    assert resp.status_code == 409
    assert resp.json()["code"] == 20202

    assert (await client.delete(f"/api/v1/questions/{question_id}")).status_code == 200
    assert (await client.delete(f"/api/v1/subjects/{subject_id}")).status_code == 200
    resp = await client.get("/api/v1/subjects")
    assert resp.json()["data"] == []


@pytest.mark.asyncio
async def test_error_envelope_and_status_mapping(client, seed):
    resp = await client.post("/api/v1/subjects", json={"title": ""})
    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == 10003
    assert body["error"]["field"] == "title"
    assert body["error"]["request_id"]

    resp = await client.post("/api/v1/questions", json={"subject_id": 99999, "question": "q"})
    assert resp.status_code == 404

    disabled_id = await seed.subject("closed", enabled=False)
    resp = await client.post("/api/v1/questions", json={"subject_id": disabled_id, "question": "q"})
    assert resp.status_code == 409
    assert resp.json()["error"]["type"] == "SubjectDisabled"

    resp = await client.delete("/api/v1/questions/0")
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_missing_body_field_is_validation_error(client):
    resp = await client.post("/api/v1/questions", json={"question": "no subject"})
    assert resp.status_code == 422
    assert resp.json()["code"] == 10003


@pytest.mark.asyncio
async def test_get_missing_subject_returns_zero_value(client):
    resp = await client.get("/api/v1/subjects/4321")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"id": 0, "title": "", "enabled": False}


@pytest.mark.asyncio
async def test_store_failure_maps_to_500(failing_store):
    _override_store(failing_store)
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            resp = await client.get("/api/v1/subjects")
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.json()["code"] == 40001


TRACE_HEADERS = {"traceid": "0af7651916cd43dd8448eb211c80319c", "spanid": "b7ad6b7169203331"}


@pytest_asyncio.fixture
async def traced_app(hub):
    app.state.observability = hub
    try:
        yield hub
    finally:
        del app.state.observability
        app.dependency_overrides.clear()


async def _get(path, headers=None):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        return await client.get(path, headers=headers)


@pytest.mark.asyncio
async def test_store_failure_is_captured_on_request_span(traced_app, span_exporter, failing_store):
    _override_store(failing_store)
    resp = await _get("/api/v1/subjects", headers=TRACE_HEADERS)

    assert resp.status_code == 500
    assert len(traced_app.captured) == 1
    assert isinstance(traced_app.captured[0], StoreException)

    (span,) = span_exporter.get_finished_spans()
    assert span.name == "GET /api/v1/subjects"
    assert span.kind is SpanKind.SERVER
    assert span.context.trace_id == int(TRACE_HEADERS["traceid"], 16)
    assert span.parent.span_id == int(TRACE_HEADERS["spanid"], 16)
    assert span.attributes["http.response.status_code"] == 500
    assert span.status.status_code is StatusCode.ERROR
    assert [event.name for event in span.events] == ["exception"]


@pytest.mark.asyncio
async def test_client_errors_are_not_captured(traced_app, span_exporter, store):
    _override_store(store)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        resp = await client.post("/api/v1/questions", json={"subject_id": 99999, "question": "q"})
        assert resp.status_code == 404
        resp = await client.get("/api/v1/subjects/abc")
        assert resp.status_code == 422

    assert traced_app.captured == []
    names = [span.name for span in span_exporter.get_finished_spans()]
    assert names == ["POST /api/v1/questions", "GET /api/v1/subjects/{subject_id}"]
    for span in span_exporter.get_finished_spans():
        assert span.status.status_code is StatusCode.OK
        assert span.parent is None


@pytest.mark.asyncio
async def test_malformed_trace_header_is_reported_not_fatal(traced_app, span_exporter, store):
    _override_store(store)
    resp = await _get("/api/v1/subjects", headers={"traceid": "not-hex"})

    assert resp.status_code == 200
    assert [type(exc) for exc in traced_app.captured] == [ValueError]
    spans = span_exporter.get_finished_spans()
    assert spans[-1].name == "GET /api/v1/subjects"
    assert spans[-1].parent is None


@pytest.mark.asyncio
async def test_health_is_not_traced(traced_app, span_exporter):
    resp = await _get("/health")
    assert resp.status_code == 200
    assert span_exporter.get_finished_spans() == ()
