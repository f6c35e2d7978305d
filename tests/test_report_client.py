"""Unit tests for merchant_reports/report_client.py."""

from __future__ import annotations

import pydantic
import pytest

from merchant_reports.http_client import RetriesExhaustedError
from merchant_reports.report_client import ReportClient

from conftest import BASE_URL, TOKEN, error_body

QUERY = "SELECT offer_view.title FROM OfferView"


@pytest.fixture
def client(http_client):
    return ReportClient(TOKEN, http_client=http_client, base_url=BASE_URL, max_retries=1, initial_delay_millis=10)


def test_single_page_request_shape(client, fake_session):
    fake_session.queue({"results": [{"offerView": {"title": "Offer 1"}}], "nextPageToken": "more"})

    results = client.get_report(987654321, QUERY, 10, fetch_all=False)

    assert results == [{"offerView": {"title": "Offer 1"}}]
    assert len(fake_session.calls) == 1
    sent = fake_session.calls[0]
    assert sent["method"] == "POST"
    assert sent["url"] == BASE_URL + "987654321/reports/search"
    assert sent["headers"]["Authorization"] == "Bearer mock_token"
    assert sent["payload"] == {"query": QUERY, "pageSize": 10}


def test_single_page_without_results(client, fake_session):
    fake_session.queue({})
    assert client.get_report(1, QUERY, 10, fetch_all=False) == []


def test_fetch_all_walks_every_page(client, fake_session):
    fake_session.queue(
        {"results": [{"n": 1}], "nextPageToken": "t1"},
        {"results": [{"n": 2}], "nextPageToken": "t2"},
        {"results": [{"n": 3}]},
    )

    results = client.get_report(1, QUERY, 1000, fetch_all=True)

    assert results == [{"n": 1}, {"n": 2}, {"n": 3}]
    assert [c["payload"].get("pageToken") for c in fake_session.calls] == [None, "t1", "t2"]
    assert all(c["payload"]["pageSize"] == 1000 for c in fake_session.calls)


def test_errors_propagate_unwrapped(client, fake_session):
    fake_session.queue(
        error_body(403, "User cannot access account 1"),
        error_body(403, "User cannot access account 1"),
    )

    with pytest.raises(RetriesExhaustedError, match="User cannot access account 1"):
        client.get_report(1, QUERY, 10, fetch_all=False)


def test_invalid_merchant_id_rejected_before_any_call(client, fake_session):
    with pytest.raises(pydantic.ValidationError):
        client.get_report(0, QUERY, 10, fetch_all=False)
    assert fake_session.calls == []


def test_flatten_is_available_on_client(client):
    assert client.flatten([{"offerView": {"title": "Offer 1"}}]) == [{"offerView.title": "Offer 1"}]
