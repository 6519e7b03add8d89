import json
from datetime import date

import pytest
import requests

from tracker.api import ApiClient
from tracker.domain import PlanConfig
from tracker.errors import BackendError, ConnectionFailed, MalformedResponse


class FakeResponse:
    def __init__(self, status_code=200, body=None, raw=None):
        self.status_code = status_code
        self.ok = status_code < 400
        if raw is not None:
            self.content = raw.encode()
        elif body is not None:
            self.content = json.dumps(body).encode()
        else:
            self.content = b""

    def json(self):
        return json.loads(self.content)


class FakeSession:
    def __init__(self, *responses, error=None):
        self.responses = list(responses)
        self.error = error
        self.sent = []

    def request(self, method, url, params=None, json=None, timeout=None):
        self.sent.append({"method": method, "url": url, "params": params, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.responses.pop(0)


def make_client(*responses, error=None):
    session = FakeSession(*responses, error=error)
    return ApiClient("http://backend/", timeout=3, session=session), session


def test_list_transactions_sends_range_and_parses_rows():
    rows = [
        {"id": 1, "amount": "150000", "date": "2025-03-02T00:00:00.000Z", "type": "expense",
         "category_id": 4, "category_name": "Food", "category_icon": "🍔", "category_color": "#EF4444"},
        {"id": 2, "amount": 1000000, "date": "2025-03-01", "type": "income", "description": None},
    ]
    client, session = make_client(FakeResponse(body=rows))

    result = client.list_transactions(date(2025, 3, 1), date(2025, 3, 31))

    assert session.sent[0]["url"] == "http://backend/api/expenses"
    assert session.sent[0]["params"] == {"startDate": "2025-03-01", "endDate": "2025-03-31"}
    assert session.sent[0]["timeout"] == 3
    assert result[0].amount == 150000.0
    assert result[0].date == date(2025, 3, 2)
    assert result[0].category_name == "Food"
    assert result[1].description == ""


def test_backend_error_message_is_verbatim():
    client, _ = make_client(FakeResponse(400, {"error": "Cannot delete category with existing transactions"}))
    with pytest.raises(BackendError) as exc:
        client.delete_category(3)
    assert exc.value.status == 400
    assert exc.value.message == "Cannot delete category with existing transactions"
    assert exc.value.verbatim


def test_backend_error_without_body_falls_back_to_status():
    client, _ = make_client(FakeResponse(502, raw="<html>bad gateway</html>"))
    with pytest.raises(BackendError) as exc:
        client.verify_email("me@example.com")
    assert exc.value.message == "HTTP 502"
    assert not exc.value.verbatim


def test_transport_failure_becomes_connection_error():
    client, _ = make_client(error=requests.ConnectionError("refused"))
    with pytest.raises(ConnectionFailed) as exc:
        client.list_categories()
    assert exc.value.message == "Connection error"
    assert "refused" in exc.value.detail


def test_non_json_success_is_malformed():
    client, _ = make_client(FakeResponse(200, raw="not json"))
    with pytest.raises(MalformedResponse):
        client.stats_summary(date(2025, 3, 1), date(2025, 3, 31))


def test_list_endpoint_must_return_list():
    client, _ = make_client(FakeResponse(body={"rows": []}))
    with pytest.raises(MalformedResponse):
        client.list_categories()


def test_stats_summary_defaults_missing_numbers_to_zero():
    client, _ = make_client(FakeResponse(body={"income": "1000000", "byCategory": [
        {"name": "Food", "icon": "🍔", "color": "#EF4444", "category_type": "expense", "total": "300000"},
    ]}))
    summary = client.stats_summary(date(2025, 3, 1), date(2025, 3, 31))
    assert summary.income == 1_000_000
    assert summary.expenses == 0
    assert summary.count == 0
    assert summary.by_category[0].total == 300_000


def test_investment_summary_reads_holdings_and_start_date():
    client, _ = make_client(FakeResponse(body={
        "holdings": [{"type": "gold", "current_value": "250000", "platform": "Pegadaian"}],
        "startDate": "2025-01-15",
    }))
    holdings, start = client.investment_summary()
    assert holdings[0].type == "gold"
    assert holdings[0].current_value == 250_000
    assert start == date(2025, 1, 15)


def test_negative_holding_value_is_malformed():
    client, _ = make_client(FakeResponse(body={"holdings": [{"type": "gold", "current_value": -1}]}))
    with pytest.raises(MalformedResponse):
        client.investment_summary()


def test_mutations_hit_the_right_endpoints():
    client, session = make_client(*[FakeResponse(body={"ok": True}) for _ in range(4)])

    client.update_holding("gold", 125000.0)
    client.save_config(PlanConfig(5_000_000, date(2025, 1, 1)))
    client.update_transaction(7, {"amount": 1})
    client.start_plan()

    assert [(s["method"], s["url"]) for s in session.sent] == [
        ("PUT", "http://backend/api/investments/holdings/gold"),
        ("PUT", "http://backend/api/investments/config"),
        ("PUT", "http://backend/api/expenses/7"),
        ("POST", "http://backend/api/investments/start-plan"),
    ]
    assert session.sent[0]["json"] == {"current_value": 125000.0}
    assert session.sent[1]["json"] == {"monthly_budget": 5_000_000, "start_date": "2025-01-01"}


def test_empty_success_body_is_fine():
    client, _ = make_client(FakeResponse(204))
    client.delete_transaction(1)


def test_action_items_mark_start_plan_as_one_click():
    client, _ = make_client(FakeResponse(body=[
        {"id": "start_plan", "title": "Start", "priority": "high"},
        {"id": 5, "title": "Other", "priority": "low"},
    ]))
    items = client.action_items()
    assert items[0].action == "start_plan"
    assert items[1].id == "5"
    assert items[1].priority == "normal"


def test_non_finite_holding_value_is_malformed():
    client, _ = make_client(FakeResponse(raw='{"holdings": [{"type": "gold", "current_value": "NaN"}]}'))
    with pytest.raises(MalformedResponse):
        client.investment_summary()
