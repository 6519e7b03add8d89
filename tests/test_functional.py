from tracker.functional import Left, Right, one_of, positive_amount, required, validate


def test_right_map_and_bind():
    r = Right(5)
    assert r.map(lambda x: x * 2) == Right(10)
    assert r.bind(lambda x: Right(x + 1)) == Right(6)
    assert r.get_or_else(0) == 5
    assert r.is_right()


def test_left_short_circuits():
    l = Left({"error": "boom"})
    assert l.map(lambda x: x * 2) == l
    assert l.bind(lambda x: Right(x)) == l
    assert l.get_or_else("default") == "default"
    assert l.get_error() == {"error": "boom"}
    assert l.is_left()


def test_validate_stops_at_first_failure():
    calls = []

    def spy(form):
        calls.append(form)
        return Right(form)

    result = validate({"amount": ""}, required("amount", "Amount"), spy)
    assert result.get_error()["message"] == "Amount is required"
    assert calls == []


def test_positive_amount_converts():
    assert validate({"amount": "12.5"}, positive_amount()).get_or_else(None) == {"amount": 12.5}
    assert validate({"amount": 0}, positive_amount()).get_error()["error"] == "invalid_amount"
    assert validate({"amount": None}, positive_amount()).get_error()["error"] == "invalid_amount"


def test_one_of():
    assert validate({"type": "income"}, one_of("type", ("expense", "income"))).is_right()
    assert validate({"type": "gift"}, one_of("type", ("expense", "income"))).get_error()["error"] == "invalid_type"


def test_positive_amount_rejects_non_finite():
    assert validate({"amount": "nan"}, positive_amount()).is_left()
    assert validate({"amount": float("inf")}, positive_amount()).is_left()


def test_only_left_carries_an_error():
    assert not hasattr(Right(1), "get_error")
    failed = Left({"error": "required"})
    assert failed.map(lambda x: x) is failed
    assert failed.bind(lambda x: Right(x)) is failed
