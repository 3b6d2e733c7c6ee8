import pytest

from yuki.core.exceptions import ValidationError
from yuki.schemas.cards import ChartCard, TableCard, TextCard, error_response, parse_response_data


def test_parse_text_card():
    response = parse_response_data('{"cards": [{"type": "text", "content": {"body": "Hello"}}]}')
    assert len(response.cards) == 1
    assert isinstance(response.cards[0], TextCard)
    assert response.cards[0].content.body == "Hello"


def test_parse_accepts_bare_card_list():
    response = parse_response_data([{"type": "text", "content": {"body": "Hi"}}])
    assert response.cards[0].type == "text"


def test_chart_labels_become_strings():
    response = parse_response_data({"cards": [{
        "type": "chart",
        "content": {"chart_type": "bar", "title": "By year", "data": [{"label": 2023, "value": 10}]},
    }]})
    card = response.cards[0]
    assert isinstance(card, ChartCard)
    assert card.content.data[0].label == "2023"


def test_table_cells_are_stringified():
    response = parse_response_data({"cards": [{
        "type": "table",
        "content": {"title": "T", "columns": ["date", "amount"], "rows": [["2024-03-01", -12.5], ["2024-03-02", 3.0]]},
    }]})
    card = response.cards[0]
    assert isinstance(card, TableCard)
    assert card.content.rows == [["2024-03-01", "-12.5"], ["2024-03-02", "3"]]


def test_table_row_width_must_match_columns():
    with pytest.raises(ValidationError) as exc:
        parse_response_data({"cards": [{
            "type": "table",
            "content": {"title": "T", "columns": ["a", "b"], "rows": [["only-one"]]},
        }]})
    assert exc.value.error_code == "invalid_cards"


@pytest.mark.parametrize("payload,code", [
    ("not json at all", "invalid_json"),
    ("42", "invalid_shape"),
    ({"cards": []}, "invalid_cards"),
    ({"cards": [{"type": "video", "content": {}}]}, "invalid_cards"),
    ({"cards": [{"type": "chart", "content": {"chart_type": "radar", "title": "x", "data": []}}]}, "invalid_cards"),
])
def test_invalid_payloads_are_rejected(payload, code):
    with pytest.raises(ValidationError) as exc:
        parse_response_data(payload)
    assert exc.value.error_code == code


def test_error_response_is_single_error_card():
    response = error_response("boom")
    assert len(response.cards) == 1
    assert response.cards[0].content.is_error is True


def test_serialization_omits_unset_optionals():
    dumped = parse_response_data([{"type": "text", "content": {"body": "Hi"}}]).to_json_dict()
    assert dumped == {"cards": [{"type": "text", "content": {"body": "Hi"}}]}
