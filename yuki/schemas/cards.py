"""
Response card protocol.

Every answer the query engine returns is a ResponseData holding one or more
cards. The UI pattern-matches on ``type``, so these shapes are the contract:

    {"type": "text",  "content": {"body": ..., "is_error": ...}}
    {"type": "chart", "content": {"chart_type": ..., "title": ..., "data": [...], "caption": ...}}
    {"type": "table", "content": {"title": ..., "columns": [...], "rows": [[...]], "summary": ...}}
    {"type": "mixed", "content": {"body": ..., "chart": {...}}}

Optional fields are omitted from serialized output when unset.
"""

import json
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic import ValidationError as PydanticValidationError

from yuki.core.exceptions import ValidationError

CHART_TYPES = ("pie", "bar", "line", "area")


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        raise ValueError("table cells must be scalar values")
    return str(value)


class TextContent(BaseModel):
    body: str
    is_error: Optional[bool] = None


class ChartDataPoint(BaseModel):
    label: str
    value: float

    @field_validator("label", mode="before")
    @classmethod
    def label_to_str(cls, v):
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ChartContent(BaseModel):
    chart_type: Literal["pie", "bar", "line", "area"]
    title: str
    data: List[ChartDataPoint]
    caption: Optional[str] = None


class TableContent(BaseModel):
    title: str
    columns: List[str]
    rows: List[List[str]]
    summary: Optional[str] = None

    @field_validator("columns", mode="before")
    @classmethod
    def columns_to_str(cls, v):
        if isinstance(v, list):
            return [_cell_to_str(c) for c in v]
        return v

    @field_validator("rows", mode="before")
    @classmethod
    def cells_to_str(cls, v):
        if isinstance(v, list):
            return [[_cell_to_str(c) for c in row] if isinstance(row, list) else row for row in v]
        return v

    @model_validator(mode="after")
    def rows_match_columns(self):
        width = len(self.columns)
        for row in self.rows:
            if len(row) != width:
                raise ValueError(f"table row has {len(row)} cells, expected {width}")
        return self


class MixedContent(BaseModel):
    body: str
    chart: ChartContent


class TextCard(BaseModel):
    type: Literal["text"] = "text"
    content: TextContent


class ChartCard(BaseModel):
    type: Literal["chart"] = "chart"
    content: ChartContent


class TableCard(BaseModel):
    type: Literal["table"] = "table"
    content: TableContent


class MixedCard(BaseModel):
    type: Literal["mixed"] = "mixed"
    content: MixedContent


ResponseCard = Annotated[
    Union[TextCard, ChartCard, TableCard, MixedCard],
    Field(discriminator="type"),
]


class ResponseData(BaseModel):
    cards: List[ResponseCard] = Field(..., min_length=1)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)


def text_card(body: str, is_error: Optional[bool] = None) -> TextCard:
    return TextCard(content=TextContent(body=body, is_error=is_error))


def text_response(body: str) -> ResponseData:
    return ResponseData(cards=[text_card(body)])


def error_response(message: str) -> ResponseData:
    """A response made of exactly one error text card."""
    return ResponseData(cards=[text_card(message, is_error=True)])


def parse_response_data(raw: Union[str, dict, list]) -> ResponseData:
    """Validate untrusted model output against the card shapes.

    Accepts a JSON string, a ``{"cards": [...]}`` object or a bare list of
    cards. Raises ValidationError when the payload does not fit the protocol.
    """
    payload = raw
    if isinstance(raw, str):
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValidationError("Response is not valid JSON", details=str(e), error_code="invalid_json")

    if isinstance(payload, list):
        payload = {"cards": payload}

    if not isinstance(payload, dict):
        raise ValidationError("Response must be a JSON object with a cards list", error_code="invalid_shape")

    try:
        return ResponseData.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError("Response does not match the card protocol", details=str(e), error_code="invalid_cards")
