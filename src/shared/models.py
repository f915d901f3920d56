"""Base request/response model and reusable field types."""

from datetime import datetime
from typing import Annotated, List

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from .validators import is_object_id, parse_bool_flag, parse_timestamp, split_csv


def _check_object_id(value: str) -> str:
    if not is_object_id(value):
        raise ValueError("Invalid identifier")
    return value


ObjectId = Annotated[str, AfterValidator(_check_object_id)]
Timestamp = Annotated[datetime, BeforeValidator(parse_timestamp)]
CurrencyCode = Annotated[str, StringConstraints(strip_whitespace=True, to_upper=True, min_length=3, max_length=3)]
NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
CsvList = Annotated[List[str], BeforeValidator(split_csv)]
BoolFlag = Annotated[bool, BeforeValidator(parse_bool_flag)]


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True
    )
