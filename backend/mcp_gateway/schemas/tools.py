from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ListCallsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    from_date_time: Optional[str] = Field(default=None, alias="fromDateTime")
    to_date_time: Optional[str] = Field(default=None, alias="toDateTime")


class RetrieveTranscriptsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # Checked in the route; missing or non-list values are a 400.
    call_ids: Any = Field(default=None, alias="callIds")
