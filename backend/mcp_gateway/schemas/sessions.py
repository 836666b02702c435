from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from mcp_gateway.services.registry import Session
from mcp_gateway.utils.time import to_iso


class SessionCreateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    client_id: Optional[str] = Field(default=None, alias="clientId")


class SessionCreateResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    session_id: str = Field(alias="sessionId")
    status: str = "created"


class SessionInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    client_id: str = Field(alias="clientId")
    created_at: str = Field(alias="createdAt")
    last_activity: str = Field(alias="lastActivity")
    is_active: bool = Field(alias="isActive")

    @classmethod
    def from_session(cls, session: Session) -> "SessionInfo":
        return cls(
            id=session.id,
            client_id=session.client_id,
            created_at=to_iso(session.created_at),
            last_activity=to_iso(session.last_activity),
            is_active=session.is_active,
        )


class SessionListResponse(BaseModel):
    sessions: List[SessionInfo] = Field(default_factory=list)


class StatusResponse(BaseModel):
    status: str
