from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _TelegramObject(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class TelegramChat(_TelegramObject):
    id: int


class TelegramUser(_TelegramObject):
    id: int
    username: str | None = None


class TelegramDocument(_TelegramObject):
    file_id: str = Field(min_length=1)
    file_name: str | None = None
    file_size: int | None = None


class TelegramMessage(_TelegramObject):
    message_id: int | None = None
    chat: TelegramChat
    from_user: TelegramUser | None = Field(default=None, alias="from")
    text: str | None = None
    document: TelegramDocument | None = None


class TelegramCallbackMessage(_TelegramObject):
    chat: TelegramChat


class TelegramCallbackQuery(_TelegramObject):
    id: str | None = None
    data: str | None = None
    from_user: TelegramUser = Field(alias="from")
    message: TelegramCallbackMessage | None = None


class TelegramUpdate(_TelegramObject):
    update_id: int | None = None
    message: TelegramMessage | None = None
    callback_query: TelegramCallbackQuery | None = None


class WebhookResponse(BaseModel):
    ok: bool
    intent: str | None = None
    detail: str | None = None


class HealthResponse(BaseModel):
    status: str


class StatusResponse(BaseModel):
    active: bool
    version: str
    run_id: str
    uptime_seconds: int
    pending_batches: int
    transfer_active: bool
    relay_enabled: bool


class LogEntryResponse(BaseModel):
    seq: int
    timestamp: datetime
    severity: str
    message: str
    raw: Any = None


class UploadProgressResponse(BaseModel):
    active: bool
    batch_id: str | None = None
    total: int
    completed: int
    succeeded: int
    failed: int
    current_item: str | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None


class EnvCheckResponse(BaseModel):
    success: bool
    missing: list[str]
    error: str | None = None


class WebhookCheckResponse(BaseModel):
    success: bool
    registered_url: str | None = None
    expected_url: str | None = None
    pending_update_count: int | None = None
    error: str | None = None
