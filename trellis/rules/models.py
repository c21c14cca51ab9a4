from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class InvitationRules(BaseModel):
    accept_url: str
    decline_url: str
    email_subject: str = "You have been invited to a board"
    token_collision_warn_threshold: int = Field(default=3, ge=1)


class NotificationRules(BaseModel):
    mode: Literal["sync", "background"] = "sync"
    max_workers: int = Field(default=2, ge=1)


class CacheRules(BaseModel):
    board_list_key: str = "boards"


class RangeRule(BaseModel):
    min: int
    max: int


class BoardRules(BaseModel):
    title: RangeRule
    description_max: int
    default_background_color: str = "#FFFFFF"


class ListRules(BaseModel):
    title: RangeRule


class StorageRules(BaseModel):
    busy_timeout_seconds: float = 5.0


class LoggingRules(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    invitations: InvitationRules
    notifications: NotificationRules = Field(default_factory=NotificationRules)
    cache: CacheRules = Field(default_factory=CacheRules)
    boards: BoardRules
    lists: ListRules
    storage: StorageRules = Field(default_factory=StorageRules)
    logging: LoggingRules = Field(default_factory=LoggingRules)
    ops: OpsRules = Field(default_factory=OpsRules)
