from typing import Literal

from pydantic import BaseModel, Field, field_validator


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class PermissionRules(BaseModel):
    publisher_group: str
    publisher_membership: str = "publisher"
    manager_membership: str = "manager"
    any_membership: str = "*"

class LifecycleRules(BaseModel):
    root_page_name: str = "Articles"
    default_audience: Literal["all", "space"] = "all"
    illustration_url: str
    activity_type: str = "news"

class IndexingRules(BaseModel):
    article_type: str = "news"
    translation_type: str = "news-translation"

class DeleteQueueRules(BaseModel):
    pool_size: int = Field(ge=1)
    default_delay_seconds: float = Field(ge=0)

class DeletionRules(BaseModel):
    queues: dict[str, DeleteQueueRules]

    @field_validator("queues")
    @classmethod
    def _require_known_queues(
        cls, value: dict[str, DeleteQueueRules]
    ) -> dict[str, DeleteQueueRules]:
        missing = {"articles", "targets"} - set(value)
        if missing:
            raise ValueError(f"missing delete queues: {', '.join(sorted(missing))}")
        return value

class SchedulerRules(BaseModel):
    poll_interval_seconds: float = Field(gt=0)
    batch_size: int = Field(ge=1)

class LoggingRules(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    permissions: PermissionRules
    lifecycle: LifecycleRules
    indexing: IndexingRules = Field(default_factory=IndexingRules)
    deletion: DeletionRules
    scheduler: SchedulerRules
    logging: LoggingRules = Field(default_factory=LoggingRules)
    ops: OpsRules = Field(default_factory=OpsRules)
