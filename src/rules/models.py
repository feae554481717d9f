from typing import Literal

from pydantic import BaseModel, Field


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class TelemetryRules(BaseModel):
    store: Literal["sqlite", "dynamodb", "memory"] = "sqlite"
    table_name: str = "metakeep-telemetry"
    all_pages_sentinel: str = "all"
    sqlite_filename: str = "telemetry.db"

class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)

class Rules(BaseModel):
    project: ProjectRules
    telemetry: TelemetryRules = Field(default_factory=TelemetryRules)
    ops: OpsRules = Field(default_factory=OpsRules)
