from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from app.core.timezone import parse_date_input


class ReconcileRequest(BaseModel):
    data_referencia: Optional[str] = None
    equipe_id: Optional[int] = Field(default=None, gt=0)
    intervalo_dias: int = Field(default=1, gt=0, le=366)
    dry_run: bool = False

    model_config = {"alias_generator": to_camel, "populate_by_name": True, "extra": "forbid"}

    @field_validator("data_referencia")
    @classmethod
    def _validate_data(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        parse_date_input(value)
        return value.strip()


class ReconcileStats(BaseModel):
    created: int = 0
    updated: int = 0
    closed: int = 0
    skipped: int = 0


class ReconcileResponse(BaseModel):
    success: bool
    run_id: str
    started_at: str
    finished_at: str
    duration_ms: int
    stats: ReconcileStats
    warnings: list[str]

    model_config = {"alias_generator": to_camel, "populate_by_name": True}
