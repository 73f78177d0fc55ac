# File: /app/schemas/view.py | Version: 2.0 | Title: View config (tagged filter union, tolerant read) + View I/O schemas
from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

log = logging.getLogger(__name__)


class TextFilterOp(str, Enum):
    is_empty = "is_empty"
    is_not_empty = "is_not_empty"
    contains = "contains"
    not_contains = "not_contains"
    equals = "equals"


class NumberFilterOp(str, Enum):
    is_empty = "is_empty"
    is_not_empty = "is_not_empty"
    gt = "gt"
    lt = "lt"
    equals = "equals"


EMPTY_CHECKS = {"is_empty", "is_not_empty"}


class TextFilter(BaseModel):
    kind: Literal["text"] = "text"
    column_id: str = Field(min_length=1)
    op: TextFilterOp
    value: Optional[str] = Field(default=None, max_length=200)

    @field_validator("value")
    @classmethod
    def _strip(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if isinstance(v, str) else v


class NumberFilter(BaseModel):
    kind: Literal["number"] = "number"
    column_id: str = Field(min_length=1)
    op: NumberFilterOp
    value: Optional[float] = Field(default=None, allow_inf_nan=False)


ViewFilter = Annotated[Union[TextFilter, NumberFilter], Field(discriminator="kind")]
_filter_adapter: TypeAdapter = TypeAdapter(ViewFilter)


class SortDirection(str, Enum):
    asc = "asc"
    desc = "desc"


class ViewSort(BaseModel):
    column_id: str = Field(min_length=1)
    direction: SortDirection = SortDirection.asc


def _normalize_q(v: Any) -> Optional[str]:
    if v is None:
        return None
    if not isinstance(v, str):
        raise ValueError("q must be a string")
    v = v.strip()
    if len(v) > 200:
        raise ValueError("q must be at most 200 characters")
    return v or None


SearchTerm = Annotated[Optional[str], BeforeValidator(_normalize_q)]


class ViewConfig(BaseModel):
    """
    Persisted per-view configuration. Unknown keys are kept in ``model_extra``
    and written back untouched.
    """

    model_config = ConfigDict(extra="allow")

    filters: List[ViewFilter] = Field(default_factory=list)
    sort: Optional[ViewSort] = None
    q: SearchTerm = None
    hidden_column_ids: List[str] = Field(default_factory=list)

    @classmethod
    def from_stored(cls, raw: Any) -> "ViewConfig":
        """
        Tolerant read of a stored config: every recognized key is validated on
        its own and replaced by its default when unusable, so a stale or
        half-written blob never breaks a reader.
        """
        if not isinstance(raw, dict):
            return cls()

        filters: List[Any] = []
        for item in raw.get("filters") or []:
            try:
                filters.append(_filter_adapter.validate_python(item))
            except ValidationError:
                log.warning("Dropping malformed stored filter: %r", item)

        sort = None
        if raw.get("sort") is not None:
            try:
                sort = ViewSort.model_validate(raw["sort"])
            except ValidationError:
                log.warning("Dropping malformed stored sort: %r", raw["sort"])

        q = raw.get("q")
        if isinstance(q, str):
            q = q.strip()[:200] or None
        else:
            q = None

        hidden = raw.get("hidden_column_ids")
        hidden_ids = [h for h in hidden if isinstance(h, str) and h] if isinstance(hidden, list) else []

        known = {"filters", "sort", "q", "hidden_column_ids"}
        extra = {k: v for k, v in raw.items() if k not in known}
        return cls(filters=filters, sort=sort, q=q, hidden_column_ids=hidden_ids, **extra)


class ViewConfigPatch(BaseModel):
    """Shallow patch over a ViewConfig; only keys present in the payload are applied."""

    model_config = ConfigDict(extra="allow")

    filters: Optional[List[ViewFilter]] = None
    sort: Optional[ViewSort] = None
    q: SearchTerm = None
    hidden_column_ids: Optional[List[str]] = None

    @field_validator("filters", "hidden_column_ids")
    @classmethod
    def _null_clears_list(cls, v: Optional[list]) -> list:
        # Explicit null resets the list
        return [] if v is None else v


class ViewCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class ViewRename(BaseModel):
    name: str = Field(min_length=1, max_length=80)


class ViewSummaryOut(BaseModel):
    id: str
    name: str
    type: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ViewOut(BaseModel):
    id: str
    name: str
    type: str
    config: Dict[str, Any]


class ViewConfigOut(BaseModel):
    id: str
    config: Dict[str, Any]
