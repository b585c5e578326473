"""
Supervisor search filters.

`SupervisorFilters` merges the free-text search with the categorical and
boolean facets into a single immutable value. The search page reads it from
the query string, sends `to_backend_params()` to GET /api/supervisors, and
renders every filter change as a link carrying the new query string.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_snake

from goodtraining.domain.catalog import FACET_KEYS

ALL = "all"

SINGLE_CHOICE_KEYS: tuple[str, ...] = ("association", "specialization")
BOOLEAN_KEYS: tuple[str, ...] = (
    "canProvideClientExperience",
    "participatesInNationalProgram",
    "noAdditionalFee",
)

BOOLEAN_TAG_LABELS: dict[str, dict[bool, str]] = {
    "canProvideClientExperience": {True: "내담경험 제공", False: "내담경험 미제공"},
    "participatesInNationalProgram": {True: "전마투 가능", False: "전마투 불가"},
    "noAdditionalFee": {True: "추가요금 없음"},
}


@dataclass(frozen=True)
class FilterTag:
    """One removable chip in the active-filter bar."""

    kind: str
    label: str
    value: str
    remove_url: str


def _parse_tristate(raw: str | None) -> bool | None:
    if raw is None:
        return None
    raw = raw.strip().lower()
    if raw == "true":
        return True
    if raw == "false":
        return False
    return None


def _split_values(raw_values: list[str]) -> tuple[str, ...]:
    values: list[str] = []
    for raw in raw_values:
        for part in raw.split(","):
            part = part.strip()
            if part and part not in values:
                values.append(part)
    return tuple(values)


def _getlist(params: Mapping[str, Any], key: str) -> list[str]:
    if hasattr(params, "getlist"):
        return [v for v in params.getlist(key) if isinstance(v, str)]
    value = params.get(key)
    if value is None:
        return []
    if isinstance(value, list | tuple):
        return [str(v) for v in value]
    return [str(value)]


class SupervisorFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    search: str | None = None
    association: str | None = None
    specialization: str | None = None

    qualifications: tuple[str, ...] = ()
    target_groups: tuple[str, ...] = ()
    concern_types: tuple[str, ...] = ()
    emotion_symptoms: tuple[str, ...] = ()
    special_experiences: tuple[str, ...] = ()
    counseling_methods: tuple[str, ...] = ()

    can_provide_client_experience: bool | None = None
    participates_in_national_program: bool | None = None
    # Only "true" or unset: there is no "has an additional fee" filter
    no_additional_fee: bool | None = None

    @classmethod
    def from_query(cls, params: Mapping[str, Any]) -> "SupervisorFilters":
        """
        Build filters from query parameters.

        Multi-choice facets accept repeated keys and comma-joined values.
        Blank search, "all" selections and unknown boolean values mean
        "no filter".
        """
        data: dict[str, Any] = {}

        search = (params.get("search") or "").strip()
        data["search"] = search or None

        for key in SINGLE_CHOICE_KEYS:
            value = (params.get(key) or "").strip()
            data[key] = value if value and value != ALL else None

        for key in FACET_KEYS:
            data[to_snake(key)] = _split_values(_getlist(params, key))

        data["can_provide_client_experience"] = _parse_tristate(
            params.get("canProvideClientExperience")
        )
        data["participates_in_national_program"] = _parse_tristate(
            params.get("participatesInNationalProgram")
        )
        data["no_additional_fee"] = (
            True if _parse_tristate(params.get("noAdditionalFee")) else None
        )
        return cls(**data)

    # ------------------------------------------------------------------
    # Composition
    # ------------------------------------------------------------------

    def facet_values(self, key: str) -> tuple[str, ...]:
        return getattr(self, to_snake(key))

    def boolean_value(self, key: str) -> bool | None:
        return getattr(self, to_snake(key))

    def to_backend_params(self) -> dict[str, str]:
        """
        Query object for GET /api/supervisors.

        Unset values are omitted, lists are comma-joined and booleans are sent
        as "true"/"false".
        """
        params: dict[str, str] = {}
        if self.search:
            params["search"] = self.search
        for key in SINGLE_CHOICE_KEYS:
            value = getattr(self, key)
            if value:
                params[key] = value
        for key in FACET_KEYS:
            values = self.facet_values(key)
            if values:
                params[key] = ",".join(values)
        for key in BOOLEAN_KEYS:
            value = self.boolean_value(key)
            if value is not None:
                params[key] = "true" if value else "false"
        return params

    def to_query_string(self) -> str:
        return urlencode(self.to_backend_params())

    def url(self, path: str = "/") -> str:
        query = self.to_query_string()
        return f"{path}?{query}" if query else path

    @property
    def active_count(self) -> int:
        """Search, each set choice, each non-empty facet and each set boolean count once."""
        count = 1 if self.search else 0
        count += sum(1 for key in SINGLE_CHOICE_KEYS if getattr(self, key))
        count += sum(1 for key in FACET_KEYS if self.facet_values(key))
        count += sum(1 for key in BOOLEAN_KEYS if self.boolean_value(key) is not None)
        return count

    @property
    def is_empty(self) -> bool:
        return self.active_count == 0

    def without(self, kind: str, value: str | None = None) -> "SupervisorFilters":
        """Filters with one tag removed; facet tags remove a single value."""
        if kind == "search":
            return self.model_copy(update={"search": None})
        if kind in SINGLE_CHOICE_KEYS:
            return self.model_copy(update={kind: None})
        if kind in FACET_KEYS:
            remaining = tuple(v for v in self.facet_values(kind) if v != value)
            return self.model_copy(update={to_snake(kind): remaining})
        if kind in BOOLEAN_KEYS:
            return self.model_copy(update={to_snake(kind): None})
        raise ValueError(f"Unknown filter kind: {kind}")

    def active_tags(self, path: str = "/") -> list[FilterTag]:
        tags: list[FilterTag] = []

        if self.search:
            remove_url = self.without("search").url(path)
            tags.append(FilterTag("search", f'"{self.search}"', self.search, remove_url))

        for key in SINGLE_CHOICE_KEYS:
            value = getattr(self, key)
            if value:
                tags.append(FilterTag(key, value, value, self.without(key).url(path)))

        for key in FACET_KEYS:
            for value in self.facet_values(key):
                tags.append(FilterTag(key, value, value, self.without(key, value).url(path)))

        for key in BOOLEAN_KEYS:
            value = self.boolean_value(key)
            if value is None:
                continue
            label = BOOLEAN_TAG_LABELS[key].get(value, str(value).lower())
            tags.append(
                FilterTag(key, label, "true" if value else "false", self.without(key).url(path))
            )

        return tags
