"""
Schemas Module - Pydantic data models for the application.
==========================================================

Defines all data contracts used across the application:
- Catalog entities (colleges, courses)
- Search request models (filters, intent)
- Search output models (scored results, grouped result cards, suggestions)
- Reference and statistics models
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ─────────────────────────────────────────────────────────────────────────────
# Enums
# ─────────────────────────────────────────────────────────────────────────────


class Stream(str, Enum):
    """Catalog partitions / college types."""

    MEDICAL = "medical"
    DENTAL = "dental"
    DNB = "dnb"


class CourseType(str, Enum):
    """Canonical course-code families."""

    MBBS = "MBBS"
    BDS = "BDS"
    MDS = "MDS"
    MCH = "MCh"
    DNB = "DNB"
    DM = "DM"
    MD = "MD"
    MS = "MS"


# ─────────────────────────────────────────────────────────────────────────────
# Catalog Models
# ─────────────────────────────────────────────────────────────────────────────


class College(BaseModel):
    """A college or DNB hospital from the aggregate catalog tables."""

    id: int = Field(..., description="Stable college identifier")
    name: str = Field(..., description="College name")
    normalized_name: str = Field(default="", description="Upper-cased, whitespace-collapsed name")
    state: str = Field(default="", description="State")
    city: str = Field(default="", description="City")
    type: Stream = Field(..., description="College type (medical, dental, dnb)")
    establishment_year: Optional[int] = Field(default=None, description="Year established")
    management_type: str = Field(default="", description="Government / private / trust ...")
    university: str = Field(default="", description="Affiliating university")
    total_courses: int = Field(default=0, description="Number of courses offered")
    total_seats: int = Field(default=0, description="Total seats across courses")

    model_config = {"use_enum_values": True}


class Course(BaseModel):
    """A course offered by exactly one college."""

    id: int = Field(..., description="Course identifier")
    college_id: int = Field(..., description="Owning college id")
    name: str = Field(..., description="Course name")
    course_type: str = Field(default="", description="Course type / family")
    seats: int = Field(default=0, description="Seats for this course")
    quota_details: Optional[Any] = Field(default=None, description="Seats per quota")
    cutoff_ranks: Optional[Any] = Field(default=None, description="Cutoff ranks by round")
    fees_structure: Optional[Any] = Field(default=None, description="Fee details")


class CollegeDetail(College):
    """A college with its full course list."""

    courses: list[Course] = Field(default_factory=list, description="Courses offered")


# ─────────────────────────────────────────────────────────────────────────────
# Request Models
# ─────────────────────────────────────────────────────────────────────────────


class SearchFilters(BaseModel):
    """
    Optional narrowing filters for a search.

    `limit` only caps the output; it does not count as a filter when
    deciding whether a blank query is valid.
    """

    stream: Optional[Stream] = Field(default=None, description="Restrict to one partition")
    course: Optional[str] = Field(default=None, description="Course name substring")
    state: Optional[str] = Field(default=None, description="Exact state name")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum results")

    @field_validator("stream", mode="before")
    @classmethod
    def normalize_stream(cls, v: Any) -> Any:
        """Accept stream names case-insensitively; blank means no filter."""
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @field_validator("course", "state", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat blank strings as absent."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @property
    def has_constraints(self) -> bool:
        """Whether any narrowing filter (stream, course, state) is set."""
        return bool(self.stream or self.course or self.state)

    @property
    def has_narrowing(self) -> bool:
        """Whether a row-level AND constraint (course, state) is set."""
        return bool(self.course or self.state)

    def stream_value(self) -> Optional[str]:
        """Get the stream as a plain string."""
        if self.stream is None:
            return None
        return self.stream.value if isinstance(self.stream, Stream) else str(self.stream)


class SuggestFilters(BaseModel):
    """Filters for auto-complete."""

    stream: Optional[Stream] = Field(default=None, description="Restrict to one stream")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum suggestions")

    @field_validator("stream", mode="before")
    @classmethod
    def normalize_stream(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v


class Intent(BaseModel):
    """What the user appears to be looking for."""

    course_type: Optional[CourseType] = Field(default=None, description="Detected course family")
    location_hint: bool = Field(default=False, description="Query mentions a place")
    college_hint: bool = Field(default=False, description="Query mentions an institution")


class CompoundQuery(BaseModel):
    """A '<course> in <location>' style query split into parts."""

    course_keyword: Optional[str] = Field(default=None, description="Course/stream keyword")
    location: Optional[str] = Field(default=None, description="Location text")
    stream: Optional[Stream] = Field(default=None, description="Stream derived from keyword")

    @property
    def is_compound(self) -> bool:
        """Both a course scope and a location were found."""
        return bool(self.course_keyword and self.location and self.stream)


# ─────────────────────────────────────────────────────────────────────────────
# Search Output Models
# ─────────────────────────────────────────────────────────────────────────────


class ScoredResult(BaseModel):
    """
    A single (college, course) search hit with its relevance score.

    `college_key` is the college identity used for deduplication and
    grouping; it is not part of the serialized payload.
    """

    id: int = Field(..., description="Catalog row id")
    course_id: int = Field(..., description="Course identity")
    college_id: Optional[int] = Field(default=None, description="College id when known")
    name: str = Field(..., description="College name")
    type: str = Field(..., description="College type (medical, dental, dnb)")
    state: str = Field(default="", description="State")
    city: str = Field(default="", description="City / address")
    seats: int = Field(default=0, description="Seats for this course")
    course: str = Field(default="", description="Course name")
    course_type: str = Field(default="", description="Course type / family")
    year_established: Optional[int] = Field(default=None, description="Year established")
    management_type: str = Field(default="", description="Management type")
    university: str = Field(default="", description="Affiliating university")
    quota_details: Optional[Any] = Field(default=None, description="Seats per quota")
    cutoff_ranks: Optional[Any] = Field(default=None, description="Cutoff ranks")
    fees_structure: Optional[Any] = Field(default=None, description="Fee details")

    search_score: int = Field(default=0, ge=0, description="Composite relevance score")
    search_strategy: str = Field(default="unknown", description="Strategy that found this hit")
    matched_variation: str = Field(default="", description="Query variant that matched")

    college_key: tuple = Field(default=(), exclude=True, description="College identity")

    @property
    def dedup_key(self) -> tuple:
        """(college identity, course identity)."""
        return (self.college_key, self.course_id)


class CourseEntry(BaseModel):
    """A course line inside a grouped result card."""

    course_id: int = Field(..., description="Course identity")
    course_name: str = Field(default="", description="Course name")
    course_type: str = Field(default="", description="Course type / family")
    seats: int = Field(default=0, description="Seats")
    quota_details: Optional[Any] = Field(default=None)
    cutoff_ranks: Optional[Any] = Field(default=None)
    fees_structure: Optional[Any] = Field(default=None)
    search_score: int = Field(default=0, description="Score of the underlying hit")


class ResultGroup(BaseModel):
    """One college-level result card."""

    college_id: Optional[int] = Field(default=None, description="College id when known")
    college_name: str = Field(..., description="College name")
    state: str = Field(default="")
    city: str = Field(default="")
    type: str = Field(..., description="College type")
    management_type: str = Field(default="")
    university: str = Field(default="")
    establishment_year: Optional[int] = Field(default=None)
    courses: list[CourseEntry] = Field(default_factory=list)
    total_seats: int = Field(default=0, serialization_alias="totalSeats")
    course_count: int = Field(default=0, serialization_alias="courseCount")
    search_score: int = Field(default=0, serialization_alias="searchScore")

    def add_course(self, entry: CourseEntry) -> None:
        """Append a course, keeping seat total, count and score in step."""
        self.courses.append(entry)
        self.total_seats += entry.seats
        self.course_count = len(self.courses)
        self.search_score = max(self.search_score, entry.search_score)


class Suggestion(BaseModel):
    """An auto-complete suggestion."""

    type: str = Field(..., description="college, hospital, course, city or state")
    value: str = Field(..., description="Value to search for")
    display: str = Field(..., description="Display text")
    category: str = Field(..., description="Display category")
    stream: Optional[str] = Field(default=None)
    state: Optional[str] = Field(default=None)


class SearchResponse(BaseModel):
    """Flat search response."""

    data: list[ScoredResult] = Field(default_factory=list)
    total: int = Field(default=0)
    error: Optional[str] = Field(default=None)

    query: str = Field(default="")
    course_type: Optional[str] = Field(default=None, serialization_alias="courseType")
    variations: list[str] = Field(default_factory=list, serialization_alias="searchVariations")
    partial: bool = Field(default=False, description="Time budget ran out before all reads completed")
    warnings: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize in the shape the API layer returns."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GroupedSearchResponse(BaseModel):
    """College-grouped search response."""

    grouped_results: list[ResultGroup] = Field(
        default_factory=list, serialization_alias="groupedResults"
    )
    total_groups: int = Field(default=0, serialization_alias="totalGroups")
    total: int = Field(default=0, description="Number of flat results before grouping")
    error: Optional[str] = Field(default=None)

    query: str = Field(default="")
    partial: bool = Field(default=False)
    warnings: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_api_dict(self) -> dict[str, Any]:
        """Serialize in the shape the API layer returns."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ─────────────────────────────────────────────────────────────────────────────
# Reference & Statistics Models
# ─────────────────────────────────────────────────────────────────────────────


class ReferenceItem(BaseModel):
    """An entry of a filter drop-down (stream, state, course type)."""

    value: str
    label: str
    count: int = 0
    stream: Optional[str] = None


class StreamStats(BaseModel):
    """Per-partition counts."""

    type: str
    count: int = 0
    seats: int = 0


class CatalogStats(BaseModel):
    """Catalog-wide counts."""

    total_colleges: int = Field(default=0, serialization_alias="totalColleges")
    total_seats: int = Field(default=0, serialization_alias="totalSeats")
    by_type: list[StreamStats] = Field(default_factory=list, serialization_alias="byType")
    warnings: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_utcnow)
