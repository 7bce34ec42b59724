"""Pydantic schemas for course reserve search, validation and requests."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SearchType(str, Enum):
    INSTRUCTOR_NAME = "instructor_name"
    COURSE_ID = "course_id"


# ---------------------------------------------------------------------------
# Index records
# ---------------------------------------------------------------------------

class ReserveRecord(CamelModel):
    """A catalog hit from a course reserve search."""

    id: str
    title: list[str] = Field(default_factory=list, alias="title_a")
    author: list[str] = Field(default_factory=list, alias="work_primary_author_a")
    call_number: list[str] = Field(default_factory=list, alias="call_number_a")
    reserve_info: list[str] = Field(default_factory=list, alias="reserve_id_course_name_a")

    @classmethod
    def field_list(cls) -> list[str]:
        return [f.alias or name for name, f in cls.model_fields.items()]


# ---------------------------------------------------------------------------
# Search responses
# ---------------------------------------------------------------------------

class ReserveItem(CamelModel):
    id: str
    title: str = ""
    author: str = ""
    call_number: str = Field("", alias="callNumber")


class InstructorItems(CamelModel):
    instructor_name: str = Field(..., alias="instructorName")
    items: list[ReserveItem] = Field(default_factory=list)


class CourseGroup(CamelModel):
    course_name: str = Field("", alias="courseName")
    course_id: str = Field(..., alias="courseID")
    instructors: list[InstructorItems] = Field(default_factory=list)


class CourseItems(CamelModel):
    course_name: str = Field("", alias="courseName")
    course_id: str = Field(..., alias="courseID")
    items: list[ReserveItem] = Field(default_factory=list)


class InstructorGroup(CamelModel):
    instructor_name: str = Field(..., alias="instructorName")
    courses: list[CourseItems] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

class ValidateRequest(BaseModel):
    items: list[str]


class ValidationResult(BaseModel):
    id: str
    reserve: bool = False
    is_video: bool = False


# ---------------------------------------------------------------------------
# Reserve creation
# ---------------------------------------------------------------------------

class AvailabilitySummary(CamelModel):
    library: str = ""
    location: str = ""
    availability: str = ""
    call_number: str = Field("", alias="callNumber")


class RequestItem(CamelModel):
    pool: str = ""
    is_video: bool = Field(False, alias="isVideo")
    catalog_key: str = Field(..., alias="catalogKey")
    call_number: list[str] = Field(default_factory=list, alias="callNumber")
    title: str = ""
    author: str = ""
    period: str = ""
    notes: str = ""
    audio_language: str = Field("", alias="audioLanguage")
    subtitles: str = ""
    subtitle_language: str = Field("", alias="subtitleLanguage")


class RequestParams(CamelModel):
    on_behalf_of: str = Field("", alias="onBehalfOf")
    instructor_name: str = Field("", alias="instructorName")
    instructor_email: str = Field("", alias="instructorEmail")
    name: str = ""
    email: str = ""
    course: str = ""
    semester: str = ""
    library: str = ""
    period: str = ""
    lms: str = ""
    other_lms: str = Field("", alias="otherLMS")


class ReserveRequest(CamelModel):
    user_id: str = Field("", alias="userID")
    request: RequestParams
    items: list[RequestItem] = Field(default_factory=list)
