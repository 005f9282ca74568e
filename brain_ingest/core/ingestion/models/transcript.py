"""
Transcript models for lesson video ingestion.

Dependencies: pydantic
System role: Transcript record and its resolved lesson/course context
"""

from pydantic import BaseModel, ConfigDict

DEFAULT_LESSON_TITLE = "Video Lesson"
DEFAULT_COURSE_TITLE = "Course"


class Transcript(BaseModel):
    """Full text of a lesson recording."""

    model_config = ConfigDict(extra="ignore")

    transcript_id: str
    full_text: str = ""


class LessonContext(BaseModel):
    """Lesson/course metadata used to enrich transcript vector entries."""

    lesson_id: str = ""
    lesson_title: str = DEFAULT_LESSON_TITLE
    course_id: str = ""
    course_title: str = DEFAULT_COURSE_TITLE
