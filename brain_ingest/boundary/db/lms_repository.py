"""
LMS lookups for transcript ingestion.

Reads transcripts and resolves lesson/course titles used to enrich
transcript vector entries.

Dependencies: boto3
System role: Read-only LMS data access for the Lambda worker
"""

import logging

from brain_ingest.core.ingestion.models import LessonContext, Transcript

logger = logging.getLogger(__name__)


class LmsRepository:
    """Read transcripts, lessons and courses from their DynamoDB tables."""

    def __init__(self, transcripts_table, lessons_table, courses_table) -> None:
        self._transcripts = transcripts_table
        self._lessons = lessons_table
        self._courses = courses_table

    def get_transcript(self, transcript_id: str) -> Transcript | None:
        response = self._transcripts.get_item(Key={"transcript_id": transcript_id})
        item = response.get("Item")
        if not item:
            return None
        return Transcript.model_validate(item)

    def resolve_lesson_context(self, lesson_id: str) -> LessonContext:
        """
        Resolve lesson title, course ID and course title.

        Missing or unreadable metadata falls back to defaults; this never raises.

        Args:
            lesson_id: Lesson key (may be empty)

        Returns:
            LessonContext: Resolved or default metadata
        """
        context = LessonContext(lesson_id=lesson_id)
        if not lesson_id:
            return context

        try:
            lesson = self._lessons.get_item(Key={"lesson_id": lesson_id}).get("Item")
            if not lesson:
                return context

            context.lesson_title = lesson.get("title") or context.lesson_title
            context.course_id = lesson.get("course_id") or ""

            if context.course_id:
                course = self._courses.get_item(Key={"course_id": context.course_id}).get("Item")
                if course:
                    context.course_title = course.get("title") or context.course_title
        except Exception as e:
            logger.warning(
                "resolve_lesson_context - Failed to fetch lesson/course metadata: %s: %s",
                type(e).__name__,
                e,
                extra={"lesson_id": lesson_id},
            )

        return context
