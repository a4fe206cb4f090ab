"""
Course response mapping utilities.

Transforms service dictionaries and ORM models into Pydantic response models.
Centralizes response construction logic.

Dependencies: lms_backend.models
System role: Course response transformation
"""

from typing import Any

from lms_backend.models.course import (
    CourseDetailResponse,
    CourseResponse,
    EnrolledCourseResponse,
)
from lms_backend.models.enrollment import CourseEnrollmentResponse


def map_course_to_response(course_data: dict[str, Any]) -> CourseResponse:
    """
    Transform course data dictionary into CourseResponse.

    Args:
        course_data: Dictionary from the course service

    Returns:
        CourseResponse: Pydantic model for API response
    """
    return CourseResponse(**course_data)


def map_courses_to_response(courses_data: list[dict[str, Any]]) -> list[CourseResponse]:
    return [map_course_to_response(course) for course in courses_data]


def map_course_detail_to_response(course_data: dict[str, Any]) -> CourseDetailResponse:
    return CourseDetailResponse(**course_data)


def map_enrolled_courses_to_response(
    courses_data: list[dict[str, Any]],
) -> list[EnrolledCourseResponse]:
    return [EnrolledCourseResponse(**course) for course in courses_data]


def map_enrollments_to_response(
    enrollments_data: list[dict[str, Any]],
) -> list[CourseEnrollmentResponse]:
    """
    Transform course enrollment dictionaries into responses.

    Args:
        enrollments_data: Dictionaries with id, course_id, enrolled_at and student

    Returns:
        list[CourseEnrollmentResponse]: Pydantic models for API response
    """
    return [CourseEnrollmentResponse(**item) for item in enrollments_data]
