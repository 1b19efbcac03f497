"""Course roster changes.

These helpers do not open their own transaction. ``enroll`` and ``unenroll``
expect the caller to hold the course row lock (``select_for_update``) so the
capacity check and the insert happen atomically with the order change that
triggered them.
"""
import logging

from django.db import transaction
from django.utils import timezone

from .exceptions import CourseFull, CourseNotFound, NotEnrolled
from .models import Course, Enrollment

logger = logging.getLogger(__name__)


def is_enrolled(course, student_id):
    return Enrollment.objects.filter(course=course, student_id=student_id).exists()


def has_capacity(course):
    return course.enrollments.count() < course.max_students


def enroll(course, student_id):
    """Add the student to the roster. A student already on it is left as is."""
    enrollment = Enrollment.objects.filter(course=course, student_id=student_id).first()
    if enrollment is not None:
        return enrollment

    if not has_capacity(course):
        raise CourseFull()

    enrollment = Enrollment.objects.create(
        course=course,
        student_id=student_id,
        enrolled_at=timezone.now(),
        progress=0,
        completed=False,
    )
    logger.info('Student %s enrolled in course %s', student_id, course.pk)
    return enrollment


def unenroll(course, student_id):
    deleted, _ = Enrollment.objects.filter(course=course, student_id=student_id).delete()
    if deleted:
        logger.info('Student %s removed from course %s', student_id, course.pk)
    return bool(deleted)


def clamp_progress(progress):
    return min(100, max(0, int(progress)))


def update_progress(course_id, student_id, progress):
    with transaction.atomic():
        try:
            course = Course.objects.select_for_update().get(pk=course_id)
        except Course.DoesNotExist:
            raise CourseNotFound()

        enrollment = Enrollment.objects.filter(course=course, student_id=student_id).first()
        if enrollment is None:
            raise NotEnrolled()

        enrollment.progress = clamp_progress(progress)
        enrollment.completed = enrollment.progress == 100
        enrollment.save(update_fields=['progress', 'completed'])

    return enrollment
