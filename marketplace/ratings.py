"""Rating aggregation for courses and teachers.

Both courses and teacher profiles keep a cached ``average``/``count`` pair.
The pair is always rebuilt from the stored reviews in the same transaction
that adds or replaces a review, never incremented in place.
"""
import logging
from collections import namedtuple
from numbers import Real

from django.db import transaction

from .exceptions import CourseNotFound, Forbidden, InvalidRating, NotEnrolled, UserNotFound
from .models import Course, CourseReview, Enrollment, TeacherReview, User

logger = logging.getLogger(__name__)

RatingSummary = namedtuple('RatingSummary', ['average', 'count'])


def recompute_rating(ratings):
    ratings = list(ratings)
    if not ratings:
        return RatingSummary(average=0, count=0)
    return RatingSummary(average=sum(ratings) / len(ratings), count=len(ratings))


def validate_rating(rating):
    if isinstance(rating, bool) or not isinstance(rating, Real):
        raise InvalidRating()
    if rating < 1 or rating > 5 or int(rating) != rating:
        raise InvalidRating()
    return int(rating)


def refresh_course_rating(course):
    """Rebuild the cached course rating. The caller holds the course row lock."""
    summary = recompute_rating(course.reviews.values_list('rating', flat=True))
    course.rating_average = summary.average
    course.rating_count = summary.count
    course.save(update_fields=['rating_average', 'rating_count', 'updated_at'])
    return summary


def refresh_teacher_rating(teacher):
    """Rebuild the cached teacher rating. The caller holds the teacher row lock."""
    summary = recompute_rating(teacher.teacher_reviews.values_list('rating', flat=True))
    teacher.teacher_rating_average = summary.average
    teacher.teacher_rating_count = summary.count
    teacher.save(update_fields=['teacher_rating_average', 'teacher_rating_count', 'updated_at'])
    return summary


def refresh_ratings(course_ids=(), teacher_ids=()):
    """Lock and rebuild the ratings of the given courses and teachers."""
    with transaction.atomic():
        for course in Course.objects.select_for_update().filter(pk__in=set(course_ids)):
            refresh_course_rating(course)
        for teacher in User.objects.select_for_update().filter(pk__in=set(teacher_ids)):
            refresh_teacher_rating(teacher)


def add_or_replace_course_review(course_id, student_id, rating, comment):
    rating = validate_rating(rating)

    with transaction.atomic():
        try:
            course = Course.objects.select_for_update().get(pk=course_id)
        except Course.DoesNotExist:
            raise CourseNotFound()
        if not Enrollment.objects.filter(course=course, student_id=student_id).exists():
            raise NotEnrolled('Must be enrolled to review this course.')

        CourseReview.objects.filter(course=course, student_id=student_id).delete()
        CourseReview.objects.create(course=course, student_id=student_id, rating=rating, comment=comment)
        summary = refresh_course_rating(course)

    logger.info('Student %s reviewed course %s, rating now %.2f (%d)', student_id, course.pk, summary.average, summary.count)
    return course


def add_or_replace_teacher_review(teacher_id, student_id, course_id, rating, comment=''):
    """Store the student's review of a teacher and refresh the teacher rating.

    The caller is responsible for checking that the course belongs to the
    teacher and that the student is enrolled in it.
    """
    rating = validate_rating(rating)

    with transaction.atomic():
        try:
            teacher = User.objects.select_for_update().get(pk=teacher_id, role=User.TEACHER)
        except User.DoesNotExist:
            raise UserNotFound('Teacher not found.')

        TeacherReview.objects.filter(teacher=teacher, student_id=student_id).delete()
        TeacherReview.objects.create(
            teacher=teacher,
            student_id=student_id,
            course_id=course_id,
            rating=rating,
            comment=comment or '',
        )
        summary = refresh_teacher_rating(teacher)

    logger.info('Student %s reviewed teacher %s, rating now %.2f (%d)', student_id, teacher.pk, summary.average, summary.count)
    return teacher


def teacher_rating(teacher):
    return RatingSummary(average=teacher.teacher_rating_average, count=teacher.teacher_rating_count)


def submit_teacher_review(teacher_id, student_id, course_id, rating, comment=''):
    """Check that the student took one of the teacher's courses, then review."""
    rating = validate_rating(rating)

    if not User.objects.filter(pk=teacher_id, role=User.TEACHER).exists():
        raise UserNotFound('Teacher not found.')
    if not User.objects.filter(pk=student_id, role=User.STUDENT).exists():
        raise Forbidden('Only students can submit reviews.')

    course = Course.objects.filter(pk=course_id, teacher_id=teacher_id).first()
    if course is None:
        raise CourseNotFound('Course not found for this teacher.')
    if not Enrollment.objects.filter(course=course, student_id=student_id).exists():
        raise Forbidden('Student must be enrolled in the course to review.', code='not_enrolled')

    return add_or_replace_teacher_review(teacher_id, student_id, course.pk, rating, comment)


def list_teacher_reviews(teacher_id):
    try:
        teacher = User.objects.get(pk=teacher_id, role=User.TEACHER)
    except User.DoesNotExist:
        raise UserNotFound('Teacher not found.')
    reviews = teacher.teacher_reviews.select_related('student', 'course')
    return teacher_rating(teacher), reviews
