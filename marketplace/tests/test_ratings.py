import pytest

from marketplace import orders, ratings
from marketplace.exceptions import CourseNotFound, Forbidden, InvalidRating, NotEnrolled
from marketplace.models import CourseReview, TeacherReview
from marketplace.ratings import RatingSummary, recompute_rating


def test_recompute_rating_empty():
    assert recompute_rating([]) == RatingSummary(average=0, count=0)


def test_recompute_rating_mean():
    assert recompute_rating([5, 4, 3]) == RatingSummary(average=4, count=3)
    assert recompute_rating([1, 2]).average == 1.5


@pytest.mark.parametrize('rating', [0, 6, 2.5, '4', None, True])
def test_validate_rating_rejects(rating):
    with pytest.raises(InvalidRating):
        ratings.validate_rating(rating)


@pytest.fixture
def enrolled(course, student):
    orders.purchase_course(student.pk, course.pk)
    return student


@pytest.mark.django_db
def test_course_review_requires_enrollment(course, student):
    with pytest.raises(NotEnrolled):
        ratings.add_or_replace_course_review(course.pk, student.pk, 4, 'ok')


@pytest.mark.django_db
def test_course_review_missing_course(student):
    with pytest.raises(CourseNotFound):
        ratings.add_or_replace_course_review(9999, student.pk, 4, 'ok')


@pytest.mark.django_db
def test_resubmitted_review_replaces_previous(course, enrolled):
    course = ratings.add_or_replace_course_review(course.pk, enrolled.pk, 4, 'ok')
    assert (course.rating_average, course.rating_count) == (4, 1)

    course = ratings.add_or_replace_course_review(course.pk, enrolled.pk, 2, 'meh')
    assert (course.rating_average, course.rating_count) == (2, 1)

    reviews = CourseReview.objects.filter(course=course)
    assert reviews.count() == 1
    assert reviews.get().comment == 'meh'


@pytest.mark.django_db
def test_course_rating_is_mean_of_reviews(course, enrolled, second_student):
    orders.purchase_course(second_student.pk, course.pk)
    ratings.add_or_replace_course_review(course.pk, enrolled.pk, 5, 'great')
    course = ratings.add_or_replace_course_review(course.pk, second_student.pk, 2, 'hard')

    stored = list(course.reviews.values_list('rating', flat=True))
    assert course.rating_average == sum(stored) / len(stored) == 3.5
    assert course.rating_count == 2


@pytest.mark.django_db
def test_teacher_review_replaced_per_student(teacher, course, enrolled):
    ratings.submit_teacher_review(teacher.pk, enrolled.pk, course.pk, 5, 'clear')
    teacher = ratings.submit_teacher_review(teacher.pk, enrolled.pk, course.pk, 3)

    assert TeacherReview.objects.filter(teacher=teacher, student=enrolled).count() == 1
    assert (teacher.teacher_rating_average, teacher.teacher_rating_count) == (3, 1)


@pytest.mark.django_db
def test_teacher_review_course_must_belong_to_teacher(other_teacher, course, enrolled):
    with pytest.raises(CourseNotFound):
        ratings.submit_teacher_review(other_teacher.pk, enrolled.pk, course.pk, 4)


@pytest.mark.django_db
def test_teacher_review_requires_enrolled_student(teacher, course, student):
    with pytest.raises(Forbidden):
        ratings.submit_teacher_review(teacher.pk, student.pk, course.pk, 4)


@pytest.mark.django_db
def test_teacher_review_only_from_students(teacher, other_teacher, course):
    with pytest.raises(Forbidden):
        ratings.submit_teacher_review(teacher.pk, other_teacher.pk, course.pk, 4)


@pytest.mark.django_db
def test_list_teacher_reviews(teacher, course, enrolled):
    ratings.submit_teacher_review(teacher.pk, enrolled.pk, course.pk, 4, 'good')
    summary, reviews = ratings.list_teacher_reviews(teacher.pk)
    assert summary == RatingSummary(average=4, count=1)
    assert [review.comment for review in reviews] == ['good']
