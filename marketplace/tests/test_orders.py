import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest
from django.db import connection

from marketplace import catalog, enrollment, orders
from marketplace.exceptions import (
    AlreadyCompleted,
    AlreadyEnrolled,
    CannotCancelCompleted,
    CourseFull,
    CourseNotFound,
    CourseNotPublished,
    InvalidOrderTransition,
    InvalidStudent,
    NotEnrolled,
    OnlyCompletedRefundable,
)
from marketplace.models import Enrollment, Order

pytestmark = pytest.mark.django_db


def roster(course):
    return list(Enrollment.objects.filter(course=course).values_list('student_id', flat=True))


def test_create_order_copies_price_and_teacher(course, student):
    order = orders.create_order(student.pk, course.pk, 'paypal')

    assert order.status == Order.PENDING
    assert order.payment_status == Order.PAYMENT_PENDING
    assert order.amount == Decimal('10')
    assert order.teacher_id == course.teacher_id
    assert order.payment_method == 'paypal'


def test_amount_not_affected_by_later_price_change(course, student, teacher):
    order = orders.create_order(student.pk, course.pk)
    catalog.update_course(course.pk, teacher.pk, {'price': Decimal('99')})

    order.refresh_from_db()
    assert order.amount == Decimal('10')


def test_create_order_requires_student(course, teacher):
    with pytest.raises(InvalidStudent):
        orders.create_order(teacher.pk, course.pk)
    with pytest.raises(InvalidStudent):
        orders.create_order(9999, course.pk)


def test_create_order_requires_existing_course(student):
    with pytest.raises(CourseNotFound):
        orders.create_order(student.pk, 9999)


def test_create_order_requires_published_course(make_course, student):
    draft = make_course(publish=False)
    with pytest.raises(CourseNotPublished):
        orders.create_order(student.pk, draft.pk)


def test_create_order_rejects_enrolled_student(course, student):
    orders.purchase_course(student.pk, course.pk)
    with pytest.raises(AlreadyEnrolled):
        orders.create_order(student.pk, course.pk)


def test_full_course_scenario(make_course, student, second_student):
    course = make_course(max_students=1, price=10)
    order = orders.create_order(student.pk, course.pk, 'cash')

    order = orders.complete_order(order.pk, 'tx-1')

    assert order.status == Order.COMPLETED
    assert order.payment_status == Order.PAYMENT_PAID
    assert order.transaction_id == 'tx-1'
    entry = Enrollment.objects.get(course=course, student=student)
    assert entry.progress == 0
    assert entry.completed is False

    with pytest.raises(CourseFull):
        orders.create_order(second_student.pk, course.pk)


def test_completion_rolls_back_when_roster_filled(make_course, student, second_student):
    course = make_course(max_students=1)
    first = orders.create_order(student.pk, course.pk)
    second = orders.create_order(second_student.pk, course.pk)
    orders.complete_order(first.pk)

    with pytest.raises(CourseFull):
        orders.complete_order(second.pk)

    second.refresh_from_db()
    assert second.status == Order.PENDING
    assert second.payment_status == Order.PAYMENT_PENDING
    assert roster(course) == [student.pk]


def test_complete_twice_fails(course, student):
    order = orders.create_order(student.pk, course.pk)
    orders.complete_order(order.pk)
    with pytest.raises(AlreadyCompleted):
        orders.complete_order(order.pk)


def test_cancel_pending_order(course, student):
    order = orders.create_order(student.pk, course.pk)
    order = orders.cancel_order(order.pk, 'changed my mind')

    assert order.status == Order.CANCELLED
    assert order.notes == 'changed my mind'
    assert roster(course) == []


def test_cancel_completed_fails(course, student):
    order = orders.purchase_course(student.pk, course.pk)
    with pytest.raises(CannotCancelCompleted):
        orders.cancel_order(order.pk)


def test_cancelled_is_terminal(course, student):
    order = orders.create_order(student.pk, course.pk)
    orders.cancel_order(order.pk)

    with pytest.raises(InvalidOrderTransition):
        orders.complete_order(order.pk)
    with pytest.raises(InvalidOrderTransition):
        orders.cancel_order(order.pk)
    with pytest.raises(OnlyCompletedRefundable):
        orders.refund_order(order.pk)


def test_refund_scenario(course, student):
    order = orders.purchase_course(student.pk, course.pk)
    assert roster(course) == [student.pk]

    order = orders.refund_order(order.pk, 'requested')

    assert order.status == Order.REFUNDED
    assert order.payment_status == Order.PAYMENT_REFUNDED
    assert order.refund_reason == 'requested'
    assert order.refunded_at is not None
    assert roster(course) == []


def test_refunded_is_terminal(course, student):
    order = orders.purchase_course(student.pk, course.pk)
    orders.refund_order(order.pk)

    with pytest.raises(OnlyCompletedRefundable):
        orders.refund_order(order.pk)
    with pytest.raises(InvalidOrderTransition):
        orders.complete_order(order.pk)
    with pytest.raises(InvalidOrderTransition):
        orders.cancel_order(order.pk)


def test_refund_pending_fails(course, student):
    order = orders.create_order(student.pk, course.pk)
    with pytest.raises(OnlyCompletedRefundable):
        orders.refund_order(order.pk)


def test_sequential_completions_stop_at_capacity(make_course, student, second_student):
    course = make_course(max_students=1)
    pending = [orders.create_order(s.pk, course.pk) for s in (student, second_student)]

    for order in pending:
        try:
            orders.complete_order(order.pk)
        except CourseFull:
            pass

    assert len(roster(course)) <= course.max_students


# SQLite has no row locks, so this only runs against a server database.
@pytest.mark.django_db(transaction=True)
@pytest.mark.skipif(not connection.features.has_select_for_update, reason='database has no row locks')
def test_concurrent_completions_respect_capacity(make_course, student, second_student):
    course = make_course(max_students=1)
    pending = [orders.create_order(s.pk, course.pk) for s in (student, second_student)]
    barrier = threading.Barrier(len(pending))

    def complete(order):
        barrier.wait()
        try:
            return orders.complete_order(order.pk).status
        except CourseFull:
            return 'full'
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=len(pending)) as pool:
        outcomes = sorted(pool.map(complete, pending))

    assert outcomes == [Order.COMPLETED, 'full']
    assert len(roster(course)) == 1


def test_second_pending_order_cannot_complete(course, student):
    first = orders.create_order(student.pk, course.pk)
    second = orders.create_order(student.pk, course.pk)
    orders.complete_order(first.pk)

    with pytest.raises(AlreadyEnrolled):
        orders.complete_order(second.pk)

    second.refresh_from_db()
    assert second.status == Order.PENDING
    assert second.payment_status == Order.PAYMENT_PENDING

    orders.refund_order(first.pk)
    assert roster(course) == []
    assert not Order.objects.filter(course=course, status=Order.COMPLETED).exists()


def test_enroll_is_idempotent(course, student):
    enrollment.enroll(course, student.pk)
    enrollment.enroll(course, student.pk)
    assert roster(course) == [student.pk]


def test_update_progress_clamps_and_tracks_completion(course, student):
    orders.purchase_course(student.pk, course.pk)

    entry = enrollment.update_progress(course.pk, student.pk, 140)
    assert (entry.progress, entry.completed) == (100, True)

    entry = enrollment.update_progress(course.pk, student.pk, 40)
    assert (entry.progress, entry.completed) == (40, False)

    entry = enrollment.update_progress(course.pk, student.pk, -5)
    assert (entry.progress, entry.completed) == (0, False)


def test_update_progress_requires_enrollment(course, student):
    with pytest.raises(NotEnrolled):
        enrollment.update_progress(course.pk, student.pk, 50)


def test_order_listings(course, student, teacher):
    order = orders.create_order(student.pk, course.pk)

    assert list(orders.list_student_orders(student.pk)) == [order]
    assert list(orders.list_teacher_orders(teacher.pk)) == [order]
    assert list(orders.list_orders(status=Order.PENDING)) == [order]
    assert list(orders.list_orders(status=Order.COMPLETED)) == []
