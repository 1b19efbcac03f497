"""Order ledger.

Order status only moves forward::

    pending -> completed -> refunded
    pending -> cancelled

Completing an order puts the student on the course roster and refunding it
takes them off again. Each of those runs in one transaction holding the
order and course row locks, so either both records change or neither does.
"""
import logging

from django.db import transaction
from django.utils import timezone

from . import enrollment
from .exceptions import (
    AlreadyCompleted,
    AlreadyEnrolled,
    CannotCancelCompleted,
    CourseFull,
    CourseNotFound,
    CourseNotPublished,
    Forbidden,
    InvalidOrderTransition,
    InvalidStudent,
    OnlyCompletedRefundable,
    OrderNotFound,
)
from .models import Course, Order, User

logger = logging.getLogger(__name__)


def get_order(order_id):
    try:
        return Order.objects.select_related('student', 'teacher', 'course').get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound()


def check_party(order, user, allow_student=True):
    """Raise Forbidden unless ``user`` may act on ``order``."""
    if user.is_admin:
        return
    if order.teacher_id == user.pk:
        return
    if allow_student and order.student_id == user.pk:
        return
    raise Forbidden('Not authorized to access this order.')


def _locked(order_id):
    try:
        return Order.objects.select_for_update().get(pk=order_id)
    except Order.DoesNotExist:
        raise OrderNotFound()


def _locked_course(course_id):
    if course_id is None:
        return None
    return Course.objects.select_for_update().filter(pk=course_id).first()


def _check_purchasable(course, student_id):
    if not course.is_published:
        raise CourseNotPublished()
    if enrollment.is_enrolled(course, student_id):
        raise AlreadyEnrolled()
    if not enrollment.has_capacity(course):
        raise CourseFull()


def create_order(student_id, course_id, payment_method='cash'):
    student = User.objects.filter(pk=student_id).first()
    if student is None or not student.is_student:
        raise InvalidStudent()

    with transaction.atomic():
        course = _locked_course(course_id)
        if course is None:
            raise CourseNotFound()
        _check_purchasable(course, student.pk)

        order = Order.objects.create(
            student=student,
            course=course,
            teacher_id=course.teacher_id,
            amount=course.price,
            payment_method=payment_method or 'cash',
        )

    logger.info('Order %s created for student %s on course %s', order.pk, student.pk, course.pk)
    return order


def complete_order(order_id, transaction_id=''):
    """Mark the order paid and enroll the student.

    Either both happen or neither does. A roster that filled up since the
    order was created fails the whole operation with ``CourseFull``, and a
    student who got on the roster through another order fails it with
    ``AlreadyEnrolled``.
    """
    with transaction.atomic():
        order = _locked(order_id)
        if order.status == Order.COMPLETED:
            raise AlreadyCompleted()
        if order.status != Order.PENDING:
            raise InvalidOrderTransition(f'Cannot complete a {order.status} order.')

        course = _locked_course(order.course_id)
        if course is None:
            raise CourseNotFound()
        # a second pending order for the same course must not be paid
        if enrollment.is_enrolled(course, order.student_id):
            raise AlreadyEnrolled()

        order.status = Order.COMPLETED
        order.payment_status = Order.PAYMENT_PAID
        order.transaction_id = transaction_id or ''
        order.save(update_fields=['status', 'payment_status', 'transaction_id', 'updated_at'])

        enrollment.enroll(course, order.student_id)

    logger.info('Order %s completed', order.pk)
    return order


def cancel_order(order_id, reason=''):
    with transaction.atomic():
        order = _locked(order_id)
        if order.status == Order.COMPLETED:
            raise CannotCancelCompleted()
        if order.status != Order.PENDING:
            raise InvalidOrderTransition(f'Cannot cancel a {order.status} order.')

        order.status = Order.CANCELLED
        order.notes = reason or ''
        order.save(update_fields=['status', 'notes', 'updated_at'])

    logger.info('Order %s cancelled', order.pk)
    return order


def refund_order(order_id, reason=''):
    """Refund a completed order and take the student off the roster."""
    with transaction.atomic():
        order = _locked(order_id)
        if order.status != Order.COMPLETED:
            raise OnlyCompletedRefundable()

        order.status = Order.REFUNDED
        order.payment_status = Order.PAYMENT_REFUNDED
        order.refund_reason = reason or ''
        order.refunded_at = timezone.now()
        order.save(update_fields=['status', 'payment_status', 'refund_reason', 'refunded_at', 'updated_at'])

        course = _locked_course(order.course_id)
        if course is not None:
            enrollment.unenroll(course, order.student_id)

    logger.info('Order %s refunded', order.pk)
    return order


def purchase_course(student_id, course_id, payment_method='cash', transaction_id=''):
    """Create an order and complete it straight away."""
    with transaction.atomic():
        order = create_order(student_id, course_id, payment_method)
        order = complete_order(order.pk, transaction_id)
    return order


def list_orders(status=None, payment_status=None):
    queryset = Order.objects.select_related('student', 'teacher', 'course')
    if status:
        queryset = queryset.filter(status=status)
    if payment_status:
        queryset = queryset.filter(payment_status=payment_status)
    return queryset


def list_student_orders(student_id):
    return Order.objects.filter(student_id=student_id).select_related('teacher', 'course')


def list_teacher_orders(teacher_id):
    return Order.objects.filter(teacher_id=teacher_id).select_related('student', 'course')
