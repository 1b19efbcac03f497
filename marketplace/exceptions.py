"""Domain errors raised by the marketplace workflows.

Every error is a DRF ``APIException`` so the HTTP layer can map it to a
status code without knowing the concrete type. The four base classes follow
the error taxonomy of the API: validation and state conflicts are 400,
authorization failures 403, missing entities 404.
"""
import logging

from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MarketplaceError(APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request could not be processed.'
    default_code = 'marketplace_error'


class ValidationFailed(MarketplaceError):
    default_detail = 'Invalid request data.'
    default_code = 'validation_error'


class Conflict(MarketplaceError):
    default_detail = 'Request conflicts with the current state.'
    default_code = 'conflict'


class Forbidden(MarketplaceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You are not allowed to perform this action.'
    default_code = 'forbidden'


class NotFound(MarketplaceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


# identity

class DuplicateEmail(Conflict):
    default_detail = 'User already exists with this email.'
    default_code = 'duplicate_email'


class InvalidCredentials(ValidationFailed):
    default_detail = 'Invalid credentials.'
    default_code = 'invalid_credentials'


class AccountDeactivated(ValidationFailed):
    default_detail = 'Account is deactivated.'
    default_code = 'account_deactivated'


class UserNotFound(NotFound):
    default_detail = 'User not found.'
    default_code = 'user_not_found'


class WrongRole(Forbidden):
    default_detail = 'User does not have the required role.'
    default_code = 'wrong_role'


class SelfDeletion(Conflict):
    default_detail = 'Cannot delete your own account.'
    default_code = 'self_deletion'


class TeacherHasPublishedCourses(Conflict):
    default_detail = 'Cannot delete teacher with published courses. Please unpublish or transfer courses first.'
    default_code = 'teacher_has_published_courses'


class HasActiveOrders(Conflict):
    default_detail = 'Cannot delete user with active orders. Please contact support.'
    default_code = 'has_active_orders'


# catalog

class InvalidTeacher(ValidationFailed):
    default_detail = 'Invalid teacher ID.'
    default_code = 'invalid_teacher'


class CourseNotFound(NotFound):
    default_detail = 'Course not found.'
    default_code = 'course_not_found'


class NotCourseOwner(Forbidden):
    default_detail = 'Not authorized to update this course.'
    default_code = 'not_course_owner'


class NotEmptyRoster(Conflict):
    default_detail = 'Cannot delete course with enrolled students. Please contact support.'
    default_code = 'not_empty_roster'


class InvalidMaterialType(ValidationFailed):
    default_detail = 'Material type must be one of: video, document, link, quiz.'
    default_code = 'invalid_material_type'


class MaterialNotFound(NotFound):
    default_detail = 'Material not found.'
    default_code = 'material_not_found'


# orders

class InvalidStudent(ValidationFailed):
    default_detail = 'Invalid student ID.'
    default_code = 'invalid_student'


class CourseNotPublished(Conflict):
    default_detail = 'Course is not available for purchase.'
    default_code = 'course_not_published'


class AlreadyEnrolled(Conflict):
    default_detail = 'Already enrolled in this course.'
    default_code = 'already_enrolled'


class CourseFull(Conflict):
    default_detail = 'Course is full.'
    default_code = 'course_full'


class OrderNotFound(NotFound):
    default_detail = 'Order not found.'
    default_code = 'order_not_found'


class AlreadyCompleted(Conflict):
    default_detail = 'Order is already completed.'
    default_code = 'already_completed'


class CannotCancelCompleted(Conflict):
    default_detail = 'Cannot cancel completed order.'
    default_code = 'cannot_cancel_completed'


class OnlyCompletedRefundable(Conflict):
    default_detail = 'Can only refund completed orders.'
    default_code = 'only_completed_refundable'


class InvalidOrderTransition(Conflict):
    default_detail = 'Order cannot change status from its current state.'
    default_code = 'invalid_order_transition'


# enrollment and ratings

class NotEnrolled(Conflict):
    default_detail = 'Must be enrolled in this course.'
    default_code = 'not_enrolled'


class InvalidRating(ValidationFailed):
    default_detail = 'Rating must be a number between 1 and 5.'
    default_code = 'invalid_rating'


def _message(detail):
    if isinstance(detail, list) and len(detail) == 1 and isinstance(detail[0], str):
        return str(detail[0])
    if isinstance(detail, (list, dict)):
        return 'Invalid request data.'
    return str(detail)


def marketplace_exception_handler(exc, context):
    """Render every error as ``{"message": ..., "error": ...}``."""
    response = exception_handler(exc, context)

    if response is None:
        logger.exception('Unhandled error in %s', context.get('view').__class__.__name__, exc_info=exc)
        return Response(
            {'message': 'Server error', 'error': str(exc)},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, Http404):
        response.data = {'message': 'Not found.', 'error': 'not_found'}
    elif isinstance(exc, ValidationError):
        response.data = {'message': _message(exc.detail), 'error': exc.detail}
    elif isinstance(exc, APIException):
        response.data = {'message': _message(exc.detail), 'error': exc.get_codes()}
    return response
