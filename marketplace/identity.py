import logging

from django.db import transaction
from django.db.models import Q

from . import ratings
from .exceptions import (
    AccountDeactivated,
    DuplicateEmail,
    HasActiveOrders,
    InvalidCredentials,
    SelfDeletion,
    TeacherHasPublishedCourses,
    UserNotFound,
    WrongRole,
)
from .models import Course, Order, User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('name', 'bio', 'phone', 'address', 'profile_image')
TEACHER_PROFILE_FIELDS = ('subjects', 'experience', 'education', 'hourly_rate')
STUDENT_PROFILE_FIELDS = ('grade', 'interests')
ROLE_FIELDS = {
    User.TEACHER: TEACHER_PROFILE_FIELDS,
    User.STUDENT: STUDENT_PROFILE_FIELDS,
}


def normalize_email(email):
    return (email or '').strip().lower()


def get_user(user_id):
    try:
        return User.objects.get(pk=user_id)
    except User.DoesNotExist:
        raise UserNotFound()


def register(name, email, password, role=User.STUDENT, **profile):
    email = normalize_email(email)
    if User.objects.filter(email__iexact=email).exists():
        raise DuplicateEmail()

    allowed = PROFILE_FIELDS + ROLE_FIELDS.get(role, ())
    extra = {key: value for key, value in profile.items() if key in allowed}

    user = User.objects.create_user(
        username=email,
        email=email,
        password=password,
        name=name,
        role=role or User.STUDENT,
        **extra
    )
    logger.info('Registered %s user %s', user.role, user.pk)
    return user


def authenticate(email, password):
    user = User.objects.filter(email__iexact=normalize_email(email)).first()
    if user is None or not user.check_password(password):
        raise InvalidCredentials()
    if not user.is_active:
        raise AccountDeactivated()
    return user


def _apply(user, fields, allowed):
    # presence in the payload decides what changes, so '' and 0 are kept
    changed = [key for key in allowed if key in fields]
    for key in changed:
        setattr(user, key, fields[key])
    if changed:
        user.save(update_fields=changed + ['updated_at'])
    return user


def update_profile(user_id, fields):
    user = get_user(user_id)
    return _apply(user, fields, PROFILE_FIELDS)


def update_teacher_profile(user_id, fields):
    user = get_user(user_id)
    if not user.is_teacher:
        raise WrongRole('User is not a teacher.')
    return _apply(user, fields, TEACHER_PROFILE_FIELDS)


def update_student_profile(user_id, fields):
    user = get_user(user_id)
    if not user.is_student:
        raise WrongRole('User is not a student.')
    return _apply(user, fields, STUDENT_PROFILE_FIELDS)


def update_status(user_id, is_active=None, is_verified=None):
    user = get_user(user_id)
    changed = []
    if is_active is not None:
        user.is_active = is_active
        changed.append('is_active')
    if is_verified is not None:
        user.is_verified = is_verified
        changed.append('is_verified')
    if changed:
        user.save(update_fields=changed + ['updated_at'])
        logger.info('User %s status changed: %s', user.pk, ', '.join(changed))
    return user


def list_users(role=None, is_active=None):
    queryset = User.objects.all()
    if role:
        queryset = queryset.filter(role=role)
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    return queryset.order_by('-created_at', '-id')


def list_active(role):
    return User.objects.filter(role=role, is_active=True).order_by('name', 'id')


def active_orders_for(user_id):
    return Order.objects.filter(
        Q(student_id=user_id) | Q(teacher_id=user_id),
        status__in=[Order.PENDING, Order.COMPLETED],
    )


def delete_user(actor_id, user_id):
    """Delete a user once nothing depends on them.

    A teacher's unpublished courses go with them. Published courses and
    pending or completed orders block the deletion.
    """
    with transaction.atomic():
        try:
            user = User.objects.select_for_update().get(pk=user_id)
        except User.DoesNotExist:
            raise UserNotFound()

        if actor_id is not None and str(actor_id) == str(user.pk):
            raise SelfDeletion()

        if user.is_teacher and Course.objects.filter(teacher=user, is_published=True).exists():
            raise TeacherHasPublishedCourses()

        if active_orders_for(user.pk).exists():
            raise HasActiveOrders()

        summary = {'id': user.pk, 'name': user.name, 'email': user.email, 'role': user.role}

        if user.is_teacher:
            deleted, _ = Course.objects.filter(teacher=user, is_published=False).delete()
            if deleted:
                logger.info('Deleted unpublished courses of teacher %s', user.pk)

        # reviews written by the user go with them
        reviewed_courses = list(user.course_reviews.values_list('course_id', flat=True))
        reviewed_teachers = list(user.given_teacher_reviews.values_list('teacher_id', flat=True))

        user.delete()
        ratings.refresh_ratings(reviewed_courses, reviewed_teachers)

    logger.info('Deleted user %s (%s)', summary['id'], summary['role'])
    return summary
