import logging

from django.db import transaction

from .exceptions import (
    CourseNotFound,
    InvalidMaterialType,
    InvalidTeacher,
    MaterialNotFound,
    NotCourseOwner,
    NotEmptyRoster,
    ValidationFailed,
)
from .models import Course, CourseMaterial, SyllabusWeek, Tag, User

logger = logging.getLogger(__name__)

COURSE_FIELDS = (
    'title', 'description', 'subject', 'level', 'price', 'duration',
    'thumbnail', 'requirements', 'learning_outcomes', 'max_students',
)
MATERIAL_FIELDS = ('title', 'type', 'url', 'description', 'duration')
MATERIAL_TYPES = [choice for choice, _ in CourseMaterial.TYPE_CHOICES]


def get_course(course_id):
    try:
        return Course.objects.select_related('teacher').get(pk=course_id)
    except Course.DoesNotExist:
        raise CourseNotFound()


def owned_course(course_id, teacher_id, lock=False):
    queryset = Course.objects.select_for_update() if lock else Course.objects.all()
    try:
        course = queryset.get(pk=course_id)
    except Course.DoesNotExist:
        raise CourseNotFound()
    if str(course.teacher_id) != str(teacher_id):
        raise NotCourseOwner()
    return course


def set_tags(course, names):
    tags = []
    for name in names or []:
        name = str(name).strip()
        if name:
            tag, _ = Tag.objects.get_or_create(name=name)
            tags.append(tag)
    course.tags.set(tags)


def replace_syllabus(course, weeks):
    course.syllabus.all().delete()
    for item in weeks or []:
        week = SyllabusWeek.objects.create(
            course=course,
            week=item['week'],
            title=item['title'],
            description=item['description'],
        )
        material_ids = item.get('materials') or []
        if material_ids:
            week.materials.set(course.materials.filter(pk__in=material_ids))


def create_course(teacher_id, fields):
    teacher = User.objects.filter(pk=teacher_id).first()
    if teacher is None or not teacher.is_teacher:
        raise InvalidTeacher()

    data = {key: fields[key] for key in COURSE_FIELDS if key in fields}
    if data.get('max_students') is None:
        data.pop('max_students', None)

    with transaction.atomic():
        course = Course.objects.create(teacher=teacher, **data)
        set_tags(course, fields.get('tags'))
        if fields.get('syllabus'):
            replace_syllabus(course, fields['syllabus'])

    logger.info('Teacher %s created course %s', teacher.pk, course.pk)
    return course


def update_course(course_id, teacher_id, fields):
    with transaction.atomic():
        course = owned_course(course_id, teacher_id, lock=True)

        if 'max_students' in fields and fields['max_students'] < course.enrollments.count():
            raise ValidationFailed('max_students cannot be lower than the number of enrolled students.')

        changed = [key for key in COURSE_FIELDS if key in fields]
        for key in changed:
            setattr(course, key, fields[key])
        course.save()

        if 'tags' in fields:
            set_tags(course, fields['tags'])
        if 'syllabus' in fields:
            replace_syllabus(course, fields['syllabus'])

    return course


def publish_toggle(course_id, teacher_id, is_published):
    # no minimum content is required to publish
    course = owned_course(course_id, teacher_id)
    course.is_published = bool(is_published)
    course.save(update_fields=['is_published', 'updated_at'])
    logger.info('Course %s %s', course.pk, 'published' if course.is_published else 'unpublished')
    return course


def set_active(course_id, is_active):
    course = get_course(course_id)
    course.is_active = bool(is_active)
    course.save(update_fields=['is_active', 'updated_at'])
    return course


def delete_course(course_id, teacher_id):
    with transaction.atomic():
        course = owned_course(course_id, teacher_id, lock=True)
        if course.enrollments.exists():
            raise NotEmptyRoster()
        course.delete()
    logger.info('Teacher %s deleted course %s', teacher_id, course_id)


def list_teacher_courses(teacher_id):
    return Course.objects.filter(teacher_id=teacher_id).select_related('teacher')


def list_student_courses(student_id):
    return Course.objects.filter(enrollments__student_id=student_id).select_related('teacher').distinct()


def list_materials(course_id):
    return get_course(course_id).materials.all()


def validate_material(material, partial=False):
    if not partial:
        if not all(material.get(key) for key in ('title', 'type', 'url')):
            raise ValidationFailed('Each material must have title, type, and url.')
    if 'type' in material and material['type'] not in MATERIAL_TYPES:
        raise InvalidMaterialType()


def add_materials(course_id, teacher_id, materials):
    if not isinstance(materials, (list, tuple)):
        raise ValidationFailed('Materials must be an array.')
    for material in materials:
        validate_material(material)

    with transaction.atomic():
        course = owned_course(course_id, teacher_id, lock=True)
        created = [
            CourseMaterial.objects.create(
                course=course,
                **{key: material[key] for key in MATERIAL_FIELDS if key in material}
            )
            for material in materials
        ]

    logger.info('Added %d materials to course %s', len(created), course.pk)
    return course


def _material(course, material_id):
    try:
        return course.materials.get(pk=material_id)
    except CourseMaterial.DoesNotExist:
        raise MaterialNotFound()


def update_material(course_id, material_id, teacher_id, fields):
    validate_material(fields, partial=True)
    with transaction.atomic():
        course = owned_course(course_id, teacher_id, lock=True)
        material = _material(course, material_id)
        changed = [key for key in MATERIAL_FIELDS if key in fields]
        for key in changed:
            setattr(material, key, fields[key])
        if changed:
            material.save(update_fields=changed)
    return course


def delete_material(course_id, material_id, teacher_id):
    with transaction.atomic():
        course = owned_course(course_id, teacher_id, lock=True)
        _material(course, material_id).delete()
    return course
