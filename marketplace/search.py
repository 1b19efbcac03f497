"""Course discovery.

All listing endpoints (browse, tag search, text search, advanced search) are
views of ``search_courses``. Only published, active courses are visible.
"""
from collections import Counter
from decimal import Decimal, InvalidOperation

from django.db.models import Q

from .exceptions import ValidationFailed
from .models import Course

SORT_FIELDS = {
    'createdAt': 'created_at',
    'created_at': 'created_at',
    'price': 'price',
    'rating': 'rating_average',
    'title': 'title',
}


def visible_courses():
    return Course.objects.filter(is_published=True, is_active=True)


def split_tags(tags):
    if not tags:
        return []
    if isinstance(tags, str):
        tags = tags.split(',')
    return [tag.strip() for tag in tags if tag and tag.strip()]


def _number(value, name, cast=float):
    if value in (None, ''):
        return None
    try:
        return cast(value)
    except (TypeError, ValueError, InvalidOperation):
        raise ValidationFailed(f'{name} must be a number.')


def text_filter(q):
    return (
        Q(title__icontains=q)
        | Q(description__icontains=q)
        | Q(subject__icontains=q)
        | Q(tags__name__icontains=q)
        | Q(teacher__name__icontains=q)
    )


def search_courses(q=None, tags=None, subject=None, level=None, min_price=None, max_price=None,
                   teacher_id=None, min_rating=None, min_duration=None, max_duration=None,
                   sort_by='createdAt', sort_order='desc'):
    queryset = visible_courses()

    q = (q or '').strip()
    if q:
        queryset = queryset.filter(text_filter(q))

    tag_names = split_tags(tags)
    if tag_names:
        queryset = queryset.filter(tags__name__in=tag_names)

    if subject:
        queryset = queryset.filter(subject=subject)
    if level:
        queryset = queryset.filter(level=level)
    if teacher_id:
        queryset = queryset.filter(teacher_id=teacher_id)

    min_price = _number(min_price, 'minPrice', Decimal)
    max_price = _number(max_price, 'maxPrice', Decimal)
    if min_price is not None:
        queryset = queryset.filter(price__gte=min_price)
    if max_price is not None:
        queryset = queryset.filter(price__lte=max_price)

    min_rating = _number(min_rating, 'minRating')
    if min_rating is not None:
        queryset = queryset.filter(rating_average__gte=min_rating)

    min_duration = _number(min_duration, 'minDuration')
    max_duration = _number(max_duration, 'maxDuration')
    if min_duration is not None:
        queryset = queryset.filter(duration__gte=min_duration)
    if max_duration is not None:
        queryset = queryset.filter(duration__lte=max_duration)

    field = SORT_FIELDS.get(sort_by, 'created_at')
    prefix = '' if sort_order == 'asc' else '-'
    return queryset.select_related('teacher').distinct().order_by(prefix + field, prefix + 'id')


def all_tags():
    names = visible_courses().values_list('tags__name', flat=True)
    return sorted({name for name in names if name})


def popular_tags(limit=10):
    counts = Counter(name for name in visible_courses().values_list('tags__name', flat=True) if name)
    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    return [{'tag': tag, 'count': count} for tag, count in ranked[:limit]], len(counts)


def suggestions(q, limit=5):
    q = (q or '').strip()
    if not q:
        return []

    needle = q.lower()
    courses = (
        visible_courses()
        .filter(Q(title__icontains=q) | Q(subject__icontains=q) | Q(tags__name__icontains=q))
        .prefetch_related('tags')
        .distinct()[:limit]
    )

    found = []
    seen = set()
    for course in courses:
        candidates = [('title', course.title), ('subject', course.subject)]
        candidates += [('tag', tag.name) for tag in course.tags.all()]
        for kind, text in candidates:
            if needle in text.lower() and text not in seen:
                found.append({'type': kind, 'text': text})
                seen.add(text)
    return found[:limit]
