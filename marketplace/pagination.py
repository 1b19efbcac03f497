import math

from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response

from .exceptions import ValidationFailed


class MarketplacePagination(PageNumberPagination):
    """Page-number pagination that answers a page past the end with an
    empty list instead of a 404."""

    page_size_query_param = 'limit'
    max_page_size = 100

    def paginate_queryset(self, queryset, request, view=None):
        page_size = self.get_page_size(request)
        if not page_size:
            return None

        self.request = request
        paginator = self.django_paginator_class(queryset, page_size)
        number = self.get_page_number(request, paginator)
        if number in self.last_page_strings:
            number = paginator.num_pages
        try:
            number = int(number)
        except (TypeError, ValueError):
            raise ValidationFailed('page must be a positive integer.')
        if number < 1:
            raise ValidationFailed('page must be a positive integer.')

        self.number = number
        self.count = paginator.count
        self.per_page = page_size
        if number > paginator.num_pages:
            self.page = None
            return []
        self.page = paginator.page(number)
        return list(self.page)

    def get_pagination_info(self):
        return {
            'current': self.number,
            'total': math.ceil(self.count / self.per_page),
            'hasNext': self.number * self.per_page < self.count,
            'hasPrev': self.number > 1,
        }

    def get_paginated_response(self, data, key='results', message=None, **extra):
        body = {}
        if message:
            body['message'] = message
        body[key] = data
        body['pagination'] = self.get_pagination_info()
        body.update(extra)
        return Response(body)
