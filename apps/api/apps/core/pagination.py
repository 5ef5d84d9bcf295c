"""
Page-number pagination returning the {page, limit, total, pages} block used in list envelopes.
"""
from django.core.paginator import EmptyPage
from rest_framework.pagination import PageNumberPagination

from .responses import api_response

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _positive_int(value, default):
    try:
        return max(int(value), 1)
    except (TypeError, ValueError):
        return default


class PagePagination(PageNumberPagination):
    """
    ?page=&limit= pagination.

    Bad values fall back to the defaults, limit is clamped to max_page_size and
    a page past the end is empty instead of a 404.
    """
    page_size = DEFAULT_PAGE_SIZE
    page_size_query_param = 'limit'
    max_page_size = MAX_PAGE_SIZE

    def __init__(self, page_size=None, max_page_size=None):
        if page_size is not None:
            self.page_size = page_size
        if max_page_size is not None:
            self.max_page_size = max_page_size

    def get_page_size(self, request):
        limit = _positive_int(request.query_params.get(self.page_size_query_param), self.page_size)
        return min(limit, self.max_page_size)

    def get_page_number(self, request, paginator=None):
        return _positive_int(request.query_params.get(self.page_query_param), 1)

    def paginate_queryset(self, queryset, request, view=None):
        self.request = request
        self.limit = self.get_page_size(request)
        self.page_number = self.get_page_number(request)
        self.django_paginator = self.django_paginator_class(queryset, self.limit)
        try:
            self.page = self.django_paginator.page(self.page_number)
        except EmptyPage:
            self.page = None
            return []
        return list(self.page)

    def get_pagination(self):
        total = self.django_paginator.count
        return {
            'page': self.page_number,
            'limit': self.limit,
            'total': total,
            'pages': self.django_paginator.num_pages if total else 0,
        }

    def get_paginated_response(self, data, collection='results', message=None):
        return api_response(data={collection: data, 'pagination': self.get_pagination()}, message=message)
