"""
Page slicing for DAL list queries.

Pages are 1-based; an out-of-range page yields the last page and an invalid
page size falls back to the default. Unordered querysets are ordered by
primary key so pages stay stable between requests.
"""

from typing import Any

from django.core.paginator import Paginator
from django.db.models import QuerySet


class ServicePaginator:
    def __init__(self, default_page_size: int = 20, max_page_size: int = 100):
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    def paginate(self, queryset: QuerySet, page: Any = 1, page_size: Any = None) -> dict[str, Any]:
        size = self.clamp_page_size(page_size)
        if isinstance(queryset, QuerySet) and not queryset.ordered:
            queryset = queryset.order_by('pk')

        paginator = Paginator(queryset, size)
        page_obj = paginator.get_page(page)

        return {
            'items': list(page_obj.object_list),
            'meta': {
                'page': page_obj.number,
                'page_size': size,
                'total_pages': paginator.num_pages,
                'total_items': paginator.count,
                'has_next': page_obj.has_next(),
                'has_previous': page_obj.has_previous(),
            },
        }

    def clamp_page_size(self, page_size: Any) -> int:
        try:
            size = int(page_size)
        except (TypeError, ValueError):
            return self.default_page_size
        if size < 1:
            return self.default_page_size
        return min(size, self.max_page_size)
