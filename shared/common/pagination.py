# shared/common/pagination.py
"""
Pagination Classes for API responses
"""

from typing import Any, Dict

from django.db.models import Count
from rest_framework.pagination import PageNumberPagination
from rest_framework.response import Response


class StandardPagination(PageNumberPagination):
    """Reservation listings: one calendar screen is rarely more than 50 rows."""

    page_size = 50
    page_size_query_param = 'page_size'
    max_page_size = 200

    def get_paginated_response(self, data: Any) -> Response:
        return Response(self.envelope(data))

    def envelope(self, data: Any) -> Dict[str, Any]:
        paginator = self.page.paginator
        return {
            'success': True,
            'count': paginator.count,
            'page': self.page.number,
            'pages': paginator.num_pages,
            'next': self.get_next_link(),
            'previous': self.get_previous_link(),
            'results': data,
        }

    def get_paginated_response_schema(self, schema: Dict) -> Dict:
        return {
            'type': 'object',
            'properties': {
                'success': {'type': 'boolean'},
                'count': {'type': 'integer'},
                'page': {'type': 'integer'},
                'pages': {'type': 'integer'},
                'next': {'type': 'string', 'nullable': True},
                'previous': {'type': 'string', 'nullable': True},
                'results': schema,
            }
        }


class LargeResultsSetPagination(StandardPagination):
    """
    Access-log listings, where a single import produces hundreds of rows.

    Adds ``status_counts`` over the whole filtered queryset so the review
    screen can show valid / no_reservation / unmatched totals per page.
    """

    page_size = 200
    max_page_size = 1000

    def paginate_queryset(self, queryset, request, view=None):
        self.status_counts = {
            row['status']: row['total']
            for row in queryset.order_by().values('status').annotate(total=Count('pk'))
        }
        return super().paginate_queryset(queryset, request, view)

    def envelope(self, data: Any) -> Dict[str, Any]:
        body = super().envelope(data)
        body['status_counts'] = self.status_counts
        return body

    def get_paginated_response_schema(self, schema: Dict) -> Dict:
        response_schema = super().get_paginated_response_schema(schema)
        response_schema['properties']['status_counts'] = {
            'type': 'object',
            'additionalProperties': {'type': 'integer'},
        }
        return response_schema
