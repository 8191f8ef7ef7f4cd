"""Shared page-number pagination for list endpoints."""

from __future__ import annotations

from rest_framework.pagination import PageNumberPagination


class StandardResultsSetPagination(PageNumberPagination):
    """``?page=N&page_size=M`` with a hard upper bound on page size."""

    page_size_query_param = "page_size"
    max_page_size = 100
