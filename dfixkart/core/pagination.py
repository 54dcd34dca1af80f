"""Offset/limit pagination producing `{total, page, limit, pages}` metadata"""
import math

MAX_PAGE_LIMIT = 100


def _positive_int(value, default):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def get_page_params(request, default_limit=10):
    """Read `page` and `limit` from the query string, falling back to defaults"""
    page = _positive_int(request.query_params.get('page'), 1)
    limit = min(_positive_int(request.query_params.get('limit'), default_limit), MAX_PAGE_LIMIT)
    return page, limit


def paginate_queryset(queryset, request, default_limit=10):
    """
    Slice a queryset for the requested page.

    Returns (page_items, pagination) where pagination is the metadata dict
    placed next to the results in the response payload.
    """
    page, limit = get_page_params(request, default_limit)
    total = queryset.count()
    offset = (page - 1) * limit
    items = list(queryset[offset:offset + limit])
    pagination = {
        'total': total,
        'page': page,
        'limit': limit,
        'pages': math.ceil(total / limit) if total else 0,
    }
    return items, pagination
