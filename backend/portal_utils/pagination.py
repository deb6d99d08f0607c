from sqlalchemy import or_

MAX_PER_PAGE = 200


def paginate(query, page=1, per_page=10, default_per_page=10):
    """
    Paginates a SQLAlchemy query without raising on out-of-range pages.

    Args:
      query: base SQLAlchemy query
      page: int, current page number (values below 1 fall back to 1)
      per_page: int, items per page (capped at MAX_PER_PAGE)

    Returns:
      Pagination object with .items, .total, .page, .pages etc.
    """
    page = page if page and page > 0 else 1
    per_page = per_page if per_page and per_page > 0 else default_per_page
    per_page = min(per_page, MAX_PER_PAGE)

    return query.paginate(page=page, per_page=per_page, error_out=False)


def apply_pagination_and_search(query, model, search_term, search_columns, page=1, per_page=10):
    """Case-insensitive search across ``search_columns`` followed by :func:`paginate`."""
    if search_term:
        search_filters = [
            getattr(model, col).ilike(f"%{search_term}%") for col in search_columns
        ]
        query = query.filter(or_(*search_filters))

    return paginate(query, page, per_page)


def pagination_meta(paginated):
    return {
        "total": paginated.total,
        "page": paginated.page,
        "pages": paginated.pages,
        "limit": paginated.per_page,
    }
