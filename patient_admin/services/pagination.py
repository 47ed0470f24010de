"""
Armado de respuestas paginadas.
"""

import math
from typing import Sequence, TypeVar

from patient_admin.schemas.patient_visit import SearchResultPage

T = TypeVar("T")


def total_pages(total_count: int, page_size: int) -> int:
    """ceil(total / tamaño); 0 si no hay resultados."""
    if total_count <= 0 or page_size <= 0:
        return 0
    return math.ceil(total_count / page_size)


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size


def build_result_page(
    data: Sequence[T],
    total_count: int,
    page: int,
    page_size: int,
) -> SearchResultPage[T]:
    pages = total_pages(total_count, page_size)
    return SearchResultPage(
        data=list(data),
        total_count=total_count,
        page=page,
        page_size=page_size,
        total_pages=pages,
        has_next_page=page < pages,
        has_previous_page=page > 1,
    )
