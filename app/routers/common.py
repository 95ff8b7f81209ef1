import math
from typing import Any, Dict

from fastapi import Query


class PageParams:
    def __init__(self, page: int, limit: int):
        self.page = max(page, 1)
        self.limit = max(limit, 1)

    def meta(self, count: int, total: int) -> Dict[str, Any]:
        return {
            "count": count,
            "total": total,
            "page": self.page,
            "pages": math.ceil(total / self.limit),
        }


def page_params(page: int = Query(1), limit: int = Query(10)) -> PageParams:
    return PageParams(page, limit)


def admin_page_params(page: int = Query(1), limit: int = Query(20)) -> PageParams:
    return PageParams(page, limit)
