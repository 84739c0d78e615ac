"""Pagination feature engine (client or server mode).

Pages are 0-indexed. The current page is always kept inside
``[0, total_pages - 1]``, or at 0 when there are no pages at all.
"""

from __future__ import annotations

import math

from collections.abc import Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from ..log import debug
from ..models import PaginationConfig
from .base import TableFeature


class PaginationState(BaseModel):
    """Current page position and size."""

    model_config = ConfigDict(frozen=True)

    current_page: int = 0
    page_size: int = 20
    total_rows: int = 0
    total_pages: int = 0


class PaginationEngine(TableFeature[PaginationConfig, PaginationState]):
    """Clamped page navigation over an externally supplied row count.

    Parameters
    ----------
    config : PaginationConfig or Mapping, optional
        Feature options; missing values come from settings.
    total_rows : int
        Initial number of rows. Update it with ``set_total_rows``.
    """

    name: ClassVar[str] = "pagination"
    action_names: ClassVar[tuple[str, ...]] = (
        "go_to_page",
        "next_page",
        "previous_page",
        "first_page",
        "last_page",
        "set_page_size",
    )

    def __init__(
        self,
        config: PaginationConfig | Mapping[str, Any] | None = None,
        total_rows: int = 0,
    ) -> None:
        super().__init__(PaginationConfig.resolve(config))
        if total_rows < 0:
            raise ValueError(f"total_rows must be non-negative, got {total_rows}")
        self._page_size = self._config.page_size
        self._total_rows = total_rows
        self._current_page = self._clamp(self._config.initial_page)

    @property
    def total_pages(self) -> int:
        return math.ceil(self._total_rows / self._page_size)

    @property
    def state(self) -> PaginationState:
        return PaginationState(
            current_page=self._current_page,
            page_size=self._page_size,
            total_rows=self._total_rows,
            total_pages=self.total_pages,
        )

    def _clamp(self, page: int) -> int:
        return max(0, min(page, self.total_pages - 1))

    def go_to_page(self, page: int) -> None:
        """Move to ``page``, clamped into the valid range."""
        target = self._clamp(page)
        if target != page:
            debug(f"Page {page} out of range, clamped to {target}")
        self._current_page = target

    def next_page(self) -> None:
        self.go_to_page(self._current_page + 1)

    def previous_page(self) -> None:
        self.go_to_page(self._current_page - 1)

    def first_page(self) -> None:
        self._current_page = 0

    def last_page(self) -> None:
        self._current_page = self._clamp(self.total_pages - 1)

    def set_page_size(self, size: int) -> None:
        """Change the page size and return to the first page.

        Raises
        ------
        ValueError
            If ``size`` is not positive.
        """
        if size <= 0:
            raise ValueError(f"Page size must be positive, got {size}")
        self._page_size = size
        self._current_page = 0

    def set_total_rows(self, total_rows: int) -> None:
        """Update the row count, pulling the current page back into range.

        Raises
        ------
        ValueError
            If ``total_rows`` is negative.
        """
        if total_rows < 0:
            raise ValueError(f"total_rows must be non-negative, got {total_rows}")
        self._total_rows = total_rows
        if self._current_page >= self.total_pages:
            self._current_page = max(0, self.total_pages - 1)

    def grid_props(self) -> dict[str, Any]:
        props: dict[str, Any] = {
            "pagination": True,
            "paginationPageSize": self._page_size,
            "paginationPageSizeSelector": list(self._config.page_size_options),
        }
        if self._config.mode == "server":
            props["rowModelType"] = "infinite"
            props["cacheBlockSize"] = self._page_size
            props["maxBlocksInCache"] = 2
        return props

    def toolbar_props(self) -> dict[str, Any]:
        return {
            "showPagination": True,
            "currentPage": self._current_page,
            "pageSize": self._page_size,
            "totalRows": self._total_rows,
            "totalPages": self.total_pages,
            "pageSizeOptions": list(self._config.page_size_options),
            "onPageChange": self.go_to_page,
            "onPageSizeChange": self.set_page_size,
            "onNextPage": self.next_page,
            "onPreviousPage": self.previous_page,
            "onFirstPage": self.first_page,
            "onLastPage": self.last_page,
        }
