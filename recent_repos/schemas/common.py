"""共通Pydanticスキーマ。

ページネーション等、複数エンドポイントで再利用するスキーマを定義する。
"""

from __future__ import annotations

import math

from pydantic import BaseModel, Field, computed_field


class PaginationMeta(BaseModel):
    """ページネーションメタ情報。"""

    page: int = Field(..., ge=1, description="現在のページ番号")
    limit: int = Field(..., ge=1, le=100, description="1ページあたりの件数")
    total: int = Field(..., ge=0, description="総件数")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def total_pages(self) -> int:
        """総ページ数を算出する。"""
        return math.ceil(self.total / self.limit)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_next(self) -> bool:
        """次ページが存在するか。"""
        return self.page * self.limit < self.total

    @computed_field  # type: ignore[prop-decorator]
    @property
    def has_prev(self) -> bool:
        """前ページが存在するか。"""
        return self.page > 1

    @property
    def offset(self) -> int:
        """先頭要素のオフセット。"""
        return (self.page - 1) * self.limit
