"""日付計算ユーティリティ。

月単位の期間計算と、SQLiteに保存するためのUTC正規化を提供する。
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """現在時刻をUTC（tz-aware）で返す。"""
    return datetime.now(timezone.utc)


def utc_today() -> date:
    """UTC基準の今日の日付を返す。"""
    return utc_now().date()


def months_ago(today: date, months: int) -> date:
    """``today`` から ``months`` ヶ月前の日付を返す。

    移動先の月に同じ日が存在しない場合は月末日に丸める
    （例: 8/31 の6ヶ月前は 2/28 または 2/29）。

    Args:
        today: 基準日。
        months: 遡る月数（0以上）。

    Returns:
        計算後の日付。
    """
    total = today.year * 12 + (today.month - 1) - months
    year, month_index = divmod(total, 12)
    month = month_index + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(today.day, last_day))


def to_utc_date(value: datetime) -> date:
    """タイムスタンプをUTCに変換し、日単位に切り詰める。

    tz-naive な値はUTCとして扱う。
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def to_naive_utc(value: datetime) -> datetime:
    """SQLite保存用に、UTCへ変換してタイムゾーン情報を外した値を返す。

    秒未満は切り捨てる。
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.replace(microsecond=0)
