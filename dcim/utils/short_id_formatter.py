"""
ShortID 格式化工具

格式定义：
- 显示格式：E-XXXXX（例如 E-00001, E-12345, E-123456）
- 数字部分最少5位，不足补0；超过5位则正常显示
- 数据库存储：纯数字（例如 1, 12345, 123456）
"""

import re
from typing import Iterable, List, Union

from dcim.core.config import settings
from dcim.core.exceptions import ShortIdFormatError

ShortIdInput = Union[int, str]


def _display_pattern() -> "re.Pattern[str]":
    prefix = re.escape(settings.SHORT_ID_DISPLAY_PREFIX)
    return re.compile(rf"^(?:{prefix})?0*([0-9]+)$", re.IGNORECASE | re.ASCII)


def _check_range(value: int, raw: ShortIdInput) -> int:
    if value < 1 or value > settings.SHORT_ID_MAX_VALUE:
        raise ShortIdFormatError(raw)
    return value


def format_short_id(numeric_id: int) -> str:
    """
    将数字shortID转换为显示格式

    Example:
        >>> format_short_id(1)
        'E-00001'
        >>> format_short_id(123456)
        'E-123456'
    """
    return f"{settings.SHORT_ID_DISPLAY_PREFIX}{str(numeric_id).zfill(settings.SHORT_ID_DISPLAY_PADDING)}"


def parse_short_id(raw: ShortIdInput) -> int:
    """
    将扫描输入（数字、数字字符串或 E-XXXXX 显示格式）转换为数字shortID

    Raises:
        ShortIdFormatError: 无法解析，或解析结果不在 1..SHORT_ID_MAX_VALUE 范围内
    """
    if isinstance(raw, bool):
        raise ShortIdFormatError(raw)
    if isinstance(raw, int):
        return _check_range(raw, raw)
    if not isinstance(raw, str):
        raise ShortIdFormatError(raw)

    match = _display_pattern().match(raw.strip())
    if not match:
        raise ShortIdFormatError(raw)
    digits = match.group(1)
    if len(digits) > len(str(settings.SHORT_ID_MAX_VALUE)):
        raise ShortIdFormatError(raw)
    return _check_range(int(digits), raw)


def batch_format(numeric_ids: Iterable[int]) -> List[str]:
    return [format_short_id(i) for i in numeric_ids]
