"""相关性评分模块"""

from typing import Iterable, List, TypeVar


T = TypeVar('T')

EXACT_NAME_SCORE = 200
PARTIAL_NAME_SCORE = 100
CONTENT_MATCH_WEIGHT = 2
CONTENT_MATCH_CAP = 50
NAME_AND_CONTENT_BONUS = 50


def calculate_score(file_name: str, query: str, match_count: int, name_matched: bool) -> int:
    """计算单个文件结果的相关性评分

    - 文件名（忽略大小写）等于查询或等于 "查询.md"：+200
    - 否则文件名包含查询：+100
    - 内容匹配数：+min(匹配数 * 2, 50)
    - 文件名和内容同时匹配：再 +50

    Args:
        file_name: 文件名
        query: 原始查询字符串
        match_count: 内容匹配数量
        name_matched: 文件名是否已匹配

    Returns:
        int: 评分
    """
    score = 0
    lower_name = file_name.lower()
    lower_query = query.lower()

    if lower_name == lower_query or lower_name == lower_query + ".md":
        score += EXACT_NAME_SCORE
    elif lower_query in lower_name:
        score += PARTIAL_NAME_SCORE

    score += min(match_count * CONTENT_MATCH_WEIGHT, CONTENT_MATCH_CAP)

    if name_matched and match_count > 0:
        score += NAME_AND_CONTENT_BONUS

    return score


def rank_by_score(results: Iterable[T]) -> List[T]:
    """按评分降序排列，评分相同时保持原有顺序

    sorted 是稳定排序，遍历顺序因此得以保留。
    """
    return sorted(results, key=lambda r: r.score, reverse=True)
