"""付与済みスコープが必要スコープを満たすかを検証するガード。"""

from dataclasses import dataclass
from typing import FrozenSet, Iterable, List, Optional


@dataclass(frozen=True)
class PermissionCheckResult:
    """権限チェックの結果。"""

    allowed: bool
    matched: FrozenSet[str] = frozenset()
    reason: Optional[str] = None


def _normalize(scopes: Optional[Iterable[Optional[str]]]) -> Optional[FrozenSet[str]]:
    if scopes is None:
        return None
    # 文字列は1つのスコープとして扱う
    if isinstance(scopes, str):
        scopes = (scopes,)
    return frozenset(scope for scope in scopes if scope)


def satisfies(
    granted: Optional[Iterable[Optional[str]]],
    required: Optional[Iterable[Optional[str]]],
) -> bool:
    """付与済みスコープが必要スコープのいずれかを含むかを判定する。

    付与済みスコープが不明な場合は検証できないため False、
    必要スコープが未設定または空の場合は制限なしとして True。
    """
    granted_set = _normalize(granted)
    if granted_set is None:
        return False
    required_set = _normalize(required)
    if not required_set:
        return True
    return not granted_set.isdisjoint(required_set)


class ScopePermissionGuard:
    """構築時に固定した必要スコープでユーザーを検証する。"""

    def __init__(self, required_scopes: Optional[Iterable[Optional[str]]] = None) -> None:
        self._required_scopes = _normalize(required_scopes)

    @property
    def required_scopes(self) -> Optional[FrozenSet[str]]:
        """必要スコープ（未設定なら None）。"""
        return self._required_scopes

    def scope_list(self) -> Optional[List[str]]:
        """プロバイダへ要求するスコープの一覧。"""
        if self._required_scopes is None:
            return None
        return sorted(self._required_scopes)

    def check(self, granted: Optional[Iterable[Optional[str]]]) -> PermissionCheckResult:
        """付与済みスコープを検証し、結果を返す。"""
        granted_set = _normalize(granted)
        if granted_set is None:
            return PermissionCheckResult(
                allowed=False,
                reason="granted scopes are unknown",
            )

        if not self._required_scopes:
            return PermissionCheckResult(allowed=True, matched=granted_set)

        matched = granted_set & self._required_scopes
        if not matched:
            return PermissionCheckResult(
                allowed=False,
                reason="none of the required scopes were granted",
            )
        return PermissionCheckResult(allowed=True, matched=frozenset(matched))
