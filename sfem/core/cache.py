from dataclasses import dataclass
from typing import Any, Hashable


@dataclass(frozen=True)
class CachedValue:
    """A cached value together with the token it is valid for."""

    token: int
    value: Any

    def is_valid(self, token: int) -> bool:
        return self.token == token


class Cache:
    """Memoization of values that are valid against a version token.

    A stored value counts as valid only while the token supplied on lookup
    equals the token it was saved with. There is no eviction, no size limit
    and no locking.

    Examples
    --------
    >>> from sfem.core.cache import Cache
    >>> cache = Cache()
    >>> cache.save('k', 42, token=1)
    True
    >>> cache.lookup('k', 1)
    (True, 42)
    >>> cache.lookup('k', 2)
    (False, 42)
    >>> cache.lookup('missing', 1)
    (False, None)
    """

    def __init__(self):
        self._store: dict[Hashable, CachedValue] = {}

    def contains_key(self, key: Hashable) -> bool:
        """Whether anything is stored for :py:attr:`key`, valid or not."""
        return key in self._store

    __contains__ = contains_key

    def lookup(self, key: Hashable, valid_token: int) -> tuple[bool, Any]:
        """Look up the value stored for :py:attr:`key`.

        Returns
        -------
        :any:`tuple`
            ``(hit, value)``. ``hit`` is :python:`True` only if the stored
            token equals :py:attr:`valid_token`. A stale entry is returned
            together with ``hit=False``; a missing key yields
            ``(False, None)``.
        """
        cached = self._store.get(key)
        if cached is None:
            return False, None
        return cached.is_valid(valid_token), cached.value

    def save(self, key: Hashable, value: Any, token: int) -> bool:
        """Store :py:attr:`value` for :py:attr:`key`, replacing any previous
        entry and its token."""
        self._store[key] = CachedValue(token, value)
        return True

    def __len__(self) -> int:
        return len(self._store)
