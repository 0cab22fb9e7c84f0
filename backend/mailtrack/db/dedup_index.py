"""In-memory dedup index over (tracking_id, ip_address) pairs"""
from typing import Optional, Set, Tuple

DedupKey = Tuple[str, Optional[str]]


class DedupIndex:
    """Answers "has this pair already produced an open?" in O(1).

    Not synchronized: callers hold the open-view lock around
    should_accept() + add() so the check and the insert are one step.
    """

    def __init__(self):
        self._keys: Set[DedupKey] = set()

    def should_accept(self, tracking_id: str, ip_address: Optional[str]) -> bool:
        return (tracking_id, ip_address) not in self._keys

    def add(self, tracking_id: str, ip_address: Optional[str]) -> None:
        self._keys.add((tracking_id, ip_address))

    def clear(self) -> None:
        self._keys.clear()

    def __contains__(self, key: DedupKey) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)
