"""
Usage trackers behind the LRU and LFU eviction policies
"""
import heapq
from collections import OrderedDict
from typing import Dict, List, Optional, Tuple


class LRUTracker:
    """
    Keeps codes in access order; the first key is the least recently used.
    """

    def __init__(self):
        self.order: "OrderedDict[int, None]" = OrderedDict()

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, code: int) -> bool:
        return code in self.order

    def use(self, code: int) -> None:
        """Mark code as the most recently used, adding it if needed."""
        if code in self.order:
            self.order.move_to_end(code)
        else:
            self.order[code] = None

    def find_lru(self) -> Optional[int]:
        return next(iter(self.order), None)

    def remove(self, code: int) -> None:
        self.order.pop(code, None)

    def clear(self) -> None:
        self.order.clear()


class LFUTracker:
    """
    Counts accesses per code. The victim is the code with the smallest
    count, ties going to the lowest code.

    A heap of (count, code) pairs is kept with lazy deletion: entries whose
    count no longer matches are skipped when they reach the top.
    """

    def __init__(self):
        self.freq: Dict[int, int] = {}
        self.heap: List[Tuple[int, int]] = []

    def __len__(self) -> int:
        return len(self.freq)

    def __contains__(self, code: int) -> bool:
        return code in self.freq

    def use(self, code: int) -> None:
        """Count one more access to code, starting at 1 for a new code."""
        count = self.freq.get(code, 0) + 1
        self.freq[code] = count
        heapq.heappush(self.heap, (count, code))
        if len(self.heap) > 4 * len(self.freq) + 64:
            self._compact()

    def frequency(self, code: int) -> int:
        return self.freq.get(code, 0)

    def find_lfu(self) -> Optional[int]:
        heap = self.heap
        while heap:
            count, code = heap[0]
            if self.freq.get(code) == count:
                return code
            heapq.heappop(heap)
        return None

    def remove(self, code: int) -> None:
        self.freq.pop(code, None)

    def clear(self) -> None:
        self.freq.clear()
        self.heap.clear()

    def _compact(self) -> None:
        self.heap = [(count, code) for code, count in self.freq.items()]
        heapq.heapify(self.heap)
