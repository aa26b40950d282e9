from typing import Callable, List, Optional


def _weight_of(node):
    return node.weight


class MinHeap: # Array-backed binary min-heap ordered by node weight
    """
    Equal weights come out in an implementation-defined order; the sift
    routines only move a node when its key is strictly smaller.
    """

    def __init__(self, key: Callable = _weight_of):
        self.key = key # weight accessor, node.weight by default
        self.array: List = []

    def __len__(self) -> int:
        return len(self.array)

    def peek(self):
        return self.array[0] if self.array else None

    def insert(self, node) -> None: # append then sift up
        self.array.append(node)
        self._sift_up(len(self.array) - 1)

    def extract_min(self) -> Optional[object]: # None when the heap is empty
        if not self.array:
            return None

        last = len(self.array) - 1
        self.array[0], self.array[last] = self.array[last], self.array[0]
        smallest = self.array.pop()
        if self.array:
            self._sift_down(0)
        return smallest

    def build_from_array(self, nodes) -> None: # O(n) bottom-up heapify
        self.array = list(nodes)
        for i in range(len(self.array) // 2 - 1, -1, -1):
            self._sift_down(i)

    def _sift_up(self, idx: int) -> None:
        array, key = self.array, self.key
        node = array[idx]
        while idx > 0:
            parent = (idx - 1) // 2
            if key(array[parent]) <= key(node):
                break
            array[idx] = array[parent] # parent is strictly heavier, move it down
            idx = parent
        array[idx] = node

    def _sift_down(self, idx: int) -> None:
        array, key = self.array, self.key
        size = len(array)
        while True:
            smallest = idx
            left = 2 * idx + 1
            right = 2 * idx + 2

            if left < size and key(array[left]) < key(array[smallest]):
                smallest = left
            if right < size and key(array[right]) < key(array[smallest]):
                smallest = right

            if smallest == idx:
                return
            array[idx], array[smallest] = array[smallest], array[idx]
            idx = smallest
