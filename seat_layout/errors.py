from __future__ import annotations


class SeatLayoutError(Exception):
    pass


class LayoutConfigError(SeatLayoutError):
    pass


class CapacityLimitError(SeatLayoutError):
    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"vessel capacity of {capacity} seats reached")


class SeatPositionError(SeatLayoutError):
    pass
