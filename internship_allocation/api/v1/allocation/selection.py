"""Order in which eligible teachers are picked for a demand."""

from typing import Callable, Tuple
from uuid import UUID

SelectionKey = Callable[[UUID, float], Tuple]


def fewest_credit_hours_first(teacher_id: UUID, credit_hours_allocated: float) -> Tuple[float, UUID]:
    """Spread workload: lowest allocated credit hours first, ties by teacher id ascending."""
    return (credit_hours_allocated, teacher_id)
