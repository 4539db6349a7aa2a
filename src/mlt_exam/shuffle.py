"""Fisher-Yates shuffling for question order and presented option order.

Question order is fixed once per attempt. Option order is recomputed on
every render from a seed derived from the attempt and question ids, so the
same question always shows the same layout within an attempt. Stored
answers always use canonical option indices.
"""
import random


def fisher_yates(items: list, rng: random.Random) -> list:
    """Return a uniformly shuffled copy of items.

    Walks i from the last index down to 1 and swaps items[i] with
    items[j] for j drawn uniformly from [0, i].
    """
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randint(0, i)
        result[i], result[j] = result[j], result[i]
    return result


def permutation(n: int, rng: random.Random) -> list[int]:
    return fisher_yates(list(range(n)), rng)


def option_order(attempt_id: str, question_id: str, option_count: int) -> list[int]:
    """Canonical indices in display order for one question of one attempt."""
    rng = random.Random(f"{attempt_id}:{question_id}")
    return permutation(option_count, rng)


def displayed_to_canonical(order: list[int], displayed_index: int) -> int:
    if not 0 <= displayed_index < len(order):
        raise IndexError(f"Displayed option {displayed_index} out of range")
    return order[displayed_index]


def canonical_to_displayed(order: list[int], canonical_index: int) -> int:
    return order.index(canonical_index)
