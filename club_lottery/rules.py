"""Fixed game rules: four unique numbers from 1..32 per line."""

from __future__ import annotations

from collections.abc import Iterable

from club_lottery.errors import ValidationError

NUMBERS_PER_LINE = 4
MIN_NUMBER = 1
MAX_NUMBER = 32
JACKPOT_MATCHES = NUMBERS_PER_LINE


def validate_line(numbers: Iterable[int], field: str = "numbers") -> list[int]:
    """Validate a line and return it sorted ascending.

    Raises:
        ValidationError: when the line is not 4 unique integers within 1..32.
    """

    try:
        line = [int(n) for n in numbers]
    except (TypeError, ValueError) as exc:
        raise ValidationError(
            message=f"Invalid {field}",
            details={field: ["All numbers must be integers"]},
        ) from exc

    if len(line) != NUMBERS_PER_LINE:
        raise ValidationError(
            message=f"Invalid {field}",
            details={field: [f"Exactly {NUMBERS_PER_LINE} numbers are required"]},
        )
    if len(set(line)) != len(line):
        raise ValidationError(
            message=f"Invalid {field}",
            details={field: ["Numbers must be unique"]},
        )
    if any(n < MIN_NUMBER or n > MAX_NUMBER for n in line):
        raise ValidationError(
            message=f"Invalid {field}",
            details={field: [f"All numbers must be within {MIN_NUMBER}..{MAX_NUMBER}"]},
        )
    return sorted(line)


def count_matches(numbers: Iterable[int], winning_numbers: Iterable[int]) -> int:
    return len(set(int(n) for n in numbers).intersection(int(n) for n in winning_numbers))
