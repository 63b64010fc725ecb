from typing import Callable, Sequence, TypeVar

from loguru import logger

C = TypeVar("C")
R = TypeVar("R")


class AllCandidatesFailed(Exception):
    """Every candidate failed with an error the caller chose to skip"""

    def __init__(self, errors: list):
        self.errors = errors
        last = errors[-1] if errors else None
        super().__init__(f"All {len(errors)} candidates failed; last error: {last}")


def first_success(
    candidates: Sequence[C],
    attempt: Callable[[C], R],
    should_skip: Callable[[Exception], bool],
) -> R:
    """
    Run `attempt` on each candidate in order and return the first result.

    A failure for which `should_skip(exc)` is true moves on to the next
    candidate; any other failure is re-raised immediately.
    """
    errors = []
    for candidate in candidates:
        try:
            return attempt(candidate)
        except Exception as exc:
            if not should_skip(exc):
                raise
            logger.warning(f"Candidate {candidate!r} skipped: {exc}")
            errors.append(exc)
    raise AllCandidatesFailed(errors)
