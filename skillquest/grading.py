"""
Code grading collaborators for problem submissions.

Purpose:
- The API server never runs user code itself; it asks a Grader.
- PatternGrader is the built-in stand-in: it inspects the source text with a
  few per-problem heuristics and produces the same output strings a real
  sandbox runner would.

Swap:
- Pass any object with an async `grade(problem, code, language)` method to
  `create_app(grader=...)`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from skillquest.integrations.contracts.interfaces import Problem

logger = logging.getLogger(__name__)

PASSED_OUTPUT = "All Tests Passed!\nExecution Time: 0.05s\nMemory: 8.2 MB"
FAILED_OUTPUT = "Test Failed\nExpected output does not match\nTry checking your logic again."


@dataclass(frozen=True)
class GradeResult:
    passed: bool
    output: str


class Grader(Protocol):
    async def grade(self, problem: Problem, code: str, language: str) -> GradeResult:
        ...


class PatternGrader:
    """Heuristic grader keyed on the problem slug."""

    async def grade(self, problem: Problem, code: str, language: str) -> GradeResult:
        passed = self._check(problem.slug, code)
        logger.debug("Graded %s (%s): passed=%s", problem.slug, language, passed)
        return GradeResult(passed=passed, output=PASSED_OUTPUT if passed else FAILED_OUTPUT)

    @staticmethod
    def _check(slug: str, code: str) -> bool:
        lowered = code.lower()
        if "hello-world" in slug and ("print" in code or "console.log" in code):
            return "hello" in lowered and "world" in lowered
        if "sum" in slug and "return" in code:
            return "+" in code
        return len(code) > 20 and "return" in code
