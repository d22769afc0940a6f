import pytest

from skillquest.grading import FAILED_OUTPUT, PASSED_OUTPUT, PatternGrader


@pytest.mark.asyncio
async def test_hello_world_needs_both_words(storage):
    grader = PatternGrader()
    problem = storage.get_problem_by_slug("hello-world")

    passed = await grader.grade(problem, "print('Hello, World!')", "python")
    failed = await grader.grade(problem, "print('Hello')", "python")

    assert passed.passed and passed.output == PASSED_OUTPUT
    assert not failed.passed and failed.output == FAILED_OUTPUT


@pytest.mark.asyncio
async def test_console_log_counts_as_output(storage):
    problem = storage.get_problem_by_slug("hello-world")
    result = await PatternGrader().grade(problem, "console.log('hello world')", "javascript")
    assert result.passed


@pytest.mark.asyncio
async def test_sum_problems_need_addition(storage):
    problem = storage.get_problem_by_slug("sum-two-numbers")
    grader = PatternGrader()

    assert (await grader.grade(problem, "def solve(a, b):\n    return a + b", "python")).passed
    assert not (await grader.grade(problem, "def solve(a, b):\n    return a * b", "python")).passed


@pytest.mark.asyncio
async def test_other_problems_need_a_return(storage):
    problem = storage.get_problem_by_slug("reverse-string")
    grader = PatternGrader()

    assert (await grader.grade(problem, "function solve(s) { return s.split('').reverse().join(''); }", "javascript")).passed
    assert not (await grader.grade(problem, "return s", "javascript")).passed
    assert not (await grader.grade(problem, "function solve(s) { console.log(s); }", "javascript")).passed
