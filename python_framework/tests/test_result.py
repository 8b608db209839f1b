"""
Tests for the Result monad.

Tests cover:
  - Success/Failure creation and introspection
  - map, flat_map, ensure transformations
  - Side effects (peek, peek_failure)
  - Recovery (get_or_else) and from_computation
  - Pattern matching (match/case)
  - Equality and repr
"""

from __future__ import annotations

import pytest

from railway import ErrorCode, Failure, FailureDescription, Result, Success

# ═══════════════════════════════════════════════════════════════
# 1. Creation & Introspection
# ═══════════════════════════════════════════════════════════════


class TestSuccessCreation:
    def test_success_wraps_value(self):
        result = Result.success(42)
        assert result.is_success()
        assert not result.is_failure()
        assert result.value() == 42

    def test_success_with_complex_object(self):
        data = {"make": "Tesla", "models": ["Model 3"]}
        assert Result.success(data).value() == data

    def test_success_accepts_falsy_values(self):
        assert Result.success(0).value() == 0
        assert Result.success("").value() == ""

    def test_success_rejects_none(self):
        with pytest.raises(TypeError, match="must not be None"):
            Success(None)

    def test_success_is_truthy(self):
        assert Result.success(42)
        assert bool(Result.success(0))


class TestFailureCreation:
    def test_failure_with_code_and_message(self):
        result = Result.failure(ErrorCode.VALIDATION_ERROR, "Make is required")
        assert result.is_failure()
        assert result.error().code == ErrorCode.VALIDATION_ERROR
        assert result.error().message == "Make is required"

    def test_failure_with_exception(self):
        exc = OSError("disk full")
        result = Result.failure(ErrorCode.TECHNICAL_ERROR, "Could not save", exc)
        assert result.error().exception is exc

    def test_failure_from_description(self):
        desc = FailureDescription(ErrorCode.NOT_FOUND, "Certificate not found")
        assert Result.failure_from(desc).error() is desc

    def test_failure_rejects_none(self):
        with pytest.raises(TypeError, match="must not be None"):
            Failure(None)

    def test_failure_is_falsy(self):
        assert not Result.failure(ErrorCode.UNKNOWN_ERROR, "x")


class TestValueExtraction:
    def test_value_on_failure_raises(self):
        with pytest.raises(ValueError, match="Cannot get value from a Failure"):
            Result.failure(ErrorCode.VALIDATION_ERROR, "bad").value()

    def test_error_on_success_raises(self):
        with pytest.raises(ValueError, match="Cannot get error from a Success"):
            Result.success(1).error()


# ═══════════════════════════════════════════════════════════════
# 2. Transformations
# ═══════════════════════════════════════════════════════════════


class TestMap:
    def test_map_transforms_success_value(self):
        assert Result.success(5).map(lambda x: x * 2).value() == 10

    def test_map_short_circuits_on_failure(self):
        called = []
        result = Result.failure(ErrorCode.VALIDATION_ERROR, "bad").map(lambda x: called.append(x))
        assert result.is_failure()
        assert called == []

    def test_map_chain(self):
        result = Result.success("ab12cde").map(str.upper).map(lambda reg: f"{reg}.pdf")
        assert result.value() == "AB12CDE.pdf"


class TestFlatMap:
    def test_flat_map_chains_success(self):
        result = Result.success(3).flat_map(lambda x: Result.success(x + 1))
        assert result.value() == 4

    def test_flat_map_short_circuits_on_first_failure(self):
        calls = []

        def step(x):
            calls.append(x)
            return Result.success(x)

        result = (
            Result.success(1)
            .flat_map(lambda x: Result.failure(ErrorCode.AUTHENTICATION_ERROR, "expired"))
            .flat_map(step)
        )

        assert result.error().code == ErrorCode.AUTHENTICATION_ERROR
        assert calls == []

    def test_flat_map_pipeline(self):
        def require_token(token):
            return Result.success(token) if token else Result.failure(ErrorCode.AUTHENTICATION_ERROR, "Not logged in")

        def render(token):
            return Result.success(b"%PDF")

        assert Result.success("tok").flat_map(require_token).flat_map(render).value() == b"%PDF"
        assert Result.success("").flat_map(require_token).flat_map(render).error().message == "Not logged in"


class TestEnsure:
    def test_ensure_passes_when_predicate_true(self):
        result = Result.success("cert.pdf").ensure(
            lambda name: name.endswith(".pdf"), ErrorCode.VALIDATION_ERROR, "Not a PDF file"
        )
        assert result.value() == "cert.pdf"

    def test_ensure_fails_when_predicate_false(self):
        result = Result.success("notes.txt").ensure(
            lambda name: name.endswith(".pdf"), ErrorCode.VALIDATION_ERROR, "Not a PDF file"
        )
        assert result.error().code == ErrorCode.VALIDATION_ERROR
        assert result.error().message == "Not a PDF file"

    def test_ensure_with_failure_description(self):
        desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "too large")
        assert Result.success(100).ensure(lambda size: size < 10, desc).error() == desc

    def test_ensure_short_circuits_on_existing_failure(self):
        checked = []
        result = Result.failure(ErrorCode.VALIDATION_ERROR, "first").ensure(
            lambda v: checked.append(v) or True, ErrorCode.VALIDATION_ERROR, "second"
        )
        assert result.error().message == "first"
        assert checked == []

    def test_ensure_chain_reports_first_violation(self):
        result = (
            Result.success(("notes.txt", 10**9))
            .ensure(lambda f: f[0].endswith(".pdf"), ErrorCode.VALIDATION_ERROR, "Not a PDF file")
            .ensure(lambda f: f[1] < 100, ErrorCode.VALIDATION_ERROR, "File too large")
        )
        assert result.error().message == "Not a PDF file"


class TestEither:
    def test_either_on_success(self):
        assert Result.success(2).either(lambda v: v * 10, lambda e: -1) == 20

    def test_either_on_failure(self):
        result = Result.failure(ErrorCode.TIMEOUT_ERROR, "slow")
        assert result.either(lambda v: v, lambda e: e.code) == ErrorCode.TIMEOUT_ERROR


class TestPatternMatching:
    def test_match_success(self):
        match Result.success("tok"):
            case Success(value):
                assert value == "tok"
            case _:
                pytest.fail("expected Success")

    def test_match_failure(self):
        match Result.failure(ErrorCode.NOT_FOUND, "missing"):
            case Failure(error):
                assert error.code == ErrorCode.NOT_FOUND
            case _:
                pytest.fail("expected Failure")


# ═══════════════════════════════════════════════════════════════
# 3. Side effects & recovery
# ═══════════════════════════════════════════════════════════════


class TestPeek:
    def test_peek_executes_on_success(self):
        seen = []
        result = Result.success(1).peek(seen.append)
        assert seen == [1]
        assert result.value() == 1

    def test_peek_skips_on_failure(self):
        seen = []
        Result.failure(ErrorCode.UNKNOWN_ERROR, "x").peek(seen.append)
        assert seen == []

    def test_peek_failure_executes_on_failure(self):
        seen = []
        Result.failure(ErrorCode.UNKNOWN_ERROR, "x").peek_failure(lambda e: seen.append(e.message))
        assert seen == ["x"]

    def test_peek_failure_skips_on_success(self):
        seen = []
        Result.success(1).peek_failure(seen.append)
        assert seen == []


class TestRecovery:
    def test_get_or_else_on_failure(self):
        assert Result.failure(ErrorCode.UNKNOWN_ERROR, "x").get_or_else(0) == 0

    def test_get_or_else_on_success(self):
        assert Result.success(5).get_or_else(0) == 5


class TestFromComputation:
    def test_success_when_no_exception(self):
        result = Result.from_computation(lambda: 10 // 2, ErrorCode.TECHNICAL_ERROR, "failed")
        assert result.value() == 5

    def test_failure_when_exception_raised(self):
        result = Result.from_computation(lambda: 1 // 0, ErrorCode.TECHNICAL_ERROR, "Division failed")
        assert result.error().code == ErrorCode.TECHNICAL_ERROR
        assert result.error().message == "Division failed"
        assert isinstance(result.error().exception, ZeroDivisionError)

    def test_none_result_becomes_failure(self):
        result = Result.from_computation(lambda: None, ErrorCode.TECHNICAL_ERROR, "nothing returned")
        assert result.is_failure()
        assert isinstance(result.error().exception, TypeError)


# ═══════════════════════════════════════════════════════════════
# 4. Equality & repr
# ═══════════════════════════════════════════════════════════════


class TestEqualityAndRepr:
    def test_success_equality(self):
        assert Result.success(1) == Result.success(1)
        assert Result.success(1) != Result.success(2)

    def test_failure_equality_ignores_exception_and_timestamp(self):
        a = Result.failure(ErrorCode.VALIDATION_ERROR, "bad", ValueError("a"))
        b = Result.failure(ErrorCode.VALIDATION_ERROR, "bad")
        assert a == b

    def test_success_not_equal_to_failure(self):
        assert Result.success(1) != Result.failure(ErrorCode.UNKNOWN_ERROR, "1")

    def test_repr_success(self):
        assert repr(Result.success(42)) == "Success(42)"

    def test_repr_failure(self):
        assert repr(Result.failure(ErrorCode.NOT_FOUND, "missing")) == "Failure(NOT_FOUND: 'missing')"

    def test_hashable(self):
        assert len({Result.success(1), Result.success(1)}) == 1
