"""Unit tests for the section grammars and edge sub-matchers."""

from __future__ import annotations

import pytest

from stepflow.dsl.serialization.grammar import (
    ConfigDirective,
    LineSyntaxError,
    RequiresDirective,
    RetryDirective,
    RootDirective,
    apply_defaults_assignment,
    match_base_edge,
    match_failure_clause,
    match_guard,
    match_kind_marker,
    parse_assignment,
    parse_config_line,
    parse_edge,
    parse_step_directive,
    parse_workflow_line,
)
from stepflow.dsl.types import EdgeKind, FailureStrategy

# =============================================================================
# Key/Value Sections
# =============================================================================


class TestAssignments:
    def test_dotted_key(self) -> None:
        assert parse_assignment("  http.timeout = 30", "settings") == (
            "http.timeout",
            30,
        )

    def test_value_keeps_inner_spaces(self) -> None:
        assert parse_assignment("note = a # b", "settings") == ("note", "a # b")

    def test_missing_value(self) -> None:
        with pytest.raises(LineSyntaxError, match="Expected key = value in settings"):
            parse_assignment("timeout =", "settings")

    def test_section_name_in_message(self) -> None:
        with pytest.raises(LineSyntaxError, match="in defaults"):
            parse_assignment("just words", "defaults")

    def test_config_nested_block(self) -> None:
        with pytest.raises(LineSyntaxError, match="Nested blocks not supported"):
            parse_config_line("    http:")

    def test_config_bad_line(self) -> None:
        with pytest.raises(LineSyntaxError, match="Expected key = value in config"):
            parse_config_line("    oops")


class TestDefaultsAssignment:
    def test_category(self) -> None:
        defaults: dict = {}
        apply_defaults_assignment(defaults, "step.http.timeout", 30)
        assert defaults == {"step": {"http": {"timeout": 30}}}

    def test_bare_category_rejected(self) -> None:
        with pytest.raises(LineSyntaxError, match="Expected a key below 'guard'"):
            apply_defaults_assignment({}, "guard", 1)

    def test_named_bucket(self) -> None:
        defaults: dict = {}
        apply_defaults_assignment(defaults, "PaymentStep.provider", "stripe")
        assert defaults == {"PaymentStep": {"provider": "stripe"}}

    def test_named_bucket_scalar(self) -> None:
        defaults: dict = {}
        apply_defaults_assignment(defaults, "region", "eu")
        assert defaults == {"region": "eu"}

    def test_scalar_bucket_replaced_by_map(self) -> None:
        defaults: dict = {"region": "eu"}
        apply_defaults_assignment(defaults, "region.primary", "eu-west-1")
        assert defaults == {"region": {"primary": "eu-west-1"}}


# =============================================================================
# Step Body
# =============================================================================


class TestStepDirectives:
    def test_requires(self) -> None:
        directive = parse_step_directive("  requires: a, b ,c")
        assert directive == RequiresDirective(["a", "b", "c"])

    def test_requires_empty_list_is_unset(self) -> None:
        assert parse_step_directive("requires: , ") == RequiresDirective(None)

    def test_requires_invalid_guard_name(self) -> None:
        with pytest.raises(LineSyntaxError, match="Invalid guard name 'a-b'"):
            parse_step_directive("requires: a-b")

    def test_retry_full(self) -> None:
        directive = parse_step_directive("  retry: 3x / 2s ? transient")
        assert isinstance(directive, RetryDirective)
        assert directive.policy.max_attempts == 3
        assert directive.policy.delay == 2000
        assert directive.policy.guard == "transient"

    def test_retry_minimal(self) -> None:
        directive = parse_step_directive("retry: 2x")
        assert isinstance(directive, RetryDirective)
        assert directive.policy.delay == 0
        assert directive.policy.guard is None

    def test_retry_zero_attempts(self) -> None:
        with pytest.raises(LineSyntaxError, match="Retry attempts must be at least 1"):
            parse_step_directive("retry: 0x")

    def test_config(self) -> None:
        assert parse_step_directive("  config:") == ConfigDirective()

    def test_unknown(self) -> None:
        with pytest.raises(LineSyntaxError, match="Unknown step directive"):
            parse_step_directive("timeout = 5")


# =============================================================================
# Edge Sub-Matchers
# =============================================================================


class TestEdgeSubMatchers:
    def test_base_edge(self) -> None:
        assert match_base_edge("A -> B ? g") == (("A", "B"), " ? g")

    def test_base_edge_without_spaces(self) -> None:
        assert match_base_edge("A->B") == (("A", "B"), "")

    def test_base_edge_no_match(self) -> None:
        assert match_base_edge("A => B") is None

    def test_guard_present_and_absent(self) -> None:
        assert match_guard(" ? ok fail skip") == ("ok", " fail skip")
        assert match_guard(" fail skip") == (None, " fail skip")

    def test_failure_alternative(self) -> None:
        policy, rest = match_failure_clause(" fail -> fallback")
        assert policy is not None
        assert policy.strategy == FailureStrategy.ALTERNATIVE
        assert policy.alternative_target == "fallback"
        assert rest == ""

    def test_failure_retry_with_delay(self) -> None:
        policy, rest = match_failure_clause(" on failure retry 2x / 500ms [terminal]")
        assert policy is not None
        assert policy.strategy == FailureStrategy.RETRY
        assert policy.retry_attempts == 2
        assert policy.retry_delay == 500
        assert rest == " [terminal]"

    def test_failure_retry_default_delay(self) -> None:
        policy, _ = match_failure_clause(" fail retry 4x")
        assert policy is not None
        assert policy.retry_delay == 0

    @pytest.mark.parametrize(
        ("clause", "strategy"),
        [
            (" fail skip", FailureStrategy.SKIP),
            (" fail stop", FailureStrategy.STOP),
            (" FAIL CONTINUE", FailureStrategy.CONTINUE),
        ],
    )
    def test_failure_keywords(self, clause: str, strategy: FailureStrategy) -> None:
        policy, rest = match_failure_clause(clause)
        assert policy is not None
        assert policy.strategy == strategy
        assert rest == ""

    def test_failure_keyword_without_action_consumes_nothing(self) -> None:
        assert match_failure_clause(" fail bogus") == (None, " fail bogus")

    def test_failure_zero_retries(self) -> None:
        with pytest.raises(LineSyntaxError, match="at least 1"):
            match_failure_clause(" fail retry 0x")

    def test_kind_marker(self) -> None:
        assert match_kind_marker(" [terminal]") == (EdgeKind.TERMINAL, "")
        assert match_kind_marker(" extra") == (None, " extra")


class TestParseEdge:
    def test_full_edge(self) -> None:
        edge = parse_edge("A -> B ? G fail retry 2x / 500ms")
        assert (edge.from_, edge.to, edge.guard) == ("A", "B", "G")
        assert edge.on_failure is not None
        assert edge.on_failure.retry_attempts == 2
        assert edge.on_failure.retry_delay == 500
        assert edge.kind is None

    def test_terminal_edge(self) -> None:
        edge = parse_edge("pack -> SUCCESS [terminal]")
        assert edge.kind == EdgeKind.TERMINAL

    @pytest.mark.parametrize(
        "line",
        [
            "A -> B garbage",
            "A -> B fail",
            "A -> B ? ",
            "A -> B fail retry 2x / soon",
            "A -> B [terminal] fail skip",
            "-> B",
        ],
    )
    def test_invalid_edges(self, line: str) -> None:
        with pytest.raises(LineSyntaxError, match="Invalid edge syntax"):
            parse_edge(line)

    def test_workflow_root_line(self) -> None:
        assert parse_workflow_line("  root: start") == RootDirective("start")
        assert parse_workflow_line("  ROOT : start") == RootDirective("start")
