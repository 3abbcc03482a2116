"""Context relevance -- stack/scope/team scoring and the task filter."""

from rulebound.rules.context import match_rules_by_context, score_rule
from rulebound.rules.models import ProjectContext


class TestScoring:
    def test_weights(self, make_rule):
        rule = make_rule(stack=["java", "spring"], scope=["backend"], team=["platform"])
        project = ProjectContext(stack=("Java",), scope=("backend",), team="platform")
        assert score_rule(rule, project) == 3 + 2 + 1


class TestMatchRulesByContext:
    def test_stack_mismatch_excluded_global_included(self, make_rule):
        java = make_rule(id="java", stack=["java"])
        anywhere = make_rule(id="global")
        project = ProjectContext(stack=("python",))

        matched = match_rules_by_context([java, anywhere], project)
        assert [r.id for r in matched] == ["global"]

    def test_sorted_by_score_stable(self, make_rule):
        scoped = make_rule(id="scoped", scope=["backend"])
        stacked = make_rule(id="stacked", stack=["python"])
        first_global = make_rule(id="g1")
        second_global = make_rule(id="g2")
        project = ProjectContext(stack=("python",), scope=("backend",))

        matched = match_rules_by_context([first_global, scoped, second_global, stacked], project)
        assert [r.id for r in matched] == ["stacked", "scoped", "g1", "g2"]

    def test_without_project_metadata_rules_kept_after_globals(self, make_rule):
        java = make_rule(id="java", stack=["java"])
        anywhere = make_rule(id="global")
        assert [r.id for r in match_rules_by_context([java, anywhere], None)] == ["global", "java"]

    def test_task_filter_applies_only_without_stack_or_scope(self, make_rule):
        cookies = make_rule(id="cookies", title="Secure Cookies", tags=["session"])
        css = make_rule(id="css", title="Consistent Spacing", category="style")
        python = make_rule(id="py", title="Type Hints", stack=["python"])
        project = ProjectContext(stack=("python",))

        matched = match_rules_by_context([cookies, css, python], project, "store session cookies")
        assert [r.id for r in matched] == ["py", "cookies"]

    def test_does_not_mutate_input(self, make_rule):
        rules = [make_rule(id="b", stack=["x"]), make_rule(id="a")]
        match_rules_by_context(rules, ProjectContext(stack=("x",)))
        assert [r.id for r in rules] == ["b", "a"]
