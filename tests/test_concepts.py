"""Concept extraction -- keywords, prohibitions, subjects, requirements."""

from rulebound.rules.concepts import (
    extract_keywords,
    extract_prohibited_subjects,
    extract_prohibitions,
    extract_requirements,
    extract_rule_concepts,
)


class TestKeywords:
    """Title words longer than 3 chars, plus tags and category."""

    def test_short_title_words_dropped(self):
        keywords = extract_keywords("No Hardcoded Secrets", ("secrets",), "security")
        assert keywords == ["hardcoded", "secrets", "secrets", "security"]

    def test_lowercased(self):
        assert extract_keywords("Use JWT Tokens", ("API",), "Auth") == ["tokens", "api", "auth"]


class TestProhibitions:
    def test_never_phrase(self):
        assert "hardcode api keys" in extract_prohibitions("never hardcode api keys, or tokens")

    def test_must_not_phrase(self):
        assert "log passwords" in extract_prohibitions("you must not log passwords")

    def test_curly_apostrophe(self):
        assert "use eval in" in extract_prohibitions("don’t use eval in templates")

    def test_title_level_no(self, secrets_rule):
        concepts = extract_rule_concepts(secrets_rule)
        assert "hardcoded" in concepts.prohibitions
        assert "hardcode api keys" in concepts.prohibitions


class TestProhibitedSubjects:
    def test_tail_phrase_and_long_words(self):
        subjects = extract_prohibited_subjects(["hardcode api keys passwords"])
        assert subjects == ["api keys passwords", "keys", "passwords"]

    def test_single_word_prohibitions_have_no_subject(self):
        assert extract_prohibited_subjects(["hardcoded"]) == []

    def test_deduplicated_in_first_seen_order(self):
        subjects = extract_prohibited_subjects(["store tokens", "log tokens"])
        assert subjects == ["tokens"]


class TestRequirements:
    def test_must_and_always(self):
        reqs = extract_requirements("endpoints must use jwt tokens for auth. always validate input")
        assert "use jwt tokens for" in reqs
        assert "validate input" in reqs

    def test_must_not_is_not_a_requirement(self):
        assert extract_requirements("you must not log passwords") == []


class TestRuleConcepts:
    def test_empty_rule_does_not_raise(self, make_rule):
        concepts = extract_rule_concepts(make_rule(title="", content="", category=""))
        assert concepts.prohibitions == ()
        assert concepts.requirements == ()
