import pytest

from mclaunch.exceptions import ManifestParseError
from mclaunch.models import Rule, RuleAction
from mclaunch.models.manifest import parse_rules
from mclaunch.services.rules import RuleEvaluator, apply_rules


def rules(*raw):
    return parse_rules(list(raw))


def test_empty_rules_allow():
    assert apply_rules((), os_name="linux", os_arch="x86_64")
    assert apply_rules(None, os_name="linux", os_arch="x86_64")


def test_unconditional_allow():
    assert apply_rules(rules({"action": "allow"}), os_name="linux", os_arch="x86_64")


def test_no_match_disallows():
    only_osx = rules({"action": "allow", "os": {"name": "osx"}})
    assert not apply_rules(only_osx, os_name="linux", os_arch="x86_64")
    assert apply_rules(only_osx, os_name="osx", os_arch="x86_64")


def test_last_matching_rule_wins():
    flip = rules({"action": "allow", "os": {"name": "linux"}},
                 {"action": "disallow", "os": {"name": "linux"}})
    assert not apply_rules(flip, os_name="linux", os_arch="x86_64")

    not_on_osx = rules({"action": "allow"}, {"action": "disallow", "os": {"name": "osx"}})
    assert not apply_rules(not_on_osx, os_name="osx", os_arch="x86_64")
    assert apply_rules(not_on_osx, os_name="windows", os_arch="x86_64")

    reallowed = rules(
        {"action": "disallow", "os": {"name": "osx"}},
        {"action": "allow"},
    )
    assert apply_rules(reallowed, os_name="osx", os_arch="x86_64")


def test_feature_rules():
    demo = rules({"action": "allow", "features": {"is_demo_user": True}})
    assert not apply_rules(demo, features={}, os_name="linux", os_arch="x86_64")
    assert not apply_rules(demo, features={"is_demo_user": False}, os_name="linux", os_arch="x86_64")
    assert apply_rules(demo, features={"is_demo_user": True}, os_name="linux", os_arch="x86_64")


def test_arch_rules():
    no_x86 = rules({"action": "allow"}, {"action": "disallow", "os": {"arch": "x86"}})
    assert not apply_rules(no_x86, os_name="windows", os_arch="x86")
    assert apply_rules(no_x86, os_name="windows", os_arch="x86_64")


def test_all_conditions_must_hold():
    combined = rules(
        {"action": "allow", "os": {"name": "linux"}, "features": {"has_custom_resolution": True}}
    )
    evaluator = RuleEvaluator({"has_custom_resolution": True}, os_name="windows", os_arch="x86_64")
    assert not evaluator.applies(combined)
    evaluator = RuleEvaluator({"has_custom_resolution": True}, os_name="linux", os_arch="x86_64")
    assert evaluator.applies(combined)


def test_rule_parsing():
    rule = Rule.from_dict({"action": "disallow", "os": {"name": "osx", "arch": "x86"}})
    assert rule.action is RuleAction.DISALLOW
    assert rule.os_name == "osx"
    assert rule.os_arch == "x86"
    assert not rule.is_unconditional
    assert Rule.from_dict({"action": "allow"}).is_unconditional

    with pytest.raises(ManifestParseError):
        Rule.from_dict({"action": "maybe"})
    with pytest.raises(ManifestParseError):
        parse_rules({"action": "allow"})
