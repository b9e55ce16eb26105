"""
规则求值

把条件规则列表与当前配置归约为允许 / 禁止。
库、本地库 classifier 和参数 token 都使用同一个求值函数。
"""

from typing import Dict, Optional, Sequence

from mclaunch.models.manifest import Rule, RuleAction
from mclaunch.utils import get_arch_name, get_os_name


def rule_matches(
    rule: Rule,
    features: Dict[str, bool],
    os_name: str,
    os_arch: str,
) -> bool:
    """规则是否作用于当前环境；无条件规则总是匹配"""
    if rule.os_name is not None and rule.os_name != os_name:
        return False
    if rule.os_arch is not None and rule.os_arch != os_arch:
        return False
    if rule.features:
        for name, expected in rule.features.items():
            if bool(features.get(name, False)) != bool(expected):
                return False
    return True


def apply_rules(
    rules: Optional[Sequence[Rule]],
    features: Optional[Dict[str, bool]] = None,
    os_name: Optional[str] = None,
    os_arch: Optional[str] = None,
) -> bool:
    """
    求值规则列表

    空列表表示始终允许；否则从 False 开始，每条匹配的规则都会覆盖结果，
    最后一条匹配的规则生效。
    """
    if not rules:
        return True

    features = features or {}
    os_name = os_name or get_os_name()
    os_arch = os_arch or get_arch_name()

    result = False
    for rule in rules:
        if rule_matches(rule, features, os_name, os_arch):
            result = rule.action is RuleAction.ALLOW
    return result


class RuleEvaluator:
    """绑定了功能开关与平台的规则求值器"""

    def __init__(
        self,
        features: Optional[Dict[str, bool]] = None,
        os_name: Optional[str] = None,
        os_arch: Optional[str] = None,
    ):
        self.features = dict(features or {})
        self.os_name = os_name or get_os_name()
        self.os_arch = os_arch or get_arch_name()

    def applies(self, rules: Optional[Sequence[Rule]]) -> bool:
        return apply_rules(rules, self.features, self.os_name, self.os_arch)
