"""
Runtime evaluation of the rules features attach to an entity.
"""

from oolong.lib.features import FEATURE_PLUGINS, feature_kind
from oolong.lib.types import RuleScenario


def _settings_of(settings) -> list:
    # features applied more than once keep a list of settings
    return settings if isinstance(settings, list) and all(isinstance(s, (list, dict)) for s in settings) else [settings]


def apply_rules(scenario: RuleScenario, meta: dict, context: dict) -> dict:
    """Run every rule registered for `scenario` by the features of `meta`."""
    for name, settings in (meta.get("features") or {}).items():
        plugin = FEATURE_PLUGINS[feature_kind(name)]
        rules = plugin.rules.get(scenario)
        if not rules:
            continue
        for setting in _settings_of(settings):
            for rule in rules:
                if rule.test is None or rule.test(setting, meta, context):
                    rule.apply(setting, meta, context)
    return context
