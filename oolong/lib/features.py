"""
Entity features.

A feature is a named behavior attached to an entity with `with <feature>(...)`.
Applying a feature may add fields right away or through the entity's two
lifecycle hooks (before / after the declared fields are added), records a
feature setting on the entity, and may contribute runtime rules that the
generated models evaluate.

The set of features is closed: every feature is a FeatureKind member with a
typed options class and an apply function registered in FEATURE_PLUGINS.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, NamedTuple, Optional

from oolong.errors import ModelValidationError, ReferenceNotFoundError, UsageError
from oolong.lib.types import RuleScenario
from oolong.utils import camel_case, pascal_case


class FeatureKind(str, Enum):
    AUTO_ID = "autoId"
    AT_LEAST_ONE_NOT_NULL = "atLeastOneNotNull"
    CREATE_TIMESTAMP = "createTimestamp"
    UPDATE_TIMESTAMP = "updateTimestamp"
    LOGICAL_DELETION = "logicalDeletion"
    STATE_TRACKING = "stateTracking"
    I18N = "i18n"


class LifecycleHook(str, Enum):
    BEFORE_FIELDS = "beforeFields"
    AFTER_FIELDS = "afterFields"


def _invalid(kind: FeatureKind, detail: str = "") -> UsageError:
    return UsageError(f'Invalid options for feature "{kind.value}".' + (f" {detail}" if detail else ""))


# ------------------------------------------------------------------------------
# Options

@dataclass
class AutoIdOptions:
    name: str = "id"
    type: str = "int"
    extra: dict = field(default_factory=dict)

    @classmethod
    def parse(cls, raw):
        if raw is None:
            return cls()
        if isinstance(raw, str):
            return cls(name=raw)
        if isinstance(raw, dict):
            extra = dict(raw)
            return cls(name=extra.pop("name", "id"), type=extra.pop("type", "int"), extra=extra)
        raise _invalid(FeatureKind.AUTO_ID)


@dataclass
class FieldListOptions:
    fields: list

    @classmethod
    def parse(cls, raw):
        if isinstance(raw, str):
            return cls(fields=[raw])
        if isinstance(raw, list) and raw and all(isinstance(f, str) for f in raw):
            return cls(fields=list(raw))
        raise _invalid(FeatureKind.AT_LEAST_ONE_NOT_NULL, "A list of field names is expected.")


@dataclass
class TimestampOptions:
    name: str

    @classmethod
    def parser(cls, default_name: str, kind: FeatureKind):
        def parse(raw):
            if raw is None:
                return cls(name=default_name)
            if isinstance(raw, str):
                return cls(name=raw)
            if isinstance(raw, dict) and set(raw) <= {"name"}:
                return cls(name=raw.get("name", default_name))
            raise _invalid(kind)
        return parse


@dataclass
class LogicalDeletionOptions:
    field: str = "isDeleted"
    value: Any = True
    new_field: bool = True

    @classmethod
    def parse(cls, raw):
        if raw is None:
            return cls()
        if isinstance(raw, str):
            return cls(field=raw)
        if isinstance(raw, dict):
            if set(raw) == {"field", "value"}:
                return cls(field=raw["field"], value=raw["value"], new_field=False)
            if len(raw) == 1:
                (name, value), = raw.items()
                return cls(field=name, value=value, new_field=False)
        raise _invalid(FeatureKind.LOGICAL_DELETION)


@dataclass
class StateTrackingOptions:
    field: str
    reversible: bool = False

    @classmethod
    def parse(cls, raw):
        if isinstance(raw, str):
            return cls(field=raw)
        if isinstance(raw, dict) and raw.get("field"):
            return cls(field=raw["field"], reversible=bool(raw.get("reversible", False)))
        raise _invalid(FeatureKind.STATE_TRACKING, "Missing field name in options.")


@dataclass
class I18nOptions:
    field: str
    locales: dict

    @classmethod
    def parse(cls, raw):
        if not isinstance(raw, dict) or not raw.get("field"):
            raise _invalid(FeatureKind.I18N, "Missing field name in options.")
        if not isinstance(raw.get("locales"), dict):
            raise _invalid(FeatureKind.I18N, "Missing locale mapping in options.")
        return cls(field=raw["field"], locales=dict(raw["locales"]))


# ------------------------------------------------------------------------------
# Plugins

def _require_field(entity, name: str, kind: FeatureKind):
    if not entity.has_field(name):
        raise ReferenceNotFoundError(
            f'Field "{name}" used by feature "{kind.value}" is not found in entity "{entity.name}".'
        )
    return entity.fields[camel_case(name)]


def apply_auto_id(entity, options: AutoIdOptions):
    info = {
        "type": options.type,
        "auto": True,
        "readOnly": True,
        "fixedValue": True,
        **options.extra,
    }
    entity.add_feature(FeatureKind.AUTO_ID.value, {"field": options.name})

    def add_key_field():
        entity.add_field(options.name, info)
        entity.key = camel_case(options.name)

    entity.on(LifecycleHook.BEFORE_FIELDS, add_key_field)


def apply_at_least_one_not_null(entity, options: FieldListOptions):
    entity.add_feature(FeatureKind.AT_LEAST_ONE_NOT_NULL.value, list(options.fields), allow_multiple=True)

    def relax_fields():
        for name in options.fields:
            if not entity.has_field(name):
                raise ReferenceNotFoundError(f'Required field "{name}" not exist.')
            entity.fields[camel_case(name)]["optional"] = True

    entity.on(LifecycleHook.AFTER_FIELDS, relax_fields)


def _timestamp_plugin(kind: FeatureKind, extra: dict):
    def apply(entity, options: TimestampOptions):
        info = {"type": "datetime", "readOnly": True, **extra}
        entity.add_feature(kind.value, {"field": options.name})
        entity.on(LifecycleHook.AFTER_FIELDS, lambda: entity.add_field(options.name, info))
    return apply


apply_create_timestamp = _timestamp_plugin(
    FeatureKind.CREATE_TIMESTAMP, {"auto": True, "fixedValue": True}
)
apply_update_timestamp = _timestamp_plugin(
    FeatureKind.UPDATE_TIMESTAMP, {"forceUpdate": True, "optional": True}
)


def apply_logical_deletion(entity, options: LogicalDeletionOptions):
    entity.add_feature(FeatureKind.LOGICAL_DELETION.value, {"field": options.field, "value": options.value})

    if options.new_field:
        info = {"type": "bool", "default": False, "readOnly": True}
        entity.on(LifecycleHook.AFTER_FIELDS, lambda: entity.add_field(options.field, info))
    else:
        entity.on(LifecycleHook.AFTER_FIELDS, lambda: _require_field(entity, options.field, FeatureKind.LOGICAL_DELETION))


def state_timestamp_field(field_name: str, state: str) -> str:
    return field_name + pascal_case(state) + "Timestamp"


def apply_state_tracking(entity, options: StateTrackingOptions):
    setting = {"field": options.field, "reversible": options.reversible}
    entity.add_feature(FeatureKind.STATE_TRACKING.value, setting, allow_multiple=True)

    timestamp_info = {"type": "datetime", "range": "timestamp", "readOnly": True, "optional": True, "auto": True}
    if not options.reversible:
        timestamp_info["fixedValue"] = True

    def add_state_timestamps():
        state_field = _require_field(entity, options.field, FeatureKind.STATE_TRACKING)
        if state_field.type != "enum":
            raise UsageError(
                f'Only enum field can be used with stateTracking feature, "{options.field}" is "{state_field.type}".'
            )
        setting["stateTimestamps"] = {}
        for state in state_field.get("values") or []:
            name = state_timestamp_field(state_field.name, state)
            entity.add_field(name, timestamp_info)
            setting["stateTimestamps"][state] = name

    entity.on(LifecycleHook.AFTER_FIELDS, add_state_timestamps)


def apply_i18n(entity, options: I18nOptions):
    entity.add_feature(FeatureKind.I18N.value, {"field": options.field, "locales": options.locales}, allow_multiple=True)

    def add_locale_fields():
        source = _require_field(entity, options.field, FeatureKind.I18N)
        suffixes = []
        for suffix in options.locales.values():
            if suffix != "default" and suffix not in suffixes:
                suffixes.append(suffix)
        for suffix in suffixes:
            info = {k: v for k, v in source.info.items() if k != "displayName"}
            entity.add_field(f"{options.field}_{suffix}", info)

    entity.on(LifecycleHook.AFTER_FIELDS, add_locale_fields)


# ------------------------------------------------------------------------------
# Runtime rules (evaluated by generated models, see oolong.lib.runtime.rules)

class Rule(NamedTuple):
    """`apply(setting, meta, context)` runs for every setting of the feature."""
    apply: Callable
    test: Optional[Callable] = None


def _exclude_deleted(setting, meta, context):
    if context.get("include_deleted"):
        return
    condition = context.setdefault("condition", {})
    condition[setting["field"]] = {"$ne": setting["value"]}


def _track_state_change(setting, meta, context):
    latest = context["latest"]
    state_field = setting["field"]
    if state_field not in latest:
        return
    existing = context.get("existing") or {}
    state = latest[state_field]
    if existing.get(state_field) == state and context.get("is_update"):
        return
    timestamp_field = (setting.get("stateTimestamps") or {}).get(state)
    if timestamp_field is None:
        raise ModelValidationError(
            f'Invalid state "{state}" of field "{state_field}".',
            {"entity": meta["name"], "field": state_field},
        )
    latest[timestamp_field] = datetime.now(timezone.utc)


def _check_at_least_one_not_null(fields, meta, context):
    latest = context["latest"]
    existing = context.get("existing") or {}

    if context.get("is_update") and not any(f in latest for f in fields):
        return

    values = [latest[f] if f in latest else existing.get(f) for f in fields]
    if all(value is None for value in values):
        names = ", ".join(json.dumps(f) for f in fields)
        raise ModelValidationError(
            f"At least one of these fields {names} should not be null.",
            {"entity": meta["name"], "fields": list(fields)},
        )


# ------------------------------------------------------------------------------
# Registry

class FeaturePlugin(NamedTuple):
    parse: Callable
    apply: Callable
    rules: dict


FEATURE_PLUGINS = {
    FeatureKind.AUTO_ID: FeaturePlugin(AutoIdOptions.parse, apply_auto_id, {}),
    FeatureKind.AT_LEAST_ONE_NOT_NULL: FeaturePlugin(
        FieldListOptions.parse,
        apply_at_least_one_not_null,
        {
            RuleScenario.POST_CREATE_CHECK: [Rule(_check_at_least_one_not_null)],
            RuleScenario.POST_UPDATE_CHECK: [Rule(_check_at_least_one_not_null)],
        },
    ),
    FeatureKind.CREATE_TIMESTAMP: FeaturePlugin(
        TimestampOptions.parser("createdAt", FeatureKind.CREATE_TIMESTAMP), apply_create_timestamp, {}
    ),
    FeatureKind.UPDATE_TIMESTAMP: FeaturePlugin(
        TimestampOptions.parser("updatedAt", FeatureKind.UPDATE_TIMESTAMP), apply_update_timestamp, {}
    ),
    FeatureKind.LOGICAL_DELETION: FeaturePlugin(
        LogicalDeletionOptions.parse,
        apply_logical_deletion,
        {RuleScenario.BEFORE_FIND: [Rule(_exclude_deleted)]},
    ),
    FeatureKind.STATE_TRACKING: FeaturePlugin(
        StateTrackingOptions.parse,
        apply_state_tracking,
        {RuleScenario.POST_DATA_VALIDATION: [Rule(_track_state_change)]},
    ),
    FeatureKind.I18N: FeaturePlugin(I18nOptions.parse, apply_i18n, {}),
}


def feature_kind(name: str) -> FeatureKind:
    try:
        return FeatureKind(name)
    except ValueError:
        raise UsageError(f'Unsupported feature "{name}".') from None


def apply_feature(entity, name: str, raw_options=None):
    """Parse the options of feature `name` and apply it to `entity`."""
    plugin = FEATURE_PLUGINS[feature_kind(name)]
    plugin.apply(entity, plugin.parse(raw_options))
