"""
Base class of generated entity models.

A generated model carries a class level `meta` dict and implements
`_do_validate_and_fill(context)` with the compiled functor program of its
fields. Operations take a condition in the connector's condition format:

    model.find_one(42)                          # by key
    model.find_one({"email": "a@b.c"})
    model.find([{"status": "active"}, {"status": "pending"}])
    model.update({"id": 42, "name": "x"})       # key taken from the data
    model.delete({"id": 42})
"""

from oolong.errors import ModelOperationError, ModelUsageError, ModelValidationError
from oolong.lib.builtins import sanitize
from oolong.lib.runtime.generators import auto
from oolong.lib.runtime.rules import apply_rules
from oolong.lib.types import RuleScenario


class EntityModel:

    meta: dict = {}

    def __init__(self, db):
        self.db = db

    @property
    def table(self) -> str:
        return self.meta["name"]

    def _do_validate_and_fill(self, context):
        """Compiled validators, modifiers and composers of the entity's fields."""

    # ------------------------------------------------------------------------------
    # Conditions

    def _normalize_condition(self, condition) -> dict:
        if isinstance(condition, list):
            return {"$or": condition}
        if isinstance(condition, dict):
            return dict(condition)

        key = self.meta["keyField"]
        if isinstance(key, list):
            raise ModelUsageError(
                "Cannot use a singular value as condition to query against a entity with combined primary key.",
                {"entity": self.meta["name"]},
            )
        return {key: condition}

    def unique_key_fields(self, data: dict):
        """The first unique key (primary key included) fully present in `data`."""
        for fields in self.meta.get("uniqueKeys") or []:
            if all(data.get(f) is not None for f in fields):
                return list(fields)
        return None

    # ------------------------------------------------------------------------------
    # Operations

    def find_one(self, condition, include_deleted: bool = False):
        context = {"condition": self._normalize_condition(condition), "include_deleted": include_deleted}
        apply_rules(RuleScenario.BEFORE_FIND, self.meta, context)

        records = self.db.find(self.table, context["condition"], limit=1)
        return records[0] if records else None

    def find(self, condition=None, order_by: list = None, limit: int = None, offset: int = None,
             include_deleted: bool = False) -> list:
        context = {
            "condition": self._normalize_condition(condition) if condition is not None else {},
            "include_deleted": include_deleted,
        }
        apply_rules(RuleScenario.BEFORE_FIND, self.meta, context)
        return self.db.find(self.table, context["condition"], order_by=order_by, limit=limit, offset=offset)

    def create(self, data: dict) -> dict:
        context = {"raw": data, "latest": {}, "existing": None, "is_update": False}
        self._prepare_entity_data(context)
        apply_rules(RuleScenario.POST_CREATE_CHECK, self.meta, context)

        latest = context["latest"]
        insert_id = self.db.insert(self.table, latest)

        key = self.meta["keyField"]
        if isinstance(key, str) and latest.get(key) is None and self.meta["fields"][key].get("autoIncrementId"):
            latest[key] = insert_id
        return latest

    def update(self, data: dict, condition=None) -> dict:
        if condition is None:
            fields = self.unique_key_fields(data)
            if not fields:
                raise ModelUsageError(
                    "Primary key value(s) or at least one group of unique key value(s) is required for updating an entity.",
                    {"entity": self.meta["name"]},
                )
            condition = {f: data[f] for f in fields}
            data = {k: v for k, v in data.items() if k not in fields}

        condition = self._normalize_condition(condition)
        existing = self.find_one(condition, include_deleted=True)
        if existing is None:
            raise ModelOperationError(
                f'Entity "{self.meta["name"]}" to update is not found.',
                {"entity": self.meta["name"], "condition": condition},
            )

        context = {"raw": data, "latest": {}, "existing": existing, "is_update": True}
        self._prepare_entity_data(context)
        apply_rules(RuleScenario.POST_UPDATE_CHECK, self.meta, context)

        if context["latest"]:
            self.db.update(self.table, context["latest"], condition)
        return {**existing, **context["latest"]}

    def delete(self, condition, physical: bool = False) -> int:
        condition = self._normalize_condition(condition)
        if not condition:
            raise ModelUsageError("Empty condition is not allowed for deleting an entity.", {"entity": self.meta["name"]})

        logical = self.meta.get("features", {}).get("logicalDeletion")
        if logical and not physical:
            return self.db.update(self.table, {logical["field"]: logical["value"]}, condition)
        return self.db.delete(self.table, condition)

    # ------------------------------------------------------------------------------
    # Data preparation

    def _prepare_entity_data(self, context: dict) -> dict:
        name = self.meta["name"]
        raw = context["raw"]
        latest = context["latest"]
        existing = context.get("existing") or {}
        is_update = context["is_update"]

        for field_name, info in self.meta["fields"].items():
            error_info = {"entity": name, "field": field_name}

            if field_name in raw:
                if info.get("readOnly"):
                    raise ModelValidationError(
                        f'Read-only field "{field_name}" is not allowed to be set by manual input.', error_info
                    )

                if is_update and info.get("writeOnceOnly") and existing.get(field_name) is not None:
                    raise ModelValidationError(
                        f'Write-once field "{field_name}" is not allowed to be update once it was set.', error_info
                    )

                if raw[field_name] is None:
                    if not info.get("optional"):
                        raise ModelValidationError(
                            f'The "{field_name}" value of "{name}" entity cannot be null.', error_info
                        )
                    latest[field_name] = None
                else:
                    latest[field_name] = sanitize(info, raw[field_name])
                continue

            if is_update:
                if info.get("forceUpdate"):
                    if info.get("updateByDb"):
                        continue
                    if info.get("auto"):
                        latest[field_name] = auto(info)
                        continue
                    raise ModelValidationError(f'"{field_name}" of "{name}" entity is required for each update.', error_info)
                continue

            if info.get("createByDb"):
                continue
            if "default" in info:
                latest[field_name] = info["default"]
            elif info.get("optional"):
                continue
            elif info.get("auto"):
                latest[field_name] = auto(info)
            else:
                raise ModelValidationError(f'"{field_name}" of "{name}" entity is required.', error_info)

        apply_rules(RuleScenario.POST_DATA_VALIDATION, self.meta, context)
        self._do_validate_and_fill(context)
        return context
