"""
Base class of generated view models. A view loads through its stored procedure.
"""

from oolong.errors import ModelUsageError


class ViewModel:

    meta: dict = {}

    def __init__(self, db):
        self.db = db

    def _sanitize_params(self, **params) -> dict:
        return params

    def load(self, **params):
        for param in self.meta.get("params") or []:
            if param["name"] not in params:
                raise ModelUsageError(
                    f'Missing parameter "{param["name"]}" of view "{self.meta["name"]}".',
                    {"view": self.meta["name"], "param": param["name"]},
                )

        sanitized = self._sanitize_params(**params)
        args = [sanitized[p["name"]] for p in self.meta.get("params") or []]
        rows = self.db.call_procedure(self.meta["procedure"], args)

        if self.meta.get("isList"):
            return rows
        return rows[0] if rows else None
