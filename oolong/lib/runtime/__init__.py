"""Support library imported by generated data-access modules."""

from oolong.lib.runtime.connector import ConditionBuilder, MySQLConnector, escape_id
from oolong.lib.runtime.model import EntityModel
from oolong.lib.runtime.rules import apply_rules
from oolong.lib.runtime.view import ViewModel

__all__ = [
    "ConditionBuilder",
    "EntityModel",
    "MySQLConnector",
    "ViewModel",
    "apply_rules",
    "escape_id",
]
