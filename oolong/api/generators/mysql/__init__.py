"""MySQL scripts: DDL, stored procedures and initial data."""

from oolong.api.generators.mysql.modeler import MySQLModeler, view_procedure_name

__all__ = ["MySQLModeler", "view_procedure_name"]
