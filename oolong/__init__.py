"""
Oolong: a declarative schema language.

Entity definitions written in Oolong are parsed with textX, linked into an
in-memory schema graph, and compiled into data-access modules and MySQL DDL.
"""

__version__ = "0.3.0"
