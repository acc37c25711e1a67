"""
Validation module for Oolong.

- module_validators: checks over one parsed source file (textX model processor)
- compliance: structural checks a linked entity must pass before DDL generation
"""

from oolong.validation.module_validators import (
    verify_unique_names,
    verify_schema,
    verify_interfaces,
    module_processor,
)

from oolong.validation.compliance import (
    ComplianceReport,
    compliance_check,
    raise_on_errors,
)

__all__ = [
    "verify_unique_names",
    "verify_schema",
    "verify_interfaces",
    "module_processor",
    "ComplianceReport",
    "compliance_check",
    "raise_on_errors",
]
