"""
Structural checks run on every entity before relational DDL is generated.
"""

from dataclasses import dataclass, field

from oolong.errors import ComplianceError


@dataclass
class ComplianceReport:
    errors: list = field(default_factory=list)
    warnings: list = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def compliance_check(entity) -> ComplianceReport:
    """Collect errors and warnings for one linked entity."""
    report = ComplianceReport()

    if not entity.key:
        report.errors.append("Primary key is not specified.")
        return report

    keys = entity.key if isinstance(entity.key, list) else [entity.key]
    for key in keys:
        info = entity.fields.get(key)
        if info is None:
            report.errors.append(f'Key field "{key}" not exist in entity "{entity.name}".')
            continue
        if info.get("optional"):
            report.warnings.append(f'Key field "{key}" is declared optional.')
        if info.type == "text" and not (info.get("fixedLength") or info.get("maxLength")):
            report.warnings.append(f'Key field "{key}" is a text without a length limit.')

    return report


def raise_on_errors(entity, report: ComplianceReport):
    if report.ok:
        return
    lines = [*report.warnings, *report.errors]
    raise ComplianceError(
        f'Entity "{entity.name}" failed compliance check.\nWarnings: \n' + "\n".join(lines),
        errors=report.errors,
        warnings=report.warnings,
    )
