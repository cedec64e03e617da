"""
MedSure Interaction Engine - Interaction Report Export
Renders a BatchReport offline; no lookups beyond the report itself
"""
from datetime import datetime
from typing import List, Dict, Optional, Any

from src.core.models import BatchReport, MedicationRef, Severity

DISCLAIMER = (
    "This report is for informational purposes only. A pair with no reported "
    "interaction still requires review by a healthcare professional."
)

ACTIONABLE_ADVICE = {
    Severity.MAJOR: (
        "Contact your healthcare provider immediately. This combination may require "
        "medical supervision or alternative medications."
    ),
    Severity.MODERATE: (
        "Monitor for side effects and discuss with your healthcare provider at your next "
        "appointment. They may want to adjust dosages or timing."
    ),
    Severity.MINOR: (
        "Be aware of potential minor interactions. Inform your healthcare provider and "
        "monitor for any unusual symptoms."
    ),
}


def overall_severity(report: BatchReport) -> Severity:
    return Severity.highest(entry.severity for entry in report.interactions)


def actionable_advice(severity: Severity) -> str:
    return ACTIONABLE_ADVICE.get(severity, ACTIONABLE_ADVICE[Severity.MINOR])


def report_to_dict(
    report: BatchReport,
    medications: List[MedicationRef],
    patient_info: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """JSON-ready export payload"""
    severity = overall_severity(report)
    data = report.to_dict()
    data.update({
        "medications": [med.to_dict() for med in medications],
        "patient_info": patient_info or {},
        "overall_severity": severity.value,
        "advice": actionable_advice(severity) if report.interactions else None,
        "disclaimer": DISCLAIMER,
    })
    return data


def render_text_report(
    report: BatchReport,
    medications: List[MedicationRef],
    patient_info: Optional[Dict[str, Any]] = None,
    generated_at: Optional[datetime] = None
) -> str:
    """Plain-text body of the drug interaction report"""
    generated_at = generated_at or report.generated_at
    lines = [
        "DRUG INTERACTION REPORT",
        f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M')}",
        "",
    ]

    if patient_info:
        lines.append("PATIENT INFORMATION")
        for key, value in patient_info.items():
            if value:
                lines.append(f"  {key.replace('_', ' ').title()}: {value}")
        lines.append("")

    lines.append(f"MEDICATIONS ({len(medications)})")
    for index, med in enumerate(medications, start=1):
        generic = f" [{med.generic_name}]" if med.generic_name else ""
        lines.append(f"  {index}. {med.display_name}{generic}")
    lines.append("")

    summary = report.summary
    lines.append("SUMMARY")
    lines.append(
        f"  {summary.total} interaction(s): {summary.major} major, "
        f"{summary.moderate} moderate, {summary.minor} minor"
    )
    lines.append("")

    if not report.interactions:
        lines.append("No interactions found between the listed medications.")
    else:
        lines.append("INTERACTIONS")
        for entry in report.interactions:
            lines.append(
                f"- {entry.medication1.display_name} + {entry.medication2.display_name} "
                f"[{entry.severity.value.upper()}, confidence {entry.confidence.value}]"
            )
            for finding in entry.interactions:
                title = finding.reaction_name or finding.severity.value
                lines.append(f"    * {title}: {' '.join(finding.description.split())}")
                if finding.recommendation:
                    lines.append(f"      Recommendation: {finding.recommendation}")
                if finding.monitoring:
                    lines.append(f"      Monitoring: {finding.monitoring}")
            lines.append(f"    Sources: {', '.join(entry.sources)}")
            lines.append(f"    Advice: {actionable_advice(entry.severity)}")
        lines.append("")

    lines.append(DISCLAIMER)
    return "\n".join(lines)
