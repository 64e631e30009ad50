"""
Validation module for assessing whether formatted records are citation-ready.

A record is citation-ready when none of its annotations is a Danger.
Warnings (rounded coupling constants) are reported but do not fail a run.
"""

import html
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .annotation import Citation, Classification, Segment
from .data_io import citations_to_frame

logger = logging.getLogger(__name__)


@dataclass
class CitationSummary:
    """Counts describing one formatting run."""

    n_records: int
    n_success: int
    n_warning: int
    n_danger: int

    # kind ('h1', 'hrms', 'yield', 'weight') -> number of records
    records_by_kind: Dict[str, int] = field(default_factory=dict)
    # error class name -> number of annotations
    errors_by_kind: Dict[str, int] = field(default_factory=dict)

    warnings: List[str] = field(default_factory=list)

    @property
    def ready_fraction(self) -> float:
        if self.n_records == 0:
            return 1.0
        return (self.n_success + self.n_warning) / self.n_records

    @property
    def passed(self) -> bool:
        """Check if every record is citation-ready."""
        return self.n_danger == 0


def summarize_citations(citations: Iterable[Citation]) -> CitationSummary:
    """
    Summarize a list of citations.

    Args:
        citations: Output of the formatting pipelines

    Returns:
        CitationSummary with counts and warnings
    """
    citations = list(citations)
    by_class = Counter(c.classification for c in citations)
    errors = Counter(a.kind for c in citations for a in c.annotations if a.kind)

    summary = CitationSummary(
        n_records=len(citations),
        n_success=by_class[Classification.SUCCESS],
        n_warning=by_class[Classification.WARNING],
        n_danger=by_class[Classification.DANGER],
        records_by_kind=dict(Counter(c.kind for c in citations)),
        errors_by_kind=dict(errors),
    )

    if summary.n_records == 0:
        summary.warnings.append("No 1H NMR or HRMS records found in input")
    for c in citations:
        if not c.is_citation_ready:
            summary.warnings.append(f"Line {c.line + 1} ({c.kind}): {c.source}")

    logger.info(f"Records: {summary.n_records} "
                f"({summary.n_success} ok, {summary.n_warning} warning, {summary.n_danger} danger)")
    for kind, count in sorted(summary.errors_by_kind.items()):
        logger.info(f"  {kind}: {count}")

    return summary


def _segments_html(segments: Iterable[Segment]) -> str:
    parts = []
    for seg in segments:
        text = html.escape(seg.text)
        if seg.style is not None:
            text = f"<{seg.style.value}>{text}</{seg.style.value}>"
        if seg.annotation is not None:
            css = seg.annotation.classification.name.lower()
            title = html.escape(seg.annotation.message, quote=True)
            text = f'<span class="{css}" title="{title}">{text}</span>'
        parts.append(text)
    return ''.join(parts)


def generate_qc_report(
    summary: CitationSummary,
    citations: List[Citation],
    output_path: str,
    processing_log: Optional[List[str]] = None,
) -> None:
    """
    Generate HTML QC report.

    Args:
        summary: CitationSummary from summarize_citations
        citations: Citations to list in the report
        output_path: Path to save HTML report
        processing_log: Optional list of processing steps applied
    """
    df = citations_to_frame(citations)
    if len(df):
        by_kind = (
            df.groupby(['kind', 'classification']).size()
            .unstack(fill_value=0)
            .reindex(columns=['success', 'warning', 'danger'], fill_value=0)
        )
    else:
        by_kind = pd.DataFrame(columns=['success', 'warning', 'danger'])

    kind_rows = ''.join(
        f"<tr><td>{kind}</td><td>{row['success']}</td><td>{row['warning']}</td>"
        f"<td>{row['danger']}</td></tr>"
        for kind, row in by_kind.iterrows()
    )
    error_rows = ''.join(
        f"<tr><td>{kind}</td><td>{count}</td></tr>"
        for kind, count in sorted(summary.errors_by_kind.items())
    )
    record_rows = ''.join(
        f"<tr><td>{c.line + 1}</td><td>{c.kind}</td>"
        f"<td>{c.classification.name.lower()}</td><td>{_segments_html(c.annotated)}</td></tr>"
        for c in citations
    )
    steps = processing_log or []

    html_text = f"""
    <!DOCTYPE html>
    <html>
    <head>
        <title>Citation QC Report</title>
        <style>
            body {{ font-family: Arial, sans-serif; margin: 40px; }}
            h1 {{ color: #333; }}
            h2 {{ color: #666; border-bottom: 1px solid #ccc; }}
            .metric {{ margin: 10px 0; }}
            .metric-name {{ font-weight: bold; }}
            .metric-value {{ color: #0066cc; }}
            .warning {{ color: #cc6600; background: #fff3e0; }}
            .danger {{ color: #cc0000; background: #ffe0e0; }}
            .success {{ color: #006600; }}
            .passed {{ color: #006600; background: #e0ffe0; padding: 10px; }}
            .failed {{ color: #cc0000; background: #ffe0e0; padding: 10px; }}
            table {{ border-collapse: collapse; margin: 20px 0; }}
            th, td {{ border: 1px solid #ccc; padding: 8px; text-align: left; }}
            th {{ background: #f0f0f0; }}
        </style>
    </head>
    <body>
        <h1>Citation QC Report</h1>

        <h2>Status</h2>
        <div class="{'passed' if summary.passed else 'failed'}">
            {'PASSED' if summary.passed else 'FAILED'} -
            {'All records are citation-ready' if summary.passed else 'Review flagged records below'}
        </div>

        <div class="metric">
            <span class="metric-name">Records:</span>
            <span class="metric-value">{summary.n_records}</span>
        </div>
        <div class="metric">
            <span class="metric-name">Citation-ready:</span>
            <span class="metric-value">{summary.ready_fraction*100:.1f}%</span>
        </div>

        <h2>Records by Kind</h2>
        <table>
            <tr><th>Kind</th><th>Success</th><th>Warning</th><th>Danger</th></tr>
            {kind_rows}
        </table>

        <h2>Errors by Type</h2>
        {f'<table><tr><th>Type</th><th>Count</th></tr>{error_rows}</table>' if error_rows else '<p>No errors</p>'}

        <h2>Records</h2>
        <table>
            <tr><th>Line</th><th>Kind</th><th>Status</th><th>Citation</th></tr>
            {record_rows}
        </table>

        <h2>Warnings</h2>
        {''.join(f'<div class="warning">{html.escape(w)}</div>' for w in summary.warnings) if summary.warnings else '<p>No warnings</p>'}

        <h2>Processing Steps</h2>
        <ol>
            {''.join(f'<li>{html.escape(step)}</li>' for step in steps)}
        </ol>

    </body>
    </html>
    """

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(html_text)

    logger.info(f"QC report saved to {output_path}")
