"""Job summary markdown and terminal tables for a finished run."""

from __future__ import annotations

from rich.table import Table

from src.models.report import ActionOutcome


def build_markdown_summary(outcome: ActionOutcome) -> str:
    uploads = outcome.uploads
    lines = []
    if outcome.report is None and outcome.compare is None:
        lines += ["## Godiffy Upload Summary", ""]
    else:
        lines += ["## Godiffy Visual Regression Summary", "", "### Upload Status"]
    lines += [
        "| Status | Count |",
        "|--------|-------|",
        f"| ✅ Successful | {len(uploads.successful)} |",
        f"| ❌ Failed | {len(uploads.failed)} |",
    ]

    if uploads.failed:
        lines += ["", "<details><summary>Failed uploads</summary>", ""]
        lines += [f"- `{f.logical_path}`: {f.error_message}" for f in uploads.failed]
        lines += ["", "</details>"]

    if outcome.report is not None:
        lines += [
            "",
            "### Comparison Report",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Total Comparisons | {outcome.report.total_comparisons} |",
            f"| Differences Found | {outcome.report.differences_found} |",
        ]
        if outcome.report_url:
            lines.append(f"| Report URL | [View Report]({outcome.report_url}) |")
    elif outcome.compare is not None:
        cmp = outcome.compare
        lines += [
            "",
            "### Comparison Results",
            "| Metric | Value |",
            "|--------|-------|",
            f"| Total Comparisons | {cmp.total_comparisons} |",
            f"| Passed | {cmp.passed_comparisons} |",
            f"| Failed | {cmp.failed_comparisons} |",
            f"| Average Similarity | {cmp.average_similarity}% |",
        ]
        if outcome.report_url:
            lines.append(f"| Report URL | [View Report]({outcome.report_url}) |")

    if outcome.skip_reason:
        lines += ["", f"> Report skipped: {outcome.skip_reason}"]
    return "\n".join(lines) + "\n"


def build_results_table(outcome: ActionOutcome) -> Table:
    table = Table(title="GoDiffy Summary")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Status", outcome.status)
    table.add_row("Uploaded", f"[green]{len(outcome.uploads.successful)}[/green]")
    table.add_row("Failed uploads", f"[red]{len(outcome.uploads.failed)}[/red]")
    if outcome.report is not None:
        table.add_row("Report ID", outcome.report.id or "-")
        table.add_row("Total comparisons", str(outcome.report.total_comparisons))
        table.add_row("Differences found", f"[yellow]{outcome.report.differences_found}[/yellow]")
    if outcome.compare is not None:
        table.add_row("Total comparisons", str(outcome.compare.total_comparisons))
        table.add_row("Passed", f"[green]{outcome.compare.passed_comparisons}[/green]")
        table.add_row("Failed", f"[red]{outcome.compare.failed_comparisons}[/red]")
        table.add_row("Average similarity", f"{outcome.compare.average_similarity}%")
    if outcome.report_url:
        table.add_row("Report URL", outcome.report_url)
    if outcome.skip_reason:
        table.add_row("Skipped", f"[yellow]{outcome.skip_reason}[/yellow]")
    if outcome.error_message:
        table.add_row("Error", f"[red]{outcome.error_message}[/red]")
    return table
