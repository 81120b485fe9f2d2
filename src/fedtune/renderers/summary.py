"""Markdown run summary written next to the run log."""

from pathlib import Path

from jinja2 import Environment

from ..schema import RunReport


def render(report: RunReport, env: Environment, output_path: Path) -> Path:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    meta = {"timestamp": "", "hostname": "unknown", "log_file": ""}
    meta.update(report.meta)
    text = env.get_template("summary.md.j2").render(report=report, meta=meta)
    output_path.write_text(text)
    return output_path
