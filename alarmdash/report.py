from __future__ import annotations

"""
alarmdash report generator
--------------------------
Writes a DOCX report for one `DashboardView`: the same summaries the
dashboard charts show, as static bar/line charts plus tables.

- Report dependencies (python-docx, matplotlib) are imported lazily so the
  rest of alarmdash works without them.
- Charts are drawn with the non-interactive Agg backend.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple
import os
import tempfile

from .engine import DashboardView
from .models import AggregateEntry

MONTH_NAMES = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]


@dataclass
class ReportConfig:
    title: str = "Fire Alarm Report"
    subtitle: str = "Alarms and brigade deployments"
    # rows shown in the alarm preview table
    max_rows_preview: int = 15


def generate_docx_report(
    view: DashboardView,
    out_path: str,
    *,
    config: Optional[ReportConfig] = None,
) -> str:
    """Generate a DOCX report (charts + tables) for the given view."""
    config = config or ReportConfig()

    try:
        from docx import Document
        from docx.shared import Pt, Inches
        from docx.enum.text import WD_ALIGN_PARAGRAPH
    except ImportError as e:
        raise ImportError(
            "Missing dependency: python-docx.\n"
            "Install it with: python -m pip install python-docx"
        ) from e

    try:
        import matplotlib
        matplotlib.use("Agg")
        import matplotlib.pyplot as plt
    except ImportError as e:
        raise ImportError(
            "Missing dependency: matplotlib.\n"
            "Install with: python -m pip install matplotlib"
        ) from e

    if view is None or not view.alarms:
        raise ValueError("No alarms to report on (current selection is empty).")

    sel = view.selection
    scope = f"{MONTH_NAMES[sel.month - 1]}, {sel.district or 'all districts'}"

    # -----------------------------
    # 1) Charts
    # -----------------------------
    tmpdir = tempfile.mkdtemp(prefix="alarmdash_report_")
    chart_paths: List[Tuple[str, str]] = []

    def _save(filename: str) -> str:
        path = os.path.join(tmpdir, filename)
        plt.tight_layout()
        plt.savefig(path, dpi=150)
        plt.close()
        return path

    def _bar(title: str, entries: List[AggregateEntry], ylabel: str, filename: str) -> None:
        if not entries:
            return
        plt.figure()
        plt.bar([str(e.key) for e in entries], [e.value for e in entries])
        plt.xticks(rotation=45, ha="right")
        plt.title(title)
        plt.ylabel(ylabel)
        chart_paths.append((title, _save(filename)))

    _bar(f"Top alarm types ({scope})", view.top_alarm_types, "Alarms", "top_types.png")
    _bar(f"Most active brigades ({scope})", view.most_active_brigades, "Deployments", "top_brigades.png")
    _bar(f"Average call duration by alarm type ({scope})", view.average_call_duration, "Hours", "durations.png")

    if view.alarms_per_day:
        days = [e.key[:10] for e in view.alarms_per_day]
        plt.figure()
        plt.plot(days, [e.value for e in view.alarms_per_day], marker="o")
        plt.xticks(rotation=45, ha="right")
        plt.title(f"Alarms per day ({scope})")
        plt.ylabel("Alarms")
        chart_paths.append((f"Alarms per day ({scope})", _save("per_day.png")))

    # -----------------------------
    # 2) Document
    # -----------------------------
    doc = Document()
    style = doc.styles["Normal"]
    style.font.name = "Calibri"
    style.font.size = Pt(11)

    def _center_title(text: str, size: int, bold: bool = False, italic: bool = False) -> None:
        p = doc.add_paragraph()
        r = p.add_run(text)
        r.bold = bold
        r.italic = italic
        r.font.size = Pt(size)
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER

    def _kv(key: str, value: str) -> None:
        p = doc.add_paragraph()
        r = p.add_run(f"{key}: ")
        r.bold = True
        p.add_run(value)

    _center_title(config.title, 22, bold=True)
    _center_title(config.subtitle, 12, italic=True)

    doc.add_paragraph("")
    _kv("Month", MONTH_NAMES[sel.month - 1])
    _kv("District", sel.district or "all")
    _kv("Alarms", str(len(view.alarms)))
    _kv("Brigade deployments", str(len(view.brigades)))

    doc.add_heading("Charts", level=1)
    for title, path in chart_paths:
        doc.add_paragraph(title)
        doc.add_picture(path, width=Inches(6.0))

    doc.add_heading("Alarms per district", level=1)
    t = doc.add_table(rows=1, cols=2)
    t.rows[0].cells[0].text = "District"
    t.rows[0].cells[1].text = "Alarms"
    for district, count in sorted(view.district_counts.items(), key=lambda kv: -kv[1]):
        row = t.add_row().cells
        row[0].text = district
        row[1].text = str(count)
    if view.unmapped_districts:
        doc.add_paragraph(
            "Not on the map (counted above, not coloured): "
            + ", ".join(sorted(view.unmapped_districts))
        )

    doc.add_heading("First alarms", level=1)
    t2 = doc.add_table(rows=1, cols=4)
    h = t2.rows[0].cells
    h[0].text = "Alarm"
    h[1].text = "District"
    h[2].text = "Type"
    h[3].text = "Start"
    for a in view.alarms[:config.max_rows_preview]:
        r = t2.add_row().cells
        r[0].text = str(a.alarm_id if a.alarm_id is not None else "")
        r[1].text = a.district
        r[2].text = a.alarm_type
        r[3].text = a.alarm_start.strftime("%d.%m.%Y %H:%M")

    from . import __version__
    doc.add_paragraph("")
    doc.add_paragraph(f"alarmdash version: {__version__}")
    doc.add_paragraph(f"Report generated at: {datetime.now().isoformat(timespec='seconds')}")

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    doc.save(out_path)
    return out_path
