"""
Exam board PDF report rendered with reportlab.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from exam_manager.db.models import Exam, ExamBoard
from exam_manager.services.result import loaded

PDF_CONTENT_TYPE = "application/pdf"


@dataclass(frozen=True)
class ReportLabels:
    title: str
    generated_on: str
    code: str
    date: str
    institution: str
    profession: str
    exam_type: str
    examiner_name: str
    role: str
    chief_signature: str
    head_signature: str
    unknown_examiner: str
    confidential: str


LABELS = {
    "en": ReportLabels(
        title="Exam Board Report",
        generated_on="Generated on: ",
        code="Code",
        date="Date",
        institution="Institution",
        profession="Profession",
        exam_type="Exam Type",
        examiner_name="Examiner Name",
        role="Assigned Role",
        chief_signature="Chief Examiner Signature",
        head_signature="Institution Head Signature",
        unknown_examiner="Unknown Examiner",
        confidential="ExamManager System - Confidential",
    ),
    "hu": ReportLabels(
        title="Vizsgabizottsági Jelentés",
        generated_on="Létrehozva: ",
        code="Kód",
        date="Dátum",
        institution="Intézmény",
        profession="Szakma",
        exam_type="Vizsgatípus",
        examiner_name="Vizsgáztató neve",
        role="Szerepkör",
        chief_signature="Elnök aláírása",
        head_signature="Intézményvezető aláírása",
        unknown_examiner="Ismeretlen vizsgáztató",
        confidential="ExamManager rendszer - Bizalmas",
    ),
    "de": ReportLabels(
        title="Prüfungsausschussbericht",
        generated_on="Erstellt am: ",
        code="Code",
        date="Datum",
        institution="Institution",
        profession="Beruf",
        exam_type="Prüfungsart",
        examiner_name="Name des Prüfers",
        role="Rolle",
        chief_signature="Unterschrift des Vorsitzenden",
        head_signature="Unterschrift der Schulleitung",
        unknown_examiner="Unbekannter Prüfer/in",
        confidential="ExamManager-System - Vertraulich",
    ),
}


def labels_for(language: str | None) -> ReportLabels:
    """Pick labels by language prefix ("hu-HU" -> hu); English otherwise."""
    return LABELS.get((language or "en")[:2].lower(), LABELS["en"])


def render_exam_board_report(exam: Exam, boards: list[ExamBoard], language: str = "en") -> bytes:
    """Render the board report. ``exam`` must have profession/institution/exam_type loaded."""
    labels = labels_for(language)
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=2 * cm,
        rightMargin=2 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=f"{labels.title} - {exam.exam_code}",
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "ReportTitle", parent=styles["Heading1"], fontSize=20, alignment=TA_CENTER, spaceAfter=6
    )
    small = ParagraphStyle("Small", parent=styles["Normal"], fontSize=9, textColor=colors.grey)

    story = [
        Paragraph(labels.title, title_style),
        Paragraph(f"{labels.generated_on}{datetime.now(timezone.utc):%Y-%m-%d}", small),
        Spacer(1, 0.5 * cm),
        Paragraph(escape(exam.exam_name), styles["Heading2"]),
        Paragraph(f"<i>{labels.code}: {escape(exam.exam_code)}</i>", styles["Normal"]),
        Spacer(1, 0.4 * cm),
    ]

    institution = loaded(exam, "institution")
    profession = loaded(exam, "profession")
    exam_type = loaded(exam, "exam_type")
    details = Table(
        [
            [f"{labels.date}:", f"{exam.exam_date:%Y-%m-%d}"],
            [f"{labels.institution}:", institution.name if institution else "N/A"],
            [f"{labels.profession}:", profession.profession_name if profession else "N/A"],
            [f"{labels.exam_type}:", exam_type.type_name if exam_type else "N/A"],
        ],
        colWidths=[4 * cm, 12 * cm],
    )
    details.setStyle(TableStyle([("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold")]))
    story += [details, Spacer(1, 0.6 * cm)]

    rows = [["#", labels.examiner_name, labels.role]]
    for index, board in enumerate(boards, start=1):
        examiner = loaded(board, "examiner")
        name = examiner.full_name if examiner is not None and not examiner.is_deleted else labels.unknown_examiner
        rows.append([str(index), name, board.role])
    examiners = Table(rows, colWidths=[1.2 * cm, 9 * cm, 6.8 * cm], repeatRows=1)
    examiners.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.lightgrey),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ]
        )
    )
    story += [examiners, Spacer(1, 2.5 * cm)]

    signatures = Table(
        [["_" * 30, "_" * 30], [labels.chief_signature, labels.head_signature]],
        colWidths=[8.5 * cm, 8.5 * cm],
    )
    signatures.setStyle(TableStyle([("ALIGN", (0, 0), (-1, -1), "CENTER")]))
    story.append(signatures)

    def footer(canvas, document):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(colors.grey)
        canvas.drawCentredString(A4[0] / 2, 1.2 * cm, f"{labels.confidential} - {document.page}")
        canvas.restoreState()

    doc.build(story, onFirstPage=footer, onLaterPages=footer)
    return buffer.getvalue()
