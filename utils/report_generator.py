from fpdf import FPDF
from typing import Dict, List, Any
import logging

import pandas as pd

from utils.text_processing import sanitize_text, truncate_text

PDF_MARGIN = 15
MAX_TERMS_LINE = 180

def _heading(pdf: FPDF, text: str) -> None:
    pdf.set_font("Arial", size=12, style='B')
    pdf.cell(0, 10, sanitize_text(text), ln=True)
    pdf.set_font("Arial", size=10)

def generate_pdf_report(
    output_path: str,
    summary: Dict[str, Any],
    topic_count_scores: pd.DataFrame,
    topic_terms: Dict[str, pd.DataFrame],
    figures: List[str]
) -> None:
    """
    Generate a PDF report of one analysis run.

    Args:
        output_path (str): Where to save the final PDF file.
        summary (dict): Corpus statistics (records, documents, terms, etc.).
        topic_count_scores (DataFrame): Wide table, one row per topic count,
            one column per metric.
        topic_terms (dict): Label (e.g. "vem k=8") -> top-terms table with
            columns topic, rank, term, weight.
        figures (list of str): PNG files to append, one per page.
    """
    try:
        pdf = FPDF()
        pdf.set_margins(PDF_MARGIN, PDF_MARGIN)
        pdf.add_page()

        # Title
        pdf.set_font("Arial", size=16, style='B')
        pdf.cell(0, 10, "Publication Topic Analysis Report", ln=True, align='C')
        pdf.ln(10)

        _heading(pdf, "Corpus")
        for label, value in summary.items():
            if isinstance(value, float):
                value = f"{value:.4f}"
            pdf.cell(0, 8, sanitize_text(f"{label}: {value}"), ln=True)

        # Topic count sweep, one line per candidate
        if not topic_count_scores.empty:
            pdf.ln(5)
            _heading(pdf, "Topic Count Metrics")
            metrics = list(topic_count_scores.columns)
            pdf.set_font("Arial", size=9, style='B')
            pdf.cell(0, 6, "k    " + "  ".join(f"{m:>16}" for m in metrics), ln=True)
            pdf.set_font("Courier", size=9)
            for k, row in topic_count_scores.iterrows():
                values = "  ".join(f"{row[m]:>16.4f}" if pd.notna(row[m]) else f"{'-':>16}" for m in metrics)
                pdf.cell(0, 6, f"{k:<4} {values}", ln=True)

        # Topic terms per fitted model
        for label, terms in topic_terms.items():
            pdf.add_page()
            _heading(pdf, f"Topics ({label})")
            for topic, group in terms.groupby('topic'):
                line = ', '.join(group.sort_values('rank')['term'])
                pdf.multi_cell(0, 6, sanitize_text(f"Topic {topic}: {truncate_text(line, MAX_TERMS_LINE)}"))
                pdf.ln(1)

        for figure in figures:
            pdf.add_page()
            pdf.image(figure, x=10, w=190)

        pdf.output(output_path)
        logging.info(f"PDF report generated at: {output_path}")

    except Exception as e:
        logging.error(f"Error generating PDF: {str(e)}")
        raise
