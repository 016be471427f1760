"""Reference-manager exports (RIS and EndNote .enw)."""

from __future__ import annotations

from collections.abc import Iterable

from scholarcite.models.reference import Reference


def _single_line(value: str) -> str:
    # Tagged formats are line-oriented; embedded newlines would start a bogus field.
    return " ".join(value.split())


def generate_ris(references: Iterable[Reference]) -> str:
    """Generate RIS records (``TY  - JOUR`` ... ``ER  - ``), one per reference."""
    records = []
    for ref in references:
        records.append(
            "TY  - JOUR\n"
            f"TI  - {_single_line(ref.title)}\n"
            f"AU  - {_single_line(ref.authors)}\n"
            f"PY  - {_single_line(ref.year)}\n"
            f"JO  - {_single_line(ref.journal)}\n"
            f"UR  - {_single_line(ref.url)}\n"
            "ER  - \n\n"
        )
    return "".join(records)


def generate_enw(references: Iterable[Reference]) -> str:
    """Generate EndNote import format records.

    %0 type, %T title, %A author, %D year, %J journal, %U url; records are
    separated by a blank line.
    """
    records = []
    for ref in references:
        records.append(
            "%0 Journal Article\n"
            f"%T {_single_line(ref.title)}\n"
            f"%A {_single_line(ref.authors)}\n"
            f"%D {_single_line(ref.year)}\n"
            f"%J {_single_line(ref.journal)}\n"
            f"%U {_single_line(ref.url)}\n"
            "\n"
        )
    return "".join(records)
