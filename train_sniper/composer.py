from __future__ import annotations

import datetime as dt
import html
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .models import Price, TicketSolution, TrainSegment

SUBJECT = "Available Trains Found"
NOT_AVAILABLE = "N/A"


@dataclass(frozen=True)
class Fragment:
    """A piece of an email, in plain text and HTML."""

    text: str = ""
    html: str = ""

    def __add__(self, other: "Fragment") -> "Fragment":
        return Fragment(self.text + other.text, self.html + other.html)


def header() -> Fragment:
    return Fragment(
        text="New Train Availability\n\nHere are new trains found:\n",
        html=(
            "<html><body><h2>New Train Availability</h2>"
            "<p>Here are new trains found:</p>"
        ),
    )


def footer() -> Fragment:
    return Fragment(
        text="\nEnd of list.\n",
        html="<p>End of list.</p></body></html>",
    )


# ────────────────────────────────────────────────────────────────
# Field formatting, never raises
# ────────────────────────────────────────────────────────────────


def _or_na(value: object) -> str:
    if value is None or value == "":
        return NOT_AVAILABLE
    return str(value)


def format_timestamp(raw: Optional[str]) -> str:
    if not raw:
        return NOT_AVAILABLE
    try:
        return dt.datetime.fromisoformat(raw).strftime("%d/%m/%Y %H:%M")
    except (TypeError, ValueError):
        return str(raw)


def format_price(price: Optional[Price]) -> str:
    if price is None or price.amount is None:
        return NOT_AVAILABLE
    amount = f"{price.amount:.2f}"
    return f"{amount} {price.currency}" if price.currency else amount


def format_emissions(solution: TicketSolution) -> List[str]:
    """``"<vehicle>: <kg> kg"`` lines, empty when there is nothing to show."""
    co2 = solution.co2_emission
    if co2 is None or not co2.vehicle_details:
        return []
    lines = []
    for detail in co2.vehicle_details:
        kg = (
            f"{detail.kg_emissions:.2f}"
            if detail.kg_emissions is not None
            else NOT_AVAILABLE
        )
        lines.append(f"{_or_na(detail.type)}: {kg} kg")
    return lines


def _lead(solution: TicketSolution) -> Optional[TrainSegment]:
    trains = solution.solution.trains
    return trains[0] if trains else None


def _rows(solution: TicketSolution) -> List[Tuple[str, str]]:
    journey = solution.solution
    lead = _lead(solution)
    return [
        ("Train", _or_na(lead.name if lead else None)),
        ("Category", _or_na(lead.train_category if lead else None)),
        ("Description", _or_na(lead.description if lead else None)),
        ("Origin", _or_na(journey.origin)),
        ("Destination", _or_na(journey.destination)),
        ("Departure", format_timestamp(journey.departure_time)),
        ("Arrival", format_timestamp(journey.arrival_time)),
        ("Duration", _or_na(journey.duration)),
        ("Price", format_price(journey.price)),
    ]


def body(solutions: Sequence[TicketSolution], date: str) -> Fragment:
    """Render the new *solutions* found for *date*."""
    text_lines = [f"\nFor Date: {date}"]
    html_parts = [f"<h3>For Date: {html.escape(str(date))}</h3>"]

    for sol in solutions:
        rows = _rows(sol)
        emissions = format_emissions(sol)

        text_lines.append("")
        text_lines.extend(f"{label}: {value}" for label, value in rows)
        if emissions:
            text_lines.append("CO2 emissions:")
            text_lines.extend(f"  - {line}" for line in emissions)

        html_parts.append("<div>")
        html_parts.extend(
            f"<p><b>{label}:</b> {html.escape(value)}</p>" for label, value in rows
        )
        if emissions:
            html_parts.append("<p><b>CO2 emissions:</b></p><ul>")
            html_parts.extend(
                f"<li>{html.escape(line)}</li>" for line in emissions
            )
            html_parts.append("</ul>")
        html_parts.append("</div><hr>")

    return Fragment(text="\n".join(text_lines) + "\n", html="".join(html_parts))


__all__ = [
    "Fragment",
    "NOT_AVAILABLE",
    "SUBJECT",
    "body",
    "footer",
    "format_emissions",
    "format_price",
    "format_timestamp",
    "header",
]
