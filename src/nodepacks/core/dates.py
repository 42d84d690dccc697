"""
Date Helper - Local date computations.

Dates are parsed with dateutil; naive values and bare dates are taken as
UTC, numbers as epoch milliseconds. Instants are rendered like
``2024-01-15T10:30:00.000Z`` unless a timezone-specific format is asked for.

Used both by the ``date-helper`` node and the ``date-helper-proxy`` function.
"""

from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from node_sdk import (
    BaseNode,
    InputField,
    NodeCategory,
    NodeExecutionContext,
    NodeOperationError,
    OutputField,
    select,
    text,
)


EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

UNIT_MS = {
    "seconds": 1000,
    "minutes": 1000 * 60,
    "hours": 1000 * 60 * 60,
    "days": 1000 * 60 * 60 * 24,
    "weeks": 1000 * 60 * 60 * 24 * 7,
}


class DateHelperError(ValueError):
    """Bad date input or unsupported action."""


# =============================================================================
# Parsing & rendering
# =============================================================================

def parse_date(value: Any, message: str = "Invalid date provided") -> datetime:
    """Parse a date string or epoch-ms number into an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return EPOCH + timedelta(milliseconds=value)
        except OverflowError:
            raise DateHelperError(message)
    elif isinstance(value, str) and value.strip():
        try:
            parsed = date_parser.isoparse(value.strip())
        except ValueError:
            try:
                parsed = date_parser.parse(value.strip())
            except (ValueError, OverflowError):
                raise DateHelperError(message)
    else:
        raise DateHelperError(message)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def reference_date(params: Dict[str, Any]) -> datetime:
    """``params['date']`` or now."""
    if params.get("date") in (None, ""):
        return datetime.now(timezone.utc)
    return parse_date(params["date"], "Invalid reference date")


def get_zone(name: Optional[str]) -> tzinfo:
    if not name or name == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise DateHelperError(f"Invalid timezone: {name}")


def epoch_ms(dt: datetime) -> int:
    return (dt - EPOCH) // ONE_MS


def to_iso_z(dt: datetime) -> str:
    """UTC ISO string with milliseconds and a ``Z`` suffix."""
    utc = dt.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S") + f".{utc.microsecond // 1000:03d}Z"


def utc_offset(local: datetime) -> str:
    """``+HH:MM`` / ``-HH:MM`` for an aware local datetime."""
    minutes = int(local.utcoffset().total_seconds() // 60)
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def iso_in_zone(local: datetime) -> str:
    """Second-precision ISO string with the zone's offset."""
    return local.strftime("%Y-%m-%dT%H:%M:%S") + utc_offset(local)


def human_format(local: datetime) -> str:
    """e.g. ``Monday, January 15, 2024 at 10:30 AM``"""
    hour = local.hour % 12 or 12
    meridiem = "AM" if local.hour < 12 else "PM"
    return f"{local:%A, %B} {local.day}, {local.year} at {hour:02d}:{local.minute:02d} {meridiem}"


def custom_format(local: datetime, pattern: str) -> str:
    """Replace the first ``yyyy MM dd HH mm ss`` token of each kind."""
    replacements = [
        ("yyyy", f"{local.year}"),
        ("MM", f"{local.month:02d}"),
        ("dd", f"{local.day:02d}"),
        ("HH", f"{local.hour:02d}"),
        ("mm", f"{local.minute:02d}"),
        ("ss", f"{local.second:02d}"),
    ]
    for token, value in replacements:
        pattern = pattern.replace(token, value, 1)
    return pattern


def day_of_week_number(dt: datetime) -> int:
    """Sunday = 0 ... Saturday = 6"""
    return (dt.weekday() + 1) % 7


# =============================================================================
# Actions
# =============================================================================

def get_current_date(params: Dict[str, Any]) -> Dict[str, Any]:
    tz_name = params.get("timezone") or "UTC"
    now = datetime.now(timezone.utc)
    local = now.astimezone(get_zone(tz_name))

    fmt = params.get("format")
    if fmt == "yyyy-MM-dd":
        current = local.strftime("%Y-%m-%d")
    elif fmt == "unix":
        current = str(epoch_ms(now) // 1000)
    else:
        current = iso_in_zone(local)

    return {"currentDate": current, "timestamp": epoch_ms(now), "timezone": tz_name}


def format_date(params: Dict[str, Any]) -> Dict[str, Any]:
    date = parse_date(params.get("date"))
    local = date.astimezone(get_zone(params.get("timezone")))

    fmt = params.get("format")
    if fmt == "yyyy-MM-dd":
        formatted = local.strftime("%Y-%m-%d")
    elif fmt == "MM/dd/yyyy":
        formatted = local.strftime("%m/%d/%Y")
    elif fmt == "dd/MM/yyyy":
        formatted = local.strftime("%d/%m/%Y")
    elif fmt == "human":
        formatted = human_format(local)
    elif fmt == "unix":
        formatted = str(epoch_ms(date) // 1000)
    elif fmt == "custom" and params.get("customFormat"):
        formatted = custom_format(local, str(params["customFormat"]))
    else:
        formatted = iso_in_zone(local)

    return {"formatted": formatted, "originalDate": params.get("date"), "timestamp": epoch_ms(date)}


def extract_date_parts(params: Dict[str, Any]) -> Dict[str, Any]:
    date = parse_date(params.get("date"))
    tz_name = params.get("timezone") or "UTC"
    local = date.astimezone(get_zone(tz_name))

    day_of_year = local.timetuple().tm_yday
    ms = epoch_ms(date)
    return {
        "iso": iso_in_zone(local),
        "year": local.year,
        "month": local.month,
        "day": local.day,
        "hour": local.hour,
        "minute": local.minute,
        "second": local.second,
        "millisecond": date.microsecond // 1000,
        "dayOfWeek": WEEKDAY_NAMES[day_of_week_number(local)],
        "dayOfWeekNumber": day_of_week_number(local),
        "dayOfYear": day_of_year,
        "weekNumber": math.ceil(day_of_year / 7),
        "timestamp": ms,
        "unixTimestamp": ms // 1000,
        "timezone": tz_name,
        "utcOffset": utc_offset(local),
    }


def date_difference(params: Dict[str, Any]) -> Dict[str, Any]:
    try:
        start = parse_date(params.get("startDate"))
        end = parse_date(params.get("endDate"))
    except DateHelperError:
        raise DateHelperError("Invalid date(s) provided")

    unit = params.get("unit")
    diff_ms = epoch_ms(end) - epoch_ms(start)
    start_utc, end_utc = start.astimezone(timezone.utc), end.astimezone(timezone.utc)

    if unit == "months":
        difference = (end_utc.year - start_utc.year) * 12 + (end_utc.month - start_utc.month)
    elif unit == "years":
        difference = end_utc.year - start_utc.year + (end_utc.month - start_utc.month) / 12
    else:
        difference = diff_ms / UNIT_MS.get(unit, UNIT_MS["days"])

    return {
        "difference": round(difference, 2),
        "unit": unit,
        "startDate": params.get("startDate"),
        "endDate": params.get("endDate"),
    }


def add_subtract_date(params: Dict[str, Any]) -> Dict[str, Any]:
    date = parse_date(params.get("date")).astimezone(timezone.utc)
    try:
        amount = float(params.get("amount") or 0)
    except (TypeError, ValueError):
        raise DateHelperError("Amount must be a number")
    if params.get("operation") == "subtract":
        amount = -amount

    unit = params.get("unit")
    if unit in UNIT_MS:
        result = date + timedelta(milliseconds=amount * UNIT_MS[unit])
    elif unit == "months":
        result = date + relativedelta(months=int(amount))
    elif unit == "years":
        result = date + relativedelta(years=int(amount))
    else:
        result = date

    return {
        "resultDate": to_iso_z(result),
        "originalDate": params.get("date"),
        "operation": params.get("operation"),
        "amount": params.get("amount"),
        "unit": unit,
    }


def next_day_of_week(params: Dict[str, Any]) -> Dict[str, Any]:
    ref = reference_date(params).astimezone(timezone.utc)
    try:
        target = int(params.get("dayOfWeek"))
    except (TypeError, ValueError):
        raise DateHelperError("dayOfWeek must be a number between 0 (Sunday) and 6")

    days_until = target - day_of_week_number(ref)
    if days_until <= 0:
        days_until += 7

    next_date = ref + timedelta(days=days_until)
    return {
        "nextDate": to_iso_z(next_date),
        "dayOfWeek": WEEKDAY_NAMES[day_of_week_number(next_date)],
        "daysUntil": days_until,
    }


def next_day_of_year(params: Dict[str, Any]) -> Dict[str, Any]:
    ref = reference_date(params).astimezone(timezone.utc)
    try:
        month, day = int(params.get("month")), int(params.get("day"))
        target = datetime(ref.year, month, day, tzinfo=timezone.utc)
        if target <= ref:
            target = datetime(ref.year + 1, month, day, tzinfo=timezone.utc)
    except (TypeError, ValueError):
        raise DateHelperError("Invalid month/day provided")

    return {
        "nextDate": to_iso_z(target),
        "daysUntil": math.ceil((epoch_ms(target) - epoch_ms(ref)) / UNIT_MS["days"]),
    }


def first_day_of_previous_month(params: Dict[str, Any]) -> Dict[str, Any]:
    tz_name = params.get("timezone") or "UTC"
    local = reference_date(params).astimezone(get_zone(tz_name))
    first = datetime(local.year, local.month, 1, tzinfo=timezone.utc) - relativedelta(months=1)
    return {"date": to_iso_z(first), "formatted": first.strftime("%Y-%m-%d"), "timezone": tz_name}


def last_day_of_previous_month(params: Dict[str, Any]) -> Dict[str, Any]:
    tz_name = params.get("timezone") or "UTC"
    local = reference_date(params).astimezone(get_zone(tz_name))
    last = datetime(local.year, local.month, 1, tzinfo=timezone.utc) - timedelta(days=1)
    return {"date": to_iso_z(last), "formatted": last.strftime("%Y-%m-%d"), "timezone": tz_name}


DATE_ACTIONS: Dict[str, Callable[[Dict[str, Any]], Dict[str, Any]]] = {
    "getCurrentDate": get_current_date,
    "formatDate": format_date,
    "extractDateParts": extract_date_parts,
    "dateDifference": date_difference,
    "addSubtractDate": add_subtract_date,
    "nextDayofWeek": next_day_of_week,
    "nextDayofYear": next_day_of_year,
    "firstDayOfPreviousMonth": first_day_of_previous_month,
    "lastDayOfPreviousMonth": last_day_of_previous_month,
}


def run_date_action(action: Optional[str], params: Dict[str, Any]) -> Dict[str, Any]:
    """Dispatch a date helper action; raises DateHelperError on bad input."""
    handler = DATE_ACTIONS.get(action or "")
    if handler is None:
        raise DateHelperError(f"Unsupported action: {action}")
    return {**handler(params), "status": "ok"}


# =============================================================================
# Node
# =============================================================================

class DateHelperNode(BaseNode):
    """Date Helper - format, diff and shift dates."""

    type = "date-helper"
    name = "Date Helper"
    description = "Format, compare and shift dates"
    category = NodeCategory.TRANSFORMER

    inputs = [
        select("action", "Action", list(DATE_ACTIONS), required=True, default="getCurrentDate"),
        text("timezone", "Timezone", default="UTC"),
    ]
    outputs = [OutputField(name="status", type="string")]

    ACTION_FIELDS = {
        "getCurrentDate": [select("format", "Format", ["iso", "yyyy-MM-dd", "unix"], default="iso")],
        "formatDate": [
            text("date", "Date", required=True),
            select("format", "Format",
                   ["iso", "yyyy-MM-dd", "MM/dd/yyyy", "dd/MM/yyyy", "human", "unix", "custom"],
                   default="iso"),
            text("customFormat", "Custom Format", placeholder="yyyy-MM-dd HH:mm"),
        ],
        "extractDateParts": [text("date", "Date", required=True)],
        "dateDifference": [
            text("startDate", "Start Date", required=True),
            text("endDate", "End Date", required=True),
            select("unit", "Unit", ["seconds", "minutes", "hours", "days", "weeks", "months", "years"],
                   default="days"),
        ],
        "addSubtractDate": [
            text("date", "Date", required=True),
            select("operation", "Operation", ["add", "subtract"], default="add"),
            InputField(name="amount", label="Amount", type="number", default=1),
            select("unit", "Unit", ["seconds", "minutes", "hours", "days", "weeks", "months", "years"],
                   default="days"),
        ],
        "nextDayofWeek": [
            text("date", "Reference Date"),
            select("dayOfWeek", "Day of Week", [str(i) for i in range(7)], required=True),
        ],
        "nextDayofYear": [
            text("date", "Reference Date"),
            InputField(name="month", label="Month", type="number", required=True),
            InputField(name="day", label="Day", type="number", required=True),
        ],
        "firstDayOfPreviousMonth": [text("date", "Reference Date")],
        "lastDayOfPreviousMonth": [text("date", "Reference Date")],
    }

    def get_dynamic_inputs(self, current_inputs):
        return list(self.ACTION_FIELDS.get(current_inputs.get("action") or "getCurrentDate", []))

    def execute(self, inputs: Dict[str, Any], context: NodeExecutionContext) -> Dict[str, Any]:
        params = {k: v for k, v in inputs.items() if k != "action"}
        try:
            return run_date_action(inputs.get("action"), params)
        except DateHelperError as e:
            raise NodeOperationError(str(e), node=self)


__all__ = [
    "DateHelperNode",
    "DateHelperError",
    "DATE_ACTIONS",
    "run_date_action",
    "parse_date",
    "to_iso_z",
]
