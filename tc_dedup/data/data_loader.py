"""
Module for turning raw test case records (TCM API JSON) into TestCase objects.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import AutomationState, Step, TestCase

logger = logging.getLogger(__name__)

ACTION_FIELDS = ("action", "actual", "step", "actionText", "instruction", "name")
EXPECTED_FIELDS = ("expectedResult", "expected", "expectedText", "result")
INDEX_FIELDS = ("stepNumber", "number", "index", "order")
MODIFIED_FIELDS = ("lastModifiedAt", "last_modified", "modifiedAt", "updatedAt")


def _first_text(data: Dict[str, Any], names: Iterable[str]) -> str:
    for name in names:
        value = data.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds; None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000)
        except (OverflowError, OSError, ValueError):
            logger.debug("  [DATA LOADER] Epoch timestamp out of range %r", value)
            return None
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.debug("  [DATA LOADER] Unparseable timestamp %r", value)
    return None


def parse_step(raw: Any, position: int) -> Step:
    """
    Parse one raw step.

    Args:
        raw: Step dictionary (any of the TCM field aliases) or plain string
        position: 1-based position used when the record has no index field

    Returns:
        Step object
    """
    if isinstance(raw, str):
        return Step(index=position, action=raw.strip())
    if not isinstance(raw, dict):
        return Step(index=position)

    index = position
    for name in INDEX_FIELDS:
        value = raw.get(name)
        if isinstance(value, int) and not isinstance(value, bool):
            index = value
            break

    return Step(
        index=index,
        action=_first_text(raw, ACTION_FIELDS),
        expected_result=_first_text(raw, EXPECTED_FIELDS),
    )


def parse_test_case(record: Dict[str, Any]) -> TestCase:
    """
    Parse one raw test case record.

    A record without a ``steps`` field (or with a non-list value) becomes a
    malformed TestCase whose steps are None.

    Raises:
        ValueError: if the record is not a dictionary or carries neither key nor id
    """
    if not isinstance(record, dict):
        raise ValueError(f"Test case record must be an object, got {type(record).__name__}")

    case_id = record.get("id")
    key = record.get("key") or (f"tc-{case_id}" if case_id is not None else None)
    if not key:
        raise ValueError("Test case record has neither key nor id")

    raw_steps = record.get("steps")
    steps: Optional[List[Step]]
    if isinstance(raw_steps, list):
        steps = [parse_step(raw, position) for position, raw in enumerate(raw_steps, 1)]
    else:
        steps = None

    last_modified = None
    for name in MODIFIED_FIELDS:
        if name in record:
            last_modified = _parse_timestamp(record[name])
            break

    return TestCase(
        key=str(key),
        id=case_id if isinstance(case_id, int) else None,
        title=_first_text(record, ("title", "name")),
        automation_state=AutomationState.parse(record.get("automationState")),
        steps=steps,
        last_modified=last_modified,
        raw_data=record,
    )


def load_test_cases(records: Union[List[Any], Dict[str, Any]]) -> List[TestCase]:
    """
    Load test cases from raw records, skipping records that cannot be parsed.

    Args:
        records: List of test case records, or an API page ``{"items": [...]}``

    Returns:
        Test cases in input order
    """
    if isinstance(records, dict):
        records = records.get("items") or records.get("testCases") or []

    test_cases = []
    skipped = 0
    for position, record in enumerate(records, 1):
        try:
            test_cases.append(parse_test_case(record))
        except ValueError as e:
            skipped += 1
            logger.warning("  [DATA LOADER] Skipping record %d: %s", position, e)

    logger.info("  [DATA LOADER] Loaded %d test cases (%d records skipped)", len(test_cases), skipped)
    return test_cases


def load_test_cases_from_file(path: Union[str, Path]) -> List[TestCase]:
    """Load test cases from a JSON file."""
    path = Path(path)
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    logger.info("  [DATA LOADER] Reading %s", path)
    return load_test_cases(data)
