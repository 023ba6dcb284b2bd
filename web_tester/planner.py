from __future__ import annotations

"""Template test plans handed to the orchestrator by the planning actions.

The plan is deliberately generic: three areas (functionality, input
validation, accessibility) with fixed case ids the orchestrator can then
start one by one. The session exposes these as `createTestPlan`,
`startTest` and `completeTesting`.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

logger = logging.getLogger(__name__)

MISSING_TARGET_MESSAGE = "Error: Please specify what to test (e.g., 'login form', 'checkout process')."
MISSING_CASE_MESSAGE = "Error: Please specify a test case ID to start."
COMPLETION_MESSAGE = "Testing completed. Generate your final report with findings and conclusions."

_NAVIGATE = "Navigate to the feature"
_SUBMIT = "Submit or activate the feature"


@dataclass
class PlannedCase:
    case_id: str
    description: str
    steps: List[str]
    expected: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.case_id,
            "description": self.description,
            "steps": list(self.steps),
            "expected": self.expected,
        }


@dataclass
class PlannedArea:
    name: str
    description: str
    cases: List[PlannedCase] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "testCases": [c.to_dict() for c in self.cases],
        }


@dataclass
class QaPlan:
    objective: str
    areas: List[PlannedArea]
    summary: str

    def case_ids(self) -> List[str]:
        return [c.case_id for area in self.areas for c in area.cases]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "objective": self.objective,
            "testAreas": [a.to_dict() for a in self.areas],
            "summary": self.summary,
        }


class QaPlanner:
    """Builds plans and remembers the latest one for the session."""

    def __init__(self) -> None:
        self.current_plan: QaPlan | None = None

    def create_plan(self, target: str, url: str) -> QaPlan:
        target = target.strip()
        self.current_plan = QaPlan(
            objective=f"Test the {target} at {url} to ensure functionality, usability, and accessibility",
            areas=[
                _functionality_area(target),
                _validation_area(target),
                _accessibility_area(target),
            ],
            summary=(
                f"This test plan covers basic functionality, input validation, and accessibility testing "
                f"for {target}. Execute each test case systematically and report any issues."
            ),
        )
        logger.debug("Created test plan for '%s' with cases %s", target, self.current_plan.case_ids())
        return self.current_plan

    def start_case(self, case_id: str) -> str:
        case_id = case_id.strip()
        if not case_id:
            return MISSING_CASE_MESSAGE
        if self.current_plan is not None and case_id not in self.current_plan.case_ids():
            # ids outside the template are allowed
            logger.info("Starting test case '%s' which is not in the current plan", case_id)
        return f"Starting test case {case_id}. Follow each step and report results."


def _functionality_area(target: str) -> PlannedArea:
    return PlannedArea(
        name="Functionality",
        description=f"Test that all {target} features work as expected",
        cases=[
            PlannedCase(
                "FUNC-001",
                f"Test basic {target} functionality with valid inputs",
                [_NAVIGATE, "Provide valid input data", _SUBMIT],
                "Feature should work as intended",
            ),
            PlannedCase(
                "FUNC-002",
                f"Test {target} functionality with edge cases",
                [_NAVIGATE, "Provide edge case inputs", _SUBMIT],
                "Feature should handle edge cases appropriately",
            ),
        ],
    )


def _validation_area(target: str) -> PlannedArea:
    return PlannedArea(
        name="Input Validation",
        description=f"Test how {target} validates and handles different inputs",
        cases=[
            PlannedCase(
                "VAL-001",
                f"Test {target} with invalid inputs",
                [_NAVIGATE, "Provide invalid input data", _SUBMIT],
                "Error messages should be displayed and no invalid data should be processed",
            ),
            PlannedCase(
                "VAL-002",
                f"Test {target} with boundary values",
                [_NAVIGATE, "Provide boundary value inputs", _SUBMIT],
                "System should handle boundary values according to requirements",
            ),
            PlannedCase(
                "VAL-003",
                f"Test {target} with special characters and potentially malicious inputs",
                [_NAVIGATE, "Provide inputs with special characters", _SUBMIT],
                "System should sanitize and handle special characters appropriately",
            ),
        ],
    )


def _accessibility_area(target: str) -> PlannedArea:
    return PlannedArea(
        name="Accessibility",
        description=f"Test that {target} is accessible to all users",
        cases=[
            PlannedCase(
                "ACC-001",
                f"Test {target} keyboard navigation",
                [
                    _NAVIGATE,
                    "Attempt to use all feature functionality using only keyboard",
                    "Check tab order and focus indicators",
                ],
                "All functionality should be accessible via keyboard",
            ),
            PlannedCase(
                "ACC-002",
                f"Test {target} for readable text and proper contrast",
                [_NAVIGATE, "Check text size and contrast", "Verify all content is readable"],
                "All text should be readable with adequate contrast",
            ),
        ],
    )
