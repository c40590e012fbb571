"""
# A/B Testing

`ABTestManager` assigns visitors to experiment variants and remembers the choice in
local storage under `ab_test_variants`.

On the first encounter of a test the visitor is included with probability equal to
the test's traffic allocation. Included visitors get a uniform pick from
`["control", *variants]`; everyone else gets `"control"`. Later calls return the
stored variant, so a visitor keeps seeing the same version even when the test is
registered again with different variants or allocation.
"""

import random
import time
from typing import Any, Dict, List, Optional

from betcompare_api.managers.logging_manager import get_logger
from betcompare_api.models.analytics_models import ExperimentEvent
from betcompare_api.tracking.common import Clock, event_time
from betcompare_api.tracking.sinks import EventSink
from betcompare_api.tracking.storage import Storage

logger = get_logger(prefix="[Tracking]")

STORAGE_KEY = "ab_test_variants"
CONTROL = "control"


class ABTestManager:
    def __init__(
        self,
        storage: Storage,
        sink: EventSink,
        rng: Optional[random.Random] = None,
        clock: Clock = time.time,
        session_id: Optional[str] = None,
    ):
        self.storage = storage
        self.sink = sink
        self.rng = rng or random.Random()
        self.clock = clock
        self.session_id = session_id
        self.tests: Dict[str, Dict[str, Any]] = {}
        self.assignments: Dict[str, str] = storage.get(STORAGE_KEY) or {}

    def create_test(self, test_name: str, variants: List[str], traffic_allocation: float = 1.0) -> str:
        """
        Register a test and return this visitor's variant.

        Raises:
            ValueError: On an empty test name, no variants, or an allocation outside [0, 1].
        """
        if not test_name:
            raise ValueError("Test name is required")
        if not variants:
            raise ValueError("At least one variant is required")
        if not 0 <= traffic_allocation <= 1:
            raise ValueError("Traffic allocation must be between 0 and 1")

        self.tests[test_name] = {
            "variants": list(variants),
            "traffic_allocation": traffic_allocation,
            "created_at": self.clock(),
        }
        if test_name in self.assignments:
            return self.assignments[test_name]
        return self._assign(test_name)

    def _assign(self, test_name: str) -> str:
        test = self.tests[test_name]
        if self.rng.random() < test["traffic_allocation"]:
            choices = [CONTROL, *test["variants"]]
            variant = choices[self.rng.randrange(len(choices))]
        else:
            variant = CONTROL

        self.assignments[test_name] = variant
        self.storage.set(STORAGE_KEY, self.assignments)
        logger.debug("Assigned test %s to variant %s", test_name, variant)
        self.sink.emit(
            ExperimentEvent(
                event_type="ab_test_assignment",
                session_id=self.session_id,
                timestamp=event_time(self.clock),
                test_name=test_name,
                variant=variant,
            )
        )
        return variant

    def get_variant(self, test_name: str) -> str:
        return self.assignments.get(test_name, CONTROL)

    def track_conversion(self, test_name: str, conversion_goal: str, value: float = 1) -> None:
        self.sink.emit(
            ExperimentEvent(
                event_type="ab_test_conversion",
                session_id=self.session_id,
                timestamp=event_time(self.clock),
                test_name=test_name,
                variant=self.get_variant(test_name),
                conversion_type=conversion_goal,
                conversion_value=value,
            )
        )
