"""
Visitor tracking: conversion funnel, attribution, A/B tests and engagement signals.

Trackers are constructed explicitly with their storage, event sink, clock and random
source; nothing in this package keeps global state.
"""

from betcompare_api.tracking.behavior import EngagementScorer, ScrollDepthTracker, TimeTracker
from betcompare_api.tracking.experiments import ABTestManager
from betcompare_api.tracking.funnel import AttributionTracker, ConversionFunnel, calculate_conversion_value
from betcompare_api.tracking.sinks import HttpSink, MemorySink
from betcompare_api.tracking.storage import MemoryStorage

__all__ = [
    "ABTestManager",
    "AttributionTracker",
    "ConversionFunnel",
    "EngagementScorer",
    "HttpSink",
    "MemorySink",
    "MemoryStorage",
    "ScrollDepthTracker",
    "TimeTracker",
    "calculate_conversion_value",
]
