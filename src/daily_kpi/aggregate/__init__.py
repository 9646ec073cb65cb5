"""Aggregation helpers over the sorted daily series.

This package contains the monthly aggregator (sum-comparable and
average-full modes) and the KPI calculator. Both are pure functions of the
series they are given and rebuild every derived structure on each call.
"""
