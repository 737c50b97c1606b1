"""Utility functions for adcmesh."""

from adcmesh.utils.benchmark import benchmark_search, generate_query_points, log_benchmark_results

__all__ = ["benchmark_search", "generate_query_points", "log_benchmark_results"]
