"""Payments vertical — smart provider routing with fallback.

- Provider profiles with currency/country/method/amount eligibility
- Weighted scoring on fee, success rate and latency
- Idempotent execution down a circuit-breaker protected fallback chain
"""
