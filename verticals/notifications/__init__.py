"""Notifications vertical — channel routing with quiet hours and fallback.

- Eligibility from opt-outs, contacts, quiet hours and breaker state
- Priority-dependent weights over preference, delivery rate, latency, cost
- Fallback chain for normal traffic, concurrent fan-out for critical alerts
"""
