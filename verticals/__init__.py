"""Verticals built on the routekit decision core.

Each vertical keeps its models, config, rules, routing logic and API router
together: payments, notifications, and the skill catalog.
"""
