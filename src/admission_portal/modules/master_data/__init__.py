"""
Master Data Module

Read-only catalogue consumed by the application form and the fee calculator:
countries, states, cities, colleges, branches, trades, document types and
per-trade fee schedules.
"""
