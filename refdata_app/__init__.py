"""
Refdata App - Scheduled Market Reference Data Pipeline

Periodically pulls market reference data from scraped endpoints and partner
APIs, validates and transforms it, and forwards it to a downstream event
channel. Runs are gated by trading-calendar windows.
"""

__version__ = "0.1.0"
__author__ = "Refdata Team"
