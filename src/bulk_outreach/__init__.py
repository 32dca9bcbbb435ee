"""Bulk outreach client: starts remote discovery/scraping jobs and watches them to completion."""

__version__ = "0.1.0"
