"""Ingestion helpers.

Parses two-column `date,value` CSV text into validated daily records, and
downloads/caches a default CSV from a URL. Dashboard uploads are merged once
per upload id.
"""
