"""Normalization of raw Airtable records into canonical activities."""
