"""wisecompanion: money-saving activity listings for a static site.

This package contains the publish step that pulls activities from Airtable and
writes a normalized JSON snapshot, plus the in-memory store that loads the
snapshot and answers category, sub-category, and source-app queries.
"""
