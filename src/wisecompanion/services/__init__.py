"""Services that talk to Airtable and publish the activities snapshot."""

from .airtable import AirtableClient
from .publisher import ActivityPublisher, PublishResult

__all__ = ["ActivityPublisher", "AirtableClient", "PublishResult"]
