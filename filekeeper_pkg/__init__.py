"""Keep file attachments on the surviving record when CRM records are merged."""

__version__ = "1.0.0"
