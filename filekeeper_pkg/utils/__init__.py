"""Shared helpers: Salesforce CLI access, record helpers, configuration."""
