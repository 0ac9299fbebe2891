"""Personal CRM backend package."""
