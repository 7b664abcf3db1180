"""Remote agent gateways and the offline fallback reply."""
